"""Turn text into fixed-length numeric vectors for distance-based classifiers."""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np
from scipy import sparse
from sklearn.feature_extraction.text import HashingVectorizer

from .tokenizers import DefaultTokenizer, Tokenizer

DEFAULT_DIMENSION = 2**10


class TextVectoriser:
    """Hashes tokenized text into a dense vector of ``dimension`` counts.

    With ``tfidf=True`` the counts are re-weighted by a streaming IDF estimate
    that is updated through :meth:`observe`.
    """

    def __init__(
        self,
        dimension: int = DEFAULT_DIMENSION,
        *,
        tokenizer: Tokenizer | None = None,
        tfidf: bool = False,
    ) -> None:
        if dimension < 1:
            raise ValueError("dimension must be positive")
        self._dimension = dimension
        self._tokenizer = tokenizer or DefaultTokenizer()
        self._vectorizer = HashingVectorizer(
            n_features=dimension,
            analyzer=self._analyse,
            token_pattern=None,
            lowercase=False,
            alternate_sign=False,
            norm=None,
        )
        self._tfidf = OnlineTfidfTransformer(dimension) if tfidf else None

    @property
    def name(self) -> str:
        return f"hashing-{self._tokenizer.name}"

    @property
    def dimension(self) -> int:
        return self._dimension

    def observe(self, text: str) -> None:
        """Record ``text`` as a training document for IDF statistics."""

        if self._tfidf is not None:
            self._tfidf.observe(self._vectorizer.transform([text]))

    def vectorize(self, text: str) -> np.ndarray:
        counts = self._vectorizer.transform([text])
        if self._tfidf is not None:
            counts = self._tfidf.transform(counts)
        return counts.toarray()[0]

    def vectorize_many(self, texts: Iterable[str]) -> np.ndarray:
        rows = [self.vectorize(text) for text in texts]
        if not rows:
            return np.empty((0, self._dimension), dtype=np.float64)
        return np.vstack(rows)

    def _analyse(self, document: str) -> list[str]:
        return [token.lower() for token in self._tokenizer.tokenize(document)]


class OnlineTfidfTransformer:
    """Streaming TF-IDF weighting for hashed term counts.

    A term weighs its share of the document's terms times
    ``log((1 + N) / (1 + df))``, where ``N`` counts the observed documents
    and ``df`` those containing the term. A term present in every observed
    document therefore weighs nothing. Until a document is observed the raw
    counts pass through unchanged.
    """

    def __init__(self, dimension: int) -> None:
        self._dimension = dimension
        self._document_count = 0
        self._document_frequency = np.zeros(dimension, dtype=np.float64)

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def document_count(self) -> int:
        return self._document_count

    def observe(self, counts: sparse.csr_matrix) -> None:
        """Count every row of ``counts`` as one training document."""

        self._check_width(counts)
        rows = sparse.csr_matrix(counts)
        for row in range(rows.shape[0]):
            present = rows.indices[rows.indptr[row] : rows.indptr[row + 1]]
            self._document_frequency[np.unique(present)] += 1
        self._document_count += rows.shape[0]

    def transform(self, counts: sparse.csr_matrix) -> sparse.csr_matrix:
        self._check_width(counts)
        weighted = sparse.csr_matrix(counts, dtype=np.float64, copy=True)
        if weighted.nnz == 0 or self._document_count == 0:
            return weighted

        row_totals = np.asarray(weighted.sum(axis=1)).ravel()
        term_frequency = weighted.data / np.repeat(row_totals, np.diff(weighted.indptr))
        idf = np.log(
            (1.0 + self._document_count) / (1.0 + self._document_frequency[weighted.indices])
        )
        weighted.data = term_frequency * idf
        return weighted

    def _check_width(self, counts: sparse.spmatrix) -> None:
        if counts.shape[1] != self._dimension:
            raise ValueError(
                f"Expected vector with {self._dimension} columns, got {counts.shape[1]}"
            )


__all__ = [
    "DEFAULT_DIMENSION",
    "OnlineTfidfTransformer",
    "TextVectoriser",
]
