"""Tokenization strategies consumed by the text classifiers.

Classifiers only depend on the :class:`Tokenizer` protocol: a stable ``name``
and a ``tokenize`` method returning an ordered list of string tokens. Concrete
strategies are passed to classifiers at construction time.
"""

from __future__ import annotations

import re
from typing import Protocol, runtime_checkable

DEFAULT_TOKENIZER_NAME = "default"
WHITESPACE_TOKENIZER_NAME = "whitespace"
NGRAM_TOKENIZER_NAME = "ngram"
LINE_TOKENIZER_NAME = "line"
SENTENCE_TOKENIZER_NAME = "sentence"

_PUNCTUATION_RE = re.compile(r"[^a-zA-Z\u0400-\u04ff0-9_\s]")
_LINE_BREAK_RE = re.compile(r"\r\n|\n\r|\n|\r")
_SENTENCE_END_RE = re.compile(r"(?<=[.!?])\s+")

STOP_WORDS: frozenset[str] = frozenset({
    "a", "about", "after", "again", "all", "also", "am", "an", "and", "any",
    "are", "as", "at", "be", "because", "been", "before", "being", "both",
    "but", "by", "can", "could", "did", "do", "does", "doing", "for", "from",
    "had", "has", "have", "having", "he", "her", "here", "hers", "him", "his",
    "how", "i", "if", "in", "into", "is", "it", "its", "just", "me", "more",
    "most", "my", "no", "nor", "not", "of", "off", "on", "once", "only", "or",
    "other", "our", "ours", "out", "over", "own", "same", "she", "should",
    "so", "some", "such", "than", "that", "the", "their", "theirs", "them",
    "then", "there", "these", "they", "this", "those", "through", "to", "too",
    "under", "until", "up", "very", "was", "we", "were", "what", "when",
    "where", "which", "while", "who", "whom", "why", "will", "with", "would",
    "you", "your", "yours",
})


@runtime_checkable
class Tokenizer(Protocol):
    """Turns text into an ordered sequence of tokens."""

    name: str

    def tokenize(self, text: str) -> list[str]:
        """Split ``text`` into tokens."""


def is_stop_word(word: str) -> bool:
    return word.lower() in STOP_WORDS


class DefaultTokenizer:
    """Strip punctuation and split on whitespace."""

    name = DEFAULT_TOKENIZER_NAME

    def __init__(self, *, remove_stop_words: bool = False) -> None:
        self.remove_stop_words = remove_stop_words

    def tokenize(self, text: str) -> list[str]:
        words = _PUNCTUATION_RE.sub(" ", text).split()
        if self.remove_stop_words:
            return [word for word in words if not is_stop_word(word)]
        return words


class WhitespaceTokenizer:
    """Separate tokens by a single delimiter after collapsing whitespace."""

    name = WHITESPACE_TOKENIZER_NAME

    def __init__(self, delimiter: str = " ", *, remove_stop_words: bool = False) -> None:
        if not delimiter:
            raise ValueError("delimiter cannot be empty")
        self.delimiter = delimiter
        self.remove_stop_words = remove_stop_words

    def tokenize(self, text: str) -> list[str]:
        cleaned = " ".join(text.split())
        pieces = [piece for piece in cleaned.split(self.delimiter) if piece.strip()]
        if self.remove_stop_words:
            return [piece for piece in pieces if not is_stop_word(piece)]
        return pieces


class NGramTokenizer:
    """Emit contiguous word n-grams between ``min_n`` and ``max_n`` words long."""

    name = NGRAM_TOKENIZER_NAME

    def __init__(self, min_n: int = 1, max_n: int = 2) -> None:
        if min_n < 1 or max_n < min_n:
            raise ValueError(f"Invalid n-gram range ({min_n}, {max_n})")
        self.min_n = min_n
        self.max_n = max_n

    def tokenize(self, text: str) -> list[str]:
        words = text.split()
        grams: list[str] = []
        for index in range(len(words)):
            longest = min(len(words) - index, self.max_n)
            for size in range(self.min_n, longest + 1):
                grams.append(" ".join(words[index : index + size]))
        return grams


class LineTokenizer:
    """One token per non-blank line."""

    name = LINE_TOKENIZER_NAME

    def tokenize(self, text: str) -> list[str]:
        return [line.strip() for line in _LINE_BREAK_RE.split(text) if line.strip()]


class SentenceTokenizer:
    """Naive sentence splitter on terminal punctuation."""

    name = SENTENCE_TOKENIZER_NAME

    def tokenize(self, text: str) -> list[str]:
        return [part.strip() for part in _SENTENCE_END_RE.split(text.strip()) if part.strip()]


def build_tokenizer(
    name: str,
    *,
    remove_stop_words: bool = False,
    min_n: int = 1,
    max_n: int = 2,
) -> Tokenizer:
    """Construct a tokenizer strategy from its configured name."""

    normalized = name.strip().lower()
    if normalized == DEFAULT_TOKENIZER_NAME:
        return DefaultTokenizer(remove_stop_words=remove_stop_words)
    if normalized == WHITESPACE_TOKENIZER_NAME:
        return WhitespaceTokenizer(remove_stop_words=remove_stop_words)
    if normalized == NGRAM_TOKENIZER_NAME:
        return NGramTokenizer(min_n=min_n, max_n=max_n)
    if normalized == LINE_TOKENIZER_NAME:
        return LineTokenizer()
    if normalized == SENTENCE_TOKENIZER_NAME:
        return SentenceTokenizer()
    raise ValueError(f"Unknown tokenizer: {name}")


__all__ = [
    "Tokenizer",
    "DefaultTokenizer",
    "WhitespaceTokenizer",
    "NGramTokenizer",
    "LineTokenizer",
    "SentenceTokenizer",
    "STOP_WORDS",
    "build_tokenizer",
    "is_stop_word",
]
