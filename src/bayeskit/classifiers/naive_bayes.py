"""Bag-of-words Naive Bayes classifier with Laplace smoothing."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar

from .. import persist
from ..tokenizers import DefaultTokenizer, Tokenizer
from ..types import Prediction
from .base import NotClassifiedError, normalize_label, rank_scores

LOGGER = logging.getLogger(__name__)


@dataclass
class ClassStats:
    """Aggregate state for one label."""

    name: str
    example_count: int = 0
    words: set[str] = field(default_factory=set)


class NaiveBayesClassifier:
    """Multinomial-style Naive Bayes over tokenized text.

    Each query token contributes ``(count(token, label) + 1) /
    (distinct_words(label) + vocabulary_size)`` to a label's score, where
    ``vocabulary_size`` counts every token occurrence seen during training.
    Per-token probabilities are summed rather than multiplied, which keeps
    scores comparable with models trained by earlier releases.

    Not thread-safe: callers must serialise training and classification.
    """

    MODEL_NAME: ClassVar[str] = "NaiveBayes"
    SCHEMA_VERSION: ClassVar[str] = "01"

    def __init__(
        self,
        name: str = "naive_bayes",
        *,
        tokenizer: Tokenizer | None = None,
    ) -> None:
        self.name = name
        self._tokenizer = tokenizer or DefaultTokenizer()
        self._words: dict[str, dict[str, int]] = {}
        self._classes: dict[str, ClassStats] = {}
        self._vocabulary_size = 0

    @property
    def tokenizer(self) -> Tokenizer:
        return self._tokenizer

    @property
    def vocabulary_size(self) -> int:
        return self._vocabulary_size

    def labels(self) -> list[str]:
        return sorted(self._classes)

    def learn(self, text: str, label: str) -> None:
        """Record every token of ``text`` against ``label``."""

        self.learn_tokens(self._tokenizer.tokenize(text), label)

    def learn_tokens(self, tokens: Iterable[str], label: str) -> None:
        """Train on an already tokenized document."""

        label = normalize_label(label)
        stats = self._classes.get(label)
        if stats is None:
            stats = self._classes[label] = ClassStats(name=label)
        stats.example_count += 1
        for token in tokens:
            word = token.lower()
            counters = self._words.setdefault(word, {})
            counters[label] = counters.get(label, 0) + 1
            stats.words.add(word)
            self._vocabulary_size += 1

    def learn_many(self, samples: Iterable[tuple[str, str]]) -> int:
        count = 0
        for text, label in samples:
            self.learn(text, label)
            count += 1
        return count

    def token_probability(self, token: str, label: str) -> float:
        """Laplace-smoothed probability that ``token`` belongs to ``label``."""

        try:
            stats = self._classes[label]
        except KeyError as exc:
            raise KeyError(f"Unknown label '{label}'") from exc
        denominator = len(stats.words) + self._vocabulary_size
        if denominator == 0:
            raise NotClassifiedError("Classifier has no vocabulary")
        occurrences = self._words.get(token.lower(), {}).get(label, 0)
        return (occurrences + 1) / denominator

    def scores(self, text: str) -> dict[str, float]:
        """Summed smoothed token probabilities per label."""

        if not self._classes or self._vocabulary_size == 0:
            raise NotClassifiedError("No categories have been trained")
        tokens = [token.lower() for token in self._tokenizer.tokenize(text)]
        scores: dict[str, float] = {}
        for label in sorted(self._classes):
            scores[label] = sum(self.token_probability(token, label) for token in tokens)
            LOGGER.debug("label=%s tokens=%d score=%.6f", label, len(tokens), scores[label])
        return scores

    def classify(self, text: str) -> str:
        return str(self.predict(text).category)

    def predict(self, text: str) -> Prediction:
        """Return the best label with its summed score.

        Ties are broken by label name so results are reproducible.
        """

        scores = self.scores(text)
        best_label, best_score = rank_scores(scores)[0]
        if best_score <= 0.0:
            raise NotClassifiedError("Document could not be classified")
        return Prediction(category=best_label, confidence=best_score, scores=scores)

    def is_trained(self) -> bool:
        return bool(self._classes)

    def save(self, path: Path) -> Path:
        return persist.save_model(self, path)

    def load(self, path: Path) -> None:
        persist.load_model(path, self)

    def to_state(self) -> dict[str, Any]:
        return {
            "tokenizer": self._tokenizer.name,
            "vocabulary_size": self._vocabulary_size,
            "words": {word: dict(counters) for word, counters in self._words.items()},
            "classes": {
                label: {"example_count": stats.example_count, "words": sorted(stats.words)}
                for label, stats in self._classes.items()
            },
        }

    def from_state(self, state: Mapping[str, Any]) -> None:
        vocabulary_size = int(state["vocabulary_size"])
        words = {
            str(word): {str(label): int(count) for label, count in counters.items()}
            for word, counters in state["words"].items()
        }
        classes = {
            str(label): ClassStats(
                name=str(label),
                example_count=int(raw["example_count"]),
                words={str(word) for word in raw["words"]},
            )
            for label, raw in state["classes"].items()
        }
        if vocabulary_size < 0:
            raise ValueError("vocabulary_size cannot be negative")
        saved_tokenizer = state.get("tokenizer")
        if saved_tokenizer and saved_tokenizer != self._tokenizer.name:
            LOGGER.warning(
                "Model was trained with tokenizer '%s' but '%s' is configured",
                saved_tokenizer,
                self._tokenizer.name,
            )
        self._words = words
        self._classes = classes
        self._vocabulary_size = vocabulary_size


__all__ = ["ClassStats", "NaiveBayesClassifier"]
