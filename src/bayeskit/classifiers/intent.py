"""Thread-safe Bayes-style intent classifier with weighted-probability smoothing."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, ClassVar

from .. import persist
from ..locks import ReadWriteLock
from ..tokenizers import DefaultTokenizer, Tokenizer
from ..types import Prediction
from .base import NotClassifiedError, normalize_label, rank_scores

LOGGER = logging.getLogger(__name__)

BASE_WEIGHT = 1.0
ASSUMED_PROBABILITY = 0.5


class IntentClassifier:
    """Bayes classifier safe for concurrent training and querying.

    ``train`` takes an exclusive lock and ``classify``/``predict`` take a
    shared one, so any number of queries run in parallel while training is
    serialised against everything else.

    The score of a category is ``P(category) * prod(weighted(token))`` where
    the weighted token probability blends an assumed prior of 0.5 with the
    observed feature probability, weighted by how often the token was seen
    across all categories.
    """

    MODEL_NAME: ClassVar[str] = "IntentClassifier"
    SCHEMA_VERSION: ClassVar[str] = "01"

    def __init__(
        self,
        name: str = "intent",
        *,
        tokenizer: Tokenizer | None = None,
    ) -> None:
        self.name = name
        self._tokenizer = tokenizer or DefaultTokenizer()
        self._lock = ReadWriteLock()
        self._features: dict[str, dict[str, int]] = {}
        self._category_counts: dict[str, int] = {}

    @property
    def tokenizer(self) -> Tokenizer:
        return self._tokenizer

    def train(self, text: str, category: str) -> None:
        """Count every token of ``text`` against ``category``."""

        category = normalize_label(category)
        tokens = self._tokens(text)
        with self._lock.write():
            for token in tokens:
                counters = self._features.setdefault(token, {})
                counters[category] = counters.get(category, 0) + 1
            self._category_counts[category] = self._category_counts.get(category, 0) + 1

    def classify(self, text: str) -> str:
        """Return the most probable category or raise :class:`NotClassifiedError`."""

        return str(self.predict(text).category)

    def predict(self, text: str) -> Prediction:
        tokens = self._tokens(text)
        with self._lock.read():
            scores = self._scores(tokens)
        ranked = rank_scores(scores)
        if not ranked or ranked[0][1] <= 0.0:
            raise NotClassifiedError("Document could not be classified")
        category, probability = ranked[0]
        return Prediction(category=category, confidence=probability, scores=scores)

    def categories(self) -> list[str]:
        with self._lock.read():
            return sorted(self._category_counts)

    def is_trained(self) -> bool:
        with self._lock.read():
            return bool(self._category_counts)

    def save(self, path: Path) -> Path:
        return persist.save_model(self, path)

    def load(self, path: Path) -> None:
        persist.load_model(path, self)

    def to_state(self) -> dict[str, Any]:
        with self._lock.read():
            return {
                "tokenizer": self._tokenizer.name,
                "features": {
                    feature: dict(counters) for feature, counters in self._features.items()
                },
                "categories": dict(self._category_counts),
            }

    def from_state(self, state: Mapping[str, Any]) -> None:
        features = {
            str(feature): {str(category): int(count) for category, count in counters.items()}
            for feature, counters in state["features"].items()
        }
        category_counts = {
            str(category): int(count) for category, count in state["categories"].items()
        }
        if any(count < 0 for count in category_counts.values()):
            raise ValueError("category counts cannot be negative")
        saved_tokenizer = state.get("tokenizer")
        if saved_tokenizer and saved_tokenizer != self._tokenizer.name:
            LOGGER.warning(
                "Model was trained with tokenizer '%s' but '%s' is configured",
                saved_tokenizer,
                self._tokenizer.name,
            )
        with self._lock.write():
            self._features = features
            self._category_counts = category_counts

    # Helpers below assume the caller holds the lock.

    def _tokens(self, text: str) -> list[str]:
        return [token.lower() for token in self._tokenizer.tokenize(text)]

    def _scores(self, tokens: list[str]) -> dict[str, float]:
        total = sum(self._category_counts.values())
        if total == 0:
            return {}
        # A query sharing no features with any category carries no evidence.
        if not any(token in self._features for token in tokens):
            return {}
        scores: dict[str, float] = {}
        for category in sorted(self._category_counts):
            category_probability = self._category_counts[category] / total
            document_probability = 1.0
            for token in tokens:
                document_probability *= self._weighted_probability(token, category)
            scores[category] = document_probability * category_probability
            LOGGER.debug("category=%s probability=%.6g", category, scores[category])
        return scores

    def _feature_probability(self, feature: str, category: str) -> float:
        category_count = self._category_counts.get(category, 0)
        if category_count == 0:
            return 0.0
        return self._features.get(feature, {}).get(category, 0) / category_count

    def _weighted_probability(self, feature: str, category: str) -> float:
        observed = sum(self._features.get(feature, {}).values())
        probability = self._feature_probability(feature, category)
        return (BASE_WEIGHT * ASSUMED_PROBABILITY + observed * probability) / (
            BASE_WEIGHT + observed
        )


__all__ = ["IntentClassifier", "BASE_WEIGHT", "ASSUMED_PROBABILITY"]
