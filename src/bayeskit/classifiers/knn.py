"""K nearest neighbours over fixed-length numeric feature vectors."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Mapping, Sequence
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

import numpy as np

from .. import persist
from ..types import Neighbor, Prediction
from .base import DimensionMismatchError, NotClassifiedError, normalize_label

LOGGER = logging.getLogger(__name__)

TIE_DELIMITER = "#"


class DistanceMethod(str, Enum):
    """Distance functions available to the classifier."""

    EUCLIDEAN = "euclidean"
    MANHATTAN_ROOT = "manhattan_root"


def euclidean_distance(
    first: Sequence[float],
    second: Sequence[float],
    weights: Sequence[float],
) -> float:
    """``sqrt(sum(w * (a - b) ** 2))``."""

    a, b, w = _as_vectors(first, second, weights)
    return float(np.sqrt(np.dot(w, (a - b) ** 2)))


def manhattan_root_distance(
    first: Sequence[float],
    second: Sequence[float],
    weights: Sequence[float],
) -> float:
    """``sqrt(sum(w * |a - b|))``: square root of a weighted L1 sum."""

    a, b, w = _as_vectors(first, second, weights)
    return float(np.sqrt(np.dot(w, np.abs(a - b))))


def _as_vectors(*vectors: Sequence[float]) -> list[np.ndarray]:
    arrays = [np.asarray(vector, dtype=np.float64) for vector in vectors]
    lengths = {array.shape for array in arrays}
    if any(array.ndim != 1 for array in arrays) or len(lengths) != 1:
        raise DimensionMismatchError(
            "Vectors must be one-dimensional with equal length, got "
            + ", ".join(str(array.shape) for array in arrays)
        )
    return arrays


class KNearestNeighborsClassifier:
    """Lazy learner that votes among the K closest training vectors.

    ``learn_batch`` only stores the samples; all work happens in
    ``classify``. When several labels share the highest vote count the
    result is every tied label, sorted and joined with ``#`` (for example
    ``"A#B"``), so callers can detect the ambiguity.

    Not thread-safe: callers must serialise training and classification.
    """

    MODEL_NAME: ClassVar[str] = "KNearestNeighbors"
    SCHEMA_VERSION: ClassVar[str] = "01"

    def __init__(
        self,
        k: int = 3,
        distance: DistanceMethod | str = DistanceMethod.EUCLIDEAN,
        weights: Sequence[float] | None = None,
        *,
        name: str = "knn",
    ) -> None:
        if k < 1:
            raise ValueError("k must be at least 1")
        self.name = name
        self.k = k
        self.distance = DistanceMethod(distance)
        self._weights = _validate_weights(weights)
        self._samples = np.empty((0, 0), dtype=np.float64)
        self._labels: list[str] = []

    @property
    def weights(self) -> np.ndarray | None:
        return None if self._weights is None else self._weights.copy()

    @property
    def sample_count(self) -> int:
        return len(self._labels)

    def learn_batch(
        self,
        vectors: Sequence[Sequence[float]],
        labels: Sequence[str],
    ) -> None:
        """Store the training set, replacing any previous batch."""

        if len(vectors) != len(labels):
            raise ValueError(
                f"Got {len(vectors)} training vectors but {len(labels)} labels"
            )
        normalized = [normalize_label(label) for label in labels]
        samples = _as_matrix(vectors)
        if self._weights is not None and samples.size and samples.shape[1] != len(self._weights):
            raise DimensionMismatchError(
                f"Training vectors have {samples.shape[1]} features "
                f"but {len(self._weights)} weights are configured"
            )
        self._samples = samples
        self._labels = normalized
        LOGGER.debug("Stored %d training vectors", len(normalized))

    def extend_batch(
        self,
        vectors: Sequence[Sequence[float]],
        labels: Sequence[str],
    ) -> None:
        """Add vectors to the stored training set, keeping the earlier ones."""

        if len(vectors) != len(labels):
            raise ValueError(
                f"Got {len(vectors)} training vectors but {len(labels)} labels"
            )
        combined = [*self._samples.tolist(), *(list(vector) for vector in vectors)]
        self.learn_batch(combined, [*self._labels, *labels])

    def distances(self, query: Sequence[float]) -> np.ndarray:
        """Distance from ``query`` to every stored training vector."""

        vector = np.asarray(query, dtype=np.float64)
        if vector.ndim != 1 or vector.shape[0] != self._samples.shape[1]:
            raise DimensionMismatchError(
                f"Query has shape {vector.shape}, expected ({self._samples.shape[1]},)"
            )
        weights = self._effective_weights()
        difference = self._samples - vector
        if self.distance is DistanceMethod.MANHATTAN_ROOT:
            sums = np.abs(difference) @ weights
        else:
            sums = (difference**2) @ weights
        return np.sqrt(sums)

    def neighbors(self, query: Sequence[float]) -> list[Neighbor]:
        """The K nearest training samples, closest first.

        Equal distances are ordered by training index.
        """

        if not self._labels:
            raise NotClassifiedError("No training vectors have been stored")
        distances = self.distances(query)
        order = np.argsort(distances, kind="stable")[: self.k]
        return [
            Neighbor(
                index=int(index),
                distance=float(distances[index]),
                label=self._labels[index],
            )
            for index in order
        ]

    def predict_one(self, query: Sequence[float]) -> Prediction:
        selected = self.neighbors(query)
        votes = Counter(neighbor.label for neighbor in selected)
        top = max(votes.values())
        winners = sorted(label for label, count in votes.items() if count == top)
        if len(winners) > 1:
            LOGGER.warning("Query has %d tied classifications: %s", len(winners), winners)
        scores = {label: count / len(selected) for label, count in sorted(votes.items())}
        return Prediction(
            category=TIE_DELIMITER.join(winners),
            confidence=top / len(selected),
            scores=scores,
        )

    def classify_one(self, query: Sequence[float]) -> str:
        return str(self.predict_one(query).category)

    def classify(self, queries: Sequence[Sequence[float]]) -> list[str]:
        """Classify each query vector in turn."""

        return [self.classify_one(query) for query in queries]

    def is_trained(self) -> bool:
        return bool(self._labels)

    def save(self, path: Path) -> Path:
        return persist.save_model(self, path)

    def load(self, path: Path) -> None:
        persist.load_model(path, self)

    def to_state(self) -> dict[str, Any]:
        return {
            "k": self.k,
            "distance": self.distance.value,
            "weights": None if self._weights is None else self._weights.tolist(),
            "samples": self._samples.tolist(),
            "labels": list(self._labels),
        }

    def from_state(self, state: Mapping[str, Any]) -> None:
        k = int(state["k"])
        if k < 1:
            raise ValueError("k must be at least 1")
        distance = DistanceMethod(state["distance"])
        weights = _validate_weights(state["weights"])
        labels = [normalize_label(label) for label in state["labels"]]
        samples = _as_matrix(state["samples"])
        if samples.shape[0] != len(labels):
            raise ValueError("samples and labels differ in length")
        if weights is not None and samples.size and samples.shape[1] != len(weights):
            raise DimensionMismatchError("stored weights do not match stored samples")
        self.k = k
        self.distance = distance
        self._weights = weights
        self._samples = samples
        self._labels = labels

    def _effective_weights(self) -> np.ndarray:
        if self._weights is None:
            return np.ones(self._samples.shape[1], dtype=np.float64)
        return self._weights


def _validate_weights(weights: Sequence[float] | None) -> np.ndarray | None:
    if weights is None:
        return None
    array = np.asarray(weights, dtype=np.float64)
    if array.ndim != 1:
        raise DimensionMismatchError("weights must be a flat sequence")
    if np.any(array < 0) or not np.all(np.isfinite(array)):
        raise ValueError("weights must be finite and non-negative")
    return array


def _as_matrix(vectors: Sequence[Sequence[float]]) -> np.ndarray:
    if len(vectors) == 0:
        return np.empty((0, 0), dtype=np.float64)
    lengths = {len(vector) for vector in vectors}
    if len(lengths) != 1:
        raise DimensionMismatchError(
            f"Training vectors have differing lengths: {sorted(lengths)}"
        )
    return np.asarray(vectors, dtype=np.float64)


__all__ = [
    "DistanceMethod",
    "KNearestNeighborsClassifier",
    "TIE_DELIMITER",
    "euclidean_distance",
    "manhattan_root_distance",
]
