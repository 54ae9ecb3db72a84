"""Classifier protocol definitions and shared errors."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, ClassVar, Protocol, runtime_checkable


class NotClassifiedError(LookupError):
    """Raised when no label can be chosen for the input."""


class DimensionMismatchError(ValueError):
    """Raised when feature vectors and weights differ in length."""


@runtime_checkable
class Classifier(Protocol):
    """Lifecycle shared by all classifiers: train, classify, persist."""

    MODEL_NAME: ClassVar[str]
    SCHEMA_VERSION: ClassVar[str]
    name: str

    def is_trained(self) -> bool:
        """Return True when the classifier has seen at least one sample."""

    def save(self, path: Path) -> Path:
        """Persist classifier state to the given path."""

    def load(self, path: Path) -> None:
        """Restore classifier state from the given path."""

    def to_state(self) -> dict[str, Any]:
        """Return a JSON-compatible snapshot of the learned state."""

    def from_state(self, state: Mapping[str, Any]) -> None:
        """Replace the learned state with a snapshot from ``to_state``."""


def normalize_label(label: str) -> str:
    normalized = str(label).strip()
    if not normalized:
        raise ValueError("label cannot be empty")
    return normalized


def rank_scores(scores: Mapping[str, float]) -> list[tuple[str, float]]:
    """Order labels by score descending, then by label ascending."""

    return sorted(scores.items(), key=lambda item: (-item[1], item[0]))


__all__ = [
    "Classifier",
    "DimensionMismatchError",
    "NotClassifiedError",
    "normalize_label",
    "rank_scores",
]
