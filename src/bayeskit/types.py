"""Core immutable data structures used throughout bayeskit."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class Prediction:
    """Classification result."""

    category: str | None
    confidence: float
    scores: Mapping[str, float]


@dataclass(frozen=True)
class Neighbor:
    """Distance from a query to one stored training vector."""

    index: int
    distance: float
    label: str


__all__ = [
    "Prediction",
    "Neighbor",
]
