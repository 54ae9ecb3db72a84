"""Construct classifiers from configuration and persisted model files."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from ..config import Config
from ..persist import IncompatibleModelError, read_envelope
from .base import Classifier
from .intent import IntentClassifier
from .knn import KNearestNeighborsClassifier
from .naive_bayes import NaiveBayesClassifier


class ModelKind(str, Enum):
    """Classifier families that can be trained from the command line."""

    NAIVE_BAYES = "naive-bayes"
    INTENT = "intent"
    KNN = "knn"


MODEL_NAMES: dict[str, ModelKind] = {
    NaiveBayesClassifier.MODEL_NAME: ModelKind.NAIVE_BAYES,
    IntentClassifier.MODEL_NAME: ModelKind.INTENT,
    KNearestNeighborsClassifier.MODEL_NAME: ModelKind.KNN,
}


def create_classifier(kind: ModelKind | str, config: Config) -> Classifier:
    """Build an untrained classifier of ``kind`` using configured defaults."""

    kind = ModelKind(kind)
    if kind is ModelKind.NAIVE_BAYES:
        return NaiveBayesClassifier(tokenizer=config.tokenizer.build())
    if kind is ModelKind.INTENT:
        return IntentClassifier(tokenizer=config.tokenizer.build())
    return KNearestNeighborsClassifier(
        k=config.knn.k,
        distance=config.knn.distance,
        weights=config.knn.weights,
    )


def kind_of_model(path: Path) -> ModelKind:
    """Detect which classifier wrote the model at ``path``."""

    envelope = read_envelope(path)
    try:
        return MODEL_NAMES[envelope.name]
    except KeyError as exc:
        raise IncompatibleModelError(
            f"Unknown classifier '{envelope.name}' in {path}",
            found=envelope.name,
        ) from exc


def open_model(path: Path, config: Config) -> Classifier:
    """Load a model of whichever kind is stored at ``path``."""

    classifier = create_classifier(kind_of_model(path), config)
    classifier.load(path)
    return classifier


__all__ = ["ModelKind", "MODEL_NAMES", "create_classifier", "kind_of_model", "open_model"]
