"""Classifier implementations and infrastructure."""

from .base import Classifier, DimensionMismatchError, NotClassifiedError
from .intent import IntentClassifier
from .knn import (
    DistanceMethod,
    KNearestNeighborsClassifier,
    euclidean_distance,
    manhattan_root_distance,
)
from .naive_bayes import NaiveBayesClassifier

__all__ = [
    "Classifier",
    "DimensionMismatchError",
    "DistanceMethod",
    "IntentClassifier",
    "KNearestNeighborsClassifier",
    "NaiveBayesClassifier",
    "NotClassifiedError",
    "euclidean_distance",
    "manhattan_root_distance",
]
