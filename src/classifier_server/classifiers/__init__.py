"""Classifier implementations and infrastructure."""

from .base import Classifier
from .nearest_neighbor import NearestNeighborClassifier
from .sklearn_models import NaiveBayesClassifier, SVMClassifier
from .zero import ZeroClassifier

__all__ = [
    "Classifier",
    "NaiveBayesClassifier",
    "NearestNeighborClassifier",
    "SVMClassifier",
    "ZeroClassifier",
]
