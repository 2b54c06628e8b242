"""Classifiers backed by scikit-learn estimators."""

from __future__ import annotations

import pickle
from pathlib import Path
from typing import Any

import numpy as np
from sklearn.base import ClassifierMixin
from sklearn.naive_bayes import GaussianNB
from sklearn.svm import SVC

from ..types import Point
from .dataset import TrainingSet
from .persistence import read_snapshot, write_snapshot


class SklearnClassifier:
    """Shared batch-training logic for scikit-learn estimators.

    Samples are buffered in a :class:`TrainingSet` and the estimator is
    refitted from scratch on every :meth:`train` call.
    """

    variant = "sklearn"

    def __init__(self) -> None:
        self._data = TrainingSet()
        self._model: ClassifierMixin | None = None
        self._dimension: int | None = None

    def build_estimator(self) -> ClassifierMixin:
        raise NotImplementedError

    def add_training_point(self, target_class: str, point: Point) -> None:
        self._data.add(target_class, point)

    def train(self) -> None:
        matrix, labels = self._data.arrays()
        model = self.build_estimator()
        model.fit(matrix, labels.astype(str))
        self._model = model
        self._dimension = matrix.shape[1]

    def clear(self) -> None:
        self._data.clear()
        self._model = None
        self._dimension = None

    def classify_point(self, point: Point) -> str:
        if self._model is None:
            raise RuntimeError(f"{self.variant} classifier is not trained")
        vector = self._data.check_point(point)
        if len(vector) != self._dimension:
            raise ValueError(f"point has {len(vector)} dimension(s), expected {self._dimension}")
        prediction = self._model.predict(np.asarray([vector], dtype=float))
        return str(prediction[0])

    def save(self, path: Path) -> None:
        state: dict[str, Any] = {
            "data": self._data.to_payload(),
            "dimension": self._dimension,
            "model": pickle.dumps(self._model) if self._model is not None else None,
        }
        write_snapshot(path, self.variant, state)

    def load(self, path: Path) -> None:
        state = read_snapshot(path, self.variant)
        data = TrainingSet()
        data.restore(state.get("data") or {})
        raw_model = state.get("model")
        model = pickle.loads(raw_model) if raw_model is not None else None
        dimension = state.get("dimension")
        self._data = data
        self._model = model
        self._dimension = int(dimension) if dimension is not None else None

    def is_trained(self) -> bool:
        return self._model is not None


class SVMClassifier(SklearnClassifier):
    """Support vector machine with an RBF kernel."""

    variant = "svm"

    def __init__(self, *, c: float = 1.0, gamma: str | float = "scale") -> None:
        super().__init__()
        self._c = c
        self._gamma = gamma

    def build_estimator(self) -> ClassifierMixin:
        return SVC(C=self._c, kernel="rbf", gamma=self._gamma)


class NaiveBayesClassifier(SklearnClassifier):
    """Gaussian Naive Bayes."""

    variant = "naive_bayes"

    def build_estimator(self) -> ClassifierMixin:
        return GaussianNB()


__all__ = ["NaiveBayesClassifier", "SVMClassifier", "SklearnClassifier"]
