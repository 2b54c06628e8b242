"""Nearest-neighbour classifier over the raw training points."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from scipy.spatial.distance import cdist

from ..types import Point
from .dataset import TrainingSet
from .persistence import read_snapshot, write_snapshot


class NearestNeighborClassifier:
    """Labels a point with the class of its closest training sample.

    Distances are Euclidean. Ties resolve to the sample added first.
    Points added after :meth:`train` only take effect after the next call
    to :meth:`train`.
    """

    variant = "nearest_neighbor"

    def __init__(self) -> None:
        self._data = TrainingSet()
        self._matrix: np.ndarray | None = None
        self._labels: np.ndarray | None = None

    def add_training_point(self, target_class: str, point: Point) -> None:
        self._data.add(target_class, point)

    def train(self) -> None:
        if not len(self._data):
            raise ValueError("cannot train nearest neighbour classifier without data")
        self._matrix, self._labels = self._data.arrays()

    def clear(self) -> None:
        self._data.clear()
        self._matrix = None
        self._labels = None

    def classify_point(self, point: Point) -> str:
        if self._matrix is None or self._labels is None:
            raise RuntimeError("nearest neighbour classifier is not trained")
        query = np.asarray([self._data.check_point(point)], dtype=float)
        if query.shape[1] != self._matrix.shape[1]:
            raise ValueError(
                f"point has {query.shape[1]} dimension(s), expected {self._matrix.shape[1]}"
            )
        distances = cdist(query, self._matrix, metric="euclidean")[0]
        return str(self._labels[int(np.argmin(distances))])

    def save(self, path: Path) -> None:
        model = None
        if self._matrix is not None and self._labels is not None:
            model = {
                "labels": [str(label) for label in self._labels],
                "points": self._matrix.tolist(),
            }
        write_snapshot(path, self.variant, {"data": self._data.to_payload(), "model": model})

    def load(self, path: Path) -> None:
        state = read_snapshot(path, self.variant)
        data = TrainingSet()
        data.restore(state.get("data") or {})
        matrix, labels = _restore_model(state.get("model"))
        self._data = data
        self._matrix = matrix
        self._labels = labels

    def is_trained(self) -> bool:
        return self._matrix is not None


def _restore_model(model: object) -> tuple[np.ndarray | None, np.ndarray | None]:
    """Rebuild the fitted samples exactly as they were at the last ``train``."""

    if model is None:
        return None, None
    if not isinstance(model, dict):
        raise ValueError("nearest neighbour snapshot holds a malformed model")
    fitted = TrainingSet()
    fitted.restore(model)
    return fitted.arrays()


__all__ = ["NearestNeighborClassifier"]
