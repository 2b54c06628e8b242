"""Accumulation of labelled points shared by the built-in classifiers."""

from __future__ import annotations

import math
from collections.abc import Iterable

import numpy as np

from ..types import Point


class TrainingSet:
    """Ordered collection of labelled points with a fixed dimensionality."""

    def __init__(self) -> None:
        self._labels: list[str] = []
        self._points: list[tuple[float, ...]] = []
        self._dimension: int | None = None

    def add(self, target_class: str, point: Point) -> None:
        label = normalize_label(target_class)
        vector = self.check_point(point)
        self._labels.append(label)
        self._points.append(vector)
        if self._dimension is None:
            self._dimension = len(vector)

    def check_point(self, point: Point) -> tuple[float, ...]:
        """Return ``point`` as a tuple, raising ValueError when it does not fit."""

        vector = coerce_point(point)
        if self._dimension is not None and len(vector) != self._dimension:
            raise ValueError(
                f"point has {len(vector)} dimension(s), expected {self._dimension}"
            )
        return vector

    def clear(self) -> None:
        self._labels.clear()
        self._points.clear()
        self._dimension = None

    def arrays(self) -> tuple[np.ndarray, np.ndarray]:
        """Return the samples as a float matrix and a label vector."""

        if not self._points:
            raise ValueError("no training data")
        matrix = np.asarray(self._points, dtype=float)
        labels = np.asarray(self._labels, dtype=object)
        return matrix, labels

    def classes(self) -> list[str]:
        return sorted(set(self._labels))

    @property
    def dimension(self) -> int | None:
        return self._dimension

    def __len__(self) -> int:
        return len(self._points)

    def to_payload(self) -> dict[str, object]:
        return {
            "labels": list(self._labels),
            "points": [list(point) for point in self._points],
        }

    def restore(self, payload: dict[str, object]) -> None:
        labels = payload.get("labels") or []
        points = payload.get("points") or []
        if not isinstance(labels, list) or not isinstance(points, list):
            raise ValueError("training data payload is malformed")
        if len(labels) != len(points):
            raise ValueError("training data payload has mismatched labels and points")
        self.clear()
        for label, point in zip(labels, points):
            self.add(label, point)


def coerce_point(point: Iterable[float]) -> tuple[float, ...]:
    try:
        vector = tuple(float(value) for value in point)
    except (TypeError, ValueError) as exc:
        raise ValueError("point must be a sequence of numbers") from exc
    if not vector:
        raise ValueError("point cannot be empty")
    if not all(math.isfinite(value) for value in vector):
        raise ValueError("point values must be finite")
    return vector


def normalize_label(label: str) -> str:
    normalized = str(label).strip()
    if not normalized:
        raise ValueError("target class cannot be empty")
    return normalized


__all__ = ["TrainingSet", "coerce_point", "normalize_label"]
