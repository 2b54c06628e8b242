"""Baseline classifier that labels every point as ``"0"``."""

from __future__ import annotations

from pathlib import Path

from ..types import Point
from .dataset import TrainingSet
from .persistence import read_snapshot, write_snapshot

ZERO_LABEL = "0"


class ZeroClassifier:
    """Accepts any data and always predicts the same label."""

    variant = "zero"

    def __init__(self) -> None:
        self._data = TrainingSet()
        self._trained = False

    def add_training_point(self, target_class: str, point: Point) -> None:
        self._data.add(target_class, point)

    def train(self) -> None:
        self._trained = True

    def clear(self) -> None:
        self._data.clear()
        self._trained = False

    def classify_point(self, point: Point) -> str:
        return ZERO_LABEL

    def save(self, path: Path) -> None:
        write_snapshot(
            path,
            self.variant,
            {"trained": self._trained, "data": self._data.to_payload()},
        )

    def load(self, path: Path) -> None:
        state = read_snapshot(path, self.variant)
        data = TrainingSet()
        data.restore(state.get("data") or {})
        self._data = data
        self._trained = bool(state.get("trained", False))

    def is_trained(self) -> bool:
        return self._trained

    @property
    def sample_count(self) -> int:
        return len(self._data)


__all__ = ["ZERO_LABEL", "ZeroClassifier"]
