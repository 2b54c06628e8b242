"""Classifier protocol definitions."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from ..types import Point


@runtime_checkable
class Classifier(Protocol):
    """Common interface shared by all classifier plugins."""

    def add_training_point(self, target_class: str, point: Point) -> None:
        """Accumulate a single labelled sample."""

    def train(self) -> None:
        """Fit the model on the accumulated samples."""

    def clear(self) -> None:
        """Drop all samples and model state."""

    def classify_point(self, point: Point) -> str:
        """Return the predicted class label for ``point``."""

    def save(self, path: Path) -> bool | None:
        """Persist classifier state to the given path."""

    def load(self, path: Path) -> bool | None:
        """Restore classifier state from the given path."""

    def is_trained(self) -> bool:
        """Return True when the classifier can answer queries."""


__all__ = ["Classifier"]
