"""Core immutable data structures shared across the service."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

Point = Sequence[float]


class ClassifierState(str, Enum):
    """Registry-visible lifecycle of a classifier instance."""

    UNTRAINED = "untrained"
    ACCUMULATING = "accumulating"
    TRAINED = "trained"


@dataclass(frozen=True)
class TrainingPoint:
    """A labelled feature vector."""

    target_class: str
    point: tuple[float, ...]


__all__ = ["ClassifierState", "Point", "TrainingPoint"]
