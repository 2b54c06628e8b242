"""Deterministic classifier doubles shared by the test suite."""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path


class StubClassifier:
    """Remembers its points and labels queries by the closest stored point."""

    def __init__(self) -> None:
        self.points: list[tuple[str, tuple[float, ...]]] = []
        self.trained = False
        self.train_calls = 0
        self.clear_calls = 0
        self.classify_calls = 0

    def add_training_point(self, target_class: str, point: Sequence[float]) -> None:
        self.points.append((target_class, tuple(float(value) for value in point)))

    def train(self) -> None:
        self.train_calls += 1
        if not self.points:
            raise RuntimeError("no training data")
        self.trained = True

    def clear(self) -> None:
        self.clear_calls += 1
        self.points.clear()
        self.trained = False

    def classify_point(self, point: Sequence[float]) -> str:
        self.classify_calls += 1
        if not self.points:
            return "unknown"
        best_label, _best = min(
            self.points,
            key=lambda item: sum((a - b) ** 2 for a, b in zip(item[1], point)),
        )
        return best_label

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "trained": self.trained,
            "points": [[label, list(point)] for label, point in self.points],
        }
        path.write_text(json.dumps(payload), encoding="utf-8")

    def load(self, path: Path) -> None:
        payload = json.loads(path.read_text(encoding="utf-8"))
        self.points = [(label, tuple(point)) for label, point in payload["points"]]
        self.trained = bool(payload["trained"])

    def is_trained(self) -> bool:
        return self.trained


class FailingSaveClassifier(StubClassifier):
    """Reports save failures through the boolean return convention."""

    def save(self, path: Path) -> bool:
        return False


class FailingLoadClassifier(StubClassifier):
    def load(self, path: Path) -> bool:
        return False


class DirectoryClassifier(StubClassifier):
    """Stores its snapshot as a directory holding one JSON file."""

    def save(self, path: Path) -> None:
        super().save(path / "state.json")

    def load(self, path: Path) -> None:
        super().load(path / "state.json")


class PickyClassifier(StubClassifier):
    """Rejects points whose first component is negative."""

    def add_training_point(self, target_class: str, point: Sequence[float]) -> None:
        if point[0] < 0:
            raise ValueError("negative feature")
        super().add_training_point(target_class, point)


class BrokenClassifier(StubClassifier):
    def classify_point(self, point: Sequence[float]) -> str:
        raise RuntimeError("model exploded")


def register_stubs(registry) -> None:
    """Register every stub under a descriptive class-type token."""

    registry.register("stub", StubClassifier)
    registry.register("failing_save", FailingSaveClassifier)
    registry.register("failing_load", FailingLoadClassifier)
    registry.register("picky", PickyClassifier)
    registry.register("directory", DirectoryClassifier)
    registry.register("broken", BrokenClassifier)
