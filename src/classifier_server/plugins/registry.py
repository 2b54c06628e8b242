"""Resolution of class-type tokens into classifier instances."""

from __future__ import annotations

import importlib
import logging
import threading
from collections.abc import Callable, Iterable
from importlib import metadata
from pathlib import Path

from ..classifiers import (
    Classifier,
    NaiveBayesClassifier,
    NearestNeighborClassifier,
    SVMClassifier,
    ZeroClassifier,
)
from ..errors import PluginResolutionError
from .loader import PluginLoader

LOGGER = logging.getLogger(__name__)
ENTRY_POINT_GROUP = "classifier_server.classifiers"

ClassifierFactory = Callable[[], Classifier]

BUILTIN_CLASSIFIERS: dict[str, tuple[ClassifierFactory, tuple[str, ...]]] = {
    "zero": (ZeroClassifier, ("ml_classifiers/ZeroClassifier",)),
    "nearest_neighbor": (
        NearestNeighborClassifier,
        ("ml_classifiers/NearestNeighborClassifier",),
    ),
    "svm": (SVMClassifier, ("ml_classifiers/SVMClassifier",)),
    "naive_bayes": (NaiveBayesClassifier, ()),
}


class PluginRegistry:
    """Maps class-type tokens to classifier factories.

    Tokens that are not registered but look like ``package.module:Attribute``
    are imported on demand.
    """

    def __init__(self) -> None:
        self._factories: dict[str, ClassifierFactory] = {}
        self._lock = threading.Lock()

    @classmethod
    def with_builtins(cls) -> PluginRegistry:
        registry = cls()
        for token, (factory, aliases) in BUILTIN_CLASSIFIERS.items():
            registry.register(token, factory, aliases=aliases)
        return registry

    def register(
        self,
        token: str,
        factory: ClassifierFactory,
        *,
        aliases: Iterable[str] = (),
        replace: bool = False,
    ) -> None:
        if not callable(factory):
            raise TypeError(f"Factory for class type '{token}' is not callable")
        names = [_normalize_token(token), *(_normalize_token(alias) for alias in aliases)]
        with self._lock:
            if not replace:
                for name in names:
                    if name in self._factories:
                        raise ValueError(f"Class type '{name}' is already registered.")
            for name in names:
                self._factories[name] = factory
        LOGGER.debug("Registered classifier class type '%s'", names[0])

    def resolve(self, class_type: str) -> Classifier:
        """Construct a fresh classifier for ``class_type``.

        Raises :class:`PluginResolutionError` when the token is unknown, the
        factory fails, or the result is not a classifier.
        """

        token = (class_type or "").strip()
        if not token:
            raise PluginResolutionError("Class type cannot be empty")
        factory = self._factory_for(token)
        try:
            instance = factory()
        except Exception as exc:
            raise PluginResolutionError(
                f"Classifier plugin '{token}' failed to construct: {exc}",
                details={"class_type": token},
            ) from exc
        if instance is None or not isinstance(instance, Classifier):
            raise PluginResolutionError(
                f"Classifier plugin '{token}' did not produce a classifier",
                details={"class_type": token},
            )
        return instance

    def tokens(self) -> list[str]:
        with self._lock:
            return sorted(self._factories)

    def __contains__(self, token: object) -> bool:
        if not isinstance(token, str):
            return False
        with self._lock:
            return token.strip() in self._factories

    def load_entry_points(self, group: str = ENTRY_POINT_GROUP) -> list[str]:
        """Register factories advertised by installed distributions."""

        loaded: list[str] = []
        for entry_point in metadata.entry_points(group=group):
            if entry_point.name in self:
                LOGGER.warning(
                    "Ignoring entry point '%s' (%s); class type already registered",
                    entry_point.name,
                    entry_point.value,
                )
                continue
            try:
                factory = entry_point.load()
            except Exception:
                LOGGER.exception(
                    "Failed to load classifier entry point '%s' (%s)",
                    entry_point.name,
                    entry_point.value,
                )
                continue
            self.register(entry_point.name, factory)
            loaded.append(entry_point.name)
        return loaded

    def load_directories(self, paths: list[Path]) -> list[str]:
        """Import plugin modules from ``paths`` and run their register hooks."""

        loader = PluginLoader(paths)
        loader.load_all()
        return loader.register_into(self)

    def _factory_for(self, token: str) -> ClassifierFactory:
        with self._lock:
            factory = self._factories.get(token)
        if factory is not None:
            return factory
        if ":" in token:
            return _import_factory(token)
        raise PluginResolutionError(
            f"Unknown classifier class type: {token}",
            details={"class_type": token, "available": self.tokens()},
        )


def _import_factory(token: str) -> ClassifierFactory:
    module_name, _, attribute = token.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise PluginResolutionError(
            f"Cannot import classifier module '{module_name}': {exc}",
            details={"class_type": token},
        ) from exc
    target: object = module
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise PluginResolutionError(
                f"Module '{module_name}' has no attribute '{attribute}'",
                details={"class_type": token},
            ) from exc
    if not callable(target):
        raise PluginResolutionError(
            f"Classifier factory '{token}' is not callable",
            details={"class_type": token},
        )
    return target


def _normalize_token(token: str) -> str:
    normalized = str(token).strip()
    if not normalized:
        raise ValueError("Class type token cannot be empty")
    return normalized


def build_plugin_registry(
    paths: list[Path] | None = None,
    *,
    entry_points: bool = True,
) -> PluginRegistry:
    """Return a registry with built-ins, entry points and directory plugins."""

    registry = PluginRegistry.with_builtins()
    if entry_points:
        loaded = registry.load_entry_points()
        if loaded:
            LOGGER.info("Loaded classifier entry points: %s", ", ".join(loaded))
    if paths:
        loaded = registry.load_directories(paths)
        if loaded:
            LOGGER.info("Loaded classifier plugins: %s", ", ".join(loaded))
    return registry


__all__ = [
    "BUILTIN_CLASSIFIERS",
    "ENTRY_POINT_GROUP",
    "ClassifierFactory",
    "PluginRegistry",
    "build_plugin_registry",
]
