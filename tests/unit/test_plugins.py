from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from classifier_server.classifiers import NearestNeighborClassifier, ZeroClassifier
from classifier_server.errors import PluginResolutionError
from classifier_server.plugins import PluginLoader, PluginRegistry, build_plugin_registry
from tests.stubs import StubClassifier


@pytest.fixture()
def plugin_dir(tmp_path: Path) -> Path:
    path = tmp_path / "plugins"
    path.mkdir()
    return path


def _write_plugin(path: Path, name: str, body: str) -> None:
    (path / f"{name}.py").write_text(dedent(body), encoding="utf-8")


def test_builtins_and_compatibility_aliases_resolve() -> None:
    registry = PluginRegistry.with_builtins()

    assert isinstance(registry.resolve("zero"), ZeroClassifier)
    assert isinstance(registry.resolve("ml_classifiers/ZeroClassifier"), ZeroClassifier)
    assert isinstance(
        registry.resolve("ml_classifiers/NearestNeighborClassifier"),
        NearestNeighborClassifier,
    )
    assert {"zero", "nearest_neighbor", "svm", "naive_bayes"} <= set(registry.tokens())


def test_resolve_returns_fresh_instances() -> None:
    registry = PluginRegistry.with_builtins()

    assert registry.resolve("zero") is not registry.resolve("zero")


@pytest.mark.parametrize("token", ["", "   ", "unknown_type"])
def test_unknown_tokens_raise(token: str) -> None:
    registry = PluginRegistry.with_builtins()

    with pytest.raises(PluginResolutionError):
        registry.resolve(token)


def test_factory_failure_is_resolution_error() -> None:
    registry = PluginRegistry()

    def explode() -> StubClassifier:
        raise RuntimeError("shared library missing")

    registry.register("fragile", explode)

    with pytest.raises(PluginResolutionError, match="shared library missing"):
        registry.resolve("fragile")


def test_non_classifier_result_is_rejected() -> None:
    registry = PluginRegistry()
    registry.register("none", lambda: None)
    registry.register("object", object)

    with pytest.raises(PluginResolutionError):
        registry.resolve("none")
    with pytest.raises(PluginResolutionError):
        registry.resolve("object")


def test_duplicate_registration_requires_replace() -> None:
    registry = PluginRegistry.with_builtins()

    with pytest.raises(ValueError):
        registry.register("zero", StubClassifier)

    registry.register("zero", StubClassifier, replace=True)
    assert isinstance(registry.resolve("zero"), StubClassifier)


def test_dotted_tokens_are_imported_on_demand() -> None:
    registry = PluginRegistry()

    instance = registry.resolve("tests.stubs:StubClassifier")

    assert isinstance(instance, StubClassifier)
    with pytest.raises(PluginResolutionError):
        registry.resolve("tests.stubs:Missing")
    with pytest.raises(PluginResolutionError):
        registry.resolve("no_such_module_anywhere:Thing")


def test_directory_plugins_register_classifiers(plugin_dir: Path) -> None:
    _write_plugin(
        plugin_dir,
        "constant",
        """
        class ConstantClassifier:
            def add_training_point(self, target_class, point):
                pass

            def train(self):
                pass

            def clear(self):
                pass

            def classify_point(self, point):
                return "constant"

            def save(self, path):
                path.write_text("constant")

            def load(self, path):
                pass

            def is_trained(self):
                return True


        def register_classifiers(registry):
            registry.register("constant", ConstantClassifier)
        """,
    )
    _write_plugin(plugin_dir, "helper", "VALUE = 1\n")

    registry = build_plugin_registry([plugin_dir], entry_points=False)

    assert "constant" in registry
    assert registry.resolve("constant").classify_point([1.0]) == "constant"


def test_loader_prefers_later_directories(tmp_path: Path) -> None:
    base = tmp_path / "base"
    override = tmp_path / "override"
    base.mkdir()
    override.mkdir()
    _write_plugin(base, "shared", "NAME = 'base'\n")
    _write_plugin(override, "shared", "NAME = 'override'\n")
    _write_plugin(base, "_private", "raise RuntimeError('should not load')\n")

    loader = PluginLoader([base, override, tmp_path / "missing"])
    loader.load_all()

    assert loader.module_names == ["shared"]


def test_broken_plugin_module_propagates(plugin_dir: Path) -> None:
    _write_plugin(plugin_dir, "broken", "raise ImportError('boom')\n")

    with pytest.raises(ImportError):
        build_plugin_registry([plugin_dir], entry_points=False)


def test_entry_points_are_registered(monkeypatch: pytest.MonkeyPatch) -> None:
    class FakeEntryPoint:
        def __init__(self, name: str, value: str, target: object) -> None:
            self.name = name
            self.value = value
            self._target = target

        def load(self) -> object:
            return self._target

    def fake_entry_points(group: str) -> list[FakeEntryPoint]:
        assert group == "classifier_server.classifiers"
        return [
            FakeEntryPoint("external_stub", "tests.stubs:StubClassifier", StubClassifier),
            FakeEntryPoint("zero", "elsewhere:Zero", StubClassifier),
        ]

    monkeypatch.setattr(
        "classifier_server.plugins.registry.metadata.entry_points",
        fake_entry_points,
    )

    registry = PluginRegistry.with_builtins()
    loaded = registry.load_entry_points()

    assert loaded == ["external_stub"]
    assert isinstance(registry.resolve("external_stub"), StubClassifier)
    assert isinstance(registry.resolve("zero"), ZeroClassifier)
