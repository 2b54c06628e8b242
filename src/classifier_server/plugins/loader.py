"""Discovery of classifier plugin modules in user directories."""

from __future__ import annotations

import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType

LOGGER = logging.getLogger(__name__)
_MODULE_PREFIX = "classifier_server.dynamic_plugins"
REGISTER_HOOK = "register_classifiers"


class PluginLoader:
    """Import plugin modules from a list of search directories.

    A plugin is either a ``*.py`` file or a package directory. When the same
    name appears in several directories, the later directory wins.
    """

    def __init__(self, paths: list[Path]) -> None:
        self._paths = [Path(path).expanduser() for path in paths]
        self._modules: dict[str, ModuleType] = {}
        self._load_order: list[str] = []

    def load_all(self) -> None:
        """Import every plugin module found on the search paths."""
        self._remove_from_sys_modules()
        self._modules.clear()
        self._load_order.clear()

        discovered: dict[str, Path] = {}
        for search_path in self._paths:
            if not search_path.exists():
                LOGGER.debug("Plugin directory %s does not exist; skipping", search_path)
                continue
            for entry in sorted(search_path.iterdir(), key=lambda item: item.name):
                name = self._module_name(entry)
                if not name:
                    continue
                discovered.pop(name, None)
                discovered[name] = entry

        for name, location in discovered.items():
            try:
                module = self._import_module(name, location)
            except Exception:
                LOGGER.exception("Failed to load classifier plugin '%s' from %s", name, location)
                raise
            self._modules[name] = module
            self._load_order.append(name)
            LOGGER.debug("Loaded classifier plugin '%s' from %s", name, location)

    def register_into(self, registry: object) -> list[str]:
        """Call ``register_classifiers(registry)`` on each plugin that defines it."""
        registered: list[str] = []
        for name in self._load_order:
            hook = getattr(self._modules[name], REGISTER_HOOK, None)
            if not callable(hook):
                LOGGER.debug("Plugin '%s' defines no %s() hook", name, REGISTER_HOOK)
                continue
            hook(registry)
            registered.append(name)
        return registered

    @property
    def module_names(self) -> list[str]:
        return list(self._load_order)

    def _remove_from_sys_modules(self) -> None:
        for name in list(sys.modules):
            if name.startswith(f"{_MODULE_PREFIX}."):
                sys.modules.pop(name, None)

    def _module_name(self, path: Path) -> str | None:
        if path.name.startswith((".", "_")):
            return None
        if path.is_file() and path.suffix == ".py":
            return path.stem
        if path.is_dir() and (path / "__init__.py").exists():
            return path.name
        return None

    def _import_module(self, name: str, path: Path) -> ModuleType:
        if path.is_dir():
            target = path / "__init__.py"
            search_locations = [str(path)]
        else:
            target = path
            search_locations = None

        spec = importlib.util.spec_from_file_location(
            f"{_MODULE_PREFIX}.{name}",
            target,
            submodule_search_locations=search_locations,
        )
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load plugin '{name}' from {target}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[spec.name] = module
        try:
            spec.loader.exec_module(module)
        except Exception:
            sys.modules.pop(spec.name, None)
            raise
        return module


__all__ = ["PluginLoader", "REGISTER_HOOK"]
