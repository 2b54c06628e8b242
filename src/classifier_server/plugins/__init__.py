"""Classifier plugin resolution."""

from __future__ import annotations

from .loader import PluginLoader
from .registry import ENTRY_POINT_GROUP, PluginRegistry, build_plugin_registry

__all__ = ["ENTRY_POINT_GROUP", "PluginLoader", "PluginRegistry", "build_plugin_registry"]
