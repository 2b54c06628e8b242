"""Configuration loading and validation."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

LOGGER = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CLASSIFIER_SERVER_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/classifier-server/config.yaml")
DEFAULT_ROOT_DIR = Path("~/.local/lib/classifier-server")
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8765
DEFAULT_LOCK_TIMEOUT = 30.0
DEFAULT_LOG_LEVEL = "info"


class ConfigError(ValueError):
    """Raised when configuration is invalid or missing."""


@dataclass(frozen=True)
class LoggingConfig:
    """Logging-related configuration."""

    level: str = DEFAULT_LOG_LEVEL
    debug_file: bool = False


@dataclass(frozen=True)
class ServerConfig:
    """Network binding for the RPC endpoint."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"


@dataclass(frozen=True)
class PluginConfig:
    """Where classifier plugins are discovered."""

    paths: list[Path] = field(default_factory=list)
    entry_points: bool = True


@dataclass(frozen=True)
class Config:
    """Fully parsed configuration."""

    root_dir: Path = DEFAULT_ROOT_DIR.expanduser()
    models_dir: Path | None = None
    server: ServerConfig = field(default_factory=ServerConfig)
    plugins: PluginConfig = field(default_factory=PluginConfig)
    lock_timeout: float | None = DEFAULT_LOCK_TIMEOUT
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def resolved_models_dir(self) -> Path:
        return self.models_dir or (self.root_dir / "models")


def load_config(path: Path | str | None = None) -> Config:
    """Load and validate configuration from YAML.

    A missing file is an error when it was named explicitly (argument or
    environment); a missing default file yields the built-in defaults.
    """

    config_path, explicit = _resolve_config_path(path)
    if not config_path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {config_path}")
        LOGGER.debug("No config file at %s; using defaults", config_path)
        return _parse_config({})

    with config_path.open("r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("Configuration root must be a mapping.")

    return _parse_config(raw)


def resolve_config_path(explicit: Path | str | None) -> Path:
    """Return the config path that :func:`load_config` would read."""

    return _resolve_config_path(explicit)[0]


def _resolve_config_path(explicit: Path | str | None) -> tuple[Path, bool]:
    if explicit:
        return Path(explicit).expanduser(), True
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser(), True
    return DEFAULT_CONFIG_PATH.expanduser(), False


def _parse_config(raw: dict[str, Any]) -> Config:
    root_dir = Path(raw.get("root_dir") or raw.get("rootdir") or DEFAULT_ROOT_DIR).expanduser()
    models_dir = _parse_optional_path(raw.get("models_dir"), "models_dir")
    return Config(
        root_dir=root_dir,
        models_dir=models_dir,
        server=_parse_server(raw.get("server")),
        plugins=_parse_plugins(raw.get("plugins")),
        lock_timeout=_parse_lock_timeout(raw.get("lock_timeout", DEFAULT_LOCK_TIMEOUT)),
        logging=_parse_logging(raw.get("logging")),
    )


def _parse_optional_path(value: Any, field_name: str) -> Path | None:
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{field_name} must be a non-empty string path.")
    return Path(value).expanduser()


def _parse_server(value: Any) -> ServerConfig:
    if value is None:
        return ServerConfig()
    if not isinstance(value, dict):
        raise ConfigError("server must be a mapping.")
    host = value.get("host", DEFAULT_HOST)
    if not isinstance(host, str) or not host.strip():
        raise ConfigError("server.host must be a non-empty string.")
    port = value.get("port", DEFAULT_PORT)
    if isinstance(port, bool) or not isinstance(port, int):
        raise ConfigError("server.port must be an integer.")
    if not 0 < port < 65536:
        raise ConfigError(f"server.port out of range: {port}")
    return ServerConfig(host=host.strip(), port=port)


def _parse_plugins(value: Any) -> PluginConfig:
    if value is None:
        return PluginConfig()
    if not isinstance(value, dict):
        raise ConfigError("plugins must be a mapping.")
    raw_paths = value.get("paths") or []
    if not isinstance(raw_paths, list):
        raise ConfigError("plugins.paths must be a list.")
    paths: list[Path] = []
    for idx, entry in enumerate(raw_paths, start=1):
        if not isinstance(entry, str):
            raise ConfigError(f"plugins.paths[{idx}] must be a string path.")
        paths.append(Path(entry).expanduser())
    entry_points = value.get("entry_points", True)
    if not isinstance(entry_points, bool):
        raise ConfigError("plugins.entry_points must be a boolean.")
    return PluginConfig(paths=paths, entry_points=entry_points)


def _parse_lock_timeout(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError("lock_timeout must be a number of seconds or null.")
    if value < 0:
        raise ConfigError("lock_timeout cannot be negative.")
    return float(value)


def _parse_logging(value: Any) -> LoggingConfig:
    if value is None:
        return LoggingConfig()
    if not isinstance(value, dict):
        raise ConfigError("logging must be a mapping.")
    level = str(value.get("level", DEFAULT_LOG_LEVEL)).lower()
    debug_file = bool(value.get("debug_file", False))
    return LoggingConfig(level=level, debug_file=debug_file)


__all__ = [
    "CONFIG_ENV_VAR",
    "Config",
    "ConfigError",
    "LoggingConfig",
    "PluginConfig",
    "ServerConfig",
    "load_config",
    "resolve_config_path",
]
