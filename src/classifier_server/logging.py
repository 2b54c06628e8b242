"""Logging setup for the classifier server."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import ConfigError, LoggingConfig

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
MAIN_LOG_NAME = "server.log"
DEBUG_LOG_NAME = "debug.log"
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore")

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class ConsoleFormatter(logging.Formatter):
    """Prefixes each record with a one-letter level marker, coloured on a TTY."""

    SYMBOLS: dict[int, tuple[str, str]] = {
        logging.DEBUG: ("D", "\x1b[36m"),
        logging.INFO: ("I", "\x1b[32m"),
        logging.WARNING: ("!", "\x1b[33m"),
        logging.ERROR: ("X", "\x1b[31m"),
        logging.CRITICAL: ("X", "\x1b[35m"),
    }

    RESET = "\x1b[0m"

    def __init__(self, use_color: bool) -> None:
        super().__init__("%(name)s: %(message)s")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        symbol, color = self.SYMBOLS.get(record.levelno, ("?", "\x1b[37m"))
        message = super().format(record)
        if self.use_color:
            return f"{color}{symbol}{self.RESET} {message}"
        return f"{symbol} {message}"


def configure_logging(logging_config: LoggingConfig, root_dir: Path) -> Path:
    """Install console and rotating file handlers; return the log directory."""

    level = level_from_string(logging_config.level)
    log_dir = (root_dir / "logs").expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers: list[logging.Handler] = [
        _build_file_handler(log_dir / MAIN_LOG_NAME, level=logging.INFO),
        _build_console_handler(),
    ]
    if logging_config.debug_file:
        handlers.append(_build_file_handler(log_dir / DEBUG_LOG_NAME, level=logging.DEBUG))

    logging.basicConfig(level=level, handlers=handlers, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return log_dir


def level_from_string(level: str) -> int:
    try:
        return LEVELS[level.strip().upper()]
    except KeyError as exc:
        raise ConfigError(f"Unknown log level: {level}") from exc


def _build_file_handler(path: Path, level: int) -> logging.Handler:
    handler = RotatingFileHandler(path, maxBytes=5_000_000, backupCount=5)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def _build_console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG)
    stream = getattr(handler, "stream", None)
    use_color = bool(getattr(stream, "isatty", lambda: False)())
    handler.setFormatter(ConsoleFormatter(use_color))
    return handler


__all__ = ["ConsoleFormatter", "configure_logging", "level_from_string"]
