from __future__ import annotations

import logging

import pytest

from classifier_server.config import ConfigError, LoggingConfig
from classifier_server.errors import (
    ClassifierBusyError,
    ErrorCode,
    PersistenceError,
    PointRejectedError,
    ServiceError,
    UnknownIdentifierError,
    error_for_code,
)
from classifier_server.logging import ConsoleFormatter, configure_logging, level_from_string


def test_error_codes_are_stable_strings() -> None:
    assert ErrorCode.UNKNOWN_IDENTIFIER == "UNKNOWN_IDENTIFIER"
    assert PersistenceError("disk full").code is ErrorCode.PERSISTENCE_FAILED
    assert ServiceError("oops").code is ErrorCode.INTERNAL_ERROR


def test_error_for_code_rebuilds_typed_errors() -> None:
    unknown = error_for_code("UNKNOWN_IDENTIFIER", "ignored", {"identifier": "A"})
    assert isinstance(unknown, UnknownIdentifierError)
    assert unknown.identifier == "A"

    busy = error_for_code(ErrorCode.CLASSIFIER_BUSY, "busy", {"identifier": "B", "timeout": 1})
    assert isinstance(busy, ClassifierBusyError)
    assert busy.details == {"identifier": "B", "timeout": 1}

    persistence = error_for_code("PERSISTENCE_FAILED", "disk full", {"path": "/x"})
    assert isinstance(persistence, PersistenceError)
    assert str(persistence) == "disk full"
    assert persistence.details == {"path": "/x"}


def test_error_for_code_rebuilds_point_rejection() -> None:
    error = error_for_code("POINT_REJECTED", "negative feature", {"index": 2, "added": 2})

    assert isinstance(error, PointRejectedError)
    assert error.details == {"index": 2, "added": 2}


def test_error_for_unrecognised_code_is_internal() -> None:
    error = error_for_code("SOMETHING_NEW", "surprise")

    assert type(error) is ServiceError
    assert error.code is ErrorCode.INTERNAL_ERROR


@pytest.mark.parametrize("value, expected", [("debug", logging.DEBUG), (" Warn ", logging.WARNING)])
def test_level_from_string(value: str, expected: int) -> None:
    assert level_from_string(value) == expected


def test_level_from_string_rejects_unknown() -> None:
    with pytest.raises(ConfigError):
        level_from_string("chatty")


def test_configure_logging_creates_log_files(tmp_path) -> None:
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    try:
        log_dir = configure_logging(LoggingConfig(level="debug", debug_file=True), tmp_path)
        logging.getLogger("classifier_server.test").warning("hello log")
        for handler in root.handlers:
            handler.flush()

        assert log_dir == tmp_path / "logs"
        assert "hello log" in (log_dir / "server.log").read_text(encoding="utf-8")
        assert (log_dir / "debug.log").exists()
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)


def test_console_formatter_marks_levels() -> None:
    formatter = ConsoleFormatter(use_color=False)
    record = logging.LogRecord("svc", logging.WARNING, __file__, 1, "careful", None, None)

    assert formatter.format(record) == "! svc: careful"
