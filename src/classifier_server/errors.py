"""Error taxonomy surfaced by the classifier service.

Every failure that crosses the service boundary is one of the exceptions
below. Each carries a stable :class:`ErrorCode` so that the transport layer
and remote clients can react without parsing messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes exposed to remote callers."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNKNOWN_IDENTIFIER = "UNKNOWN_IDENTIFIER"
    PLUGIN_RESOLUTION_FAILED = "PLUGIN_RESOLUTION_FAILED"
    TRAINING_FAILED = "TRAINING_FAILED"
    POINT_REJECTED = "POINT_REJECTED"
    CLASSIFICATION_FAILED = "CLASSIFICATION_FAILED"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"
    CLASSIFIER_BUSY = "CLASSIFIER_BUSY"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ServiceError(Exception):
    """Base class for all errors reported by the service.

    Attributes
    ----------
    message
        Human-readable description, safe to return to callers.
    code
        Stable error code.
    details
        Optional structured context (for example the failing batch index).
    """

    default_code = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code.value!r}, "
            f"details={self.details!r})"
        )


class ValidationError(ServiceError):
    """Raised when a request is malformed; detected before touching state."""

    default_code = ErrorCode.VALIDATION_ERROR


class PointRejectedError(ServiceError):
    """Raised when a classifier refuses a training point part-way through a batch.

    Points before ``details["index"]`` have already been added.
    """

    default_code = ErrorCode.POINT_REJECTED


class UnknownIdentifierError(ServiceError):
    """Raised when an operation references an identifier with no live entry."""

    default_code = ErrorCode.UNKNOWN_IDENTIFIER

    def __init__(self, identifier: str) -> None:
        super().__init__(
            f"Unknown classifier identifier: {identifier}",
            details={"identifier": identifier},
        )
        self.identifier = identifier


class PluginResolutionError(ServiceError):
    """Raised when a class type cannot be turned into a classifier instance."""

    default_code = ErrorCode.PLUGIN_RESOLUTION_FAILED


class TrainingError(ServiceError):
    """Raised when a classifier fails to train."""

    default_code = ErrorCode.TRAINING_FAILED


class ClassificationError(ServiceError):
    """Raised when a classifier cannot label a point."""

    default_code = ErrorCode.CLASSIFICATION_FAILED


class PersistenceError(ServiceError):
    """Raised when saving or loading classifier state fails."""

    default_code = ErrorCode.PERSISTENCE_FAILED


class ClassifierBusyError(ServiceError):
    """Raised when another call holds the classifier for too long."""

    default_code = ErrorCode.CLASSIFIER_BUSY

    def __init__(self, identifier: str, timeout: float | None) -> None:
        super().__init__(
            f"Classifier '{identifier}' is busy",
            details={"identifier": identifier, "timeout": timeout},
        )
        self.identifier = identifier


_ERRORS_BY_CODE: dict[ErrorCode, type[ServiceError]] = {
    ErrorCode.VALIDATION_ERROR: ValidationError,
    ErrorCode.PLUGIN_RESOLUTION_FAILED: PluginResolutionError,
    ErrorCode.POINT_REJECTED: PointRejectedError,
    ErrorCode.TRAINING_FAILED: TrainingError,
    ErrorCode.CLASSIFICATION_FAILED: ClassificationError,
    ErrorCode.PERSISTENCE_FAILED: PersistenceError,
}


def error_for_code(
    code: ErrorCode | str,
    message: str,
    details: dict[str, Any] | None = None,
) -> ServiceError:
    """Rebuild the typed exception for an error reported by the service."""

    try:
        resolved = ErrorCode(code)
    except ValueError:
        return ServiceError(message, ErrorCode.INTERNAL_ERROR, details)
    details = dict(details or {})
    if resolved is ErrorCode.UNKNOWN_IDENTIFIER:
        return UnknownIdentifierError(str(details.get("identifier", "")))
    if resolved is ErrorCode.CLASSIFIER_BUSY:
        return ClassifierBusyError(str(details.get("identifier", "")), details.get("timeout"))
    error_cls = _ERRORS_BY_CODE.get(resolved, ServiceError)
    return error_cls(message, resolved, details)


__all__ = [
    "ClassificationError",
    "ClassifierBusyError",
    "ErrorCode",
    "PersistenceError",
    "PointRejectedError",
    "PluginResolutionError",
    "ServiceError",
    "TrainingError",
    "UnknownIdentifierError",
    "ValidationError",
    "error_for_code",
]
