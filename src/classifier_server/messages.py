"""Typed request and response messages for the remote operations."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .errors import ErrorCode, ServiceError
from .types import ClassifierState


class ClassDataPoint(BaseModel):
    """A feature vector with its target class."""

    target_class: str = Field("", description="Class label; ignored when classifying")
    point: list[float] = Field(default_factory=list, description="Feature vector")


class CreateClassifierRequest(BaseModel):
    identifier: str
    class_type: str


class AddClassDataRequest(BaseModel):
    identifier: str
    data: list[ClassDataPoint] = Field(default_factory=list)


class TrainClassifierRequest(BaseModel):
    identifier: str


class ClearClassifierRequest(BaseModel):
    identifier: str


class SaveClassifierRequest(BaseModel):
    identifier: str
    filename: str


class LoadClassifierRequest(BaseModel):
    identifier: str
    class_type: str
    filename: str


class ClassifyDataRequest(BaseModel):
    identifier: str
    data: list[ClassDataPoint] = Field(default_factory=list)


class DeleteClassifierRequest(BaseModel):
    identifier: str


class ErrorInfo(BaseModel):
    """Failure description carried by unsuccessful responses."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: ServiceError) -> ErrorInfo:
        return cls(code=exc.code, message=exc.message, details=dict(exc.details))


class ServiceResponse(BaseModel):
    """Common response shape: a success flag and an optional error."""

    success: bool = True
    error: ErrorInfo | None = None


class AddClassDataResponse(ServiceResponse):
    added: int = 0


class PersistenceResponse(ServiceResponse):
    path: str | None = None


class ClassifyDataResponse(ServiceResponse):
    classifications: list[str] = Field(default_factory=list)


class ClassifierInfo(BaseModel):
    identifier: str
    class_type: str
    state: ClassifierState
    created_at: datetime


class ListClassifiersResponse(ServiceResponse):
    classifiers: list[ClassifierInfo] = Field(default_factory=list)


class PluginsResponse(ServiceResponse):
    class_types: list[str] = Field(default_factory=list)


__all__ = [
    "AddClassDataRequest",
    "AddClassDataResponse",
    "ClassDataPoint",
    "ClassifierInfo",
    "ClassifyDataRequest",
    "ClassifyDataResponse",
    "ClearClassifierRequest",
    "CreateClassifierRequest",
    "DeleteClassifierRequest",
    "ErrorInfo",
    "ListClassifiersResponse",
    "LoadClassifierRequest",
    "PersistenceResponse",
    "PluginsResponse",
    "SaveClassifierRequest",
    "ServiceResponse",
    "TrainClassifierRequest",
]
