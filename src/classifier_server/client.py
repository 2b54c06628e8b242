"""HTTP client for the classifier service."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TypeVar

import httpx
from pydantic import BaseModel

from .errors import ErrorCode, ServiceError, error_for_code
from .messages import (
    AddClassDataRequest,
    AddClassDataResponse,
    ClassDataPoint,
    ClassifyDataRequest,
    ClassifyDataResponse,
    ClearClassifierRequest,
    CreateClassifierRequest,
    DeleteClassifierRequest,
    ListClassifiersResponse,
    LoadClassifierRequest,
    PersistenceResponse,
    PluginsResponse,
    SaveClassifierRequest,
    ServiceResponse,
    TrainClassifierRequest,
)

LOGGER = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=ServiceResponse)
DEFAULT_TIMEOUT = 60.0


class ClassifierClient:
    """Synchronous wrapper around the remote classifier operations.

    Pass ``check=True`` to any call to raise the typed :class:`ServiceError`
    instead of returning an unsuccessful response.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if client is None and base_url is None:
            raise ValueError("Either base_url or client is required")
        self._owns_client = client is None
        self._client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)

    def __enter__(self) -> ClassifierClient:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def create_classifier(
        self, identifier: str, class_type: str, *, check: bool = False
    ) -> ServiceResponse:
        request = CreateClassifierRequest(identifier=identifier, class_type=class_type)
        return self._post("/create_classifier", request, ServiceResponse, check)

    def add_class_data(
        self,
        identifier: str,
        data: Iterable[tuple[str, Sequence[float]]],
        *,
        check: bool = False,
    ) -> AddClassDataResponse:
        points = [
            ClassDataPoint(target_class=label, point=list(point)) for label, point in data
        ]
        request = AddClassDataRequest(identifier=identifier, data=points)
        return self._post("/add_class_data", request, AddClassDataResponse, check)

    def train_classifier(self, identifier: str, *, check: bool = False) -> ServiceResponse:
        request = TrainClassifierRequest(identifier=identifier)
        return self._post("/train_classifier", request, ServiceResponse, check)

    def clear_classifier(self, identifier: str, *, check: bool = False) -> ServiceResponse:
        request = ClearClassifierRequest(identifier=identifier)
        return self._post("/clear_classifier", request, ServiceResponse, check)

    def save_classifier(
        self, identifier: str, filename: str, *, check: bool = False
    ) -> PersistenceResponse:
        request = SaveClassifierRequest(identifier=identifier, filename=filename)
        return self._post("/save_classifier", request, PersistenceResponse, check)

    def load_classifier(
        self,
        identifier: str,
        class_type: str,
        filename: str,
        *,
        check: bool = False,
    ) -> PersistenceResponse:
        request = LoadClassifierRequest(
            identifier=identifier, class_type=class_type, filename=filename
        )
        return self._post("/load_classifier", request, PersistenceResponse, check)

    def classify_data(
        self,
        identifier: str,
        points: Iterable[Sequence[float]],
        *,
        check: bool = False,
    ) -> ClassifyDataResponse:
        data = [ClassDataPoint(point=list(point)) for point in points]
        request = ClassifyDataRequest(identifier=identifier, data=data)
        return self._post("/classify_data", request, ClassifyDataResponse, check)

    def delete_classifier(self, identifier: str, *, check: bool = False) -> ServiceResponse:
        request = DeleteClassifierRequest(identifier=identifier)
        return self._post("/delete_classifier", request, ServiceResponse, check)

    def list_classifiers(self) -> ListClassifiersResponse:
        response = self._client.get("/classifiers")
        response.raise_for_status()
        return ListClassifiersResponse.model_validate(response.json())

    def list_plugins(self) -> PluginsResponse:
        response = self._client.get("/plugins")
        response.raise_for_status()
        return PluginsResponse.model_validate(response.json())

    def _post(
        self,
        path: str,
        request: BaseModel,
        response_cls: type[ResponseT],
        check: bool,
    ) -> ResponseT:
        response = self._client.post(path, json=request.model_dump(mode="json"))
        try:
            result = response_cls.model_validate(response.json())
        except ValueError as exc:
            LOGGER.warning("Unexpected response from %s (HTTP %s)", path, response.status_code)
            raise ServiceError(
                f"Unexpected response from {path} (HTTP {response.status_code})",
                ErrorCode.INTERNAL_ERROR,
            ) from exc
        if check and not result.success:
            error = result.error
            if error is None:
                raise ServiceError(f"{path} failed without an error description")
            raise error_for_code(error.code, error.message, error.details)
        return result


__all__ = ["ClassifierClient"]
