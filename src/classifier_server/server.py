"""HTTP transport for the classifier service.

Each remote operation is a ``POST`` route taking the request message as a
JSON body. Routes are synchronous so FastAPI runs them on its worker
threadpool; concurrent calls are serialised per identifier by the registry.

Every response body has the shape of :class:`ServiceResponse`. The HTTP
status reflects ``error.code``:

    VALIDATION_ERROR          422
    UNKNOWN_IDENTIFIER        404
    PLUGIN_RESOLUTION_FAILED  400
    CLASSIFIER_BUSY           409
    POINT_REJECTED            422
    TRAINING_FAILED           422
    CLASSIFICATION_FAILED     422
    PERSISTENCE_FAILED        500
    INTERNAL_ERROR            500
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import __version__
from .config import Config
from .dispatcher import ServiceDispatcher
from .errors import ErrorCode
from .messages import (
    AddClassDataRequest,
    AddClassDataResponse,
    ClassifyDataRequest,
    ClassifyDataResponse,
    ClearClassifierRequest,
    CreateClassifierRequest,
    DeleteClassifierRequest,
    ErrorInfo,
    ListClassifiersResponse,
    LoadClassifierRequest,
    PersistenceResponse,
    PluginsResponse,
    SaveClassifierRequest,
    ServiceResponse,
    TrainClassifierRequest,
)
from .plugins import build_plugin_registry
from .registry import ClassifierRegistry

LOGGER = logging.getLogger(__name__)

ERROR_CODE_TO_STATUS: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.UNKNOWN_IDENTIFIER: status.HTTP_404_NOT_FOUND,
    ErrorCode.PLUGIN_RESOLUTION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CLASSIFIER_BUSY: status.HTTP_409_CONFLICT,
    ErrorCode.POINT_REJECTED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.TRAINING_FAILED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.CLASSIFICATION_FAILED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.PERSISTENCE_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

router = APIRouter()


def build_dispatcher(config: Config) -> ServiceDispatcher:
    """Construct the registry, plugin registry and dispatcher for ``config``."""

    plugins = build_plugin_registry(
        config.plugins.paths,
        entry_points=config.plugins.entry_points,
    )
    return ServiceDispatcher(
        ClassifierRegistry(),
        plugins,
        models_dir=config.resolved_models_dir,
        lock_timeout=config.lock_timeout,
    )


def create_app(
    config: Config | None = None,
    *,
    dispatcher: ServiceDispatcher | None = None,
) -> FastAPI:
    """Create the FastAPI application around a dispatcher."""

    service = dispatcher or build_dispatcher(config or Config())

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        LOGGER.info(
            "Classifier services now ready (%s class types)",
            len(service.plugins.tokens()),
        )
        try:
            yield
        finally:
            service.shutdown()
            LOGGER.info("Classifier services stopped")

    app = FastAPI(
        title="Classifier Server",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.dispatcher = service
    app.include_router(router)
    _setup_exception_handlers(app)
    return app


def get_dispatcher(request: Request) -> ServiceDispatcher:
    return request.app.state.dispatcher


def status_for(result: ServiceResponse) -> int:
    if result.error is None:
        return status.HTTP_200_OK
    return ERROR_CODE_TO_STATUS.get(result.error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("/create_classifier", response_model=ServiceResponse)
def create_classifier(
    body: CreateClassifierRequest,
    response: Response,
    dispatcher: ServiceDispatcher = Depends(get_dispatcher),
) -> ServiceResponse:
    result = dispatcher.create_classifier(body)
    response.status_code = status_for(result)
    return result


@router.post("/add_class_data", response_model=AddClassDataResponse)
def add_class_data(
    body: AddClassDataRequest,
    response: Response,
    dispatcher: ServiceDispatcher = Depends(get_dispatcher),
) -> AddClassDataResponse:
    result = dispatcher.add_class_data(body)
    response.status_code = status_for(result)
    return result


@router.post("/train_classifier", response_model=ServiceResponse)
def train_classifier(
    body: TrainClassifierRequest,
    response: Response,
    dispatcher: ServiceDispatcher = Depends(get_dispatcher),
) -> ServiceResponse:
    result = dispatcher.train_classifier(body)
    response.status_code = status_for(result)
    return result


@router.post("/clear_classifier", response_model=ServiceResponse)
def clear_classifier(
    body: ClearClassifierRequest,
    response: Response,
    dispatcher: ServiceDispatcher = Depends(get_dispatcher),
) -> ServiceResponse:
    result = dispatcher.clear_classifier(body)
    response.status_code = status_for(result)
    return result


@router.post("/save_classifier", response_model=PersistenceResponse)
def save_classifier(
    body: SaveClassifierRequest,
    response: Response,
    dispatcher: ServiceDispatcher = Depends(get_dispatcher),
) -> PersistenceResponse:
    result = dispatcher.save_classifier(body)
    response.status_code = status_for(result)
    return result


@router.post("/load_classifier", response_model=PersistenceResponse)
def load_classifier(
    body: LoadClassifierRequest,
    response: Response,
    dispatcher: ServiceDispatcher = Depends(get_dispatcher),
) -> PersistenceResponse:
    result = dispatcher.load_classifier(body)
    response.status_code = status_for(result)
    return result


@router.post("/classify_data", response_model=ClassifyDataResponse)
def classify_data(
    body: ClassifyDataRequest,
    response: Response,
    dispatcher: ServiceDispatcher = Depends(get_dispatcher),
) -> ClassifyDataResponse:
    result = dispatcher.classify_data(body)
    response.status_code = status_for(result)
    return result


@router.post("/delete_classifier", response_model=ServiceResponse)
def delete_classifier(
    body: DeleteClassifierRequest,
    response: Response,
    dispatcher: ServiceDispatcher = Depends(get_dispatcher),
) -> ServiceResponse:
    result = dispatcher.delete_classifier(body)
    response.status_code = status_for(result)
    return result


@router.get("/classifiers", response_model=ListClassifiersResponse)
def list_classifiers(
    dispatcher: ServiceDispatcher = Depends(get_dispatcher),
) -> ListClassifiersResponse:
    return dispatcher.list_classifiers()


@router.get("/plugins", response_model=PluginsResponse)
def list_plugins(
    dispatcher: ServiceDispatcher = Depends(get_dispatcher),
) -> PluginsResponse:
    return dispatcher.list_plugins()


@router.get("/health")
def health(dispatcher: ServiceDispatcher = Depends(get_dispatcher)) -> dict[str, Any]:
    return {
        "status": "ok",
        "version": __version__,
        "classifiers": len(dispatcher.registry),
    }


def _setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = exc.errors()
        LOGGER.warning(
            "Malformed request on %s %s: %s",
            request.method,
            request.url.path,
            errors,
        )
        summary = "; ".join(
            f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
            for error in errors
        )
        body = ServiceResponse(
            success=False,
            error=ErrorInfo(
                code=ErrorCode.VALIDATION_ERROR,
                message=f"Malformed request: {summary}",
            ),
        )
        return JSONResponse(
            status_code=ERROR_CODE_TO_STATUS[ErrorCode.VALIDATION_ERROR],
            content=body.model_dump(mode="json"),
        )


__all__ = ["ERROR_CODE_TO_STATUS", "build_dispatcher", "create_app", "status_for"]
