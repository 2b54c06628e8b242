"""Translation of remote requests into registry and classifier operations."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TypeVar

from .classifiers import Classifier
from .classifiers.dataset import coerce_point, normalize_label
from .errors import (
    ClassificationError,
    ErrorCode,
    PersistenceError,
    PointRejectedError,
    ServiceError,
    TrainingError,
    UnknownIdentifierError,
    ValidationError,
)
from .messages import (
    AddClassDataRequest,
    AddClassDataResponse,
    ClassDataPoint,
    ClassifierInfo,
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
from .plugins import PluginRegistry
from .registry import ClassifierRegistry
from .types import ClassifierState, TrainingPoint

LOGGER = logging.getLogger(__name__)
DEFAULT_LOCK_TIMEOUT = 30.0

ResponseT = TypeVar("ResponseT", bound=ServiceResponse)


class ServiceDispatcher:
    """One handler per remote operation.

    Handlers never raise. Failures are reported through the ``error`` field
    of the returned response and the registry is left unchanged unless the
    operation itself succeeded (batch additions excepted, see
    :meth:`add_class_data`).
    """

    def __init__(
        self,
        registry: ClassifierRegistry,
        plugins: PluginRegistry,
        *,
        models_dir: Path | None = None,
        lock_timeout: float | None = DEFAULT_LOCK_TIMEOUT,
    ) -> None:
        self.registry = registry
        self.plugins = plugins
        self.models_dir = models_dir.expanduser() if models_dir else None
        self.lock_timeout = lock_timeout

    def create_classifier(self, request: CreateClassifierRequest) -> ServiceResponse:
        def handler() -> ServiceResponse:
            identifier = _require_identifier(request.identifier)
            class_type = _require_class_type(request.class_type)
            instance = self.plugins.resolve(class_type)
            self.registry.create(identifier, instance, class_type)
            LOGGER.info("Created classifier '%s' (%s)", identifier, class_type)
            return ServiceResponse()

        return self._run("create_classifier", request.identifier, handler, ServiceResponse)

    def add_class_data(self, request: AddClassDataRequest) -> AddClassDataResponse:
        """Add points in order; abort at the first point the classifier rejects.

        The whole batch is validated before the classifier is touched. Points
        accepted before a classifier-side rejection stay applied; the failure
        is reported as ``POINT_REJECTED`` with the failing position in
        ``details["index"]``.
        """

        def handler() -> AddClassDataResponse:
            identifier = _require_identifier(request.identifier)
            points = _training_points(request.data)
            with self.registry.acquire(identifier, self.lock_timeout) as entry:
                for index, sample in enumerate(points):
                    try:
                        entry.classifier.add_training_point(sample.target_class, sample.point)
                    except Exception as exc:
                        if index:
                            entry.state = ClassifierState.ACCUMULATING
                        raise PointRejectedError(
                            f"Classifier rejected point {index}: {exc}",
                            details={"index": index, "added": index},
                        ) from exc
                if points:
                    entry.state = ClassifierState.ACCUMULATING
            LOGGER.debug("Added %s point(s) to classifier '%s'", len(points), identifier)
            return AddClassDataResponse(added=len(points))

        return self._run("add_class_data", request.identifier, handler, AddClassDataResponse)

    def train_classifier(self, request: TrainClassifierRequest) -> ServiceResponse:
        def handler() -> ServiceResponse:
            identifier = _require_identifier(request.identifier)
            with self.registry.acquire(identifier, self.lock_timeout) as entry:
                LOGGER.info("Training %s", identifier)
                try:
                    entry.classifier.train()
                except Exception as exc:
                    raise TrainingError(
                        f"Training classifier '{identifier}' failed: {exc}",
                        details={"identifier": identifier},
                    ) from exc
                entry.state = ClassifierState.TRAINED
            return ServiceResponse()

        return self._run("train_classifier", request.identifier, handler, ServiceResponse)

    def clear_classifier(self, request: ClearClassifierRequest) -> ServiceResponse:
        def handler() -> ServiceResponse:
            identifier = _require_identifier(request.identifier)
            with self.registry.acquire(identifier, self.lock_timeout) as entry:
                entry.classifier.clear()
                entry.state = ClassifierState.UNTRAINED
            return ServiceResponse()

        return self._run("clear_classifier", request.identifier, handler, ServiceResponse)

    def save_classifier(self, request: SaveClassifierRequest) -> PersistenceResponse:
        def handler() -> PersistenceResponse:
            identifier = _require_identifier(request.identifier)
            path = self._resolve_path(request.filename)
            with self.registry.acquire(identifier, self.lock_timeout) as entry:
                try:
                    result = entry.classifier.save(path)
                except Exception as exc:
                    raise PersistenceError(
                        f"Saving classifier '{identifier}' to {path} failed: {exc}",
                        details={"identifier": identifier, "path": str(path)},
                    ) from exc
                if result is False:
                    raise PersistenceError(
                        f"Classifier '{identifier}' reported a failed save to {path}",
                        details={"identifier": identifier, "path": str(path)},
                    )
            LOGGER.info("Saved classifier '%s' to %s", identifier, path)
            return PersistenceResponse(path=str(path))

        return self._run("save_classifier", request.identifier, handler, PersistenceResponse)

    def load_classifier(self, request: LoadClassifierRequest) -> PersistenceResponse:
        def handler() -> PersistenceResponse:
            identifier = _require_identifier(request.identifier)
            class_type = _require_class_type(request.class_type)
            path = self._resolve_path(request.filename)
            instance = self.plugins.resolve(class_type)
            _load_instance(instance, path, class_type)
            state = ClassifierState.TRAINED if instance.is_trained() else ClassifierState.UNTRAINED
            self.registry.create(identifier, instance, class_type, state=state)
            LOGGER.info("Loaded classifier '%s' (%s) from %s", identifier, class_type, path)
            return PersistenceResponse(path=str(path))

        return self._run("load_classifier", request.identifier, handler, PersistenceResponse)

    def classify_data(self, request: ClassifyDataRequest) -> ClassifyDataResponse:
        """Label each point in order; any failure aborts the whole batch."""

        def handler() -> ClassifyDataResponse:
            identifier = _require_identifier(request.identifier)
            points = [_point_at(index, item.point) for index, item in enumerate(request.data)]
            with self.registry.acquire(identifier, self.lock_timeout) as entry:
                labels = _classify_all(entry.classifier, points, identifier)
            return ClassifyDataResponse(classifications=labels)

        return self._run("classify_data", request.identifier, handler, ClassifyDataResponse)

    def delete_classifier(self, request: DeleteClassifierRequest) -> ServiceResponse:
        def handler() -> ServiceResponse:
            identifier = _require_identifier(request.identifier)
            if not self.registry.erase(identifier):
                raise UnknownIdentifierError(identifier)
            LOGGER.info("Deleted classifier '%s'", identifier)
            return ServiceResponse()

        return self._run("delete_classifier", request.identifier, handler, ServiceResponse)

    def list_classifiers(self) -> ListClassifiersResponse:
        infos = [
            ClassifierInfo(
                identifier=entry.identifier,
                class_type=entry.class_type,
                state=entry.state,
                created_at=entry.created_at,
            )
            for entry in self.registry.entries()
        ]
        return ListClassifiersResponse(classifiers=infos)

    def list_plugins(self) -> PluginsResponse:
        return PluginsResponse(class_types=self.plugins.tokens())

    def shutdown(self) -> None:
        """Release every registered classifier."""
        self.registry.clear()

    def _resolve_path(self, filename: str) -> Path:
        name = (filename or "").strip()
        if not name:
            raise ValidationError("Filename cannot be empty")
        path = Path(name).expanduser()
        if not path.is_absolute() and self.models_dir is not None:
            path = self.models_dir / path
        return path

    def _run(
        self,
        operation: str,
        identifier: str,
        handler: Callable[[], ResponseT],
        response_cls: type[ResponseT],
    ) -> ResponseT:
        try:
            return handler()
        except ServiceError as exc:
            LOGGER.warning(
                "%s failed for '%s': %s (code=%s)",
                operation,
                identifier,
                exc.message,
                exc.code.value,
            )
            return response_cls(success=False, error=ErrorInfo.from_exception(exc))
        except Exception as exc:
            LOGGER.exception("%s raised unexpectedly for '%s'", operation, identifier)
            error = ServiceError(
                f"Internal error during {operation}: {exc}",
                ErrorCode.INTERNAL_ERROR,
            )
            return response_cls(success=False, error=ErrorInfo.from_exception(error))


def _require_identifier(identifier: str) -> str:
    normalized = (identifier or "").strip()
    if not normalized:
        raise ValidationError("Identifier cannot be empty")
    return normalized


def _require_class_type(class_type: str) -> str:
    normalized = (class_type or "").strip()
    if not normalized:
        raise ValidationError("Class type cannot be empty")
    return normalized


def _point_at(index: int, point: Sequence[float]) -> tuple[float, ...]:
    try:
        return coerce_point(point)
    except ValueError as exc:
        raise ValidationError(f"Point {index} is invalid: {exc}", details={"index": index}) from exc


def _training_points(data: Sequence[ClassDataPoint]) -> list[TrainingPoint]:
    points: list[TrainingPoint] = []
    dimension: int | None = None
    for index, item in enumerate(data):
        vector = _point_at(index, item.point)
        try:
            label = normalize_label(item.target_class)
        except ValueError as exc:
            raise ValidationError(
                f"Point {index} is invalid: {exc}", details={"index": index}
            ) from exc
        if dimension is None:
            dimension = len(vector)
        elif len(vector) != dimension:
            raise ValidationError(
                f"Point {index} has {len(vector)} dimension(s), expected {dimension}",
                details={"index": index},
            )
        points.append(TrainingPoint(target_class=label, point=vector))
    return points


def _classify_all(
    classifier: Classifier,
    points: Sequence[tuple[float, ...]],
    identifier: str,
) -> list[str]:
    labels: list[str] = []
    for index, point in enumerate(points):
        try:
            labels.append(str(classifier.classify_point(point)))
        except Exception as exc:
            raise ClassificationError(
                f"Classifier '{identifier}' failed on point {index}: {exc}",
                details={"identifier": identifier, "index": index},
            ) from exc
    return labels


def _load_instance(instance: Classifier, path: Path, class_type: str) -> None:
    try:
        result = instance.load(path)
    except FileNotFoundError as exc:
        raise PersistenceError(
            f"Classifier file not found: {path}",
            details={"path": str(path), "class_type": class_type},
        ) from exc
    except Exception as exc:
        raise PersistenceError(
            f"Loading {class_type} classifier from {path} failed: {exc}",
            details={"path": str(path), "class_type": class_type},
        ) from exc
    if result is False:
        raise PersistenceError(
            f"Classifier plugin '{class_type}' reported a failed load from {path}",
            details={"path": str(path), "class_type": class_type},
        )


__all__ = ["DEFAULT_LOCK_TIMEOUT", "ServiceDispatcher"]
