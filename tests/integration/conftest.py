from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from classifier_server.client import ClassifierClient
from classifier_server.dispatcher import ServiceDispatcher
from classifier_server.plugins import PluginRegistry
from classifier_server.registry import ClassifierRegistry
from classifier_server.server import create_app
from tests.stubs import register_stubs


@pytest.fixture()
def models_dir(tmp_path: Path) -> Path:
    return tmp_path / "models"


@pytest.fixture()
def dispatcher(models_dir: Path) -> ServiceDispatcher:
    plugins = PluginRegistry.with_builtins()
    register_stubs(plugins)
    return ServiceDispatcher(
        ClassifierRegistry(),
        plugins,
        models_dir=models_dir,
        lock_timeout=0,
    )


@pytest.fixture()
def http(dispatcher: ServiceDispatcher) -> Iterator[TestClient]:
    """Run the application lifespan around an in-process HTTP client."""

    with TestClient(create_app(dispatcher=dispatcher)) as client:
        yield client


@pytest.fixture()
def classifier_client(http: TestClient) -> ClassifierClient:
    return ClassifierClient(client=http)


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Automatically mark tests in this package as integration."""

    package_root = Path(__file__).resolve().parent
    integration_mark = pytest.mark.integration
    for item in items:
        try:
            path = Path(item.fspath).resolve()
        except OSError:
            continue
        if package_root in path.parents:
            item.add_marker(integration_mark)
