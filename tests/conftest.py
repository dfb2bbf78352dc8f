from contextlib import asynccontextmanager
from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tests.mocks import MockServiceContainer


def _create_test_client(mock_container: MockServiceContainer) -> TestClient:
    from querynest.server.api import dependencies
    from querynest.server.main import create_app

    dependencies.set_container(mock_container)

    @asynccontextmanager
    async def mock_lifespan(app: FastAPI):
        yield

    with patch("querynest.server.main.container", mock_container):
        with patch("querynest.server.main.lifespan", mock_lifespan):
            app = create_app()
            return TestClient(app)


@pytest.fixture
def mock_container() -> MockServiceContainer:
    return MockServiceContainer()


@pytest.fixture
def mock_container_no_services() -> MockServiceContainer:
    container = MockServiceContainer()
    container.db_pool = None
    container.conversation_service = None
    container.message_service = None
    container.search_client = None
    container.model_client = None
    container.orchestrator = None
    container.ingestion_pipeline = None
    return container


@pytest.fixture
def client(mock_container: MockServiceContainer) -> TestClient:
    return _create_test_client(mock_container)


@pytest.fixture
def client_no_services(mock_container_no_services: MockServiceContainer) -> TestClient:
    return _create_test_client(mock_container_no_services)
