"""
Fixtures for router tests.

Services are replaced through FastAPI dependency overrides, so no database
or queue is needed.
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from docflow.api.deps.dependencies import (
    get_document_service,
    get_ingestion_service,
    get_processing_service,
    get_search_service,
    get_settings_dependency,
)
from docflow.api.main import create_app
from docflow.boundary.db.models.ingestion_model import IngestionModel, IngestionStatus
from docflow.configs import Settings
from docflow.configs.processing import ProcessingSettings

SERVICE_TOKEN = "worker-secret"


@pytest.fixture
def mock_ingestion_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def mock_processing_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def mock_search_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def mock_document_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def client(
    mock_ingestion_service,
    mock_processing_service,
    mock_search_service,
    mock_document_service,
) -> TestClient:
    """TestClient with every service dependency overridden."""
    app = create_app()
    settings = Settings(processing=ProcessingSettings(service_token=SERVICE_TOKEN))
    app.dependency_overrides[get_settings_dependency] = lambda: settings
    app.dependency_overrides[get_ingestion_service] = lambda: mock_ingestion_service
    app.dependency_overrides[get_processing_service] = lambda: mock_processing_service
    app.dependency_overrides[get_search_service] = lambda: mock_search_service
    app.dependency_overrides[get_document_service] = lambda: mock_document_service
    return TestClient(app)


@pytest.fixture
def make_ingestion():
    """Factory for unsaved IngestionModel instances."""

    def _make(**fields) -> IngestionModel:
        now = datetime.now(timezone.utc)
        values = {
            "id": uuid.uuid4(),
            "document_id": uuid.uuid4(),
            "user_id": "user-1",
            "status": IngestionStatus.QUEUED,
            "progress": 0,
            "config": {},
            "error": None,
            "logs": {},
            "started_at": None,
            "completed_at": None,
            "created_at": now,
            "updated_at": now,
        }
        values.update(fields)
        return IngestionModel(**values)

    return _make
