"""
Test suite for dependency injection container.

Tests caller identity, worker token verification and service factories.

System role: Verification of DI container
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from docflow.api.deps import (
    get_current_user,
    get_ingestion_service,
    get_processing_queue,
    get_processing_service,
    get_search_service,
    verify_service_token,
)
from docflow.application.services import IngestionService, ProcessingService, SearchService
from docflow.configs import Settings
from docflow.configs.processing import ProcessingSettings
from docflow.configs.search import SearchSettings


@pytest.fixture
def mock_db_session() -> AsyncSession:
    """Provide mock async database session."""
    return AsyncMock(spec=AsyncSession)


def settings_with_token(token: str) -> Settings:
    return Settings(processing=ProcessingSettings(service_token=token))


class TestGetCurrentUser:
    """Test suite for get_current_user."""

    def test_user_from_headers(self) -> None:
        user = get_current_user(x_user_id="user-1", x_user_role="admin")

        assert user.id == "user-1"
        assert user.is_admin is True

    def test_missing_user_id_is_401(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            get_current_user(x_user_id=None, x_user_role="user")

        assert exc_info.value.status_code == 401


class TestVerifyServiceToken:
    """Test suite for verify_service_token."""

    def test_matching_token_passes(self) -> None:
        assert verify_service_token("secret", settings_with_token("secret")) is None

    @pytest.mark.parametrize(
        "sent, configured",
        [("wrong", "secret"), (None, "secret"), ("secret", ""), ("", "")],
    )
    def test_rejected_tokens(self, sent, configured) -> None:
        """Test wrong, missing and unconfigured tokens are all rejected."""
        with pytest.raises(HTTPException) as exc_info:
            verify_service_token(sent, settings_with_token(configured))

        assert exc_info.value.status_code == 401


class TestServiceFactories:
    """Test suite for service factory functions."""

    def test_processing_queue_from_app_state(self) -> None:
        queue = MagicMock()
        request = MagicMock()
        request.app.state.processing_queue = queue

        assert get_processing_queue(request) is queue

    def test_get_ingestion_service(self, mock_db_session, mock_queue) -> None:
        service = get_ingestion_service(db=mock_db_session, queue=mock_queue)

        assert isinstance(service, IngestionService)
        assert service.db is mock_db_session
        assert service.queue is mock_queue

    def test_get_processing_service(self, mock_db_session, mock_queue) -> None:
        ingestions = IngestionService(db=mock_db_session, queue=mock_queue)

        service = get_processing_service(ingestion_service=ingestions, queue=mock_queue)

        assert isinstance(service, ProcessingService)
        assert service.ingestions is ingestions

    def test_get_search_service_uses_search_settings(self, mock_db_session) -> None:
        settings = Settings(search=SearchSettings(excerpt_length=80))

        service = get_search_service(db=mock_db_session, settings=settings)

        assert isinstance(service, SearchService)
        assert service.engine.excerpt_length == 80
