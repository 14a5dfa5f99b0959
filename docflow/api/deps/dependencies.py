"""
Dependency injection container.

Factory functions for FastAPI dependencies. The processing queue is created
once in the application lifespan and read from ``app.state``; services are
built per request around the request's database session.

Dependencies: docflow.configs, docflow.application, docflow.boundary
System role: DI container for service injection
"""

import secrets

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from docflow.application.services import (
    DocumentService,
    IngestionService,
    ProcessingService,
    SearchService,
)
from docflow.boundary.db import get_async_db
from docflow.boundary.queue.base import ProcessingQueueClient
from docflow.configs import Settings, get_settings
from docflow.models.common import CurrentUser


def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


def get_current_user(
    x_user_id: str | None = Header(default=None),
    x_user_role: str = Header(default="user"),
) -> CurrentUser:
    """
    Caller identity forwarded by the upstream auth layer.

    Raises:
        HTTPException(401): X-User-Id header missing
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return CurrentUser(id=x_user_id, role=x_user_role)


def verify_service_token(
    x_service_token: str | None = Header(default=None),
    settings: Settings = Depends(get_settings_dependency),
) -> None:
    """
    Authenticate the processing worker by its shared service token.

    Raises:
        HTTPException(401): Token missing, unset on the server, or wrong
    """
    expected = settings.processing.service_token
    if not expected or not x_service_token or not secrets.compare_digest(
        x_service_token, expected
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid service token",
        )


def get_processing_queue(request: Request) -> ProcessingQueueClient:
    """Processing queue created by the application lifespan."""
    return request.app.state.processing_queue


def get_ingestion_service(
    db: AsyncSession = Depends(get_async_db),
    queue: ProcessingQueueClient = Depends(get_processing_queue),
) -> IngestionService:
    """
    Get ingestion service instance.

    Args:
        db: Async database session (injected via Depends)
        queue: Processing queue (injected via Depends)

    Returns:
        IngestionService: Ingestion service instance
    """
    return IngestionService(db=db, queue=queue)


def get_processing_service(
    ingestion_service: IngestionService = Depends(get_ingestion_service),
    queue: ProcessingQueueClient = Depends(get_processing_queue),
) -> ProcessingService:
    """Get processing service instance."""
    return ProcessingService(ingestions=ingestion_service, queue=queue)


def get_search_service(
    db: AsyncSession = Depends(get_async_db),
    settings: Settings = Depends(get_settings_dependency),
) -> SearchService:
    """Get search service instance."""
    return SearchService(db=db, settings=settings.search)


def get_document_service(db: AsyncSession = Depends(get_async_db)) -> DocumentService:
    """Get document service instance."""
    return DocumentService(db=db)
