"""
Ingestion API endpoints.

Routes:
- POST /ingestions - Create (and by default dispatch) an ingestion
- GET /ingestions - List with pagination, filters and stats
- GET /ingestions/stats - Stats over visible ingestions
- GET /ingestions/{id} - Get single ingestion
- POST /ingestions/{id}/process - Dispatch a queued ingestion
- GET /ingestions/{id}/status - Live processing status
- POST /ingestions/{id}/cancel - Cancel an active ingestion
- POST /ingestions/{id}/retry - Reprocess as a new ingestion

Dependencies: docflow.application.services, docflow.models
System role: Ingestion lifecycle HTTP API
"""

import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from docflow.api.deps import get_current_user, get_ingestion_service
from docflow.application.services.ingestion_service import IngestionService
from docflow.boundary.db.models.ingestion_model import IngestionStatus
from docflow.models.common import CurrentUser
from docflow.models.ingestion import (
    CancelResponse,
    CreateIngestionRequest,
    DispatchResponse,
    IngestionFilters,
    IngestionResponse,
    IngestionSortBy,
    IngestionStats,
    PaginatedIngestions,
    ProcessingStatus,
    SortOrder,
)

from .router_utils import handle_service_errors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ingestions", tags=["ingestions"])


@router.post("", response_model=IngestionResponse, status_code=201)
@handle_service_errors
async def create_ingestion(
    request: CreateIngestionRequest,
    user: CurrentUser = Depends(get_current_user),
    ingestion_service: IngestionService = Depends(get_ingestion_service),
) -> IngestionResponse:
    """
    Create an ingestion for a document.

    The ingestion is dispatched right away unless ``config.autoProcess`` is
    false. A dispatch failure still returns 201, with status ``failed``.

    Raises:
        HTTPException(404): Document not found
    """
    ingestion = await ingestion_service.create(request.document_id, user.id, request.config)
    return IngestionResponse.model_validate(ingestion)


@router.get("", response_model=PaginatedIngestions)
@handle_service_errors
async def list_ingestions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status: IngestionStatus | None = Query(default=None),
    document_id: UUID | None = Query(default=None, alias="documentId"),
    user_id: str | None = Query(default=None, alias="userId"),
    start_date: datetime | None = Query(default=None, alias="startDate"),
    end_date: datetime | None = Query(default=None, alias="endDate"),
    sort_by: IngestionSortBy | None = Query(default=None, alias="sortBy"),
    sort_order: SortOrder | None = Query(default=None, alias="sortOrder"),
    user: CurrentUser = Depends(get_current_user),
    ingestion_service: IngestionService = Depends(get_ingestion_service),
) -> PaginatedIngestions:
    """List ingestions; non-admin callers only see their own."""
    filters = IngestionFilters(
        status=status,
        document_id=document_id,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return await ingestion_service.get_ingestions(user, page=page, limit=limit, filters=filters)


@router.get("/stats", response_model=IngestionStats)
@handle_service_errors
async def get_ingestion_stats(
    user: CurrentUser = Depends(get_current_user),
    ingestion_service: IngestionService = Depends(get_ingestion_service),
) -> IngestionStats:
    """Counts, success rate and average processing time."""
    return await ingestion_service.get_stats(user)


@router.get("/{ingestion_id}", response_model=IngestionResponse)
@handle_service_errors
async def get_ingestion(
    ingestion_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    ingestion_service: IngestionService = Depends(get_ingestion_service),
) -> IngestionResponse:
    """
    Get a single ingestion.

    Raises:
        HTTPException(404): Ingestion not found
        HTTPException(403): Another user's ingestion
    """
    ingestion = await ingestion_service.get_ingestion(ingestion_id, user)
    return IngestionResponse.model_validate(ingestion)


@router.post("/{ingestion_id}/process", response_model=DispatchResponse)
@handle_service_errors
async def process_ingestion(
    ingestion_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    ingestion_service: IngestionService = Depends(get_ingestion_service),
) -> DispatchResponse:
    """
    Dispatch a queued ingestion to the processing queue.

    Raises:
        HTTPException(404): Ingestion or document not found
        HTTPException(403): Another user's ingestion
        HTTPException(409): Ingestion is not queued
    """
    ingestion = await ingestion_service.get_ingestion(ingestion_id, user)
    job_id = await ingestion_service.dispatch(ingestion_id, user.id)
    return DispatchResponse(ingestion_id=ingestion_id, job_id=job_id, status=ingestion.status)


@router.get("/{ingestion_id}/status", response_model=ProcessingStatus)
@handle_service_errors
async def get_processing_status(
    ingestion_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    ingestion_service: IngestionService = Depends(get_ingestion_service),
) -> ProcessingStatus:
    """Status and progress, overlaid with the live queue job."""
    return await ingestion_service.get_status(ingestion_id, user)


@router.post("/{ingestion_id}/cancel", response_model=CancelResponse)
@handle_service_errors
async def cancel_ingestion(
    ingestion_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    ingestion_service: IngestionService = Depends(get_ingestion_service),
) -> CancelResponse:
    """
    Cancel a queued or processing ingestion.

    Raises:
        HTTPException(404): Ingestion not found
        HTTPException(403): Another user's ingestion
        HTTPException(409): Ingestion already finished
    """
    cancelled = await ingestion_service.cancel(ingestion_id, user.id)
    logger.info("Ingestion cancelled", extra={"ingestion_id": str(ingestion_id)})
    return CancelResponse(cancelled=cancelled)


@router.post("/{ingestion_id}/retry", response_model=IngestionResponse, status_code=201)
@handle_service_errors
async def retry_ingestion(
    ingestion_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    ingestion_service: IngestionService = Depends(get_ingestion_service),
) -> IngestionResponse:
    """Reprocess the document as a new ingestion with the same config."""
    ingestion = await ingestion_service.reprocess(ingestion_id, user)
    return IngestionResponse.model_validate(ingestion)
