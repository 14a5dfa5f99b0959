"""
Processing API endpoints.

Routes:
- POST /processing/callback - Worker result callback (service token)
- GET /processing/queue/stats - Queue job counts
- GET /processing/jobs/{job_id} - Queue job status
- POST /processing/jobs/{job_id}/retry - Re-queue a failed job (admin)

Dependencies: docflow.application.services, docflow.models
System role: Worker callback and queue inspection HTTP API
"""

from fastapi import APIRouter, Depends

from docflow.api.deps import get_current_user, get_processing_service, verify_service_token
from docflow.application.services.processing_service import ProcessingService
from docflow.models.common import CurrentUser
from docflow.models.job import JobStatusInfo, QueueStats
from docflow.models.processing import ProcessingCallbackRequest, ProcessingCallbackResponse

from .router_utils import handle_service_errors

router = APIRouter(prefix="/processing", tags=["processing"])


@router.post(
    "/callback",
    response_model=ProcessingCallbackResponse,
    dependencies=[Depends(verify_service_token)],
)
@handle_service_errors
async def processing_callback(
    callback: ProcessingCallbackRequest,
    processing_service: ProcessingService = Depends(get_processing_service),
) -> ProcessingCallbackResponse:
    """
    Apply a worker result to the document's ingestion.

    Redelivered callbacks for a finished ingestion are acknowledged without
    changing it.

    Raises:
        HTTPException(401): Invalid service token
        HTTPException(404): No ingestion for the document
    """
    applied = await processing_service.handle_callback(callback)
    message = "Callback applied" if applied else "Ingestion already finished, callback ignored"
    return ProcessingCallbackResponse(success=True, message=message)


@router.get("/queue/stats", response_model=QueueStats)
@handle_service_errors
async def get_queue_stats(
    user: CurrentUser = Depends(get_current_user),
    processing_service: ProcessingService = Depends(get_processing_service),
) -> QueueStats:
    """Job counts per state and whether the queue is paused."""
    return await processing_service.queue_stats()


@router.get("/jobs/{job_id}", response_model=JobStatusInfo)
@handle_service_errors
async def get_job_status(
    job_id: str,
    user: CurrentUser = Depends(get_current_user),
    processing_service: ProcessingService = Depends(get_processing_service),
) -> JobStatusInfo:
    """
    Get a queue job.

    Raises:
        HTTPException(404): Unknown or pruned job
    """
    return await processing_service.get_job(job_id)


@router.post("/jobs/{job_id}/retry")
@handle_service_errors
async def retry_job(
    job_id: str,
    user: CurrentUser = Depends(get_current_user),
    processing_service: ProcessingService = Depends(get_processing_service),
) -> dict:
    """
    Re-queue a failed job.

    Returns:
        dict: {"retried": bool}; false when the job is unknown or not failed

    Raises:
        HTTPException(403): Caller is not an admin
    """
    retried = await processing_service.retry_job(job_id, user)
    return {"retried": retried}
