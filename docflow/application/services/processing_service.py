"""
Processing service orchestrator.

Entry point for the external worker's callbacks and for queue inspection.

Dependencies: docflow.application.services.ingestion_service, docflow.boundary.queue
System role: Worker callback handling and queue operations
"""

import logging

from docflow.application.services.ingestion_service import IngestionService
from docflow.boundary.queue.base import ProcessingQueueClient
from docflow.core.exceptions import ForbiddenError
from docflow.models.common import CurrentUser
from docflow.models.job import JobStatusInfo, QueueStats
from docflow.models.processing import ProcessingCallbackRequest

logger = logging.getLogger(__name__)


class ProcessingService:
    """Applies worker callbacks and exposes the processing queue."""

    def __init__(self, ingestions: IngestionService, queue: ProcessingQueueClient) -> None:
        """
        Initialize processing service.

        Args:
            ingestions: Lifecycle service callbacks are applied through
            queue: Processing queue
        """
        self.ingestions = ingestions
        self.queue = queue

    async def handle_callback(self, callback: ProcessingCallbackRequest) -> bool:
        """
        Resolve the callback's ingestion and apply the worker result.

        Args:
            callback: Worker callback body

        Returns:
            bool: True if applied, False if the ingestion had already finished

        Raises:
            NotFoundError: If the document has no ingestion
        """
        ingestion = await self.ingestions.resolve_callback_target(
            callback.document_id, callback.job_id
        )
        logger.info(
            f"Processing callback for document {callback.document_id}",
            extra={
                "document_id": str(callback.document_id),
                "ingestion_id": str(ingestion.id),
                "success": callback.result.success,
            },
        )
        return await self.ingestions.apply_callback(ingestion.id, callback.result)

    async def get_job(self, job_id: str) -> JobStatusInfo:
        """
        Raises:
            NotFoundError: If the queue doesn't know the job
        """
        return await self.queue.get_status(job_id)

    async def retry_job(self, job_id: str, user: CurrentUser) -> bool:
        """
        Re-queue a failed job (admin only).

        Raises:
            ForbiddenError: If the caller is not an admin
        """
        if not user.is_admin:
            raise ForbiddenError("Only admins can retry queue jobs", user_id=user.id)
        return await self.queue.retry(job_id)

    async def queue_stats(self) -> QueueStats:
        return await self.queue.stats()
