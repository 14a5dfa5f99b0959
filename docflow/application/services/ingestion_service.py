"""
Ingestion service orchestrator.

Runs the ingestion lifecycle: creation, dispatch to the processing queue,
worker callbacks, cancellation and status reporting. Every status change is a
compare-and-set update on the ingestion row, so concurrent dispatch, callback
and cancel calls on one ingestion cannot both win; the loser is logged and
treated as a no-op.

Dependencies: docflow.boundary.db.CRUD, docflow.boundary.queue, docflow.core
System role: Ingestion lifecycle orchestration
"""

import logging
import math
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from docflow.boundary.db.base import utcnow
from docflow.boundary.db.CRUD.document_crud import document_crud
from docflow.boundary.db.CRUD.ingestion_crud import ingestion_crud
from docflow.boundary.db.models.document_model import DocumentModel
from docflow.boundary.db.models.ingestion_model import IngestionModel, IngestionStatus
from docflow.boundary.queue.base import ProcessingQueueClient
from docflow.core.exceptions import (
    CallbackConflict,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)
from docflow.core.ingestion_lifecycle import (
    ACTIVE_STATUSES,
    CANCELLED_BY_USER,
    DEFAULT_FAILURE_MESSAGE,
    DISPATCH_FAILURE_PREFIX,
    callback_error,
    document_status_for,
    is_terminal,
    sources_for,
    status_from_job_state,
)
from docflow.core.ingestion_stats import build_ingestion_stats, processing_seconds
from docflow.models.common import CurrentUser, Pagination
from docflow.models.ingestion import (
    IngestionConfig,
    IngestionFilters,
    IngestionLogs,
    IngestionResponse,
    IngestionStats,
    PaginatedIngestions,
    ProcessingStatus,
)
from docflow.models.job import JobOptions, JobState, JobStatusInfo, ProcessingJob
from docflow.models.processing import ProcessingResult
from docflow.observability.log_utils import log_exception_with_context, log_transition

logger = logging.getLogger(__name__)

DISPATCH_ATTEMPTS = 3


class IngestionService:
    """
    Ingestion lifecycle orchestrator.

    Owns the QUEUED -> PROCESSING -> COMPLETED/FAILED/CANCELLED state machine
    and keeps each document's status in step with its ingestions.
    """

    def __init__(self, db: AsyncSession, queue: ProcessingQueueClient) -> None:
        """
        Initialize ingestion service.

        Args:
            db: AsyncSession for ingestion and document records
            queue: Processing queue jobs are dispatched to
        """
        self.db = db
        self.queue = queue

    async def create(
        self,
        document_id: UUID,
        user_id: str,
        config: IngestionConfig | None = None,
    ) -> IngestionModel:
        """
        Create an ingestion in QUEUED and dispatch it unless autoProcess is false.

        Args:
            document_id: Document to process
            user_id: Initiating user
            config: Processing options

        Returns:
            IngestionModel: Created ingestion (PROCESSING or FAILED once dispatched)

        Raises:
            NotFoundError: If the document doesn't exist
        """
        config = config or IngestionConfig()
        ingestion = await self._create_record(document_id, user_id, config)

        if config.auto_process is not False:
            await self.dispatch(ingestion.id, user_id)
            await self.db.refresh(ingestion)
        return ingestion

    async def dispatch(self, ingestion_id: UUID, user_id: str | None = None) -> str | None:
        """
        Hand a QUEUED ingestion to the processing queue.

        An enqueue failure does not raise: the ingestion is marked FAILED with
        the transport error and None is returned.

        Args:
            ingestion_id: Ingestion to dispatch
            user_id: Caller recorded on the job (defaults to the ingestion owner)

        Returns:
            str | None: Queue job id, or None when the job was not dispatched

        Raises:
            NotFoundError: If the ingestion or its document doesn't exist
            InvalidStateError: If the ingestion is not QUEUED
        """
        ingestion = await self._get_ingestion(ingestion_id)
        if ingestion.status != IngestionStatus.QUEUED:
            raise InvalidStateError(
                f"Only queued ingestions can be dispatched, ingestion is {ingestion.status.value}",
                current_status=ingestion.status.value,
            )
        document = await self._get_document(ingestion.document_id)

        config = IngestionConfig.model_validate(ingestion.config or {})
        job = ProcessingJob(
            ingestion_id=str(ingestion.id),
            document_id=str(document.id),
            file_name=document.file_name,
            file_type=document.file_type,
            file_path=document.file_path,
            user_id=user_id or ingestion.user_id,
            config=config.resolve(),
        )
        options = JobOptions(priority=config.priority or 0, attempts=DISPATCH_ATTEMPTS)

        try:
            handle = await self.queue.enqueue(job, options)
        except Exception as exc:
            log_exception_with_context(
                logger,
                "Failed to enqueue processing job",
                exc,
                ingestion_id=ingestion.id,
                document_id=document.id,
            )
            logs = self._logs(ingestion)
            logs.failed_at = utcnow()
            await self._finish(
                ingestion,
                IngestionStatus.FAILED,
                error=f"{DISPATCH_FAILURE_PREFIX}{exc}",
                logs=logs,
            )
            return None

        now = utcnow()
        logs = self._logs(ingestion)
        logs.job_id = handle.id
        logs.dispatched_at = now
        updated = await ingestion_crud.transition(
            self.db,
            ingestion.id,
            sources_for(IngestionStatus.PROCESSING),
            status=IngestionStatus.PROCESSING,
            started_at=ingestion.started_at or now,
            logs=logs.to_record(),
        )
        if updated is None:
            # Cancelled or called back while the job was being enqueued.
            await self.queue.cancel(handle.id)
            logger.warning(
                f"Ingestion {ingestion_id} left QUEUED during dispatch, dropped job {handle.id}",
                extra={"ingestion_id": str(ingestion_id), "job_id": handle.id},
            )
            return None

        await self.db.commit()
        log_transition(
            logger,
            ingestion_id,
            IngestionStatus.QUEUED,
            IngestionStatus.PROCESSING,
            job_id=handle.id,
        )
        return handle.id

    async def apply_callback(self, ingestion_id: UUID, result: ProcessingResult) -> bool:
        """
        Apply a worker result to an ingestion.

        Repeated deliveries are harmless: a callback for an ingestion that is
        already terminal changes nothing.

        Args:
            ingestion_id: Ingestion the result belongs to
            result: Worker outcome

        Returns:
            bool: True if the result was applied, False for a no-op

        Raises:
            NotFoundError: If the ingestion doesn't exist
        """
        ingestion = await self._get_ingestion(ingestion_id)
        if is_terminal(ingestion.status):
            self._log_conflict(ingestion)
            return False

        logs = self._logs(ingestion)
        if result.success:
            logs.processing_result = result
            logs.completed_at = utcnow()
            updated = await self._finish(
                ingestion,
                IngestionStatus.COMPLETED,
                progress=100,
                logs=logs,
            )
        else:
            logs.failed_at = utcnow()
            updated = await self._finish(
                ingestion,
                IngestionStatus.FAILED,
                error=callback_error(result.errors),
                logs=logs,
            )

        if updated is None:
            await self.db.refresh(ingestion)
            self._log_conflict(ingestion)
            return False
        return True

    async def cancel(self, ingestion_id: UUID, user_id: str) -> bool:
        """
        Cancel a QUEUED or PROCESSING ingestion owned by the caller.

        The queue is asked to drop the job; a job that has already been
        forwarded keeps running, but its late callback is ignored.

        Args:
            ingestion_id: Ingestion to cancel
            user_id: Caller

        Returns:
            bool: True once the ingestion is CANCELLED

        Raises:
            NotFoundError: If the ingestion doesn't exist
            ForbiddenError: If the caller doesn't own the ingestion
            InvalidStateError: If the ingestion already finished
        """
        ingestion = await self._get_ingestion(ingestion_id)
        if ingestion.user_id != user_id:
            raise ForbiddenError("You can only cancel your own ingestions", user_id=user_id)
        if ingestion.status not in ACTIVE_STATUSES:
            raise InvalidStateError(
                f"Cannot cancel ingestion with status {ingestion.status.value}",
                current_status=ingestion.status.value,
            )

        logs = self._logs(ingestion)
        if logs.job_id:
            dropped = await self.queue.cancel(logs.job_id)
            if not dropped:
                logger.warning(
                    f"Job {logs.job_id} could not be dropped from the queue, cancelling ingestion anyway",
                    extra={"ingestion_id": str(ingestion_id), "job_id": logs.job_id},
                )

        logs.cancelled_at = utcnow()
        updated = await self._finish(
            ingestion,
            IngestionStatus.CANCELLED,
            error=CANCELLED_BY_USER,
            logs=logs,
        )
        if updated is None:
            await self.db.refresh(ingestion)
            raise InvalidStateError(
                f"Cannot cancel ingestion with status {ingestion.status.value}",
                current_status=ingestion.status.value,
            )
        return True

    async def get_status(
        self,
        ingestion_id: UUID,
        user: CurrentUser | None = None,
    ) -> ProcessingStatus:
        """
        Current status of an ingestion, overlaid with its live queue job.

        Args:
            ingestion_id: Ingestion to inspect
            user: Caller; when given, access is checked

        Returns:
            ProcessingStatus: Status, progress, error and job details

        Raises:
            NotFoundError: If the ingestion doesn't exist
            ForbiddenError: If the caller may not see the ingestion
        """
        ingestion = await self._get_ingestion(ingestion_id)
        if user is not None:
            self._check_access(ingestion, user)

        logs = self._logs(ingestion)
        status = ProcessingStatus(
            ingestion_id=ingestion.id,
            status=ingestion.status,
            progress=ingestion.progress,
            error=ingestion.error,
            job_id=logs.job_id,
            started_at=ingestion.started_at,
            completed_at=ingestion.completed_at,
        )
        if not logs.job_id or is_terminal(ingestion.status):
            return status

        try:
            job = await self.queue.get_status(logs.job_id)
        except NotFoundError:
            logger.debug(f"Job {logs.job_id} no longer in queue, using stored status")
            return status

        if job.data.ingestion_id != str(ingestion.id):
            logger.warning(
                f"Job {job.id} belongs to ingestion {job.data.ingestion_id}, using stored status",
                extra={"ingestion_id": str(ingestion.id), "job_id": job.id},
            )
            return status

        status.job_status = job.status.value
        if job.status == JobState.FAILED:
            await self.on_job_failed(job)
            await self.db.refresh(ingestion)
            status.status = ingestion.status
            status.error = ingestion.error
            status.completed_at = ingestion.completed_at
            return status

        overlay = status_from_job_state(job.status, ingestion.status)
        if overlay is not None:
            status.status = overlay
        if job.status != JobState.COMPLETED:
            status.progress = max(ingestion.progress, job.progress)
        return status

    async def on_job_failed(self, job: JobStatusInfo) -> bool:
        """
        Fail the ingestion of a job that used up its dispatch attempts.

        Called by the queue monitor and whenever a status read finds the job
        failed. A job the ingestion no longer points at (it was dispatched
        again since) and an ingestion that already finished are left alone.

        Args:
            job: Failed job snapshot

        Returns:
            bool: True if the ingestion moved to FAILED
        """
        ingestion = await ingestion_crud.get_by_id(self.db, UUID(job.data.ingestion_id))
        if ingestion is None:
            logger.warning(
                f"Failed job {job.id} refers to unknown ingestion {job.data.ingestion_id}",
                extra={"job_id": job.id},
            )
            return False

        logs = self._logs(ingestion)
        if logs.job_id != job.id or is_terminal(ingestion.status):
            logger.debug(f"Ignoring failure of job {job.id} for ingestion {ingestion.id}")
            return False

        logs.failed_at = utcnow()
        updated = await self._finish(
            ingestion,
            IngestionStatus.FAILED,
            error=f"{DISPATCH_FAILURE_PREFIX}{job.error or DEFAULT_FAILURE_MESSAGE}",
            logs=logs,
        )
        if updated is None:
            await self.db.refresh(ingestion)
            return False
        return True

    async def get_ingestions(
        self,
        user: CurrentUser,
        page: int = 1,
        limit: int = 10,
        filters: IngestionFilters | None = None,
    ) -> PaginatedIngestions:
        """
        List ingestions with pagination, filters and filter-wide stats.

        Non-admin callers only see their own ingestions.

        Args:
            user: Caller
            page: 1-based page number
            limit: Page size
            filters: Status, document, user, date and sort filters

        Returns:
            PaginatedIngestions: Page, pagination metadata and stats
        """
        filters = self._visible(filters, user)
        ingestions = await ingestion_crud.find_many(
            self.db,
            filters,
            limit=limit,
            offset=(page - 1) * limit,
        )
        total = await ingestion_crud.count(self.db, filters)
        stats = await self._stats(filters)

        return PaginatedIngestions(
            ingestions=[IngestionResponse.model_validate(i) for i in ingestions],
            pagination=Pagination(
                total=total,
                page=page,
                limit=limit,
                total_pages=math.ceil(total / limit),
            ),
            stats=stats,
        )

    async def get_ingestion(self, ingestion_id: UUID, user: CurrentUser) -> IngestionModel:
        """
        Fetch an ingestion the caller may see.

        Raises:
            NotFoundError: If the ingestion doesn't exist
            ForbiddenError: If a non-admin asks for another user's ingestion
        """
        ingestion = await self._get_ingestion(ingestion_id)
        self._check_access(ingestion, user)
        return ingestion

    async def get_stats(self, user: CurrentUser) -> IngestionStats:
        """Stats over the ingestions visible to the caller."""
        return await self._stats(self._visible(None, user))

    async def reprocess(self, ingestion_id: UUID, user: CurrentUser) -> IngestionModel:
        """
        Start a fresh ingestion of the same document with the same config.

        The earlier ingestion is left as it is.

        Args:
            ingestion_id: Ingestion to repeat
            user: Caller

        Returns:
            IngestionModel: New, already dispatched ingestion

        Raises:
            NotFoundError: If the ingestion or its document doesn't exist
            ForbiddenError: If the caller may not see the ingestion
        """
        previous = await self.get_ingestion(ingestion_id, user)
        config = IngestionConfig.model_validate(previous.config or {})

        ingestion = await self._create_record(previous.document_id, user.id, config)
        await self.dispatch(ingestion.id, user.id)
        await self.db.refresh(ingestion)
        logger.info(
            f"Reprocessing ingestion {ingestion_id} as {ingestion.id}",
            extra={"previous_ingestion_id": str(ingestion_id), "ingestion_id": str(ingestion.id)},
        )
        return ingestion

    async def resolve_callback_target(
        self,
        document_id: UUID,
        job_id: str | None = None,
    ) -> IngestionModel:
        """
        Find the ingestion a worker callback refers to.

        Prefers the ingestion whose job id matches, then the newest active
        ingestion, then the newest ingestion of the document.

        Args:
            document_id: Document named in the callback
            job_id: Queue job id named in the callback

        Returns:
            IngestionModel: Target ingestion

        Raises:
            NotFoundError: If the document has no ingestions
        """
        ingestions = await ingestion_crud.get_by_document_id(self.db, document_id)
        if not ingestions:
            raise NotFoundError("Ingestion", f"document {document_id}")

        if job_id:
            for ingestion in ingestions:
                if (ingestion.logs or {}).get("jobId") == job_id:
                    return ingestion

        active = next((i for i in ingestions if not is_terminal(i.status)), None)
        return active or ingestions[0]

    async def _create_record(
        self,
        document_id: UUID,
        user_id: str,
        config: IngestionConfig,
    ) -> IngestionModel:
        await self._get_document(document_id)
        ingestion = await ingestion_crud.create(
            self.db,
            document_id=document_id,
            user_id=user_id,
            status=IngestionStatus.QUEUED,
            progress=0,
            config=config.to_record(),
            logs={},
        )
        await self.db.commit()
        logger.info(
            f"Created ingestion {ingestion.id} for document {document_id}",
            extra={"ingestion_id": str(ingestion.id), "user_id": user_id},
        )
        return ingestion

    async def _finish(
        self,
        ingestion: IngestionModel,
        status: IngestionStatus,
        *,
        error: str | None = None,
        progress: int | None = None,
        logs: IngestionLogs | None = None,
    ) -> IngestionModel | None:
        """Move to a terminal status and update the document; None if the race was lost."""
        previous = ingestion.status
        values: dict = {"status": status, "completed_at": ingestion.completed_at or utcnow()}
        if error is not None:
            values["error"] = error
        if progress is not None:
            values["progress"] = progress
        if logs is not None:
            values["logs"] = logs.to_record()

        updated = await ingestion_crud.transition(
            self.db, ingestion.id, sources_for(status), **values
        )
        if updated is None:
            return None

        await document_crud.set_status(self.db, updated.document_id, document_status_for(status))
        await self.db.commit()
        log_transition(logger, updated.id, previous, status, error=error)
        return updated

    async def _stats(self, filters: IngestionFilters) -> IngestionStats:
        counts = await ingestion_crud.group_by_status(self.db, filters)
        windows = await ingestion_crud.get_processing_windows(self.db, filters)
        return build_ingestion_stats(
            counts,
            [processing_seconds(started, completed) for started, completed in windows],
        )

    async def _get_ingestion(self, ingestion_id: UUID) -> IngestionModel:
        ingestion = await ingestion_crud.get_by_id(self.db, ingestion_id)
        if ingestion is None:
            raise NotFoundError("Ingestion", ingestion_id)
        return ingestion

    async def _get_document(self, document_id: UUID) -> DocumentModel:
        document = await document_crud.get_by_id(self.db, document_id)
        if document is None:
            raise NotFoundError("Document", document_id)
        return document

    @staticmethod
    def _logs(ingestion: IngestionModel) -> IngestionLogs:
        return IngestionLogs.model_validate(ingestion.logs or {})

    @staticmethod
    def _check_access(ingestion: IngestionModel, user: CurrentUser) -> None:
        if not user.is_admin and ingestion.user_id != user.id:
            raise ForbiddenError("Access denied to this ingestion", user_id=user.id)

    @staticmethod
    def _visible(filters: IngestionFilters | None, user: CurrentUser) -> IngestionFilters:
        filters = filters or IngestionFilters()
        if user.is_admin:
            return filters
        return filters.model_copy(update={"user_id": user.id})

    @staticmethod
    def _log_conflict(ingestion: IngestionModel) -> None:
        conflict = CallbackConflict(str(ingestion.id), ingestion.status.value)
        logger.warning(f"Ignoring callback: {conflict}", extra=conflict.details)
