"""
Test suite for IngestionService.

Runs the lifecycle against an in-memory SQLite database with a mocked
processing queue: creation and dispatch, worker callbacks, cancellation,
status overlay, listing and reprocessing.

System role: Verification of the ingestion lifecycle orchestration
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from docflow.application.services.ingestion_service import IngestionService
from docflow.boundary.db.models.document_model import DocumentStatus
from docflow.boundary.db.models.ingestion_model import IngestionStatus
from docflow.core.exceptions import ForbiddenError, InvalidStateError, NotFoundError
from docflow.models.common import CurrentUser
from docflow.models.ingestion import IngestionConfig, IngestionFilters
from docflow.models.job import JobState
from docflow.models.processing import ProcessingResult

MANUAL = IngestionConfig(auto_process=False)


@pytest.fixture
def service(test_async_db: AsyncSession, mock_queue: AsyncMock) -> IngestionService:
    """Provide IngestionService over the test database and mocked queue."""
    return IngestionService(db=test_async_db, queue=mock_queue)


@pytest.fixture
def success_result() -> ProcessingResult:
    return ProcessingResult(
        success=True,
        processing_time=1200,
        extracted_text="This document covers machine learning algorithms.",
        summary="ML guide",
        keywords=["machine", "learning"],
        language="en",
    )


class TestCreate:
    """Test suite for IngestionService.create."""

    @pytest.mark.asyncio
    async def test_create_dispatches_by_default(self, service, make_document, mock_queue) -> None:
        """Test a new ingestion is dispatched and moves to PROCESSING."""
        # Arrange
        document = await make_document()

        # Act
        ingestion = await service.create(document.id, "user-1")

        # Assert
        assert ingestion.status == IngestionStatus.PROCESSING
        assert ingestion.started_at is not None
        assert ingestion.completed_at is None
        assert ingestion.logs["jobId"] == "job-9"

        job, options = mock_queue.enqueue.call_args.args
        assert job.document_id == str(document.id)
        assert job.file_path == document.file_path
        assert job.config.extract_text is True
        assert job.config.perform_ocr is False
        assert job.config.enable_search is True
        assert options.priority == 0
        assert options.attempts == 3

    @pytest.mark.asyncio
    async def test_create_without_auto_process_stays_queued(
        self, service, make_document, mock_queue
    ) -> None:
        """Test autoProcess=false leaves the ingestion QUEUED at progress 0."""
        document = await make_document()

        ingestion = await service.create(document.id, "user-1", MANUAL)

        assert ingestion.status == IngestionStatus.QUEUED
        assert ingestion.progress == 0
        assert ingestion.config == {"autoProcess": False}
        mock_queue.enqueue.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_passes_priority_and_chosen_flags(
        self, service, make_document, mock_queue
    ) -> None:
        """Test config priority and explicit flags reach the job."""
        document = await make_document()
        config = IngestionConfig(priority=1, perform_ocr=True, generate_summary=False)

        await service.create(document.id, "user-1", config)

        job, options = mock_queue.enqueue.call_args.args
        assert options.priority == 1
        assert job.config.perform_ocr is True
        assert job.config.generate_summary is False
        assert job.config.extract_keywords is True

    @pytest.mark.asyncio
    async def test_create_for_missing_document_raises(self, service) -> None:
        """Test create raises NotFoundError for an unknown document."""
        with pytest.raises(NotFoundError, match="Document not found"):
            await service.create(uuid.uuid4(), "user-1")


class TestDispatch:
    """Test suite for IngestionService.dispatch."""

    @pytest.mark.asyncio
    async def test_enqueue_failure_marks_ingestion_failed(
        self, service, make_document, mock_queue, test_async_db
    ) -> None:
        """Test a queue error becomes a FAILED ingestion instead of an exception."""
        # Arrange
        document = await make_document()
        ingestion = await service.create(document.id, "user-1", MANUAL)
        mock_queue.enqueue.side_effect = RuntimeError("queue unavailable")

        # Act
        job_id = await service.dispatch(ingestion.id, "user-1")

        # Assert
        await test_async_db.refresh(ingestion)
        await test_async_db.refresh(document)
        assert job_id is None
        assert ingestion.status == IngestionStatus.FAILED
        assert ingestion.error == "Failed to trigger processing: queue unavailable"
        assert ingestion.started_at is None
        assert ingestion.completed_at is not None
        assert document.status == DocumentStatus.FAILED

    @pytest.mark.asyncio
    async def test_dispatch_requires_queued(self, service, make_document) -> None:
        """Test dispatching an ingestion twice is rejected."""
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")

        with pytest.raises(InvalidStateError):
            await service.dispatch(ingestion.id, "user-1")

    @pytest.mark.asyncio
    async def test_dispatch_unknown_ingestion(self, service) -> None:
        with pytest.raises(NotFoundError):
            await service.dispatch(uuid.uuid4())


class TestApplyCallback:
    """Test suite for IngestionService.apply_callback."""

    @pytest.mark.asyncio
    async def test_success_completes_ingestion_and_document(
        self, service, make_document, success_result, test_async_db
    ) -> None:
        """Test a successful result completes the ingestion and processes the document."""
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")

        applied = await service.apply_callback(ingestion.id, success_result)

        await test_async_db.refresh(ingestion)
        await test_async_db.refresh(document)
        assert applied is True
        assert ingestion.status == IngestionStatus.COMPLETED
        assert ingestion.progress == 100
        assert ingestion.completed_at is not None
        assert ingestion.logs["jobId"] == "job-9"
        assert ingestion.logs["processingResult"]["extractedText"] == success_result.extracted_text
        assert document.status == DocumentStatus.PROCESSED

    @pytest.mark.asyncio
    async def test_repeated_callback_is_a_no_op(
        self, service, make_document, success_result, test_async_db
    ) -> None:
        """Test redelivering the same callback leaves completedAt and error untouched."""
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")
        await service.apply_callback(ingestion.id, success_result)
        await test_async_db.refresh(ingestion)
        completed_at, error = ingestion.completed_at, ingestion.error

        applied = await service.apply_callback(ingestion.id, success_result)

        await test_async_db.refresh(ingestion)
        assert applied is False
        assert ingestion.completed_at == completed_at
        assert ingestion.error == error
        assert ingestion.status == IngestionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_failure_joins_worker_errors(
        self, service, make_document, test_async_db
    ) -> None:
        """Test a failed result records the joined worker errors."""
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")

        await service.apply_callback(
            ingestion.id,
            ProcessingResult(success=False, errors=["OCR failed", "timeout"]),
        )

        await test_async_db.refresh(ingestion)
        await test_async_db.refresh(document)
        assert ingestion.status == IngestionStatus.FAILED
        assert ingestion.error == "OCR failed; timeout"
        assert ingestion.completed_at is not None
        assert document.status == DocumentStatus.FAILED

    @pytest.mark.asyncio
    async def test_late_callback_after_cancel_is_ignored(
        self, service, make_document, success_result, test_async_db
    ) -> None:
        """Test a worker result arriving after cancellation changes nothing."""
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")
        await service.cancel(ingestion.id, "user-1")

        applied = await service.apply_callback(ingestion.id, success_result)

        await test_async_db.refresh(ingestion)
        assert applied is False
        assert ingestion.status == IngestionStatus.CANCELLED


class TestCancel:
    """Test suite for IngestionService.cancel."""

    @pytest.mark.asyncio
    async def test_cancel_without_job_id(
        self, service, make_document, mock_queue, test_async_db
    ) -> None:
        """Test cancelling an undispatched ingestion needs no queue call."""
        # Arrange
        document = await make_document()
        ingestion = await service.create(document.id, "user-1", MANUAL)

        # Act
        cancelled = await service.cancel(ingestion.id, "user-1")

        # Assert
        await test_async_db.refresh(ingestion)
        await test_async_db.refresh(document)
        assert cancelled is True
        assert ingestion.status == IngestionStatus.CANCELLED
        assert ingestion.error == "Processing cancelled by user"
        assert ingestion.completed_at is not None
        assert document.status == DocumentStatus.FAILED
        mock_queue.cancel.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_drops_queue_job(self, service, make_document, mock_queue) -> None:
        """Test cancelling a dispatched ingestion cancels its job."""
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")

        await service.cancel(ingestion.id, "user-1")

        mock_queue.cancel.assert_awaited_once_with("job-9")

    @pytest.mark.asyncio
    async def test_cancel_succeeds_when_job_already_forwarded(
        self, service, make_document, mock_queue, test_async_db
    ) -> None:
        """Test the ingestion is cancelled even if the queue can't drop the job."""
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")
        mock_queue.cancel.return_value = False

        assert await service.cancel(ingestion.id, "user-1") is True

        await test_async_db.refresh(ingestion)
        assert ingestion.status == IngestionStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_completed_raises_without_mutation(
        self, service, make_document, success_result, test_async_db
    ) -> None:
        """Test cancelling a COMPLETED ingestion raises and leaves it unchanged."""
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")
        await service.apply_callback(ingestion.id, success_result)
        await test_async_db.refresh(ingestion)
        before = (ingestion.status, ingestion.error, ingestion.completed_at, ingestion.logs)

        with pytest.raises(InvalidStateError):
            await service.cancel(ingestion.id, "user-1")

        await test_async_db.refresh(ingestion)
        assert (ingestion.status, ingestion.error, ingestion.completed_at, ingestion.logs) == before

    @pytest.mark.asyncio
    async def test_cancel_by_other_user_forbidden(self, service, make_document) -> None:
        """Test only the owner may cancel."""
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")

        with pytest.raises(ForbiddenError):
            await service.cancel(ingestion.id, "user-2")


class TestGetStatus:
    """Test suite for IngestionService.get_status."""

    @pytest.mark.asyncio
    async def test_live_job_overlays_progress(self, service, make_document) -> None:
        """Test an active job's progress is reported for a processing ingestion."""
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")

        status = await service.get_status(ingestion.id)

        assert status.status == IngestionStatus.PROCESSING
        assert status.progress == 40
        assert status.job_id == "job-9"
        assert status.job_status == "active"

    @pytest.mark.asyncio
    async def test_failed_job_fails_ingestion(
        self, service, make_document, mock_queue, test_async_db
    ) -> None:
        """Test a job that used up its attempts fails the ingestion and its document."""
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")
        mock_queue.get_status.return_value = mock_queue.get_status.return_value.model_copy(
            update={"status": JobState.FAILED, "error": "broker unavailable"}
        )

        status = await service.get_status(ingestion.id)

        await test_async_db.refresh(ingestion)
        await test_async_db.refresh(document)
        assert status.status == IngestionStatus.FAILED
        assert status.error == "Failed to trigger processing: broker unavailable"
        assert status.job_status == "failed"
        assert ingestion.status == IngestionStatus.FAILED
        assert ingestion.logs["failedAt"] is not None
        assert document.status == DocumentStatus.FAILED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("state", [JobState.WAITING, JobState.DELAYED, JobState.PAUSED])
    async def test_retrying_job_keeps_processing(
        self, service, make_document, mock_queue, state
    ) -> None:
        """Test a job waiting for its next attempt never reads as QUEUED."""
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")
        mock_queue.get_status.return_value = mock_queue.get_status.return_value.model_copy(
            update={"status": state, "progress": 0}
        )

        status = await service.get_status(ingestion.id)

        assert status.status == IngestionStatus.PROCESSING
        assert status.job_status == state.value

    @pytest.mark.asyncio
    async def test_job_of_another_ingestion_is_ignored(
        self, service, make_document, mock_queue, sample_job
    ) -> None:
        """Test a job id now naming another ingestion's job leaves the stored view."""
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")
        mock_queue.get_status.return_value = mock_queue.get_status.return_value.model_copy(
            update={"status": JobState.FAILED, "error": "boom", "data": sample_job}
        )

        status = await service.get_status(ingestion.id)

        assert status.status == IngestionStatus.PROCESSING
        assert status.error is None
        assert status.job_status is None

    @pytest.mark.asyncio
    async def test_pruned_job_keeps_stored_view(
        self, service, make_document, mock_queue
    ) -> None:
        """Test an unknown job leaves the stored status untouched."""
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")
        mock_queue.get_status.side_effect = NotFoundError("Job", "job-9")

        status = await service.get_status(ingestion.id)

        assert status.status == IngestionStatus.PROCESSING
        assert status.progress == 0
        assert status.job_status is None

    @pytest.mark.asyncio
    async def test_terminal_ingestion_skips_queue(
        self, service, make_document, mock_queue, success_result
    ) -> None:
        """Test finished ingestions report their stored status only."""
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")
        await service.apply_callback(ingestion.id, success_result)

        status = await service.get_status(ingestion.id)

        assert status.status == IngestionStatus.COMPLETED
        assert status.progress == 100
        mock_queue.get_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_users_status_forbidden(self, service, make_document) -> None:
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")

        with pytest.raises(ForbiddenError):
            await service.get_status(ingestion.id, CurrentUser(id="user-2"))


class TestOnJobFailed:
    """Test suite for IngestionService.on_job_failed."""

    @pytest.mark.asyncio
    async def test_exhausted_job_fails_ingestion_and_document(
        self, service, make_document, mock_queue, test_async_db
    ) -> None:
        # Arrange
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")
        job = mock_queue.get_status.return_value.model_copy(
            update={"status": JobState.FAILED, "error": "SQS throttled"}
        )

        # Act
        applied = await service.on_job_failed(job)

        # Assert
        await test_async_db.refresh(ingestion)
        await test_async_db.refresh(document)
        assert applied is True
        assert ingestion.status == IngestionStatus.FAILED
        assert ingestion.error == "Failed to trigger processing: SQS throttled"
        assert ingestion.completed_at is not None
        assert document.status == DocumentStatus.FAILED

    @pytest.mark.asyncio
    async def test_missing_error_uses_default_message(
        self, service, make_document, mock_queue, test_async_db
    ) -> None:
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")
        job = mock_queue.get_status.return_value.model_copy(
            update={"status": JobState.FAILED, "error": None}
        )

        await service.on_job_failed(job)

        await test_async_db.refresh(ingestion)
        assert ingestion.error == "Failed to trigger processing: Processing failed"

    @pytest.mark.asyncio
    async def test_superseded_job_is_ignored(
        self, service, make_document, mock_queue, test_async_db
    ) -> None:
        """Test a failure of a job the ingestion no longer points at changes nothing."""
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")
        job = mock_queue.get_status.return_value.model_copy(
            update={"id": "job-1", "status": JobState.FAILED, "error": "boom"}
        )

        applied = await service.on_job_failed(job)

        await test_async_db.refresh(ingestion)
        assert applied is False
        assert ingestion.status == IngestionStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_finished_ingestion_is_left_alone(
        self, service, make_document, mock_queue, success_result, test_async_db
    ) -> None:
        """Test a job failure arriving after the worker completed is a no-op."""
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")
        await service.apply_callback(ingestion.id, success_result)
        job = mock_queue.get_status.return_value.model_copy(
            update={"status": JobState.FAILED, "error": "boom"}
        )

        applied = await service.on_job_failed(job)

        await test_async_db.refresh(ingestion)
        await test_async_db.refresh(document)
        assert applied is False
        assert ingestion.status == IngestionStatus.COMPLETED
        assert document.status == DocumentStatus.PROCESSED


class TestQueries:
    """Test suite for listing, stats and callback resolution."""

    @pytest.mark.asyncio
    async def test_non_admin_sees_only_own_ingestions(self, service, make_document) -> None:
        """Test list results are restricted for regular users."""
        mine = await make_document("user-1")
        theirs = await make_document("user-2")
        await service.create(mine.id, "user-1", MANUAL)
        await service.create(theirs.id, "user-2", MANUAL)

        page = await service.get_ingestions(CurrentUser(id="user-1"))
        admin_page = await service.get_ingestions(CurrentUser(id="root", role="admin"))

        assert page.pagination.total == 1
        assert page.ingestions[0].user_id == "user-1"
        assert page.stats.queued == 1
        assert admin_page.pagination.total == 2

    @pytest.mark.asyncio
    async def test_pagination_and_status_filter(self, service, make_document) -> None:
        """Test page metadata and status filtering."""
        document = await make_document()
        for _ in range(3):
            await service.create(document.id, "user-1", MANUAL)
        await service.create(document.id, "user-1")

        page = await service.get_ingestions(
            CurrentUser(id="user-1"),
            page=1,
            limit=2,
            filters=IngestionFilters(status=IngestionStatus.QUEUED),
        )

        assert page.pagination.total == 3
        assert page.pagination.total_pages == 2
        assert len(page.ingestions) == 2
        assert all(i.status == IngestionStatus.QUEUED for i in page.ingestions)

    @pytest.mark.asyncio
    async def test_stats(self, service, make_document, success_result) -> None:
        """Test stats count statuses and compute the success rate."""
        document = await make_document()
        completed = await service.create(document.id, "user-1")
        await service.apply_callback(completed.id, success_result)
        failed = await service.create(document.id, "user-1")
        await service.apply_callback(failed.id, ProcessingResult(success=False))
        await service.create(document.id, "user-1", MANUAL)

        stats = await service.get_stats(CurrentUser(id="user-1"))

        assert stats.total == 3
        assert stats.completed == 1
        assert stats.failed == 1
        assert stats.queued == 1
        assert stats.success_rate == 50

    @pytest.mark.asyncio
    async def test_get_ingestion_access(self, service, make_document) -> None:
        document = await make_document()
        ingestion = await service.create(document.id, "user-1", MANUAL)

        assert (await service.get_ingestion(ingestion.id, CurrentUser(id="user-1"))).id == ingestion.id
        assert (
            await service.get_ingestion(ingestion.id, CurrentUser(id="ops", role="admin"))
        ).id == ingestion.id
        with pytest.raises(ForbiddenError):
            await service.get_ingestion(ingestion.id, CurrentUser(id="user-2"))

    @pytest.mark.asyncio
    async def test_callback_target_matches_job_id(
        self, service, make_document, success_result
    ) -> None:
        """Test a job id in the callback selects that ingestion even if finished."""
        document = await make_document()
        first = await service.create(document.id, "user-1")
        await service.apply_callback(first.id, success_result)
        await service.create(document.id, "user-1", MANUAL)

        target = await service.resolve_callback_target(document.id, "job-9")

        assert target.id == first.id

    @pytest.mark.asyncio
    async def test_callback_target_falls_back_to_active(
        self, service, make_document, success_result
    ) -> None:
        """Test without a matching job id the active ingestion wins over a finished one."""
        document = await make_document()
        active = await service.create(document.id, "user-1", MANUAL)
        finished = await service.create(document.id, "user-1")
        await service.apply_callback(finished.id, success_result)

        target = await service.resolve_callback_target(document.id, "unknown-job")

        assert target.id == active.id

    @pytest.mark.asyncio
    async def test_callback_target_without_ingestions(self, service, make_document) -> None:
        document = await make_document()

        with pytest.raises(NotFoundError):
            await service.resolve_callback_target(document.id)


class TestReprocess:
    """Test suite for IngestionService.reprocess."""

    @pytest.mark.asyncio
    async def test_reprocess_creates_new_ingestion(
        self, service, make_document, test_async_db
    ) -> None:
        """Test reprocessing leaves the failed ingestion and dispatches a new one."""
        # Arrange
        document = await make_document()
        failed = await service.create(document.id, "user-1", IngestionConfig(priority=1))
        await service.apply_callback(failed.id, ProcessingResult(success=False))

        # Act
        fresh = await service.reprocess(failed.id, CurrentUser(id="user-1"))

        # Assert
        await test_async_db.refresh(failed)
        assert fresh.id != failed.id
        assert fresh.document_id == document.id
        assert fresh.status == IngestionStatus.PROCESSING
        assert fresh.config == failed.config
        assert failed.status == IngestionStatus.FAILED

    @pytest.mark.asyncio
    async def test_reprocess_other_users_ingestion_forbidden(self, service, make_document) -> None:
        document = await make_document()
        ingestion = await service.create(document.id, "user-1")

        with pytest.raises(ForbiddenError):
            await service.reprocess(ingestion.id, CurrentUser(id="user-2"))
