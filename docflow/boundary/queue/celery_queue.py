"""
Celery-backed processing queue.

Each job is one dispatch_processing_job task. Job ids are Celery task ids
(UUIDs), so an id is never handed out twice across restarts. The broker
orders jobs by priority and holds delayed starts; the task retries failed
forwards with backoff; the result backend holds each job's state.

The client remembers the jobs it enqueued so it can report their payloads,
count them per state and prune finished ones down to ``keep_completed`` /
``keep_failed`` entries. A monitor task polls unfinished jobs and hands
each job that failed for good to ``on_job_failed``.

Priorities follow the usual broker convention: 0 means "no priority",
1 is the highest priority and larger numbers run later.

Dependencies: celery, docflow.workers
System role: Dispatch queue between the ingestion lifecycle and the worker
"""

import asyncio
import itertools
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from celery import Celery, states
from celery.result import AsyncResult
from celery.utils import uuid

from docflow.boundary.queue.base import ProcessingQueueClient
from docflow.core.exceptions import DispatchFailure, NotFoundError
from docflow.models.job import (
    BackoffOptions,
    JobHandle,
    JobOptions,
    JobState,
    JobStatusInfo,
    ProcessingJob,
    QueueStats,
)
from docflow.workers.tasks.document_processing import dispatch_processing_job

logger = logging.getLogger(__name__)

FailedJobHook = Callable[[JobStatusInfo], Awaitable[None]]

MAX_BROKER_PRIORITY = 10

_FINISHED = frozenset({JobState.COMPLETED, JobState.FAILED})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def broker_priority(priority: int) -> int | None:
    """Map 1 = highest onto RabbitMQ's larger-runs-first scale; 0 sends no priority."""
    if priority <= 0:
        return None
    return max(1, MAX_BROKER_PRIORITY - priority)


@dataclass
class TrackedJob:
    """Client-side record of an enqueued job."""

    id: str
    data: ProcessingJob
    options: JobOptions
    sequence: int
    created_at: datetime
    ready_at: datetime
    attempts_made: int = 0
    processed_at: datetime | None = None
    finished_at: datetime | None = None
    failure_reported: bool = False


class CeleryProcessingQueue(ProcessingQueueClient):
    """ProcessingQueueClient over a Celery app."""

    def __init__(
        self,
        app: Celery,
        *,
        name: str = "document-processing",
        default_attempts: int = 3,
        backoff_delay_ms: int = 2000,
        keep_completed: int = 50,
        keep_failed: int = 100,
        monitor_interval: float = 5.0,
        on_job_failed: FailedJobHook | None = None,
    ) -> None:
        """
        Initialize the queue; call start() to begin monitoring jobs.

        Args:
            app: Celery app the dispatch task is registered on
            name: Celery queue jobs are routed to
            default_attempts: Attempts when a job does not set its own
            backoff_delay_ms: Backoff base when a job does not set its own
            keep_completed: Completed jobs retained for inspection
            keep_failed: Failed jobs retained for inspection
            monitor_interval: Seconds between polls of unfinished jobs (0 disables)
            on_job_failed: Awaited once for each job that used up its attempts
        """
        self.name = name
        self.on_job_failed = on_job_failed
        self._app = app
        self._task = app.tasks[dispatch_processing_job.name]
        self._backend = app.backend
        self._default_attempts = default_attempts
        self._backoff_delay_ms = backoff_delay_ms
        self._keep_completed = keep_completed
        self._keep_failed = keep_failed
        self._monitor_interval = monitor_interval

        self._jobs: dict[str, TrackedJob] = {}
        self._completed: deque[str] = deque()
        self._failed: deque[str] = deque()
        self._sequence = itertools.count()
        self._paused = False
        self._monitor: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # ProcessingQueueClient
    # ------------------------------------------------------------------

    async def enqueue(
        self,
        job: ProcessingJob,
        options: JobOptions | None = None,
    ) -> JobHandle:
        options = options or JobOptions()
        resolved = options.model_copy(
            update={
                "attempts": options.attempts or self._default_attempts,
                "backoff": options.backoff or BackoffOptions(delay=self._backoff_delay_ms),
            }
        )
        now = _utcnow()
        tracked = TrackedJob(
            id=uuid(),
            data=job,
            options=resolved,
            sequence=next(self._sequence),
            created_at=now,
            ready_at=now + timedelta(milliseconds=resolved.delay),
        )
        # Registered before sending: an eager app runs the task inside apply_async.
        self._jobs[tracked.id] = tracked
        try:
            self._send(tracked)
        except Exception as exc:
            self._jobs.pop(tracked.id, None)
            raise DispatchFailure(
                f"Processing queue {self.name} rejected the job: {exc}",
                ingestion_id=job.ingestion_id,
            ) from exc

        logger.info(
            f"Added processing job for document {job.document_id} with job ID: {tracked.id}",
            extra={
                "job_id": tracked.id,
                "document_id": job.document_id,
                "priority": resolved.priority,
                "attempts": resolved.attempts,
            },
        )
        return JobHandle(
            id=tracked.id,
            data=job,
            options=resolved,
            created_at=tracked.created_at,
        )

    async def get_status(self, job_id: str) -> JobStatusInfo:
        tracked = self._jobs.get(job_id)
        if tracked is None:
            raise NotFoundError("Job", job_id)
        return self._observe(tracked)

    async def cancel(self, job_id: str) -> bool:
        tracked = self._jobs.get(job_id)
        if tracked is None:
            logger.warning(f"Job {job_id} not found for cancellation")
            return False
        info = self._observe(tracked)
        if info.status in _FINISHED:
            logger.warning(f"Job {job_id} is already {info.status.value}, cannot cancel")
            return False

        # A task already forwarding keeps running; its outcome is discarded.
        self._app.control.revoke(job_id)
        self._jobs.pop(job_id, None)
        logger.info(f"Job {job_id} cancelled successfully", extra={"job_id": job_id})
        return True

    async def retry(self, job_id: str) -> bool:
        tracked = self._jobs.get(job_id)
        if tracked is None:
            logger.warning(f"Job {job_id} not found for retry")
            return False
        info = self._observe(tracked)
        if info.status != JobState.FAILED:
            logger.warning(f"Job {job_id} is {info.status.value}, only failed jobs can be retried")
            return False

        if job_id in self._failed:
            self._failed.remove(job_id)
        self._result(job_id).forget()
        self._jobs[job_id] = tracked
        tracked.ready_at = _utcnow()
        tracked.attempts_made = 0
        tracked.processed_at = None
        tracked.finished_at = None
        tracked.failure_reported = False
        self._send(tracked, delay_ms=0)
        logger.info(f"Job {job_id} retried successfully", extra={"job_id": job_id})
        return True

    async def stats(self) -> QueueStats:
        counts = {state: 0 for state in JobState}
        for tracked in list(self._jobs.values()):
            counts[self._observe(tracked).status] += 1
        return QueueStats(
            waiting=counts[JobState.WAITING] + counts[JobState.PAUSED],
            active=counts[JobState.ACTIVE],
            completed=counts[JobState.COMPLETED],
            failed=counts[JobState.FAILED],
            delayed=counts[JobState.DELAYED],
            paused=self._paused,
        )

    async def get_jobs_by_document(self, document_id: str) -> list[JobStatusInfo]:
        jobs = [job for job in self._jobs.values() if job.data.document_id == document_id]
        jobs.sort(key=lambda job: job.sequence, reverse=True)
        return [self._observe(job) for job in jobs]

    async def pause(self) -> None:
        self._app.control.cancel_consumer(self.name)
        self._paused = True
        logger.info(f"Queue {self.name} paused")

    async def resume(self) -> None:
        self._app.control.add_consumer(self.name)
        self._paused = False
        logger.info(f"Queue {self.name} resumed")

    async def clean(
        self,
        grace_ms: int = 0,
        limit: int = 100,
        state: JobState = JobState.COMPLETED,
    ) -> int:
        if state == JobState.COMPLETED:
            history = self._completed
        elif state == JobState.FAILED:
            history = self._failed
        else:
            raise ValueError(f"Only completed or failed jobs can be cleaned, got {state.value}")

        cutoff = _utcnow() - timedelta(milliseconds=grace_ms)
        cleaned = 0
        # History is ordered oldest first.
        while history and cleaned < limit:
            tracked = self._jobs.get(history[0])
            if tracked is not None and tracked.finished_at and tracked.finished_at > cutoff:
                break
            self._drop(history.popleft())
            cleaned += 1

        logger.info(f"Cleaned {cleaned} {state.value} jobs from queue")
        return cleaned

    async def start(self) -> None:
        if self._monitor is None and self._monitor_interval > 0:
            self._monitor = asyncio.create_task(self._watch(), name=f"{self.name}-monitor")
            logger.info(
                f"Queue {self.name} monitor started",
                extra={"interval": self._monitor_interval},
            )

    async def close(self) -> None:
        if self._monitor is not None:
            self._monitor.cancel()
            await asyncio.gather(self._monitor, return_exceptions=True)
            self._monitor = None
        logger.info(f"Queue {self.name} closed")

    # ------------------------------------------------------------------
    # Monitoring
    # ------------------------------------------------------------------

    async def poll_jobs(self) -> list[JobStatusInfo]:
        """
        Observe every unfinished job once and report new permanent failures.

        Returns:
            list[JobStatusInfo]: Jobs found failed for good during this poll
        """
        failed = []
        for tracked in list(self._jobs.values()):
            if tracked.failure_reported or tracked.id in self._completed:
                continue
            info = self._observe(tracked)
            if info.status != JobState.FAILED:
                continue
            if self.on_job_failed is not None:
                await self.on_job_failed(info)
            tracked.failure_reported = True
            failed.append(info)
        return failed

    async def wait_for_job(
        self,
        job_id: str,
        timeout: float | None = None,
        interval: float = 0.1,
    ) -> JobStatusInfo:
        """
        Wait until a job completes or fails for good.

        Args:
            job_id: Job to wait for
            timeout: Seconds to wait (None waits indefinitely)
            interval: Seconds between polls

        Returns:
            JobStatusInfo: Final snapshot

        Raises:
            NotFoundError: Unknown or cancelled job
            TimeoutError: Job did not finish in time
        """

        async def _finished() -> JobStatusInfo:
            while True:
                info = await self.get_status(job_id)
                if info.status in _FINISHED:
                    return info
                await asyncio.sleep(interval)

        return await asyncio.wait_for(_finished(), timeout)

    async def _watch(self) -> None:
        while True:
            try:
                await self.poll_jobs()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.error(f"Job monitor poll failed: {exc}", exc_info=True)
            await asyncio.sleep(self._monitor_interval)

    # ------------------------------------------------------------------
    # Celery plumbing
    # ------------------------------------------------------------------

    def _send(self, tracked: TrackedJob, delay_ms: int | None = None) -> None:
        delay_ms = tracked.options.delay if delay_ms is None else delay_ms
        self._task.apply_async(
            kwargs={
                "job": tracked.data.model_dump(mode="json", by_alias=True),
                "options": tracked.options.model_dump(mode="json", by_alias=True),
            },
            task_id=tracked.id,
            queue=self.name,
            priority=broker_priority(tracked.options.priority),
            countdown=delay_ms / 1000 if delay_ms else None,
        )

    def _result(self, job_id: str) -> AsyncResult:
        return AsyncResult(job_id, backend=self._backend, app=self._app)

    def _observe(self, tracked: TrackedJob) -> JobStatusInfo:
        """Snapshot a job from its task state, updating history on first finish."""
        result = self._result(tracked.id)
        state = result.state
        info = result.info
        meta = info if isinstance(info, dict) else {}

        progress = 0
        error = None
        job_result = None

        if state == states.SUCCESS:
            status = JobState.COMPLETED
            progress = 100
            job_result = meta
            tracked.attempts_made = meta.get("attempts", tracked.attempts_made or 1)
        elif state == states.FAILURE:
            status = JobState.FAILED
            error = str(info)
            tracked.attempts_made = tracked.options.attempts or self._default_attempts
        elif state == states.STARTED:
            status = JobState.ACTIVE
            progress = meta.get("progress", 0)
            tracked.attempts_made = meta.get("attempt", tracked.attempts_made)
            if meta.get("startedAt"):
                tracked.processed_at = datetime.fromisoformat(meta["startedAt"])
        elif state == states.RETRY:
            status = JobState.DELAYED
            error = str(info)
        elif tracked.ready_at > _utcnow():
            status = JobState.DELAYED
        else:
            status = JobState.PAUSED if self._paused else JobState.WAITING

        if status in _FINISHED and tracked.finished_at is None:
            tracked.finished_at = _utcnow()
            if status == JobState.COMPLETED:
                self._remember(tracked, self._completed, self._keep_completed)
            else:
                self._remember(tracked, self._failed, self._keep_failed)

        return JobStatusInfo(
            id=tracked.id,
            status=status,
            progress=progress,
            data=tracked.data,
            result=job_result,
            error=error,
            attempts_made=tracked.attempts_made,
            created_at=tracked.created_at,
            processed_at=tracked.processed_at,
            finished_at=tracked.finished_at,
        )

    def _remember(self, tracked: TrackedJob, history: deque[str], keep: int) -> None:
        history.append(tracked.id)
        while len(history) > keep:
            self._drop(history.popleft())

    def _drop(self, job_id: str) -> None:
        self._jobs.pop(job_id, None)
        self._result(job_id).forget()
