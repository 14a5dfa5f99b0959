"""
Processing queue client interface.

The lifecycle depends only on this interface; the broker behind it is chosen
in docflow.boundary.queue.queue_factory.

Dependencies: docflow.models.job
System role: Boundary between the ingestion lifecycle and the job broker
"""

from abc import ABC, abstractmethod

from docflow.models.job import (
    JobOptions,
    JobHandle,
    JobState,
    JobStatusInfo,
    ProcessingJob,
    QueueStats,
)


class ProcessingQueueClient(ABC):
    """Job queue with priorities, delayed starts, retry with backoff and bounded history."""

    @abstractmethod
    async def enqueue(
        self,
        job: ProcessingJob,
        options: JobOptions | None = None,
    ) -> JobHandle:
        """
        Add a job to the queue.

        Args:
            job: Payload for the processing worker
            options: Priority, delay, attempts and backoff overrides

        Returns:
            JobHandle: Handle carrying the assigned job id

        Raises:
            DispatchFailure: The queue is not accepting jobs
        """

    @abstractmethod
    async def get_status(self, job_id: str) -> JobStatusInfo:
        """
        Get a job snapshot.

        Raises:
            NotFoundError: Unknown or pruned job
        """

    @abstractmethod
    async def cancel(self, job_id: str) -> bool:
        """Drop a job; False when unknown or already completed/failed."""

    @abstractmethod
    async def retry(self, job_id: str) -> bool:
        """Re-queue a failed job; False when unknown or not failed."""

    @abstractmethod
    async def stats(self) -> QueueStats:
        """Job counts per state plus the paused flag."""

    @abstractmethod
    async def get_jobs_by_document(self, document_id: str) -> list[JobStatusInfo]:
        """Known jobs for a document, newest first."""

    @abstractmethod
    async def pause(self) -> None:
        """Stop starting new jobs."""

    @abstractmethod
    async def resume(self) -> None:
        """Start jobs again after pause."""

    @abstractmethod
    async def clean(
        self,
        grace_ms: int = 0,
        limit: int = 100,
        state: JobState = JobState.COMPLETED,
    ) -> int:
        """Remove finished jobs older than grace_ms; returns how many were removed."""

    async def start(self) -> None:
        """Begin dispatching jobs."""

    async def close(self) -> None:
        """Stop dispatching and release resources."""
