"""
Processing dispatch Celery task.

Async task: dispatch_processing_job(job, options)
Flow: record attempt -> forward to the processing worker -> store message id

A failed forward is retried with the job's backoff until its attempts are
used up. The final failure stays in the result backend, where the API's job
monitor picks it up and fails the ingestion.

Dependencies: celery, docflow.boundary.aws, docflow.workers
System role: Async processing dispatch task
"""

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Protocol

from celery import states
from celery.utils.time import get_exponential_backoff_interval

from docflow.boundary.aws.sqs_client import SQSJobForwarder
from docflow.models.job import BackoffOptions, JobOptions, ProcessingJob
from docflow.workers import celery_app, queue_config

logger = logging.getLogger(__name__)

DISPATCH_TASK_NAME = "docflow.dispatch_processing_job"


class JobForwarder(Protocol):
    def send(self, job_id: str, job: ProcessingJob) -> dict[str, Any]: ...


class LocalAcknowledger:
    """Forwarder used when no SQS queue is configured."""

    def send(self, job_id: str, job: ProcessingJob) -> dict[str, Any]:
        logger.debug(f"Acknowledged job {job_id} locally", extra={"job_id": job_id})
        return {"forwarded": False}


@lru_cache
def get_job_forwarder() -> JobForwarder:
    """SQS forwarder when a queue URL is configured, local acknowledgement otherwise."""
    if queue_config.sqs_queue_url:
        return SQSJobForwarder(queue_config.sqs_queue_url, queue_config.sqs_region)
    logger.warning("QUEUE_SQS_QUEUE_URL not set, processing jobs are acknowledged locally")
    return LocalAcknowledger()


def retry_countdown(backoff: BackoffOptions, retries: int, maximum: float) -> float:
    """
    Seconds to wait before the next attempt.

    Args:
        backoff: Job backoff options (delay in milliseconds)
        retries: Retries already made
        maximum: Upper bound in seconds
    """
    factor = backoff.delay / 1000
    if backoff.type == "fixed":
        return min(factor, maximum)
    return get_exponential_backoff_interval(
        factor=factor,
        retries=retries,
        maximum=maximum,
        full_jitter=False,
    )


@celery_app.task(
    bind=True,
    name=DISPATCH_TASK_NAME,
    max_retries=queue_config.default_attempts - 1,
    retry_backoff=queue_config.backoff_delay_ms / 1000,
    retry_backoff_max=queue_config.max_backoff_ms / 1000,
    retry_jitter=False,
)
def dispatch_processing_job(self, job: dict, options: dict) -> dict:
    """
    Forward a processing job to the external worker.

    Args:
        job: ProcessingJob payload (camelCase)
        options: JobOptions the job was enqueued with

    Returns:
        dict: Forwarder result plus the attempt that succeeded
    """
    processing_job = ProcessingJob.model_validate(job)
    job_options = JobOptions.model_validate(options)
    attempts = job_options.attempts or self.max_retries + 1
    attempt = self.request.retries + 1

    self.update_state(
        state=states.STARTED,
        meta={
            "attempt": attempt,
            "progress": 0,
            "startedAt": datetime.now(timezone.utc).isoformat(),
        },
    )

    try:
        result = get_job_forwarder().send(self.request.id, processing_job)
    except Exception as exc:
        if attempt >= attempts:
            logger.error(
                f"Job {self.request.id} failed after {attempt} attempts: {exc}",
                extra={"job_id": self.request.id, "document_id": processing_job.document_id},
            )
            raise
        backoff = job_options.backoff or BackoffOptions(delay=int(self.retry_backoff * 1000))
        countdown = retry_countdown(backoff, self.request.retries, self.retry_backoff_max)
        logger.warning(
            f"Job {self.request.id} attempt {attempt} failed, retrying in {countdown}s",
            extra={"job_id": self.request.id, "error": str(exc), "countdown": countdown},
        )
        raise self.retry(exc=exc, countdown=countdown, max_retries=attempts - 1)

    logger.info(
        f"Job {self.request.id} dispatched for document {processing_job.document_id}",
        extra={"job_id": self.request.id, "attempt": attempt},
    )
    return {**result, "attempts": attempt}
