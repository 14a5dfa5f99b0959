"""
Processing queue construction.

Dependencies: docflow.configs, docflow.workers
System role: Wires queue and Celery settings into a queue client
"""

from celery import Celery

from docflow.boundary.queue.celery_queue import CeleryProcessingQueue, FailedJobHook
from docflow.configs.celery_config import CelerySettings
from docflow.configs.queue import QueueSettings
from docflow.workers import celery_app


def create_processing_queue(
    settings: QueueSettings,
    celery_settings: CelerySettings,
    on_job_failed: FailedJobHook | None = None,
    app: Celery | None = None,
) -> CeleryProcessingQueue:
    """
    Build the processing queue from settings.

    Args:
        settings: Queue name, retry policy and retained history
        celery_settings: Monitor interval for failed-job reporting
        on_job_failed: Awaited for each job that used up its attempts
        app: Celery app; defaults to the worker app

    Returns:
        CeleryProcessingQueue: Unstarted queue
    """
    return CeleryProcessingQueue(
        app or celery_app,
        name=settings.name,
        default_attempts=settings.default_attempts,
        backoff_delay_ms=settings.backoff_delay_ms,
        keep_completed=settings.keep_completed,
        keep_failed=settings.keep_failed,
        monitor_interval=celery_settings.monitor_interval,
        on_job_failed=on_job_failed,
    )
