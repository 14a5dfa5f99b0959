"""
Processing queue boundary.

Exports:
  - ProcessingQueueClient: Interface used by the ingestion lifecycle
  - CeleryProcessingQueue: Celery implementation
  - create_processing_queue(): Settings-driven construction
"""

from docflow.boundary.queue.base import ProcessingQueueClient
from docflow.boundary.queue.celery_queue import CeleryProcessingQueue, FailedJobHook
from docflow.boundary.queue.queue_factory import create_processing_queue

__all__ = [
    "ProcessingQueueClient",
    "CeleryProcessingQueue",
    "FailedJobHook",
    "create_processing_queue",
]
