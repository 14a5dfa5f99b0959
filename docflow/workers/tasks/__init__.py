"""
Celery tasks.

Exports: dispatch_processing_job
"""

from docflow.workers.tasks.document_processing import dispatch_processing_job

__all__ = ["dispatch_processing_job"]
