"""
Celery workers module.

Dispatches processing jobs to the external processing worker.

Dependencies: celery, docflow.configs
System role: Background task processing
"""

from celery import Celery

from docflow.configs import get_settings

settings = get_settings()
celery_config = settings.celery
queue_config = settings.queue

celery_app = Celery(
    "docflow",
    broker=celery_config.broker_url,
    backend=celery_config.result_backend_url,
    include=["docflow.workers.tasks.document_processing"],
)

celery_app.conf.update(
    task_serializer=celery_config.task_serializer,
    result_serializer=celery_config.result_serializer,
    accept_content=celery_config.accept_content,
    timezone=celery_config.timezone,
    result_expires=celery_config.result_expires,
    task_default_queue=queue_config.name,
    # RabbitMQ only honours message priorities on queues declared with a maximum.
    task_queue_max_priority=10,
    task_track_started=True,
    task_acks_late=True,
    task_always_eager=celery_config.task_always_eager,
    task_store_eager_result=True,
    worker_concurrency=queue_config.concurrency,
    worker_prefetch_multiplier=1,
)
