"""
Processing job schemas.

Jobs are the unit handed to the processing queue. They are not persisted by
the lifecycle; the only durable trace is the job id kept in the ingestion logs.

Dependencies: pydantic
System role: Processing queue contracts
"""

import enum
from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from docflow.models.common import CamelModel


class JobState(str, enum.Enum):
    """
    Queue-side job states.

    WAITING: Ready to run, waiting for a free dispatch slot
    ACTIVE: Handler is forwarding the job
    COMPLETED: Handler succeeded
    FAILED: All attempts exhausted
    DELAYED: Waiting for its start delay or retry backoff to elapse
    PAUSED: Waiting while the queue is paused
    """

    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    DELAYED = "delayed"
    PAUSED = "paused"


class ResolvedProcessingConfig(CamelModel):
    """Processing options with every unset flag replaced by its default."""

    extract_text: bool = True
    perform_ocr: bool = Field(default=False, alias="performOCR")
    extract_keywords: bool = True
    generate_summary: bool = True
    detect_language: bool = True
    enable_search: bool = True
    chunk_size: int | None = None
    chunk_overlap: int | None = None


class ProcessingJob(CamelModel):
    """Payload handed to the external processing worker."""

    ingestion_id: str
    document_id: str
    file_name: str
    file_type: str
    file_path: str
    user_id: str
    config: ResolvedProcessingConfig


class BackoffOptions(CamelModel):
    """Retry backoff between dispatch attempts."""

    type: Literal["exponential", "fixed"] = "exponential"
    delay: int = Field(default=2000, ge=0, description="Base delay in milliseconds")


class JobOptions(CamelModel):
    """Per-job enqueue options; None falls back to the queue defaults."""

    priority: int = Field(default=0, ge=0, description="0 = normal, 1 = highest")
    delay: int = Field(default=0, ge=0, description="Start delay in milliseconds")
    attempts: int | None = Field(default=None, ge=1)
    backoff: BackoffOptions | None = None


class JobHandle(CamelModel):
    """Returned by enqueue."""

    id: str
    data: ProcessingJob
    options: JobOptions
    created_at: datetime


class JobStatusInfo(CamelModel):
    """Snapshot of a queued job."""

    id: str
    status: JobState
    progress: int = 0
    data: ProcessingJob
    result: dict[str, Any] | None = None
    error: str | None = None
    attempts_made: int = 0
    created_at: datetime
    processed_at: datetime | None = None
    finished_at: datetime | None = None


class QueueStats(CamelModel):
    """Job counts per state plus the queue-wide paused flag."""

    waiting: int = 0
    active: int = 0
    completed: int = 0
    failed: int = 0
    delayed: int = 0
    paused: bool = False
