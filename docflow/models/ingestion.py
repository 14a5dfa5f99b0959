"""
Ingestion domain models and schemas.

Typed views over the ingestion config/logs JSON columns, plus the
request/response schemas of the ingestion API.

Dependencies: pydantic
System role: Ingestion API contracts
"""

import enum
import uuid
from datetime import datetime

from pydantic import Field

from docflow.boundary.db.models.ingestion_model import IngestionStatus
from docflow.models.common import CamelModel, Pagination
from docflow.models.job import ResolvedProcessingConfig
from docflow.models.processing import ProcessingResult


class IngestionConfig(CamelModel):
    """
    Processing options supplied when an ingestion is created.

    Unset flags are resolved to their defaults at dispatch time
    (see ``resolve``), so the stored config only records what the caller chose.
    """

    extract_text: bool | None = None
    perform_ocr: bool | None = Field(default=None, alias="performOCR")
    extract_keywords: bool | None = None
    generate_summary: bool | None = None
    detect_language: bool | None = None
    enable_search: bool | None = None
    priority: int | None = Field(default=None, ge=0)
    chunk_size: int | None = Field(default=None, gt=0)
    chunk_overlap: int | None = Field(default=None, ge=0)
    auto_process: bool | None = None

    def resolve(self) -> ResolvedProcessingConfig:
        """Fill unset processing flags with their defaults."""
        chosen = self.model_dump(
            exclude_none=True,
            exclude={"priority", "auto_process"},
        )
        return ResolvedProcessingConfig(**chosen)

    def to_record(self) -> dict:
        """Serialize for the ingestion config column."""
        return self.model_dump(by_alias=True, exclude_none=True)


class IngestionLogs(CamelModel):
    """Structured contents of the ingestion logs column."""

    job_id: str | None = None
    dispatched_at: datetime | None = None
    processing_result: ProcessingResult | None = None
    completed_at: datetime | None = None
    failed_at: datetime | None = None
    cancelled_at: datetime | None = None

    def to_record(self) -> dict:
        """Serialize for the ingestion logs column."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class IngestionSortBy(str, enum.Enum):
    """Sortable ingestion columns."""

    STARTED_AT = "startedAt"
    COMPLETED_AT = "completedAt"
    STATUS = "status"
    CREATED_AT = "createdAt"


class SortOrder(str, enum.Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class IngestionFilters(CamelModel):
    """List filters; dates bound started_at."""

    status: IngestionStatus | None = None
    document_id: uuid.UUID | None = None
    user_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    sort_by: IngestionSortBy | None = None
    sort_order: SortOrder | None = None


class CreateIngestionRequest(CamelModel):
    """Request schema for creating an ingestion."""

    document_id: uuid.UUID
    config: IngestionConfig = Field(default_factory=IngestionConfig)


class IngestionResponse(CamelModel):
    """Response schema for a single ingestion."""

    id: uuid.UUID
    document_id: uuid.UUID
    user_id: str
    status: IngestionStatus
    progress: int
    config: dict
    error: str | None = None
    logs: dict
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class IngestionStats(CamelModel):
    """Aggregate view over a set of ingestions."""

    total: int = 0
    queued: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0
    cancelled: int = 0
    success_rate: int = Field(default=0, description="Whole percentage of finished ingestions that completed")
    average_processing_time: int = Field(default=0, description="Mean whole seconds from start to completion")


class PaginatedIngestions(CamelModel):
    """Ingestion page with filter-wide stats."""

    ingestions: list[IngestionResponse]
    pagination: Pagination
    stats: IngestionStats


class ProcessingStatus(CamelModel):
    """Ingestion status overlaid with the live queue job."""

    ingestion_id: uuid.UUID
    status: IngestionStatus
    progress: int
    error: str | None = None
    job_id: str | None = None
    job_status: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


class DispatchResponse(CamelModel):
    """Result of a dispatch request."""

    ingestion_id: uuid.UUID
    job_id: str | None = None
    status: IngestionStatus


class CancelResponse(CamelModel):
    """Result of a cancel request."""

    cancelled: bool
