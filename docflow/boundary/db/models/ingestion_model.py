"""
Ingestion ORM model.

One row per processing attempt of a document. Status follows the lifecycle
QUEUED -> PROCESSING -> COMPLETED | FAILED | CANCELLED; the rules live in
docflow.core.ingestion_lifecycle.

Dependencies: sqlalchemy, docflow.boundary.db.base
System role: Ingestion record store for the lifecycle state machine
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, JSON, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from docflow.boundary.db.base import Base, UUIDMixin, TimestampMixin


class IngestionStatus(str, enum.Enum):
    """
    Ingestion lifecycle states.

    QUEUED: Created, job not yet handed to the processing queue
    PROCESSING: Job enqueued; waiting for the worker callback
    COMPLETED: Worker reported success; logs hold the processing result
    FAILED: Dispatch or worker processing failed; error holds the reason
    CANCELLED: Cancelled by the owner before a result arrived
    """

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class IngestionModel(Base, UUIDMixin, TimestampMixin):
    """
    Ingestion ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        document_id: Owning document (cascade delete)
        user_id: Initiating user identifier
        status: Lifecycle state (IngestionStatus)
        progress: Percentage complete (0-100)
        config: Processing options (IngestionConfig, camelCase keys)
        error: Failure or cancellation reason, null otherwise
        logs: Job metadata and processing result (IngestionLogs, camelCase keys)
        started_at: First transition into PROCESSING (set once)
        completed_at: First transition into a terminal state (set once)
        created_at: Creation timestamp (UTC)
        updated_at: Last update timestamp (UTC)
    """

    __tablename__ = "ingestions"

    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )

    status: Mapped[IngestionStatus] = mapped_column(
        Enum(IngestionStatus, native_enum=False),
        nullable=False,
        default=IngestionStatus.QUEUED,
        index=True,
    )

    progress: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Progress percentage (0-100)",
    )

    config: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    error: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    logs: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        doc="Job id and processing result",
    )

    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    document = relationship("DocumentModel", back_populates="ingestions")
