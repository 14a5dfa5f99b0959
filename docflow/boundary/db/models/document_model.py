"""
Document ORM model.

Represents registered documents whose processing status is driven by the
ingestion lifecycle. The document itself is an external collaborator: the
lifecycle only reads its file metadata and sets its status.

Dependencies: sqlalchemy, docflow.boundary.db.base
System role: Document persistence for ingestion tracking
"""

import enum
from sqlalchemy import String, Enum, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from docflow.boundary.db.base import Base, UUIDMixin, TimestampMixin


class DocumentStatus(str, enum.Enum):
    """
    Document processing states.

    PENDING: Registered, not yet successfully processed
    PROCESSED: Latest ingestion completed; extracted content is searchable
    FAILED: Latest ingestion failed or was cancelled
    """

    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"


class DocumentModel(Base, UUIDMixin, TimestampMixin):
    """
    Document ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        user_id: Owning user identifier
        title: Display title, scored by content search
        description: Optional free-text description
        file_name: Original filename
        file_type: MIME type or extension of the stored file
        file_path: Storage location handed to the processing worker
        status: PENDING/PROCESSED/FAILED, set by the ingestion lifecycle
        created_at: Registration timestamp (UTC)
        updated_at: Last status change timestamp (UTC)

    Relationships:
        ingestions: IngestionModels for this document (cascade delete)
    """

    __tablename__ = "documents"

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    file_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Original filename",
    )

    file_type: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    file_path: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
        doc="Storage path or URL of the raw document",
    )

    status: Mapped[DocumentStatus] = mapped_column(
        Enum(DocumentStatus, native_enum=False),
        nullable=False,
        default=DocumentStatus.PENDING,
    )

    # Relationships
    ingestions = relationship(
        "IngestionModel",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
