"""
Declarative base and column mixins for the documents and ingestions tables.

utcnow() is also the clock the ingestion lifecycle stamps startedAt,
completedAt and the logs timestamps with, so stored times are always
timezone-aware UTC.

Dependencies: sqlalchemy
System role: Foundation for the docflow ORM models
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Registry for DocumentModel and IngestionModel; create_tables() uses its metadata."""


class UUIDMixin:
    """
    UUID4 primary key.

    Native UUID on PostgreSQL, CHAR(32) on SQLite test databases. Ingestion
    ids are also what the dispatch job carries as ingestionId.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )


class TimestampMixin:
    """
    created_at and updated_at columns.

    Ingestion listings sort by created_at when no sortBy is given; updated_at
    moves on every compare-and-set transition.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
