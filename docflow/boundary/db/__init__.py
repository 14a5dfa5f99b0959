"""
Database boundary layer: ORM models and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(), get_async_db(): Async connection management
  - DocumentModel, IngestionModel: Core domain entities
  - DocumentStatus, IngestionStatus: Enum types for state tracking

CRUD singletons live in docflow.boundary.db.CRUD (they depend on the API
filter schemas, which in turn depend on the models exported here).

Dependencies: sqlalchemy, docflow.configs
System role: Database adapter providing persistent storage for documents
and their ingestion records.
"""

from docflow.boundary.db.base import Base, TimestampMixin, UUIDMixin
from docflow.boundary.db.connection import (
    get_async_db,
    get_async_engine,
    get_async_session_factory,
)
from docflow.boundary.db.models.document_model import DocumentModel, DocumentStatus
from docflow.boundary.db.models.ingestion_model import IngestionModel, IngestionStatus

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Connection
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    # Models
    "DocumentModel",
    "DocumentStatus",
    "IngestionModel",
    "IngestionStatus",
]
