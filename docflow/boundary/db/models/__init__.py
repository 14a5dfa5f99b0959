"""
Database models package.

Exports:
  - DocumentModel, DocumentStatus: Document ORM model and status enum
  - IngestionModel, IngestionStatus: Ingestion ORM model and lifecycle enum

Dependencies: sqlalchemy, docflow.boundary.db.base
System role: Database model definitions for domain entities
"""

from docflow.boundary.db.models.document_model import DocumentModel, DocumentStatus
from docflow.boundary.db.models.ingestion_model import IngestionModel, IngestionStatus

__all__ = [
    "DocumentModel",
    "DocumentStatus",
    "IngestionModel",
    "IngestionStatus",
]
