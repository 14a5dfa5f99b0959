"""
Document domain models and schemas.

Request/response schemas for document registration.

Dependencies: pydantic
System role: Document API contracts
"""

import uuid
from datetime import datetime

from pydantic import Field

from docflow.boundary.db.models.document_model import DocumentStatus
from docflow.models.common import CamelModel


class CreateDocumentRequest(CamelModel):
    """Register an already-stored file for ingestion."""

    title: str = Field(min_length=1, max_length=512)
    description: str | None = None
    file_name: str = Field(min_length=1, max_length=255)
    file_type: str = Field(min_length=1, max_length=255)
    file_path: str = Field(min_length=1, max_length=1024, description="Storage path or URL")


class DocumentResponse(CamelModel):
    """Response schema for document operations."""

    id: uuid.UUID
    user_id: str
    title: str
    description: str | None = None
    file_name: str
    file_type: str
    file_path: str
    status: DocumentStatus
    created_at: datetime
    updated_at: datetime
