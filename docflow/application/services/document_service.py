"""
Document service orchestrator.

Registers documents whose files are already in storage, so they can be
ingested.

Dependencies: docflow.boundary.db.CRUD
System role: Document registration and lookup
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from docflow.boundary.db.CRUD.document_crud import document_crud
from docflow.boundary.db.models.document_model import DocumentModel, DocumentStatus
from docflow.core.exceptions import ForbiddenError, NotFoundError
from docflow.models.common import CurrentUser
from docflow.models.document import CreateDocumentRequest

logger = logging.getLogger(__name__)


class DocumentService:
    """Document registration and access-checked lookup."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create_document(
        self,
        user_id: str,
        request: CreateDocumentRequest,
    ) -> DocumentModel:
        """
        Register a stored file as a PENDING document.

        Args:
            user_id: Owning user
            request: Document metadata

        Returns:
            DocumentModel: Created document
        """
        document = await document_crud.create(
            self.db,
            user_id=user_id,
            status=DocumentStatus.PENDING,
            **request.model_dump(),
        )
        await self.db.commit()
        logger.info(
            f"Registered document {document.id}",
            extra={"document_id": str(document.id), "user_id": user_id},
        )
        return document

    async def get_document(self, document_id: UUID, user: CurrentUser) -> DocumentModel:
        """
        Fetch a document the caller may see.

        Raises:
            NotFoundError: If the document doesn't exist
            ForbiddenError: If a non-admin asks for another user's document
        """
        document = await document_crud.get_by_id(self.db, document_id)
        if document is None:
            raise NotFoundError("Document", document_id)
        if not user.is_admin and document.user_id != user.id:
            raise ForbiddenError("Access denied to this document", user_id=user.id)
        return document
