"""
Document CRUD operations.

Provides the document collaborator interface used by the ingestion
lifecycle: lookup and status updates.

Dependencies: sqlalchemy, docflow.boundary.db.models.document_model
System role: Document persistence operations
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from docflow.boundary.db.models.document_model import DocumentModel, DocumentStatus
from docflow.boundary.db.CRUD.base_crud import BaseCRUD


class DocumentCRUD(BaseCRUD[DocumentModel]):
    """CRUD operations for DocumentModel."""

    def __init__(self) -> None:
        """Initialize DocumentCRUD with DocumentModel."""
        super().__init__(DocumentModel)

    async def set_status(
        self,
        session: AsyncSession,
        id: UUID,
        status: DocumentStatus,
    ) -> DocumentModel | None:
        """
        Update document processing status.

        Args:
            session: Async database session
            id: Document UUID
            status: New processing status

        Returns:
            Updated DocumentModel if found, None otherwise
        """
        return await self.update_by_id(session, id, status=status)


document_crud = DocumentCRUD()
