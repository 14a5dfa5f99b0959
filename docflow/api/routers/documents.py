"""
Document API endpoints.

Routes:
- POST /documents - Register a stored file
- GET /documents/{id} - Get single document

Dependencies: docflow.application.services.document_service
System role: Document registration HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from docflow.api.deps import get_current_user, get_document_service
from docflow.application.services.document_service import DocumentService
from docflow.models.common import CurrentUser
from docflow.models.document import CreateDocumentRequest, DocumentResponse

from .router_utils import handle_service_errors

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("", response_model=DocumentResponse, status_code=201)
@handle_service_errors
async def create_document(
    request: CreateDocumentRequest,
    user: CurrentUser = Depends(get_current_user),
    document_service: DocumentService = Depends(get_document_service),
) -> DocumentResponse:
    """Register an already-uploaded file so it can be ingested."""
    document = await document_service.create_document(user.id, request)
    return DocumentResponse.model_validate(document)


@router.get("/{document_id}", response_model=DocumentResponse)
@handle_service_errors
async def get_document(
    document_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    document_service: DocumentService = Depends(get_document_service),
) -> DocumentResponse:
    """
    Get a document.

    Raises:
        HTTPException(404): Document not found
        HTTPException(403): Another user's document
    """
    document = await document_service.get_document(document_id, user)
    return DocumentResponse.model_validate(document)
