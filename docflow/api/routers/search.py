"""
Search API endpoints.

Routes: GET /search?q=&limit=

Dependencies: docflow.application.services.search_service
System role: Content search HTTP API
"""

from fastapi import APIRouter, Depends, Query

from docflow.api.deps import get_current_user, get_search_service
from docflow.application.services.search_service import SearchService
from docflow.models.common import CurrentUser
from docflow.models.search import SearchResponse

from .router_utils import handle_service_errors

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=SearchResponse)
@handle_service_errors
async def search_documents(
    q: str = Query(min_length=1, max_length=500, description="Free-text query"),
    limit: int | None = Query(default=None, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    search_service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    """Rank the caller's processed documents against a query."""
    results = await search_service.search(q, user.id, limit)
    return SearchResponse(query=q, results=results, total=len(results))
