"""
Content search schemas.

Dependencies: pydantic
System role: Search API contracts
"""

import uuid
from typing import Literal

from docflow.models.common import CamelModel

MatchType = Literal["title", "content", "summary", "keywords"]


class SearchResult(CamelModel):
    """One ranked document match."""

    document_id: uuid.UUID
    document_title: str
    relevance_score: float
    excerpt: str
    match_type: MatchType


class SearchResponse(CamelModel):
    """Search results for a query."""

    query: str
    results: list[SearchResult]
    total: int
