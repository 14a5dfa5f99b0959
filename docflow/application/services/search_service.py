"""
Search service orchestrator.

Loads the caller's processed documents and ranks them with
ContentRelevanceSearch. Large candidate sets are ranked in a worker thread
so the event loop keeps serving requests.

Dependencies: docflow.boundary.db.CRUD, docflow.core.content_search
System role: Content search orchestration
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from docflow.boundary.db.CRUD.ingestion_crud import ingestion_crud
from docflow.configs.search import SearchSettings
from docflow.core.content_search import (
    ContentRelevanceSearch,
    SearchCandidate,
    extract_query_keywords,
)
from docflow.models.ingestion import IngestionLogs
from docflow.models.search import SearchResult

logger = logging.getLogger(__name__)


class SearchService:
    """Content search over a user's completed ingestions."""

    def __init__(self, db: AsyncSession, settings: SearchSettings | None = None) -> None:
        """
        Initialize search service.

        Args:
            db: AsyncSession for ingestion lookups
            settings: Search settings (defaults when None)
        """
        self.db = db
        self.settings = settings or SearchSettings()
        self.engine = ContentRelevanceSearch(excerpt_length=self.settings.excerpt_length)

    async def search(
        self,
        query: str,
        user_id: str,
        limit: int | None = None,
    ) -> list[SearchResult]:
        """
        Rank the user's processed documents against a query.

        Args:
            query: Free-text query
            user_id: Caller; only their ingestions are searched
            limit: Maximum results (settings default when None)

        Returns:
            list[SearchResult]: Ranked matches, empty when nothing matches
        """
        limit = min(limit or self.settings.default_limit, self.settings.max_limit)
        if not extract_query_keywords(query):
            return []

        candidates = await self.load_candidates(user_id)
        if len(candidates) > self.settings.offload_threshold:
            results = await asyncio.to_thread(self.engine.rank, query, candidates, limit)
        else:
            results = self.engine.rank(query, candidates, limit)

        logger.info(
            f"Search returned {len(results)} results",
            extra={"user_id": user_id, "candidates": len(candidates)},
        )
        return results

    async def load_candidates(self, user_id: str) -> list[SearchCandidate]:
        """Latest completed ingestion per document, as search candidates."""
        rows = await ingestion_crud.get_completed_with_documents(self.db, user_id)

        candidates: list[SearchCandidate] = []
        seen = set()
        for ingestion, document in rows:
            if document.id in seen:
                continue
            seen.add(document.id)

            result = IngestionLogs.model_validate(ingestion.logs or {}).processing_result
            candidates.append(
                SearchCandidate(
                    document_id=document.id,
                    title=document.title,
                    extracted_text=result.extracted_text if result else None,
                    summary=result.summary if result else None,
                    keywords=tuple(result.keywords or ()) if result else (),
                )
            )
        return candidates
