"""
Ingestion CRUD operations.

The ingestion record store: creation, lookups, filtered listing, status
aggregation and the compare-and-set transition used to serialize lifecycle
updates on a single ingestion.

Dependencies: sqlalchemy, docflow.boundary.db.models
System role: Ingestion persistence operations for the lifecycle state machine
"""

from collections.abc import Collection
from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from docflow.boundary.db.models.document_model import DocumentModel
from docflow.boundary.db.models.ingestion_model import IngestionModel, IngestionStatus
from docflow.boundary.db.CRUD.base_crud import BaseCRUD
from docflow.models.ingestion import IngestionFilters, IngestionSortBy, SortOrder

_SORT_COLUMNS = {
    IngestionSortBy.STARTED_AT: (IngestionModel.started_at, SortOrder.DESC),
    IngestionSortBy.COMPLETED_AT: (IngestionModel.completed_at, SortOrder.DESC),
    IngestionSortBy.STATUS: (IngestionModel.status, SortOrder.ASC),
    IngestionSortBy.CREATED_AT: (IngestionModel.created_at, SortOrder.DESC),
}


def apply_filters(stmt: Select, filters: IngestionFilters | None) -> Select:
    """
    Narrow a select over IngestionModel by the list filters.

    Args:
        stmt: Statement selecting from the ingestions table
        filters: Filters to apply (None applies nothing)

    Returns:
        Select: Filtered statement
    """
    if filters is None:
        return stmt
    if filters.status is not None:
        stmt = stmt.where(IngestionModel.status == filters.status)
    if filters.document_id is not None:
        stmt = stmt.where(IngestionModel.document_id == filters.document_id)
    if filters.user_id is not None:
        stmt = stmt.where(IngestionModel.user_id == filters.user_id)
    if filters.start_date is not None:
        stmt = stmt.where(IngestionModel.started_at >= filters.start_date)
    if filters.end_date is not None:
        stmt = stmt.where(IngestionModel.started_at <= filters.end_date)
    return stmt


def _order_by(filters: IngestionFilters | None):
    sort_by = filters.sort_by if filters and filters.sort_by else IngestionSortBy.CREATED_AT
    column, default_order = _SORT_COLUMNS[sort_by]
    order = filters.sort_order if filters and filters.sort_order else default_order
    return column.asc() if order == SortOrder.ASC else column.desc()


class IngestionCRUD(BaseCRUD[IngestionModel]):
    """
    CRUD operations for IngestionModel.

    Extends BaseCRUD with filtered listing, status grouping and conditional
    status transitions.
    """

    def __init__(self) -> None:
        """Initialize IngestionCRUD with IngestionModel."""
        super().__init__(IngestionModel)

    async def find_many(
        self,
        session: AsyncSession,
        filters: IngestionFilters | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[IngestionModel]:
        """
        Retrieve ingestions matching filters, sorted per filters.

        Args:
            session: Async database session
            filters: Optional list filters and sort options
            limit: Maximum number of ingestions to return
            offset: Number of ingestions to skip

        Returns:
            Sequence of IngestionModels
        """
        stmt = apply_filters(select(IngestionModel), filters)
        stmt = stmt.order_by(_order_by(filters), IngestionModel.id).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count(
        self,
        session: AsyncSession,
        filters: IngestionFilters | None = None,
    ) -> int:
        """
        Count ingestions matching filters.

        Args:
            session: Async database session
            filters: Optional list filters

        Returns:
            int: Matching row count
        """
        stmt = apply_filters(select(func.count(IngestionModel.id)), filters)
        result = await session.execute(stmt)
        return result.scalar_one()

    async def group_by_status(
        self,
        session: AsyncSession,
        filters: IngestionFilters | None = None,
    ) -> dict[IngestionStatus, int]:
        """
        Count ingestions per status.

        Args:
            session: Async database session
            filters: Optional list filters

        Returns:
            dict: Status to count (statuses with no rows are omitted)
        """
        stmt = apply_filters(
            select(IngestionModel.status, func.count(IngestionModel.id)),
            filters,
        ).group_by(IngestionModel.status)
        result = await session.execute(stmt)
        return {IngestionStatus(status): count for status, count in result.all()}

    async def get_processing_windows(
        self,
        session: AsyncSession,
        filters: IngestionFilters | None = None,
    ) -> list[tuple[datetime, datetime]]:
        """
        Fetch (started_at, completed_at) of completed ingestions with both set.

        Args:
            session: Async database session
            filters: Optional list filters

        Returns:
            list: Start and completion timestamps per completed ingestion
        """
        stmt = apply_filters(
            select(IngestionModel.started_at, IngestionModel.completed_at),
            filters,
        ).where(
            IngestionModel.status == IngestionStatus.COMPLETED,
            IngestionModel.started_at.is_not(None),
            IngestionModel.completed_at.is_not(None),
        )
        result = await session.execute(stmt)
        return [(started, completed) for started, completed in result.all()]

    async def get_by_document_id(
        self,
        session: AsyncSession,
        document_id: UUID,
    ) -> Sequence[IngestionModel]:
        """
        Retrieve a document's ingestions, newest first.

        Args:
            session: Async database session
            document_id: Owning document UUID

        Returns:
            Sequence of IngestionModels
        """
        stmt = (
            select(IngestionModel)
            .where(IngestionModel.document_id == document_id)
            .order_by(IngestionModel.created_at.desc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_completed_with_documents(
        self,
        session: AsyncSession,
        user_id: str,
    ) -> Sequence[tuple[IngestionModel, DocumentModel]]:
        """
        Retrieve a user's completed ingestions joined to their documents.

        Ordered newest completion first so the first row per document is its
        latest result.

        Args:
            session: Async database session
            user_id: Owning user

        Returns:
            Sequence of (IngestionModel, DocumentModel) rows
        """
        stmt = (
            select(IngestionModel, DocumentModel)
            .join(DocumentModel, DocumentModel.id == IngestionModel.document_id)
            .where(
                IngestionModel.user_id == user_id,
                IngestionModel.status == IngestionStatus.COMPLETED,
            )
            .order_by(IngestionModel.completed_at.desc(), IngestionModel.created_at.desc())
        )
        result = await session.execute(stmt)
        return [(ingestion, document) for ingestion, document in result.all()]

    async def transition(
        self,
        session: AsyncSession,
        id: UUID,
        expected: Collection[IngestionStatus],
        **values,
    ) -> IngestionModel | None:
        """
        Update an ingestion only while its status is one of ``expected``.

        The status check and the write happen in one UPDATE statement, so two
        concurrent transitions on the same ingestion cannot both succeed.

        Args:
            session: Async database session
            id: Ingestion UUID
            expected: Statuses the row must currently be in
            **values: Fields to write

        Returns:
            Updated IngestionModel, or None when the row is missing or its
            status no longer matches
        """
        stmt = (
            update(IngestionModel)
            .where(
                IngestionModel.id == id,
                IngestionModel.status.in_(list(expected)),
            )
            .values(**values)
            .returning(IngestionModel)
            .execution_options(synchronize_session="fetch")
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()


ingestion_crud = IngestionCRUD()
