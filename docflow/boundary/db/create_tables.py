"""
Table creation helper.

Creates every table registered on Base.metadata. Used at API startup when
POSTGRES_CREATE_TABLES_ON_STARTUP is enabled, or run directly:

    python -m docflow.boundary.db.create_tables

Dependencies: sqlalchemy, docflow.boundary.db
System role: Schema bootstrap for development environments
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from docflow.boundary.db.base import Base
from docflow.boundary.db.connection import get_async_engine

# Imported for table registration side effects
from docflow.boundary.db.models import DocumentModel, IngestionModel  # noqa: F401

logger = logging.getLogger(__name__)


async def create_tables(engine: AsyncEngine | None = None) -> None:
    """
    Create all missing tables.

    Args:
        engine: Engine to use (defaults to the configured async engine)
    """
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(
        "Database tables ensured",
        extra={"tables": sorted(Base.metadata.tables)},
    )


if __name__ == "__main__":
    asyncio.run(create_tables())
