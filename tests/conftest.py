"""
Shared test fixtures and configuration for entire test suite.

Provides: In-memory database session, document factory, processing queue mock
Dependencies: pytest, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from docflow.boundary.queue.base import ProcessingQueueClient
from docflow.models.job import (
    JobHandle,
    JobOptions,
    JobState,
    JobStatusInfo,
    ProcessingJob,
    QueueStats,
    ResolvedProcessingConfig,
)


@pytest.fixture
async def test_async_db():
    """
    Create in-memory SQLite async database for testing.

    Yields:
        AsyncSession: Test database session with cleanup
    """
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
    from sqlalchemy.pool import StaticPool

    from docflow.boundary.db.base import Base
    from docflow.boundary.db.models import DocumentModel, IngestionModel  # noqa: F401

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def make_document(test_async_db):
    """
    Factory creating committed documents.

    Returns:
        Callable: async (user_id="user-1", **fields) -> DocumentModel
    """
    from docflow.boundary.db.CRUD.document_crud import document_crud
    from docflow.boundary.db.models.document_model import DocumentStatus

    async def _make(user_id: str = "user-1", **fields):
        values = {
            "title": "Machine Learning Guide",
            "file_name": "guide.pdf",
            "file_type": "application/pdf",
            "file_path": "uploads/user-1/guide.pdf",
            "status": DocumentStatus.PENDING,
        }
        values.update(fields)
        document = await document_crud.create(test_async_db, user_id=user_id, **values)
        await test_async_db.commit()
        return document

    return _make


@pytest.fixture
def sample_job() -> ProcessingJob:
    """Provide a processing job payload."""
    return ProcessingJob(
        ingestion_id=str(uuid.uuid4()),
        document_id="doc-1",
        file_name="guide.pdf",
        file_type="application/pdf",
        file_path="uploads/user-1/guide.pdf",
        user_id="user-1",
        config=ResolvedProcessingConfig(),
    )


@pytest.fixture(scope="session", autouse=True)
def celery_memory_transport():
    """Point the Celery app at an in-memory broker and result backend."""
    from docflow.workers import celery_app

    celery_app.conf.update(
        broker_url="memory://",
        result_backend="cache+memory://",
        task_always_eager=False,
    )
    return celery_app


@pytest.fixture
def mock_queue(sample_job) -> AsyncMock:
    """
    Create mock ProcessingQueueClient for testing.

    enqueue returns job "job-9"; cancel succeeds; get_status reports the last
    enqueued job as active at 40%.
    """
    now = datetime.now(timezone.utc)
    queue = AsyncMock(spec=ProcessingQueueClient)

    async def enqueue(job, options=None):
        queue.get_status.return_value = queue.get_status.return_value.model_copy(
            update={"data": job}
        )
        return JobHandle(id="job-9", data=job, options=options or JobOptions(), created_at=now)

    queue.enqueue.side_effect = enqueue
    queue.cancel.return_value = True
    queue.retry.return_value = True
    queue.get_status.return_value = JobStatusInfo(
        id="job-9",
        status=JobState.ACTIVE,
        progress=40,
        data=sample_job,
        created_at=now,
    )
    queue.stats.return_value = QueueStats()
    return queue
