"""
FastAPI application with assembled routers.

Initializes FastAPI app with all API routers and configures uvicorn server.
The processing queue lives for the lifetime of the app: it is built and
started in the lifespan and closed on shutdown. Jobs that fail for good are
reported back to the ingestion lifecycle through report_failed_job.

Dependencies: fastapi, docflow.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager
from functools import partial

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docflow.application.services.ingestion_service import IngestionService
from docflow.boundary.db.connection import dispose_engine, get_async_session_factory
from docflow.boundary.db.create_tables import create_tables
from docflow.boundary.queue.queue_factory import create_processing_queue
from docflow.configs import get_settings
from docflow.models.job import JobStatusInfo
from docflow.observability import configure_logging
from docflow.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

from .routers import (
    documents_router,
    health_router,
    ingestions_router,
    processing_router,
    search_router,
)

logger = logging.getLogger(__name__)


async def report_failed_job(app: FastAPI, job: JobStatusInfo) -> None:
    """Fail the ingestion behind a job that used up its dispatch attempts."""
    session_factory = get_async_session_factory()
    async with session_factory() as db:
        service = IngestionService(db=db, queue=app.state.processing_queue)
        await service.on_job_failed(job)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    # Startup
    if settings.database.create_tables_on_startup:
        await create_tables()

    queue = create_processing_queue(
        settings.queue,
        settings.celery,
        on_job_failed=partial(report_failed_job, app),
    )
    await queue.start()
    app.state.processing_queue = queue
    logger.info("Processing queue started", extra={"queue": settings.queue.name})

    yield

    # Shutdown
    await queue.close()
    await dispose_engine()
    logger.info("Processing queue closed and database engine disposed")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    app = FastAPI(
        title="DocFlow Ingestion API",
        description="Document ingestion lifecycle, processing dispatch and content search",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(documents_router, prefix="/api/v1")
    app.include_router(ingestions_router, prefix="/api/v1")
    app.include_router(processing_router, prefix="/api/v1")
    app.include_router(search_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "docflow.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
