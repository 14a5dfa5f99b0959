"""API routers."""

from .documents import router as documents_router
from .health import router as health_router
from .ingestions import router as ingestions_router
from .processing import router as processing_router
from .search import router as search_router

__all__ = [
    "documents_router",
    "health_router",
    "ingestions_router",
    "processing_router",
    "search_router",
]
