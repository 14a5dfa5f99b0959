"""Service orchestrators."""

from .document_service import DocumentService
from .ingestion_service import IngestionService
from .processing_service import ProcessingService
from .search_service import SearchService

__all__ = [
    "DocumentService",
    "IngestionService",
    "ProcessingService",
    "SearchService",
]
