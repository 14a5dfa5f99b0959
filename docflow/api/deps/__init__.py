"""API-specific dependencies."""

from .dependencies import (
    get_current_user,
    get_document_service,
    get_ingestion_service,
    get_processing_queue,
    get_processing_service,
    get_search_service,
    get_settings_dependency,
    verify_service_token,
)

__all__ = [
    "get_current_user",
    "get_document_service",
    "get_ingestion_service",
    "get_processing_queue",
    "get_processing_service",
    "get_search_service",
    "get_settings_dependency",
    "verify_service_token",
]
