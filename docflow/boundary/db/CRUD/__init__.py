"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from docflow.boundary.db.CRUD import ingestion_crud, document_crud

    ingestion = await ingestion_crud.get_by_id(db, ingestion_id)
"""

from docflow.boundary.db.CRUD.base_crud import BaseCRUD
from docflow.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from docflow.boundary.db.CRUD.ingestion_crud import IngestionCRUD, ingestion_crud

__all__ = [
    "BaseCRUD",
    "DocumentCRUD",
    "document_crud",
    "IngestionCRUD",
    "ingestion_crud",
]
