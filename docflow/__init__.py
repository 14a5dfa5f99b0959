"""docflow: document ingestion lifecycle, processing queue and content search."""

__version__ = "0.1.0"
