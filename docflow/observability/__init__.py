"""
Observability module.

Provides structured logging and correlation ID tracking.
"""

from docflow.observability.correlation import get_correlation_id, set_correlation_id
from docflow.observability.logger import configure_logging

__all__ = [
    "configure_logging",
    "get_correlation_id",
    "set_correlation_id",
]
