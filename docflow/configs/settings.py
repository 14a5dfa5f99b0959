"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from docflow.configs.base import BaseSettings
from docflow.configs.celery_config import CelerySettings
from docflow.configs.database import DatabaseSettings
from docflow.configs.processing import ProcessingSettings
from docflow.configs.queue import QueueSettings
from docflow.configs.search import SearchSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    # Aggregated settings
    database: DatabaseSettings = DatabaseSettings()
    queue: QueueSettings = QueueSettings()
    celery: CelerySettings = CelerySettings()
    processing: ProcessingSettings = ProcessingSettings()
    search: SearchSettings = SearchSettings()


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from docflow.configs import get_settings
        settings = get_settings()
    """
    return Settings()
