"""
Shared settings base for docflow.

Every settings group (database, queue, Celery, processing, search) extends
this class, so each reads the same .env file and carries the runtime
environment and log level.

Dependencies: pydantic_settings
System role: Common ancestor of the docflow settings groups
"""

from pydantic import Field
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict


class BaseSettings(PydanticBaseSettings):
    """.env-backed settings with the runtime environment and log level."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(
        default="development",
        description="Deployment the API and dispatch workers run in",
    )
    debug: bool = Field(
        default=False,
        description="Verbose error output",
    )
    log_level: str = Field(
        default="INFO",
        description="Root level passed to configure_logging",
    )
