"""
Processing worker integration settings.

Dependencies: pydantic_settings
System role: Shared secret for authenticating processing worker callbacks
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from docflow.configs.base import BaseSettings


class ProcessingSettings(BaseSettings):
    """Settings for the external processing worker callback."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PROCESSING_",
        case_sensitive=False,
        extra="ignore",
    )

    service_token: str = Field(
        default="",
        description="Token the worker sends in X-Service-Token; empty rejects every callback",
    )
