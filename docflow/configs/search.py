"""
Content search configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Defaults for the content relevance search
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from docflow.configs.base import BaseSettings


class SearchSettings(BaseSettings):
    """Content relevance search configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SEARCH_",
        case_sensitive=False,
        extra="ignore",
    )

    default_limit: int = Field(default=10, ge=1, description="Results returned when no limit is given")
    max_limit: int = Field(default=100, ge=1, description="Upper bound accepted for the limit parameter")
    excerpt_length: int = Field(default=200, ge=20, description="Maximum excerpt length in characters")
    offload_threshold: int = Field(
        default=200,
        ge=0,
        description="Candidate count above which ranking runs in a worker thread",
    )
