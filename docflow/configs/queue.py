"""
Processing queue configuration settings.

Manages the Celery queue name, worker concurrency, dispatch retry policy and
retained job history, plus the SQS target jobs are forwarded to.

Dependencies: pydantic, pydantic_settings
System role: Job queue configuration for document processing dispatch
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from docflow.configs.base import BaseSettings


class QueueSettings(BaseSettings):
    """Processing queue and retry policy configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="QUEUE_",
        case_sensitive=False,
        extra="ignore",
    )

    name: str = Field(default="document-processing", description="Celery queue processing jobs are routed to")
    concurrency: int = Field(default=4, ge=1, description="Worker processes dispatching jobs in parallel")

    # Retry policy
    default_attempts: int = Field(default=3, ge=1, description="Dispatch attempts per job")
    backoff_delay_ms: int = Field(default=2000, ge=0, description="Retry backoff base in milliseconds")
    max_backoff_ms: int = Field(
        default=60000,
        ge=0,
        description="Maximum retry backoff in milliseconds",
    )

    # Retained history
    keep_completed: int = Field(default=50, ge=0, description="Completed jobs kept for inspection")
    keep_failed: int = Field(default=100, ge=0, description="Failed jobs kept for inspection")

    sqs_queue_url: str = Field(
        default="",
        description="SQS queue URL jobs are forwarded to (empty acknowledges locally)",
    )
    sqs_region: str = Field(default="ap-southeast-2", description="AWS region for SQS")
