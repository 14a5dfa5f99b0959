"""
Celery configuration settings.

Manages the broker and result backend behind the processing queue. Job
retry policy and retained history live in QueueSettings.

Dependencies: pydantic, pydantic_settings
System role: Async task queue configuration for processing dispatch
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from docflow.configs.base import BaseSettings


class CelerySettings(BaseSettings):
    """Celery, RabbitMQ and Redis configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CELERY_",
        case_sensitive=False,
        extra="ignore",
    )

    broker_host: str = Field(default="localhost", description="RabbitMQ host")
    broker_port: int = Field(default=5672, description="RabbitMQ port")
    broker_user: str = Field(default="guest", description="RabbitMQ user")
    broker_password: str = Field(default="guest", description="RabbitMQ password")
    broker_vhost: str = Field(default="/", description="RabbitMQ virtual host")

    result_backend_host: str = Field(default="localhost", description="Redis host for results")
    result_backend_port: int = Field(default=6379, description="Redis port")
    result_backend_db: int = Field(default=0, description="Redis database number")
    result_expires: int = Field(
        default=86400,
        ge=0,
        description="Seconds job results are kept in the result backend",
    )

    task_serializer: str = Field(default="json", description="Task serialization format")
    result_serializer: str = Field(default="json", description="Result serialization format")
    accept_content: list[str] = Field(
        default=["json"],
        description="Accepted content types",
    )
    timezone: str = Field(default="UTC", description="Celery timezone")
    task_always_eager: bool = Field(
        default=False,
        description="Run tasks in the calling process (local development without a worker)",
    )

    monitor_interval: float = Field(
        default=5.0,
        ge=0,
        description="Seconds between job result polls in the API process (0 disables polling)",
    )

    @property
    def broker_url(self) -> str:
        """
        Construct RabbitMQ broker URL.

        Returns:
            str: Celery-compatible broker URL
        """
        return (
            f"amqp://{self.broker_user}:{self.broker_password}"
            f"@{self.broker_host}:{self.broker_port}/{self.broker_vhost}"
        )

    @property
    def result_backend_url(self) -> str:
        """
        Construct Redis result backend URL.

        Returns:
            str: Celery-compatible result backend URL
        """
        return f"redis://{self.result_backend_host}:{self.result_backend_port}/{self.result_backend_db}"
