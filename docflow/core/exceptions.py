"""
Exception hierarchy for the docflow ingestion backend.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class DocFlowException(Exception):
    """Base exception for all docflow application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return the human-readable message."""
        return self.message


class NotFoundError(DocFlowException):
    """Raised when a document, ingestion or job cannot be found."""

    def __init__(
        self,
        resource: str,
        resource_id: Any,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize not found error.

        Args:
            resource: Kind of resource (Document, Ingestion, Job)
            resource_id: Identifier that was looked up
            details: Additional context
        """
        details = details or {}
        details["resource"] = resource
        details["resource_id"] = str(resource_id)
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found: {resource_id}", details)


class ForbiddenError(DocFlowException):
    """Raised when a caller acts on an ingestion it does not own."""

    def __init__(
        self,
        message: str,
        user_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize forbidden error.

        Args:
            message: Error message
            user_id: Caller that was refused
            details: Additional context
        """
        details = details or {}
        if user_id:
            details["user_id"] = user_id
        super().__init__(message, details)


class InvalidStateError(DocFlowException):
    """Raised when an operation is not permitted from the ingestion's status."""

    def __init__(
        self,
        message: str,
        current_status: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize invalid state error.

        Args:
            message: Error message
            current_status: Status the ingestion is in
            details: Additional context
        """
        details = details or {}
        if current_status:
            details["current_status"] = current_status
        self.current_status = current_status
        super().__init__(message, details)


class DispatchFailure(DocFlowException):
    """Raised when a job cannot be handed to the processing queue."""

    def __init__(
        self,
        message: str,
        ingestion_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize dispatch failure.

        Args:
            message: Error message
            ingestion_id: Ingestion whose job failed to enqueue
            details: Additional context
        """
        details = details or {}
        if ingestion_id:
            details["ingestion_id"] = ingestion_id
        super().__init__(message, details)


class CallbackConflict(DocFlowException):
    """Raised when a worker callback targets an already-terminal ingestion."""

    def __init__(
        self,
        ingestion_id: str,
        current_status: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize callback conflict.

        Args:
            ingestion_id: Ingestion the callback resolved to
            current_status: Terminal status already recorded
            details: Additional context
        """
        details = details or {}
        details["ingestion_id"] = ingestion_id
        details["current_status"] = current_status
        super().__init__(
            f"Ingestion {ingestion_id} is already {current_status}",
            details,
        )
