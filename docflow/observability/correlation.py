"""
Request correlation IDs.

CorrelationMiddleware stores the X-Correlation-ID of each API request here;
CorrelationIdFilter stamps it on every log record, so lifecycle transitions,
queue dispatch and callback logs of one request can be grouped.

Dependencies: contextvars
System role: Request tracing in docflow logs
"""

from contextvars import ContextVar
import uuid

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Bind a request's correlation ID.

    Args:
        correlation_id: ID sent by the caller; a UUID4 is generated when missing

    Returns:
        str: The ID now attached to log records
    """
    value = correlation_id or str(uuid.uuid4())
    correlation_id_ctx.set(value)
    return value


def get_correlation_id() -> str:
    """Correlation ID of the current request, empty outside one."""
    return correlation_id_ctx.get()


def clear_correlation_id() -> None:
    """Unbind the ID once the response is sent."""
    correlation_id_ctx.set("")
