"""
Logging helpers for ingestion lifecycle events.

Structured ``extra`` values pass through safe_log_value so large payloads
(extracted text, keyword lists) never end up verbatim in log lines.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import logging
from typing import Any


def safe_log_value(value: Any, max_length: int = 200) -> str:
    """
    Render a value for a log record.

    Args:
        value: Value to render
        max_length: Length after which strings are truncated

    Returns:
        str: Short string representation
    """
    if value is None:
        return "None"
    if hasattr(value, "value") and isinstance(value.value, str):
        text = value.value
    elif isinstance(value, (list, tuple, set)):
        text = f"{type(value).__name__}({len(value)} items)"
    elif isinstance(value, dict):
        text = f"dict({len(value)} keys)"
    else:
        text = str(value)

    if len(text) > max_length:
        return text[:max_length] + f"... (truncated, {len(text)} total)"
    return text


def log_transition(
    logger: logging.Logger,
    ingestion_id: Any,
    from_status: Any,
    to_status: Any,
    **context,
) -> None:
    """
    Log an applied ingestion status change.

    Args:
        logger: Logger instance
        ingestion_id: Ingestion that moved
        from_status: Status before the change
        to_status: Status after the change
        **context: Extra structured fields
    """
    extra = {key: safe_log_value(val) for key, val in context.items()}
    extra.update(
        ingestion_id=safe_log_value(ingestion_id),
        from_status=safe_log_value(from_status),
        to_status=safe_log_value(to_status),
    )
    logger.info(
        f"Ingestion {extra['ingestion_id']}: {extra['from_status']} -> {extra['to_status']}",
        extra=extra,
    )


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: Exception,
    **context,
) -> None:
    """
    Log an exception with traceback and structured context.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance
        **context: Extra structured fields
    """
    extra = {key: safe_log_value(val) for key, val in context.items()}
    extra.update(error_type=type(exc).__name__, error_msg=str(exc))
    logger.exception(message, extra=extra)
