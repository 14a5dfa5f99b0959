"""
Service error handling for routers.

Decorator mapping the docflow exception hierarchy onto HTTP errors, so route
handlers only deal with the success path.

Dependencies: fastapi, docflow.core.exceptions
System role: Uniform API error responses
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import HTTPException, status

from docflow.core.exceptions import (
    DocFlowException,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def handle_service_errors(func: F) -> F:
    """
    Translate service exceptions into HTTPExceptions.

    NotFoundError -> 404, ForbiddenError -> 403, InvalidStateError -> 409,
    any other DocFlowException -> 400, anything unexpected -> 500.
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)

        except HTTPException:
            raise

        except NotFoundError as e:
            logger.warning("Resource not found", extra={"error": str(e), **e.details})
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

        except ForbiddenError as e:
            logger.warning("Access denied", extra={"error": str(e), **e.details})
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

        except InvalidStateError as e:
            logger.warning("Invalid ingestion state", extra={"error": str(e), **e.details})
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

        except DocFlowException as e:
            logger.warning("Invalid request", extra={"error": str(e), **e.details})
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        except Exception as e:
            logger.exception(
                f"Unexpected failure in {func.__name__}",
                extra={"error": str(e)},
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="An internal error occurred",
            )

    return wrapper  # type: ignore
