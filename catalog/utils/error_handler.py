"""
Error handler decorator for HTTP endpoints.

Converts AppException instances into HTTP responses so endpoints do not
need their own try/except blocks.
"""

from functools import wraps
from typing import Any, Callable

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError

from catalog.exceptions import AppException
from catalog.logging import logger


def handle_http_errors(func: Callable) -> Callable:
    """
    Decorator for HTTP endpoints to convert AppException to HTTPException.

    Automatically catches AppException instances and converts them to
    FastAPI HTTPException with appropriate status codes. Database errors
    become a 500 without leaking driver details.

    Args:
        func: The HTTP endpoint function to wrap.

    Returns:
        Wrapped function that handles exceptions.

    Example:
        ```python
        @router.get("/authors/{author_id}")
        @handle_http_errors
        async def get_author(author_id: int, session_factory: SessionFactoryDep) -> AuthorRead:
            return await GetAuthorCommand(session_factory).execute(author_id)
        ```
    """

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except AppException as ex:
            logger.warning(
                f"AppException in {func.__name__}: {ex.message}",
                extra={"exception_type": type(ex).__name__},
            )
            raise HTTPException(
                status_code=ex.http_status,
                detail=ex.message,
            )
        except SQLAlchemyError as ex:
            logger.error(
                f"Database error in {func.__name__}: {ex}",
                exc_info=True,
            )
            raise HTTPException(
                status_code=500,
                detail="Database error occurred",
            )

    return wrapper
