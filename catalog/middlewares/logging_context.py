"""
Middleware for injecting contextual fields into structured logs.

Every log line written while a request is processed carries the request's
endpoint, method and correlation ID.
"""

import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from catalog.logging import clear_log_context, set_log_context


class LoggingContextMiddleware(BaseHTTPMiddleware):  # type: ignore[misc]
    """
    Middleware to inject contextual fields into structured logs.

    This middleware:
    - Takes the correlation ID from X-Correlation-ID or generates one
    - Adds endpoint and method to log context
    - Echoes the correlation ID in the response headers
    - Clears log context after request completes
    """

    async def dispatch(self, request: Request, call_next: ASGIApp) -> Response:
        """
        Process request and inject logging context.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or endpoint handler.

        Returns:
            Response from the endpoint.
        """
        cid = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))[:8]
        set_log_context(
            correlation_id=cid,
            endpoint=request.url.path,
            method=request.method,
        )

        try:
            response = await call_next(request)
        finally:
            clear_log_context()

        response.headers["X-Correlation-ID"] = cid
        return response
