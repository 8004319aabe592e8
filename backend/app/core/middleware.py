"""
Middleware for FastAPI.

Contains:
- CorrelationIDMiddleware: Extracts/generates request correlation IDs
- RequestLoggingMiddleware: Logs method, path, status and latency per request
"""

import logging
import time
import uuid
from contextvars import ContextVar

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger(__name__)

# Context variable for correlation ID - accessible from any async context
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Get the current correlation ID from context."""
    return correlation_id_var.get()


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that extracts or generates a correlation ID for each request.

    The correlation ID is:
    1. Extracted from X-Request-ID or X-Correlation-ID header if present
    2. Generated as a UUID if not present
    3. Stored in request.state.correlation_id for route handlers
    4. Stored in ContextVar for logging filter access
    5. Returned in X-Request-ID response header
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or str(uuid.uuid4())
        )

        request.state.correlation_id = correlation_id
        token = correlation_id_var.set(correlation_id)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = correlation_id
            return response
        finally:
            correlation_id_var.reset(token)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs one line per request with latency.

    Health probes are skipped; they would drown out report traffic.
    """

    SKIP_PATHS = ("/health", "/health/redis")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 1)

        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response
