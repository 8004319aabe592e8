"""
Rate limiting configuration using slowapi.

Keys on the client IP (first X-Forwarded-For hop when behind a proxy).
Backed by Redis in production for multi-process deployments.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from app.core.config import get_settings

# Report submissions per client IP
SUBMIT_REPORT_LIMIT = "5/minute"


def get_client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For, else the direct peer address."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    client_ip = forwarded.split(",")[0].strip()
    if client_ip:
        return client_ip
    return request.client.host if request.client else "unknown"


def _get_rate_limit_key(request: Request) -> str:
    """Extract rate limit key from request: "ip:{client_ip}"."""
    return f"ip:{get_client_ip(request)}"


limiter = Limiter(
    key_func=_get_rate_limit_key,
    default_limits=["60/minute"],
    enabled=get_settings().rate_limit_enabled,
    storage_uri=get_settings().redis_url,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded errors with a standardized response."""
    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many reports. Please try again later.",
            "code": "RATE_LIMIT_EXCEEDED",
        },
    )
