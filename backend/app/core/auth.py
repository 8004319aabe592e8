"""
Admin authentication for the report review surface.

Admin endpoints are gated by a shared secret sent in the X-Admin-Secret
header. End-user identity is out of scope here: submissions carry the
reporter id in the body and are trusted as given.
"""

import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from app.core.config import get_settings

logger = logging.getLogger(__name__)

ADMIN_SECRET_HEADER = "X-Admin-Secret"


def verify_admin_secret(provided: Optional[str]) -> bool:
    """Constant-time comparison against the configured admin secret."""
    expected = get_settings().admin_secret_key
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())


async def require_admin(
    x_admin_secret: Optional[str] = Header(None, alias=ADMIN_SECRET_HEADER),
) -> None:
    """
    FastAPI dependency guarding admin routes.

    Usage:
        @router.get("/", dependencies=[Depends(require_admin)])
    """
    if not verify_admin_secret(x_admin_secret):
        logger.warning("Rejected admin request: missing or invalid %s", ADMIN_SECRET_HEADER)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
