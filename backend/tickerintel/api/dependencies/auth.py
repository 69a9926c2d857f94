"""
Admin authentication for review and cache management endpoints.
"""

import secrets

import structlog
from fastapi import Depends, Header, HTTPException, status

from ...core.config import Settings, get_settings

logger = structlog.get_logger()


async def require_admin(
    x_admin_secret: str | None = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Require the X-Admin-Secret header.

    Raises:
        HTTPException: 401 if the header is missing, 403 if it is wrong

    Usage:
        @router.post("/admin/endpoint")
        async def admin_endpoint(_: None = Depends(require_admin)):
            pass
    """
    if not x_admin_secret:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin authentication required (use X-Admin-Secret header)",
        )

    # Constant-time comparison to prevent timing attacks
    if not secrets.compare_digest(x_admin_secret, settings.admin_secret):
        logger.warning("Invalid admin secret provided")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin secret",
        )

    logger.info("Admin access via admin secret header")
