"""
Rate limiting for API endpoints.

Uses slowapi; point RATE_LIMIT_STORAGE_URI at Redis to share limits across
instances.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from ...core.config import get_settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200/minute"],
    storage_uri=get_settings().rate_limit_storage_uri,
)


def rate_limit_standard(func):
    """
    Standard rate limit for cached read operations.

    Allows 60 requests per minute.

    Usage:
        @router.post("/resolve")
        @rate_limit_standard
        async def resolve(request: Request, ...):
            pass
    """
    return limiter.limit("60/minute")(func)


def rate_limit_expensive(func):
    """
    Restrictive rate limit for endpoints that may trigger provider calls.

    Allows 20 requests per minute.
    """
    return limiter.limit("20/minute")(func)
