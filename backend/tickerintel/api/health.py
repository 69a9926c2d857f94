"""
Health check endpoint for monitoring and connectivity verification.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends

from ..core.config import Settings, get_settings
from ..core.utils.date_utils import utcnow
from ..database.mongodb import MongoDB
from ..database.redis import RedisKeyValueStore
from .dependencies.services import get_mongodb, get_redis

logger = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health_check(
    mongodb: MongoDB = Depends(get_mongodb),
    redis_store: RedisKeyValueStore = Depends(get_redis),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """
    Report connectivity to MongoDB (mapping tables) and Redis (cache and locks).

    Status is "degraded" when either dependency is unreachable.
    """
    mongodb_status = await mongodb.health_check()
    redis_status = await redis_store.health_check()

    all_healthy = bool(mongodb_status.get("connected")) and bool(
        redis_status.get("connected")
    )

    if not all_healthy:
        logger.warning(
            "Health check failed",
            mongodb_connected=mongodb_status.get("connected"),
            redis_connected=redis_status.get("connected"),
        )

    return {
        "status": "ok" if all_healthy else "degraded",
        "environment": settings.environment,
        "version": "0.1.0",
        "timestamp": utcnow().isoformat(),
        "dependencies": {
            "mongodb": mongodb_status,
            "redis": redis_status,
        },
        "configuration": {
            "database_name": settings.database_name,
            "swr_lock_ttl_seconds": settings.swr_lock_ttl_seconds,
        },
    }
