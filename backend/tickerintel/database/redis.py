"""
Redis-backed key/value store for cache entries and refresh locks.

Cache entries carry their logical expiry inside the payload and have no Redis
TTL unless a stale-retention window is configured, so a stale entry stays
readable until it is overwritten. Lock entries use SET NX PX and expire on
their own.
"""

import json
from datetime import datetime
from typing import Any

import redis.asyncio as redis
import structlog

from ..core.exceptions import CacheError
from ..core.utils.date_utils import utcnow
from ..models.cache import CacheEntry

logger = structlog.get_logger()


class RedisKeyValueStore:
    """Redis connection manager exposing get / upsert / delete / try_acquire."""

    def __init__(self, stale_retention_seconds: int | None = None) -> None:
        self.client: redis.Redis | None = None
        self.stale_retention_seconds = stale_retention_seconds

    async def connect(self, redis_url: str) -> None:
        """Establish connection to Redis."""
        try:
            self.client = redis.from_url(redis_url, decode_responses=True)
            await self.client.ping()
            logger.info("Redis connection established", url=redis_url)
        except Exception as e:
            logger.error("Failed to connect to Redis", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            logger.info("Redis connection closed")

    async def health_check(self) -> dict[str, bool | str]:
        """Check Redis connection health."""
        try:
            if not self.client:
                return {"connected": False, "error": "No client connection"}

            await self.client.ping()
            info = await self.client.info()

            return {
                "connected": True,
                "version": info.get("redis_version", "unknown"),
                "memory_usage": info.get("used_memory_human", "unknown"),
            }

        except Exception as e:
            logger.error("Redis health check failed", error=str(e))
            return {"connected": False, "error": str(e)}

    def _require_client(self) -> redis.Redis:
        if not self.client:
            raise CacheError("Redis connection not established")
        return self.client

    @staticmethod
    def _encode(value: Any, expires_at: datetime, now: datetime) -> str:
        entry = CacheEntry(key="", value=value, created_at=now, expires_at=expires_at)
        return json.dumps(entry.to_dict(), default=str)

    async def get(self, key: str) -> CacheEntry | None:
        """
        Read an entry regardless of its logical expiry.

        Returns None on a miss or an undecodable payload.

        Raises:
            CacheError: If Redis is unreachable
        """
        client = self._require_client()
        try:
            raw = await client.get(key)
        except Exception as e:
            logger.error("Redis get operation failed", key=key, error=str(e))
            raise CacheError("Redis get failed", key=key) from e

        if raw is None:
            logger.debug("Cache MISS", cache_key=key)
            return None

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding undecodable cache payload", cache_key=key)
            return None

        if not isinstance(data, dict):
            return None

        logger.debug("Cache HIT", cache_key=key)
        return CacheEntry.from_dict(key, data)

    async def upsert(self, key: str, value: Any, expires_at: datetime) -> None:
        """
        Write an entry, replacing any previous value.

        Raises:
            CacheError: If the write fails
        """
        client = self._require_client()
        now = utcnow()
        payload = self._encode(value, expires_at, now)

        ex = None
        if self.stale_retention_seconds is not None:
            ttl = int((expires_at - now).total_seconds()) + self.stale_retention_seconds
            ex = max(ttl, 1)

        try:
            await client.set(key, payload, ex=ex)
        except Exception as e:
            logger.error("Redis set operation failed", key=key, error=str(e))
            raise CacheError("Redis set failed", key=key) from e

    async def delete(self, key: str) -> bool:
        """Delete a key. Returns True if something was removed."""
        client = self._require_client()
        try:
            result: int = await client.delete(key)
            return result > 0
        except Exception as e:
            logger.error("Redis delete operation failed", key=key, error=str(e))
            raise CacheError("Redis delete failed", key=key) from e

    async def try_acquire(self, key: str, value: Any, expires_at: datetime) -> bool:
        """
        Atomically create a lock entry if none exists.

        SET key value NX PX ms: only one caller wins while the lock is alive,
        and Redis removes it at expiry even if the holder crashed.

        Returns:
            True if this caller now holds the lock
        """
        client = self._require_client()
        now = utcnow()
        ttl_ms = max(int((expires_at - now).total_seconds() * 1000), 1)
        payload = self._encode(value, expires_at, now)

        try:
            result = await client.set(key, payload, nx=True, px=ttl_ms)
        except Exception as e:
            logger.error("Failed to acquire lock", lock_key=key, error=str(e))
            raise CacheError("Redis lock acquisition failed", key=key) from e

        acquired = result is True
        if acquired:
            logger.debug("Lock acquired", lock_key=key, ttl_ms=ttl_ms)
        return acquired
