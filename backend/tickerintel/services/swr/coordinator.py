"""
Stale-while-revalidate cache/lock coordinator.

One generic read path for every expensive refresh. Per key:

    MISSING         -> acquire lock, refresh, store, release
    FRESH           -> return cached value, no lock interaction
    STALE_UNLOCKED  -> acquire lock, refresh, store, release
    STALE_LOCKED    -> return the stale value immediately (stale=True, swr=True)

Callers never wait on another caller's refresh. A failed refresh (exception,
timeout or None) releases the lock and degrades to the stale value, or to a
"temporarily unavailable" result when nothing was cached.
"""

import asyncio
import uuid
from datetime import datetime, timedelta
from typing import Any

import structlog

from ...core.utils.date_utils import age_seconds, utcnow
from ...models.cache import CacheEntry
from .keys import CacheKeys
from .types import CacheState, Clock, KeyValueStore, RefreshFn, SWRResult

logger = structlog.get_logger()


class SWRCoordinator:
    """Coordinates at-most-one refresh per cache key over a shared store."""

    def __init__(
        self,
        store: KeyValueStore,
        lock_ttl_seconds: int = 25,
        refresh_timeout_seconds: float = 8.0,
        clock: Clock = utcnow,
    ):
        """
        Initialize coordinator.

        Args:
            store: Shared key/value store for cache and lock entries
            lock_ttl_seconds: Lease length; bounds how long a crashed refresher blocks others
            refresh_timeout_seconds: Upper bound for a single refresh_fn call
            clock: Time source (injectable for tests)
        """
        self.store = store
        self.lock_ttl = timedelta(seconds=lock_ttl_seconds)
        self.refresh_timeout_seconds = refresh_timeout_seconds
        self.clock = clock

    # =========================================================================
    # Store access (failures degrade, never raise)
    # =========================================================================

    async def _read(self, key: str) -> CacheEntry | None:
        try:
            return await self.store.get(key)
        except Exception as e:
            logger.warning("Cache read failed, treating as miss", cache_key=key, error=str(e))
            return None

    async def _lock_active(self, key: str, now: datetime) -> bool:
        lock = await self._read(CacheKeys.lock(key))
        return lock is not None and not lock.is_expired(now)

    async def _acquire(self, key: str, now: datetime) -> str | None:
        """
        Try to take the refresh lease for a key.

        Returns:
            Owner token if acquired, None if another caller holds a live lease
        """
        lock_key = CacheKeys.lock(key)
        token = uuid.uuid4().hex
        payload = {"refreshing": True, "started_at": now.isoformat(), "owner": token}
        expires_at = now + self.lock_ttl

        try:
            try_acquire = getattr(self.store, "try_acquire", None)
            if try_acquire is not None:
                acquired = await try_acquire(lock_key, payload, expires_at)
            else:
                existing = await self.store.get(lock_key)
                acquired = existing is None or existing.is_expired(now)
                if acquired:
                    await self.store.upsert(lock_key, payload, expires_at)
        except Exception as e:
            logger.warning("Lock acquisition failed", lock_key=lock_key, error=str(e))
            return None

        return token if acquired else None

    async def _release(self, key: str, token: str) -> None:
        lock_key = CacheKeys.lock(key)
        try:
            lock = await self.store.get(lock_key)
            if lock is None:
                return
            owner = lock.value.get("owner") if isinstance(lock.value, dict) else None
            if owner is not None and owner != token:
                # Our lease expired and another caller took over
                logger.info("Lock owned by another refresher, not releasing", lock_key=lock_key)
                return
            await self.store.delete(lock_key)
            logger.debug("Lock released", lock_key=lock_key)
        except Exception as e:
            logger.warning("Lock release failed", lock_key=lock_key, error=str(e))

    async def _write(self, key: str, value: Any, now: datetime, ttl_seconds: int) -> None:
        try:
            await self.store.upsert(key, value, now + timedelta(seconds=ttl_seconds))
            logger.info("Cache populated after refresh", cache_key=key, ttl=ttl_seconds)
        except Exception as e:
            logger.error("Cache write failed", cache_key=key, error=str(e))

    async def _run_refresh(self, key: str, refresh_fn: RefreshFn) -> Any | None:
        try:
            return await asyncio.wait_for(refresh_fn(), timeout=self.refresh_timeout_seconds)
        except TimeoutError:
            logger.warning(
                "Refresh timed out",
                cache_key=key,
                timeout=self.refresh_timeout_seconds,
            )
        except Exception as e:
            logger.error(
                "Refresh failed",
                cache_key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
        return None

    # =========================================================================
    # Public API
    # =========================================================================

    def _from_entry(
        self, entry: CacheEntry, now: datetime, stale: bool, swr: bool = False
    ) -> SWRResult:
        return SWRResult(
            value=entry.value,
            from_cache=True,
            stale=stale,
            swr=swr,
            as_of=entry.created_at,
            age_seconds=age_seconds(entry.created_at, now),
        )

    async def inspect(self, key: str) -> CacheState:
        """Current state of a key, for diagnostics and tests."""
        now = self.clock()
        entry = await self._read(key)
        if entry is None:
            return CacheState.MISSING
        if not entry.is_expired(now):
            return CacheState.FRESH
        if await self._lock_active(key, now):
            return CacheState.STALE_LOCKED
        return CacheState.STALE_UNLOCKED

    async def invalidate(self, key: str) -> bool:
        """Drop a cache entry so the next read refreshes."""
        removed = await self.store.delete(key)
        logger.info("Cache entry invalidated", cache_key=key, removed=removed)
        return removed

    async def get_or_refresh(
        self, key: str, ttl_seconds: int, refresh_fn: RefreshFn
    ) -> SWRResult:
        """
        Return the cached value for a key, refreshing it if missing or stale.

        Args:
            key: Cache key
            ttl_seconds: Freshness window for a newly written value
            refresh_fn: Async callable producing the new value; None means failure

        Returns:
            SWRResult. Never raises for store or refresh failures.
        """
        now = self.clock()
        entry = await self._read(key)

        if entry is not None and not entry.is_expired(now):
            return self._from_entry(entry, now, stale=False)

        token = await self._acquire(key, now)
        if token is None:
            if entry is not None:
                logger.info(
                    "Refresh in progress elsewhere, serving stale",
                    cache_key=key,
                    age_seconds=age_seconds(entry.created_at, now),
                )
                return self._from_entry(entry, now, stale=True, swr=True)
            logger.info("Refresh in progress elsewhere, nothing cached", cache_key=key)
            return SWRResult.temporarily_unavailable()

        try:
            # Double-check: another refresher may have written while we acquired
            latest = await self._read(key)
            checked_at = self.clock()
            if latest is not None and not latest.is_expired(checked_at):
                return self._from_entry(latest, checked_at, stale=False)

            logger.info(
                "Refreshing cache entry",
                cache_key=key,
                state="missing" if entry is None else "stale",
            )
            value = await self._run_refresh(key, refresh_fn)

            if value is None:
                fallback = latest or entry
                if fallback is not None:
                    return self._from_entry(fallback, self.clock(), stale=True)
                return SWRResult.temporarily_unavailable()

            written_at = self.clock()
            await self._write(key, value, written_at, ttl_seconds)
            return SWRResult(
                value=value,
                from_cache=False,
                as_of=written_at,
                age_seconds=0,
            )
        finally:
            await self._release(key, token)
