"""
Types for the stale-while-revalidate coordinator.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from ...models.cache import CacheEntry

RefreshFn = Callable[[], Awaitable[Any]]
Clock = Callable[[], datetime]


class CacheState(str, Enum):
    """Observable state of a cache key."""

    MISSING = "missing"
    FRESH = "fresh"
    STALE_UNLOCKED = "stale_unlocked"
    STALE_LOCKED = "stale_locked"


class KeyValueStore(Protocol):
    """
    Minimal store contract.

    Stores may additionally provide an atomic
    ``try_acquire(key, value, expires_at) -> bool``; without it the
    coordinator falls back to read-then-upsert, which is advisory only.
    """

    async def get(self, key: str) -> CacheEntry | None: ...

    async def upsert(self, key: str, value: Any, expires_at: datetime) -> None: ...

    async def delete(self, key: str) -> bool: ...


@dataclass
class SWRResult:
    """Outcome of a get_or_refresh call."""

    value: Any
    from_cache: bool
    stale: bool = False
    swr: bool = False
    unavailable: bool = False
    as_of: datetime | None = None
    age_seconds: int | None = None

    @classmethod
    def temporarily_unavailable(cls) -> "SWRResult":
        """Placeholder when nothing is cached and no refresh produced a value."""
        return cls(value=None, from_cache=False, unavailable=True)

    def metadata(self) -> dict[str, Any]:
        """Response metadata fields shared by every cached endpoint."""
        return {
            "stale": self.stale,
            "swr": self.swr,
            "cached": self.from_cache,
            "as_of": self.as_of.isoformat() if self.as_of else None,
            "age_seconds": self.age_seconds,
        }
