"""
Unit tests for SWRCoordinator.

Tests the per-key state machine (missing, fresh, stale-unlocked, stale-locked),
single-refresher races, failure fallbacks and lock lease handling.
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from tickerintel.services.swr import CacheKeys, CacheState, SWRCoordinator

from fakes import InMemoryStore, NonAtomicStore


# ===== Fixtures =====


@pytest.fixture
def coordinator(store, clock):
    return SWRCoordinator(store, lock_ttl_seconds=25, refresh_timeout_seconds=1.0, clock=clock)


def counting_refresh(value="fresh-value"):
    """Refresh function that records how often it ran."""
    calls = {"count": 0}

    async def refresh():
        calls["count"] += 1
        return value

    return refresh, calls


# ===== Basic State Tests =====


class TestCacheStates:
    """Test the fresh / missing / stale paths."""

    @pytest.mark.asyncio
    async def test_missing_refreshes_and_stores(self, coordinator, store):
        refresh, calls = counting_refresh({"price": 1})

        result = await coordinator.get_or_refresh("k", 60, refresh)

        assert calls["count"] == 1
        assert result.value == {"price": 1}
        assert result.from_cache is False
        assert result.stale is False
        assert result.age_seconds == 0
        assert store.entries["k"].value == {"price": 1}
        assert CacheKeys.lock("k") not in store.entries

    @pytest.mark.asyncio
    async def test_fresh_entry_never_refreshes(self, coordinator, store):
        store.seed("k", "cached", age_seconds=10, ttl_seconds=60)
        refresh, calls = counting_refresh()

        result = await coordinator.get_or_refresh("k", 60, refresh)

        assert calls["count"] == 0
        assert result.value == "cached"
        assert result.from_cache is True
        assert result.stale is False
        assert result.age_seconds == 10

    @pytest.mark.asyncio
    async def test_fresh_entry_skips_lock(self, coordinator, store):
        """A fresh read does not touch the lock even if one is held."""
        store.seed("k", "cached", age_seconds=0, ttl_seconds=60)
        store.seed(CacheKeys.lock("k"), {"refreshing": True}, age_seconds=0, ttl_seconds=25)

        result = await coordinator.get_or_refresh("k", 60, AsyncMock())

        assert result.stale is False
        assert result.swr is False

    @pytest.mark.asyncio
    async def test_stale_unlocked_refreshes(self, coordinator, store):
        store.seed("k", "old", age_seconds=120, ttl_seconds=60)
        refresh, calls = counting_refresh("new")

        result = await coordinator.get_or_refresh("k", 60, refresh)

        assert calls["count"] == 1
        assert result.value == "new"
        assert result.stale is False
        assert store.entries["k"].value == "new"

    @pytest.mark.asyncio
    async def test_stale_locked_serves_stale_without_refresh(self, coordinator, store):
        store.seed("k", "old", age_seconds=120, ttl_seconds=60)
        store.seed(CacheKeys.lock("k"), {"refreshing": True}, age_seconds=1, ttl_seconds=25)
        refresh, calls = counting_refresh()

        result = await coordinator.get_or_refresh("k", 60, refresh)

        assert calls["count"] == 0
        assert result.value == "old"
        assert result.stale is True
        assert result.swr is True
        assert result.from_cache is True
        assert result.age_seconds == 120

    @pytest.mark.asyncio
    async def test_missing_locked_returns_unavailable(self, coordinator, store):
        store.seed(CacheKeys.lock("k"), {"refreshing": True}, age_seconds=1, ttl_seconds=25)
        refresh, calls = counting_refresh()

        result = await coordinator.get_or_refresh("k", 60, refresh)

        assert calls["count"] == 0
        assert result.unavailable is True
        assert result.value is None

    @pytest.mark.asyncio
    async def test_expired_lock_is_ignored(self, coordinator, store):
        """A lease left by a crashed refresher stops blocking once expired."""
        store.seed("k", "old", age_seconds=120, ttl_seconds=60)
        store.seed(CacheKeys.lock("k"), {"refreshing": True}, age_seconds=30, ttl_seconds=25)
        refresh, calls = counting_refresh("new")

        result = await coordinator.get_or_refresh("k", 60, refresh)

        assert calls["count"] == 1
        assert result.value == "new"

    @pytest.mark.asyncio
    async def test_lock_payload_marks_refreshing(self, coordinator, store, clock):
        seen = {}

        async def refresh():
            seen["lock"] = store.entries[CacheKeys.lock("k")]
            return "v"

        await coordinator.get_or_refresh("k", 60, refresh)

        lock = seen["lock"]
        assert lock.value["refreshing"] is True
        assert lock.value["started_at"] == clock().isoformat()
        assert (lock.expires_at - clock()).total_seconds() == 25


# ===== inspect / invalidate Tests =====


class TestInspect:
    """Test diagnostic state reporting."""

    @pytest.mark.asyncio
    async def test_states(self, coordinator, store, clock):
        assert await coordinator.inspect("k") == CacheState.MISSING

        store.seed("k", "v", age_seconds=0, ttl_seconds=5)
        assert await coordinator.inspect("k") == CacheState.FRESH

        clock.advance(6)
        assert await coordinator.inspect("k") == CacheState.STALE_UNLOCKED

        store.seed(CacheKeys.lock("k"), {"refreshing": True}, age_seconds=0, ttl_seconds=25)
        assert await coordinator.inspect("k") == CacheState.STALE_LOCKED

    @pytest.mark.asyncio
    async def test_invalidate(self, coordinator, store):
        store.seed("k", "v", age_seconds=0, ttl_seconds=60)

        assert await coordinator.invalidate("k") is True
        assert "k" not in store.entries
        assert await coordinator.invalidate("k") is False


# ===== End-to-end Timeline Tests =====


class TestTimeline:
    """TTL 5 s: miss at t=0, hit at t=3, stale refresh at t=6, concurrent stale read at t=6.1."""

    @pytest.mark.asyncio
    async def test_stale_while_revalidate_timeline(self, coordinator, store, clock):
        versions = iter(["v1", "v2"])
        refresh_started = asyncio.Event()
        release_refresh = asyncio.Event()
        calls = {"count": 0}

        async def refresh():
            calls["count"] += 1
            value = next(versions)
            if value == "v2":
                refresh_started.set()
                await release_refresh.wait()
            return value

        # t=0: miss -> refresh
        first = await coordinator.get_or_refresh("k", 5, refresh)
        assert first.value == "v1"
        assert first.from_cache is False

        # t=3: fresh hit
        clock.advance(3)
        second = await coordinator.get_or_refresh("k", 5, refresh)
        assert second.value == "v1"
        assert second.from_cache is True
        assert second.stale is False
        assert calls["count"] == 1

        # t=6: stale, caller A takes the lock and starts refreshing
        clock.advance(3)
        caller_a = asyncio.create_task(coordinator.get_or_refresh("k", 5, refresh))
        await refresh_started.wait()
        assert await coordinator.inspect("k") == CacheState.STALE_LOCKED

        # t=6.1: caller B sees the active lock and gets the old value
        clock.advance(0.1)
        caller_b = await coordinator.get_or_refresh("k", 5, refresh)
        assert caller_b.value == "v1"
        assert caller_b.stale is True
        assert caller_b.swr is True
        assert calls["count"] == 2

        release_refresh.set()
        result_a = await caller_a
        assert result_a.value == "v2"
        assert result_a.stale is False
        assert store.entries["k"].value == "v2"
        assert await coordinator.inspect("k") == CacheState.FRESH


# ===== Race Tests =====


class TestConcurrentRefresh:
    """At most one caller refreshes a key at a time."""

    @pytest.mark.asyncio
    async def test_missing_entry_single_refresher(self, coordinator):
        gate = asyncio.Event()
        calls = {"count": 0}

        async def refresh():
            calls["count"] += 1
            await gate.wait()
            return "value"

        tasks = [
            asyncio.create_task(coordinator.get_or_refresh("k", 60, refresh))
            for _ in range(10)
        ]
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        gate.set()
        results = await asyncio.gather(*tasks)

        assert calls["count"] == 1
        winners = [r for r in results if r.value == "value"]
        losers = [r for r in results if r.value != "value"]
        assert len(winners) >= 1
        assert all(r.unavailable for r in losers)

    @pytest.mark.asyncio
    async def test_stale_entry_single_refresher(self, coordinator, store):
        store.seed("k", "old", age_seconds=120, ttl_seconds=60)
        gate = asyncio.Event()
        calls = {"count": 0}

        async def refresh():
            calls["count"] += 1
            await gate.wait()
            return "new"

        tasks = [
            asyncio.create_task(coordinator.get_or_refresh("k", 60, refresh))
            for _ in range(5)
        ]
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        gate.set()
        results = await asyncio.gather(*tasks)

        assert calls["count"] == 1
        assert sorted(r.value for r in results) == ["new", "old", "old", "old", "old"]
        assert all(r.stale for r in results if r.value == "old")

    @pytest.mark.asyncio
    async def test_double_check_after_lock(self, store, clock):
        """A value written between the first read and lock acquisition is reused."""

        class PeerWritesStore(InMemoryStore):
            async def try_acquire(self, key, value, expires_at):
                self.seed("k", "written-by-peer", age_seconds=0, ttl_seconds=60)
                return await super().try_acquire(key, value, expires_at)

        coordinator = SWRCoordinator(PeerWritesStore(clock), clock=clock)
        refresh, calls = counting_refresh()

        result = await coordinator.get_or_refresh("k", 60, refresh)

        assert calls["count"] == 0
        assert result.value == "written-by-peer"


# ===== Failure Tests =====


class TestRefreshFailures:
    """Refresh failures release the lock and degrade gracefully."""

    @pytest.mark.asyncio
    async def test_exception_with_stale_value(self, coordinator, store):
        store.seed("k", "old", age_seconds=120, ttl_seconds=60)
        refresh = AsyncMock(side_effect=RuntimeError("provider down"))

        result = await coordinator.get_or_refresh("k", 60, refresh)

        assert result.value == "old"
        assert result.stale is True
        assert CacheKeys.lock("k") not in store.entries

    @pytest.mark.asyncio
    async def test_exception_without_value(self, coordinator, store):
        refresh = AsyncMock(side_effect=RuntimeError("provider down"))

        result = await coordinator.get_or_refresh("k", 60, refresh)

        assert result.unavailable is True
        assert result.value is None
        assert CacheKeys.lock("k") not in store.entries

    @pytest.mark.asyncio
    async def test_none_result_is_failure(self, coordinator, store):
        store.seed("k", "old", age_seconds=120, ttl_seconds=60)

        result = await coordinator.get_or_refresh("k", 60, AsyncMock(return_value=None))

        assert result.value == "old"
        assert result.stale is True
        assert store.entries["k"].value == "old"

    @pytest.mark.asyncio
    async def test_timeout_is_failure(self, store, clock):
        coordinator = SWRCoordinator(store, refresh_timeout_seconds=0.01, clock=clock)

        async def slow():
            await asyncio.sleep(5)
            return "late"

        result = await coordinator.get_or_refresh("k", 60, slow)

        assert result.unavailable is True
        assert CacheKeys.lock("k") not in store.entries

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, coordinator, store):
        """The released lock lets the next caller retry immediately."""
        await coordinator.get_or_refresh("k", 60, AsyncMock(side_effect=RuntimeError()))
        refresh, calls = counting_refresh("recovered")

        result = await coordinator.get_or_refresh("k", 60, refresh)

        assert calls["count"] == 1
        assert result.value == "recovered"

    @pytest.mark.asyncio
    async def test_store_read_failure_treated_as_miss(self, coordinator, store):
        store.fail_reads = True
        refresh, calls = counting_refresh("v")

        result = await coordinator.get_or_refresh("k", 60, refresh)

        assert calls["count"] == 1
        assert result.value == "v"

    @pytest.mark.asyncio
    async def test_store_write_failure_still_returns_value(self, coordinator, store):
        store.fail_writes = True
        refresh, _ = counting_refresh("v")

        result = await coordinator.get_or_refresh("k", 60, refresh)

        assert result.value == "v"
        assert result.from_cache is False

    @pytest.mark.asyncio
    async def test_release_skips_foreign_lock(self, coordinator, store, clock):
        """A refresher whose lease expired does not delete the new holder's lock."""

        async def refresh():
            clock.advance(30)
            await store.try_acquire(
                CacheKeys.lock("k"),
                {"refreshing": True, "owner": "someone-else"},
                clock() + timedelta(seconds=25),
            )
            return "v"

        await coordinator.get_or_refresh("k", 60, refresh)

        assert store.entries[CacheKeys.lock("k")].value["owner"] == "someone-else"


# ===== Non-atomic Store Tests =====


class TestNonAtomicStore:
    """Stores without try_acquire use read-then-upsert locking."""

    @pytest.mark.asyncio
    async def test_refresh_and_release(self, clock):
        store = NonAtomicStore(clock)
        coordinator = SWRCoordinator(store, clock=clock)
        refresh, calls = counting_refresh("v")

        result = await coordinator.get_or_refresh("k", 60, refresh)

        assert calls["count"] == 1
        assert result.value == "v"
        assert CacheKeys.lock("k") not in store.entries

    @pytest.mark.asyncio
    async def test_active_lock_serves_stale(self, clock):
        store = NonAtomicStore(clock)
        store.seed("k", "old", age_seconds=120, ttl_seconds=60)
        store.seed(CacheKeys.lock("k"), {"refreshing": True}, age_seconds=0, ttl_seconds=25)
        coordinator = SWRCoordinator(store, clock=clock)
        refresh, calls = counting_refresh()

        result = await coordinator.get_or_refresh("k", 60, refresh)

        assert calls["count"] == 0
        assert result.stale is True
