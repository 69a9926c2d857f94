"""
Unit tests for RedisKeyValueStore.

Uses a mocked redis.asyncio client; verifies payload encoding, the absence of a
physical TTL on cache entries, and SET NX PX lock acquisition.
"""

import json
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, Mock

import pytest

from tickerintel.core.exceptions import CacheError
from tickerintel.database.redis import RedisKeyValueStore


# ===== Fixtures =====


@pytest.fixture
def mock_client():
    client = Mock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    client.ping = AsyncMock(return_value=True)
    client.info = AsyncMock(return_value={"redis_version": "7.2.4", "used_memory_human": "1M"})
    return client


@pytest.fixture
def store(mock_client):
    store = RedisKeyValueStore()
    store.client = mock_client
    return store


def stored_payload(value, created_at, expires_at):
    return json.dumps(
        {
            "v": value,
            "created_at": created_at.isoformat(),
            "expires_at": expires_at.isoformat(),
        }
    )


class TestGet:
    """Test entry reads"""

    @pytest.mark.asyncio
    async def test_miss(self, store):
        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_hit_returns_entry_even_when_expired(self, store, mock_client):
        created = datetime(2025, 1, 1, tzinfo=UTC)
        mock_client.get.return_value = stored_payload(
            {"price": 1}, created, created + timedelta(seconds=5)
        )

        entry = await store.get("k")

        assert entry.key == "k"
        assert entry.value == {"price": 1}
        assert entry.created_at == created
        assert entry.is_expired(created + timedelta(seconds=10))

    @pytest.mark.asyncio
    async def test_undecodable_payload_is_miss(self, store, mock_client):
        mock_client.get.return_value = "not-json{"

        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_connection_error_raises_cache_error(self, store, mock_client):
        mock_client.get.side_effect = ConnectionError("refused")

        with pytest.raises(CacheError):
            await store.get("k")

    @pytest.mark.asyncio
    async def test_not_connected(self):
        with pytest.raises(CacheError):
            await RedisKeyValueStore().get("k")


class TestUpsert:
    """Test entry writes"""

    @pytest.mark.asyncio
    async def test_no_physical_ttl_by_default(self, store, mock_client):
        expires = datetime.now(UTC) + timedelta(seconds=60)

        await store.upsert("k", {"a": 1}, expires)

        key, payload = mock_client.set.call_args.args
        assert key == "k"
        assert mock_client.set.call_args.kwargs["ex"] is None
        data = json.loads(payload)
        assert data["v"] == {"a": 1}
        assert "created_at" in data
        assert data["expires_at"] == expires.isoformat()

    @pytest.mark.asyncio
    async def test_retention_window_adds_physical_ttl(self, mock_client):
        store = RedisKeyValueStore(stale_retention_seconds=3600)
        store.client = mock_client
        expires = datetime.now(UTC) + timedelta(seconds=60)

        await store.upsert("k", "v", expires)

        ex = mock_client.set.call_args.kwargs["ex"]
        assert 3600 <= ex <= 3660

    @pytest.mark.asyncio
    async def test_write_failure_raises_cache_error(self, store, mock_client):
        mock_client.set.side_effect = ConnectionError("refused")

        with pytest.raises(CacheError):
            await store.upsert("k", "v", datetime.now(UTC))


class TestLocking:
    """Test lock acquisition and deletion"""

    @pytest.mark.asyncio
    async def test_try_acquire_uses_set_nx_px(self, store, mock_client):
        expires = datetime.now(UTC) + timedelta(seconds=25)

        acquired = await store.try_acquire("lock:k", {"refreshing": True}, expires)

        assert acquired is True
        kwargs = mock_client.set.call_args.kwargs
        assert kwargs["nx"] is True
        assert 24_000 <= kwargs["px"] <= 25_000

    @pytest.mark.asyncio
    async def test_try_acquire_held_elsewhere(self, store, mock_client):
        mock_client.set.return_value = None

        acquired = await store.try_acquire(
            "lock:k", {"refreshing": True}, datetime.now(UTC) + timedelta(seconds=25)
        )

        assert acquired is False

    @pytest.mark.asyncio
    async def test_delete(self, store, mock_client):
        assert await store.delete("lock:k") is True

        mock_client.delete.return_value = 0
        assert await store.delete("lock:k") is False


class TestHealthCheck:
    """Test health reporting"""

    @pytest.mark.asyncio
    async def test_connected(self, store):
        health = await store.health_check()

        assert health["connected"] is True
        assert health["version"] == "7.2.4"

    @pytest.mark.asyncio
    async def test_no_client(self):
        health = await RedisKeyValueStore().health_check()

        assert health["connected"] is False
