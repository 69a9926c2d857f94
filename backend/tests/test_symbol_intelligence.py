"""
Unit tests for SymbolIntelligenceService (resolver behind the SWR cache).
"""

from unittest.mock import AsyncMock

import pytest

from tickerintel.services.swr import CacheKeys, SWRCoordinator
from tickerintel.services.symbol_intelligence import SymbolIntelligenceService
from tickerintel.services.symbols.pending_queue import PendingQueueManager
from tickerintel.services.symbols.resolver import MultiSourceResolver
from tickerintel.services.symbols.types import REASON_IN_PROGRESS, ResolutionReport

from fakes import FakeCorpusRepo, FakeMappingRepo, FakePendingRepo, FakeReferenceRepo


# ===== Fixtures =====


@pytest.fixture
def resolver(btc_mapping):
    mapping_repo = FakeMappingRepo([btc_mapping])
    queue = PendingQueueManager(FakePendingRepo(), mapping_repo)
    resolver = MultiSourceResolver(mapping_repo, FakeReferenceRepo(), FakeCorpusRepo(), queue)
    return resolver


@pytest.fixture
def coordinator(store, clock):
    return SWRCoordinator(store, clock=clock)


@pytest.fixture
def service(resolver, coordinator):
    return SymbolIntelligenceService(resolver, coordinator, ttl_seconds=150)


# ===== Tests =====


class TestResolve:
    """Test cached batch resolution"""

    @pytest.mark.asyncio
    async def test_empty_batch_skips_cache(self, service, store):
        result = await service.resolve([])

        assert result == {"symbols": [], "missing": [], "cached": False}
        assert store.entries == {}

    @pytest.mark.asyncio
    async def test_first_call_resolves_and_caches(self, service, store):
        result = await service.resolve(["btc", "ZZZZ"])

        assert result["cached"] is False
        assert [s["canonical"] for s in result["symbols"]] == ["BTC"]
        assert [m["symbol"] for m in result["missing"]] == ["ZZZZ"]
        assert CacheKeys.symbol_resolution(["btc", "ZZZZ"]) in store.entries

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self, service, resolver):
        await service.resolve(["btc"])
        resolver.resolve = AsyncMock(side_effect=AssertionError("should not refresh"))

        result = await service.resolve(["btc"])

        assert result["cached"] is True
        assert result["symbols"][0]["symbol"] == "btc"

    @pytest.mark.asyncio
    async def test_input_order_shares_cache_entry(self, service, store):
        await service.resolve(["eth", "btc"])
        await service.resolve(["btc", "eth"])

        resolution_keys = [k for k in store.entries if k.startswith("sil:")]
        assert resolution_keys == ["sil:btc,eth"]

    @pytest.mark.asyncio
    async def test_stale_entry_refreshed_after_ttl(self, service, clock, resolver):
        await service.resolve(["btc"])
        clock.advance(151)
        resolver.resolve = AsyncMock(return_value=ResolutionReport())

        result = await service.resolve(["btc"])

        resolver.resolve.assert_awaited_once()
        assert result["cached"] is False

    @pytest.mark.asyncio
    async def test_unavailable_reports_every_input_missing(self, service, store, clock):
        store.seed(CacheKeys.lock(CacheKeys.symbol_resolution(["btc", "$eth"])),
                   {"refreshing": True}, age_seconds=0, ttl_seconds=25)

        result = await service.resolve(["btc", "$eth"])

        assert result["symbols"] == []
        assert [m["symbol"] for m in result["missing"]] == ["btc", "$eth"]
        assert [m["normalized"] for m in result["missing"]] == ["BTC", "ETH"]
        assert all(m["reason"] == REASON_IN_PROGRESS for m in result["missing"])
