"""
Unit tests for PendingQueueManager.

Tests the admin review lifecycle:
- Repeated sightings converge on one pending row
- Approval copies the row into the symbol mapping table exactly once
- Approve/reject on an already-resolved row is a no-op
"""

import asyncio

import pytest

from tickerintel.core.exceptions import NotFoundError
from tickerintel.models.pending_mapping import MatchType, PendingCandidate, PendingStatus
from tickerintel.models.symbol_mapping import AssetClass, MappingSource
from tickerintel.services.symbols.pending_queue import PendingQueueManager

from fakes import FakeMappingRepo, FakePendingRepo


# ===== Fixtures =====


@pytest.fixture
def pending_repo():
    return FakePendingRepo()


@pytest.fixture
def mapping_repo():
    return FakeMappingRepo()


@pytest.fixture
def queue(pending_repo, mapping_repo):
    return PendingQueueManager(pending_repo, mapping_repo)


@pytest.fixture
def candidate():
    return PendingCandidate(
        symbol="pepe2",
        display_name="Pepe 2.0",
        asset_class=AssetClass.CRYPTO,
        coingecko_id="pepe-2-0",
        confidence_score=0.72,
        match_type=MatchType.FUZZY_NAME,
    )


# ===== Sighting Tests =====


class TestUpsertSeen:
    """Test sighting aggregation"""

    @pytest.mark.asyncio
    async def test_repeat_sightings_increment(self, queue, pending_repo, candidate):
        first = await queue.upsert_seen("PEPE2", candidate)
        second = await queue.upsert_seen("PEPE2", candidate)

        assert first.seen_count == 1
        assert second.seen_count == 2
        assert second.pending_id == first.pending_id
        assert len(pending_repo.pending_for("PEPE2")) == 1

    @pytest.mark.asyncio
    async def test_concurrent_sightings_converge(self, queue, pending_repo, candidate):
        await asyncio.gather(*(queue.upsert_seen("PEPE2", candidate) for _ in range(20)))

        rows = pending_repo.pending_for("PEPE2")
        assert len(rows) == 1
        assert rows[0].seen_count == 20

    @pytest.mark.asyncio
    async def test_list_pending_orders_by_frequency(self, queue, candidate):
        await queue.upsert_seen("AAA", candidate)
        for _ in range(3):
            await queue.upsert_seen("BBB", candidate)

        rows = await queue.list_pending()

        assert [r.normalized_symbol for r in rows] == ["BBB", "AAA"]


# ===== Approval Tests =====


class TestApprove:
    """Test approval into the symbol mapping table"""

    @pytest.mark.asyncio
    async def test_approve_creates_mapping(self, queue, mapping_repo, candidate):
        row = await queue.upsert_seen("PEPE2", candidate)

        approved = await queue.approve(row.pending_id)

        assert approved.status == PendingStatus.APPROVED
        assert approved.resolved_at is not None
        mapping = mapping_repo.rows["PEPE2"]
        assert mapping.display_name == "Pepe 2.0"
        assert mapping.coingecko_id == "pepe-2-0"
        assert mapping.source == MappingSource.PENDING_APPROVAL
        assert mapping.is_active is True
        assert mapping.price_supported is True

    @pytest.mark.asyncio
    async def test_approved_symbol_resolves_from_table(self, queue, mapping_repo, candidate):
        row = await queue.upsert_seen("PEPE2", candidate)
        await queue.approve(row.pending_id)

        assert await mapping_repo.find_active("PEPE2") is not None

    @pytest.mark.asyncio
    async def test_approve_twice_is_noop(self, queue, mapping_repo, candidate):
        row = await queue.upsert_seen("PEPE2", candidate)
        first = await queue.approve(row.pending_id)
        mapping_repo.rows.clear()

        second = await queue.approve(row.pending_id)

        assert second.status == PendingStatus.APPROVED
        assert second.resolved_at == first.resolved_at
        assert mapping_repo.rows == {}

    @pytest.mark.asyncio
    async def test_approve_unknown_id(self, queue):
        with pytest.raises(NotFoundError):
            await queue.approve("pend_missing")

    @pytest.mark.asyncio
    async def test_new_sighting_after_approval_opens_new_row(self, queue, pending_repo, candidate):
        row = await queue.upsert_seen("PEPE2", candidate)
        await queue.approve(row.pending_id)

        again = await queue.upsert_seen("PEPE2", candidate)

        assert again.pending_id != row.pending_id
        assert again.seen_count == 1


# ===== Rejection Tests =====


class TestReject:
    """Test rejection"""

    @pytest.mark.asyncio
    async def test_reject(self, queue, mapping_repo, candidate):
        row = await queue.upsert_seen("PEPE2", candidate)

        rejected = await queue.reject(row.pending_id)

        assert rejected.status == PendingStatus.REJECTED
        assert "PEPE2" not in mapping_repo.rows
        assert await queue.list_pending() == []

    @pytest.mark.asyncio
    async def test_reject_after_approve_is_noop(self, queue, mapping_repo, candidate):
        row = await queue.upsert_seen("PEPE2", candidate)
        await queue.approve(row.pending_id)

        result = await queue.reject(row.pending_id)

        assert result.status == PendingStatus.APPROVED
        assert mapping_repo.rows["PEPE2"].is_active is True

    @pytest.mark.asyncio
    async def test_reject_unknown_id(self, queue):
        with pytest.raises(NotFoundError):
            await queue.reject("pend_missing")


# ===== Mapping Retirement Tests =====


class TestDeactivateMapping:
    """Test retiring authoritative mappings"""

    @pytest.mark.asyncio
    async def test_deactivate_keeps_row(self, queue, mapping_repo, candidate):
        row = await queue.upsert_seen("PEPE2", candidate)
        await queue.approve(row.pending_id)

        await queue.deactivate_mapping("PEPE2")

        assert mapping_repo.rows["PEPE2"].is_active is False
        assert await mapping_repo.find_active("PEPE2") is None

    @pytest.mark.asyncio
    async def test_deactivate_unknown_symbol(self, queue):
        with pytest.raises(NotFoundError):
            await queue.deactivate_mapping("NOPE")

    @pytest.mark.asyncio
    async def test_approval_reactivates(self, queue, mapping_repo, candidate):
        first = await queue.upsert_seen("PEPE2", candidate)
        await queue.approve(first.pending_id)
        await queue.deactivate_mapping("PEPE2")

        second = await queue.upsert_seen("PEPE2", candidate)
        await queue.approve(second.pending_id)

        assert mapping_repo.rows["PEPE2"].is_active is True
