"""
Pending review queue and promotion into the authoritative table.
"""

import structlog

from ...core.exceptions import NotFoundError
from ...database.repositories.pending_mapping_repository import PendingMappingRepository
from ...database.repositories.symbol_mapping_repository import SymbolMappingRepository
from ...models.pending_mapping import PendingCandidate, PendingMapping, PendingStatus
from ...models.symbol_mapping import AssetClass, MappingSource, SymbolMapping

logger = structlog.get_logger()


class PendingQueueManager:
    """
    Owns every write to the pending queue and the symbol mapping table.

    Approval and rejection only act on rows that are still pending, so repeated
    admin clicks are no-ops.
    """

    def __init__(
        self,
        pending_repo: PendingMappingRepository,
        mapping_repo: SymbolMappingRepository,
    ):
        self.pending_repo = pending_repo
        self.mapping_repo = mapping_repo

    async def upsert_seen(
        self, normalized_symbol: str, candidate: PendingCandidate
    ) -> PendingMapping:
        """Insert a pending row or bump seen_count on the existing one."""
        return await self.pending_repo.upsert_seen(normalized_symbol, candidate)

    async def promote(self, mapping: SymbolMapping) -> bool:
        """
        Insert an auto-promoted mapping.

        Returns:
            True if this call created the row, False if it already existed
        """
        return await self.mapping_repo.insert(mapping)

    async def list_pending(self, limit: int = 100) -> list[PendingMapping]:
        return await self.pending_repo.list_pending(limit)

    async def deactivate_mapping(self, normalized_symbol: str) -> None:
        """
        Retire a symbol mapping so resolution stops returning it.

        The row is kept; a later approval for the same symbol reactivates it.

        Raises:
            NotFoundError: If no active mapping has this symbol
        """
        if not await self.mapping_repo.deactivate(normalized_symbol):
            raise NotFoundError("Active symbol mapping not found", symbol=normalized_symbol)
        logger.info("Symbol mapping deactivated", symbol=normalized_symbol)

    async def _require(self, pending_id: str) -> PendingMapping:
        row = await self.pending_repo.get_by_id(pending_id)
        if row is None:
            raise NotFoundError("Pending mapping not found", pending_id=pending_id)
        return row

    async def approve(self, pending_id: str) -> PendingMapping:
        """
        Copy a pending row into the symbol mapping table and mark it approved.

        Raises:
            NotFoundError: If the id is unknown
        """
        row = await self._require(pending_id)
        if row.status != PendingStatus.PENDING:
            logger.info(
                "Pending mapping already resolved, approve ignored",
                pending_id=pending_id,
                status=row.status.value,
            )
            return row

        mapping = SymbolMapping(
            symbol=row.normalized_symbol,
            display_name=row.display_name or row.normalized_symbol,
            display_symbol=row.normalized_symbol,
            asset_class=row.asset_class or AssetClass.CRYPTO,
            coingecko_id=row.coingecko_id,
            polygon_ticker=row.polygon_ticker,
            price_supported=bool(row.coingecko_id or row.polygon_ticker),
            source=MappingSource.PENDING_APPROVAL,
        )
        await self.mapping_repo.upsert(mapping)

        approved = await self.pending_repo.transition(pending_id, PendingStatus.APPROVED)
        if approved is None:
            # Resolved concurrently; the mapping upsert above is idempotent
            return await self._require(pending_id)

        logger.info(
            "Pending mapping approved",
            pending_id=pending_id,
            symbol=row.normalized_symbol,
        )
        return approved

    async def reject(self, pending_id: str) -> PendingMapping:
        """
        Mark a pending row rejected. No-op if it is no longer pending.

        Raises:
            NotFoundError: If the id is unknown
        """
        rejected = await self.pending_repo.transition(pending_id, PendingStatus.REJECTED)
        if rejected is not None:
            return rejected

        row = await self._require(pending_id)
        logger.info(
            "Pending mapping already resolved, reject ignored",
            pending_id=pending_id,
            status=row.status.value,
        )
        return row
