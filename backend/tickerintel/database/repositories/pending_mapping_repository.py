"""
Pending mapping repository.

The partial unique index on normalized_symbol (status == "pending") is what
guarantees a single pending row per symbol; every write here is an atomic
upsert or a status-filtered update backed by that index.
"""

import uuid

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ...core.utils.date_utils import utcnow
from ...models.pending_mapping import PendingCandidate, PendingMapping, PendingStatus

logger = structlog.get_logger()


class PendingMappingRepository:
    """Repository for the pending review queue."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """Create indexes. Called during application startup."""
        await self.collection.create_index(
            "normalized_symbol",
            unique=True,
            partialFilterExpression={"status": PendingStatus.PENDING.value},
            name="normalized_symbol_pending_unique",
        )
        await self.collection.create_index("pending_id", unique=True, name="pending_id_unique")
        await self.collection.create_index(
            [("status", 1), ("seen_count", -1)], name="status_seen_count"
        )

        logger.info("Pending mapping indexes ensured")

    @staticmethod
    def _to_model(doc: dict) -> PendingMapping:
        doc.pop("_id", None)
        return PendingMapping(**doc)

    async def upsert_seen(
        self, normalized_symbol: str, candidate: PendingCandidate
    ) -> PendingMapping:
        """
        Record a sighting of an unresolved symbol.

        Increments seen_count on the existing pending row, or inserts a new row
        with seen_count=1. Two racing inserts collide on the partial unique
        index; the loser re-applies its increment to the winner's row.

        Args:
            normalized_symbol: Normalized symbol key
            candidate: Best-known data, written only when the row is created

        Returns:
            The pending row after the update
        """
        now = utcnow()
        on_insert = candidate.model_dump(mode="json")
        on_insert.update(
            {
                "pending_id": f"pend_{uuid.uuid4().hex[:12]}",
                "normalized_symbol": normalized_symbol,
                "status": PendingStatus.PENDING.value,
                "first_seen_at": now,
                "resolved_at": None,
            }
        )
        update = {
            "$inc": {"seen_count": 1},
            "$set": {"last_seen_at": now},
            "$setOnInsert": on_insert,
        }
        query = {
            "normalized_symbol": normalized_symbol,
            "status": PendingStatus.PENDING.value,
        }

        try:
            doc = await self.collection.find_one_and_update(
                query, update, upsert=True, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            logger.info(
                "Concurrent pending insert, retrying as increment",
                normalized_symbol=normalized_symbol,
            )
            doc = await self.collection.find_one_and_update(
                query, update, upsert=True, return_document=ReturnDocument.AFTER
            )

        pending = self._to_model(doc)
        logger.info(
            "Pending mapping seen",
            normalized_symbol=normalized_symbol,
            seen_count=pending.seen_count,
            confidence=pending.confidence_score,
        )
        return pending

    async def get_by_id(self, pending_id: str) -> PendingMapping | None:
        doc = await self.collection.find_one({"pending_id": pending_id})
        return self._to_model(doc) if doc else None

    async def transition(
        self, pending_id: str, new_status: PendingStatus
    ) -> PendingMapping | None:
        """
        Move a pending row to approved or rejected.

        The filter on status == "pending" makes the transition happen once;
        a repeated call matches nothing and returns None.
        """
        doc = await self.collection.find_one_and_update(
            {"pending_id": pending_id, "status": PendingStatus.PENDING.value},
            {"$set": {"status": new_status.value, "resolved_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return None

        logger.info(
            "Pending mapping resolved", pending_id=pending_id, status=new_status.value
        )
        return self._to_model(doc)

    async def list_pending(self, limit: int = 100) -> list[PendingMapping]:
        """Pending rows, most frequently seen first."""
        cursor = (
            self.collection.find({"status": PendingStatus.PENDING.value})
            .sort([("seen_count", -1), ("last_seen_at", -1)])
            .limit(limit)
        )
        return [self._to_model(doc) async for doc in cursor]
