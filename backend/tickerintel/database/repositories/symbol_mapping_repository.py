"""
Symbol mapping repository.
Authoritative symbol table: lookup by symbol or alias, promotion, deactivation.
"""

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ...core.utils.date_utils import utcnow
from ...models.symbol_mapping import SymbolMapping

logger = structlog.get_logger()


class SymbolMappingRepository:
    """Repository for the authoritative symbol mapping table."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """Create indexes. Called during application startup."""
        await self.collection.create_index("symbol", unique=True, name="symbol_unique")
        await self.collection.create_index("aliases", name="aliases_1")
        await self.collection.create_index("is_active", name="is_active_1")

        logger.info("Symbol mapping indexes ensured")

    async def find_active(self, normalized_symbol: str) -> SymbolMapping | None:
        """
        Find an active mapping by symbol, falling back to aliases.

        Args:
            normalized_symbol: Normalized symbol key

        Returns:
            Active mapping or None
        """
        doc = await self.collection.find_one(
            {"symbol": normalized_symbol, "is_active": True}
        )
        if doc is None:
            doc = await self.collection.find_one(
                {"aliases": normalized_symbol, "is_active": True}
            )
        if doc is None:
            return None

        doc.pop("_id", None)
        return SymbolMapping(**doc)

    async def insert(self, mapping: SymbolMapping) -> bool:
        """
        Insert a new mapping.

        Returns:
            True if inserted, False if another writer already created the symbol
        """
        doc = mapping.model_dump(mode="json")
        doc["created_at"] = mapping.created_at
        doc["updated_at"] = mapping.updated_at

        try:
            await self.collection.insert_one(doc)
        except DuplicateKeyError:
            logger.info("Symbol mapping already exists", symbol=mapping.symbol)
            return False

        logger.info(
            "Symbol mapping created",
            symbol=mapping.symbol,
            source=mapping.source.value,
            asset_class=mapping.asset_class.value,
        )
        return True

    async def upsert(self, mapping: SymbolMapping) -> SymbolMapping:
        """
        Create or overwrite the mapping for a symbol, reactivating it if needed.

        Used by admin approval, where the reviewed data wins over whatever
        exists. created_at is preserved for existing rows.
        """
        fields = mapping.model_dump(mode="json", exclude={"created_at", "updated_at"})
        fields["is_active"] = True
        fields["updated_at"] = utcnow()

        doc = await self.collection.find_one_and_update(
            {"symbol": mapping.symbol},
            {"$set": fields, "$setOnInsert": {"created_at": utcnow()}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        doc.pop("_id", None)
        return SymbolMapping(**doc)

    async def deactivate(self, normalized_symbol: str) -> bool:
        """Deactivate a mapping. Rows are never deleted."""
        result = await self.collection.update_one(
            {"symbol": normalized_symbol, "is_active": True},
            {"$set": {"is_active": False, "updated_at": utcnow()}},
        )
        return result.modified_count > 0
