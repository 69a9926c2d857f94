"""
Read-only repositories for resolver reference data.

ReferenceTickerRepository reads the multi-market listing catalog;
CoinCorpusRepository reads the master coin list used for fuzzy name matching;
ExchangePairRepository reads spot pairs synced from crypto exchanges.
"""

import re

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection

from ...models.reference import CorpusCoin, ExchangePair, ReferenceTicker

logger = structlog.get_logger()


class ReferenceTickerRepository:
    """Reference ticker catalog reader."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        await self.collection.create_index("ticker", name="ticker_1")
        await self.collection.create_index(
            [("market", 1), ("active", 1)], name="market_active"
        )

    @staticmethod
    def _to_model(doc: dict) -> ReferenceTicker:
        doc.pop("_id", None)
        return ReferenceTicker(**doc)

    async def find_exact(self, tickers: list[str]) -> ReferenceTicker | None:
        """
        First active listing whose ticker equals one of the given forms.

        Forms are tried in order, so callers pass the plain ticker before
        provider-prefixed forms (X:BTCUSD, C:EURUSD).
        """
        for ticker in tickers:
            doc = await self.collection.find_one({"ticker": ticker, "active": True})
            if doc:
                return self._to_model(doc)
        return None

    async def find_containing(self, fragment: str, limit: int = 10) -> list[ReferenceTicker]:
        """Active listings whose ticker contains the fragment, shortest first."""
        pipeline = [
            {"$match": {"ticker": {"$regex": re.escape(fragment)}, "active": True}},
            {"$addFields": {"ticker_length": {"$strLenCP": "$ticker"}}},
            {"$sort": {"ticker_length": 1, "ticker": 1}},
            {"$limit": limit},
            {"$project": {"_id": 0, "ticker_length": 0}},
        ]
        results = await self.collection.aggregate(pipeline).to_list(limit)
        return [ReferenceTicker(**doc) for doc in results]

    async def has_active_listing(self, symbol: str) -> bool:
        """True if any active listing is quoted under this symbol."""
        doc = await self.collection.find_one(
            {
                "$or": [{"ticker": symbol}, {"base_currency_symbol": symbol}],
                "active": True,
            },
            projection={"_id": 1},
        )
        return doc is not None


class CoinCorpusRepository:
    """Master coin corpus reader."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        await self.collection.create_index("symbol", name="symbol_1")
        await self.collection.create_index("cg_id", unique=True, name="cg_id_unique")

    async def find_by_symbol(self, normalized_symbol: str) -> list[CorpusCoin]:
        """All corpus rows sharing a symbol (the corpus stores symbols lowercase)."""
        cursor = self.collection.find({"symbol": normalized_symbol.lower()})
        coins = []
        async for doc in cursor:
            doc.pop("_id", None)
            coins.append(CorpusCoin(**doc))
        return coins

    async def scan(self, limit: int) -> list[CorpusCoin]:
        """Bounded scan of the corpus for fuzzy name matching."""
        cursor = self.collection.find({}, projection={"_id": 0}).limit(limit)
        return [CorpusCoin(**doc) async for doc in cursor]


class ExchangePairRepository:
    """Crypto exchange spot pair reader."""

    # Quote currencies whose pairs have a chart on the exchanges we sync
    CHART_QUOTES = ("USDT", "USD")

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        await self.collection.create_index(
            [("symbol", 1), ("is_active", 1)], name="symbol_active"
        )

    async def find_chart_pair(self, base_symbol: str) -> ExchangePair | None:
        """Active USDT or USD pair for the base symbol, if any exchange lists one."""
        pairs = [f"{base_symbol}{quote}" for quote in self.CHART_QUOTES]
        doc = await self.collection.find_one(
            {"symbol": {"$in": pairs}, "is_active": True}, projection={"_id": 0}
        )
        return ExchangePair(**doc) if doc else None
