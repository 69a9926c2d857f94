"""
Asset detail enrichment.

Stock profiles come from Polygon, crypto profiles from CoinGecko; both are
cached for a day behind the SWR coordinator. Forex pairs are parsed locally
and need no provider call.
"""

import re
from typing import Any

import structlog

from ..core.exceptions import ValidationError
from ..database.repositories.reference_repository import (
    CoinCorpusRepository,
    ReferenceTickerRepository,
)
from ..database.repositories.symbol_mapping_repository import SymbolMappingRepository
from ..models.symbol_mapping import AssetClass
from .providers.coingecko import CoinGeckoClient
from .providers.polygon import PolygonClient
from .swr import CacheKeys, SWRCoordinator

logger = structlog.get_logger()

FOREX_PATTERN = re.compile(r"^(C:)?[A-Z]{3}/?[A-Z]{3}$")
STOCK_PATTERN = re.compile(r"^[A-Z]{1,5}$")
SUPPORTED_TYPES = ("stock", "crypto", "forex")


def parse_forex_pair(symbol: str) -> dict[str, Any]:
    """
    Split a forex symbol into its currencies.

    Examples:
        "EUR/USD" -> base EUR, quote USD, symbol "EUR/USD"
        "C:GBPJPY" -> base GBP, quote JPY, symbol "GBP/JPY"
    """
    raw = symbol.replace("C:", "").replace("/", "")
    display = f"{raw[:3]}/{raw[3:]}" if len(raw) == 6 else raw
    return {
        "symbol": display,
        "type": "forex",
        "base_currency": raw[:3] if len(raw) >= 3 else None,
        "quote_currency": raw[3:6] if len(raw) >= 6 else None,
        "name": display,
        "polygon_ticker": f"C:{raw}",
    }


class AssetDetailService:
    """Cached detail payloads for stocks, crypto and forex pairs."""

    def __init__(
        self,
        coordinator: SWRCoordinator,
        mapping_repo: SymbolMappingRepository,
        reference_repo: ReferenceTickerRepository,
        corpus_repo: CoinCorpusRepository,
        polygon: PolygonClient,
        coingecko: CoinGeckoClient,
        ttl_seconds: int = 86400,
    ):
        self.coordinator = coordinator
        self.mapping_repo = mapping_repo
        self.reference_repo = reference_repo
        self.corpus_repo = corpus_repo
        self.polygon = polygon
        self.coingecko = coingecko
        self.ttl_seconds = ttl_seconds

    async def resolve_type(self, symbol: str, requested: str | None = None) -> str:
        """
        Decide the asset type for a symbol.

        Order: explicit type, forex pattern, authoritative mapping, then
        1-5 letters is a stock unless the catalog lists it as a crypto pair.
        """
        if requested:
            return requested
        if FOREX_PATTERN.match(symbol):
            return "forex"

        try:
            mapping = await self.mapping_repo.find_active(symbol)
        except Exception as e:
            logger.warning("Mapping lookup failed during type detection", symbol=symbol, error=str(e))
            mapping = None
        if mapping is not None and mapping.asset_class in (AssetClass.STOCK, AssetClass.CRYPTO):
            return mapping.asset_class.value

        if not STOCK_PATTERN.match(symbol):
            return "crypto"

        try:
            crypto_pair = await self.reference_repo.find_exact([f"X:{symbol}USD"])
        except Exception as e:
            logger.warning("Catalog lookup failed during type detection", symbol=symbol, error=str(e))
            crypto_pair = None
        return "crypto" if crypto_pair is not None else "stock"

    async def get_details(self, symbol: str, asset_type: str | None = None) -> dict[str, Any]:
        """
        Detail payload plus cache metadata (stale, swr, cached, as_of, age_seconds).

        Raises:
            ValidationError: If the symbol is blank or the type is unsupported
        """
        symbol = (symbol or "").strip().upper()
        if not symbol:
            raise ValidationError("Missing symbol")

        requested = (asset_type or "").strip().lower() or None
        if requested is not None and requested not in SUPPORTED_TYPES:
            raise ValidationError(
                f"Unsupported asset type: {asset_type}", supported=list(SUPPORTED_TYPES)
            )

        resolved_type = await self.resolve_type(symbol, requested)
        logger.info("Asset details requested", symbol=symbol, type=resolved_type)

        if resolved_type == "forex":
            return {
                **parse_forex_pair(symbol),
                "stale": False,
                "swr": False,
                "cached": False,
                "as_of": None,
                "age_seconds": None,
            }

        if resolved_type == "stock":
            refresh = self._stock_refresh(symbol)
        else:
            coin_id = await self._coingecko_id(symbol)
            if coin_id is None:
                return {
                    "symbol": symbol,
                    "type": "crypto",
                    "coingecko_id": None,
                    "stale": False,
                    "swr": False,
                    "cached": False,
                    "as_of": None,
                    "age_seconds": None,
                    "notes": "No coingecko_id match in the coin corpus for this symbol.",
                }
            refresh = self._crypto_refresh(symbol, coin_id)

        key = CacheKeys.asset_details(resolved_type, symbol)
        result = await self.coordinator.get_or_refresh(key, self.ttl_seconds, refresh)

        payload = result.value or {"symbol": symbol, "type": resolved_type}
        response = {**payload, **result.metadata()}
        if result.unavailable:
            response["notes"] = "Details temporarily unavailable, retry shortly."
        return response

    async def _coingecko_id(self, symbol: str) -> str | None:
        try:
            mapping = await self.mapping_repo.find_active(symbol)
            if mapping is not None and mapping.coingecko_id:
                return mapping.coingecko_id
            coins = await self.corpus_repo.find_by_symbol(symbol)
        except Exception as e:
            logger.warning("Coin id lookup failed", symbol=symbol, error=str(e))
            return None
        return coins[0].cg_id if coins else None

    def _stock_refresh(self, symbol: str):
        async def refresh() -> dict[str, Any] | None:
            details = await self.polygon.get_company_details(symbol)
            if details is None:
                return None
            return {**details, "type": "stock", "source": ["polygon"]}

        return refresh

    def _crypto_refresh(self, symbol: str, coin_id: str):
        async def refresh() -> dict[str, Any] | None:
            details = await self.coingecko.get_coin_details(coin_id)
            if details is None:
                return None
            return {**details, "symbol": symbol, "type": "crypto", "source": ["coingecko"]}

        return refresh
