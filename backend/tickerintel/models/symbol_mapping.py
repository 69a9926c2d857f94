"""
Symbol mapping models.

The authoritative table every resolve request consults first. Rows are created
by auto-promotion or admin approval and are only ever deactivated, never deleted.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from ..core.utils.date_utils import utcnow


class AssetClass(str, Enum):
    """Asset classes a mapping can belong to."""

    CRYPTO = "crypto"
    STOCK = "stock"
    FOREX = "forex"
    INDEX = "index"


class MappingSource(str, Enum):
    """How a mapping row came to exist."""

    MANUAL = "manual"
    REFERENCE_CATALOG_AUTO = "reference_catalog_auto"
    CORPUS_AUTO = "cg_master_auto"
    PENDING_APPROVAL = "pending_approval"


class SymbolMapping(BaseModel):
    """Authoritative mapping from a normalized symbol to provider identifiers."""

    symbol: str = Field(..., description="Normalized symbol (unique key)")
    display_name: str = Field(..., description="Human readable name")
    display_symbol: str | None = Field(None, description="Symbol as shown to users")
    asset_class: AssetClass = Field(AssetClass.CRYPTO, description="Asset class")

    # Provider identifiers
    coingecko_id: str | None = Field(None, description="CoinGecko coin id")
    polygon_ticker: str | None = Field(None, description="Polygon ticker")
    tradingview_symbol: str | None = Field(
        None, description="Charting symbol (e.g. BINANCE:BTCUSDT)"
    )

    aliases: list[str] = Field(default_factory=list, description="Known aliases")

    # Capability flags
    price_supported: bool = Field(False, description="Price feed available")
    tradingview_supported: bool = Field(False, description="Chart available")
    derivs_supported: bool = Field(False, description="Derivatives data available")
    social_supported: bool = Field(False, description="Social data available")

    is_active: bool = Field(True, description="Inactive rows are ignored")
    source: MappingSource = Field(MappingSource.MANUAL, description="Origin")

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def chart_ok(self) -> bool:
        """Charting works when flagged or when a charting symbol is recorded."""
        return self.tradingview_supported or bool(
            (self.tradingview_symbol or "").strip()
        )

    class Config:
        json_schema_extra = {
            "example": {
                "symbol": "BTC",
                "display_name": "Bitcoin",
                "display_symbol": "BTC",
                "asset_class": "crypto",
                "coingecko_id": "bitcoin",
                "polygon_ticker": "X:BTCUSD",
                "tradingview_symbol": "BINANCE:BTCUSDT",
                "aliases": ["XBT"],
                "price_supported": True,
                "tradingview_supported": True,
                "derivs_supported": True,
                "social_supported": True,
                "is_active": True,
                "source": "manual",
            }
        }
