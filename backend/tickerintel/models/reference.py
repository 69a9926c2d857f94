"""
Read-only reference data consulted by the resolver.

- ReferenceTicker: broad multi-market listing catalog (Polygon reference tickers)
- CorpusCoin: master coin/name list (CoinGecko coins list)
- ExchangePair: spot pairs synced from crypto exchanges (Binance, Coinbase)
"""

from pydantic import BaseModel, Field

from .symbol_mapping import AssetClass

MARKET_ASSET_CLASS = {
    "stocks": AssetClass.STOCK,
    "otc": AssetClass.STOCK,
    "crypto": AssetClass.CRYPTO,
    "fx": AssetClass.FOREX,
    "indices": AssetClass.INDEX,
}


class ReferenceTicker(BaseModel):
    """One listing in the reference ticker catalog."""

    ticker: str = Field(..., description="Listing ticker (e.g. AAPL, X:BTCUSD)")
    name: str = Field("", description="Listing name")
    market: str = Field("stocks", description="stocks, crypto, fx, otc or indices")
    active: bool = Field(True, description="Listing currently trades")
    primary_exchange: str | None = None
    base_currency_symbol: str | None = None

    @property
    def asset_class(self) -> AssetClass:
        """Asset class implied by the listing market; unknown markets count as stock."""
        return MARKET_ASSET_CLASS.get(self.market, AssetClass.STOCK)


class CorpusCoin(BaseModel):
    """One entry in the master coin corpus."""

    cg_id: str = Field(..., description="CoinGecko coin id")
    symbol: str = Field(..., description="Coin symbol (stored lowercase)")
    name: str = Field(..., description="Coin name")


class ExchangePair(BaseModel):
    """One spot pair listed on a crypto exchange."""

    exchange: str = Field(..., description="Exchange name (e.g. binance, coinbase)")
    symbol: str = Field(..., description="Pair symbol (e.g. BTCUSDT)")
    base_asset: str = Field(..., description="Base asset (e.g. BTC)")
    quote_asset: str = Field(..., description="Quote asset (e.g. USDT)")
    is_active: bool = Field(True, description="Pair currently trades")
