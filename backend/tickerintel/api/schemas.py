"""
Request and response models for the public and admin APIs.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..models.pending_mapping import PendingStatus


class ResolveRequest(BaseModel):
    """Symbols to resolve. Non-string entries are coerced, null becomes empty."""

    symbols: list[Any] = Field(default_factory=list, max_length=200)

    @field_validator("symbols", mode="before")
    @classmethod
    def coerce_symbols(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            return []
        return ["" if item is None else str(item) for item in value]

    class Config:
        json_schema_extra = {"example": {"symbols": ["BTC", "eth", "AAPL"]}}


class ResolvedSymbolModel(BaseModel):
    symbol: str
    normalized: str
    canonical: str
    display_name: str | None = None
    asset_class: str | None = None
    price_ok: bool
    chart_ok: bool
    derivs_ok: bool
    social_ok: bool
    confidence: float = Field(..., ge=0.0, le=1.0)
    source: str
    coingecko_id: str | None = None
    polygon_ticker: str | None = None
    tradingview_symbol: str | None = None


class MissingSymbolModel(BaseModel):
    symbol: str
    normalized: str
    reason: str


class ResolveResponse(BaseModel):
    """Resolved capability records plus unresolved inputs."""

    symbols: list[ResolvedSymbolModel]
    missing: list[MissingSymbolModel]
    cached: bool


class AssetDetailsRequest(BaseModel):
    symbol: str = Field("", description="Ticker, coin symbol or forex pair")
    type: str | None = Field(None, description="stock, crypto or forex (auto if omitted)")

    class Config:
        json_schema_extra = {"example": {"symbol": "AAPL", "type": "stock"}}


class PendingMappingResponse(BaseModel):
    pending_id: str
    normalized_symbol: str
    symbol: str
    display_name: str | None = None
    asset_class: str | None = None
    coingecko_id: str | None = None
    polygon_ticker: str | None = None
    confidence_score: float
    match_type: str
    status: PendingStatus
    seen_count: int
    context: dict[str, Any] = Field(default_factory=dict)
    first_seen_at: datetime
    last_seen_at: datetime
    resolved_at: datetime | None = None


class PendingActionResponse(BaseModel):
    """Confirms the status of a pending row after approve/reject."""

    pending_id: str
    status: PendingStatus
