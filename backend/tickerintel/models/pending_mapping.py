"""
Pending mapping models.

Unresolved or low-confidence symbols wait here for admin review. At most one
row per normalized symbol may be pending; approved and rejected rows stay for audit.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from ..core.utils.date_utils import utcnow
from .symbol_mapping import AssetClass


class MatchType(str, Enum):
    """How the best candidate for a symbol was found."""

    EXACT_AUTHORITATIVE = "exact_authoritative"
    EXACT_REFERENCE = "exact_reference"
    PARTIAL_REFERENCE = "partial_reference"
    EXACT_SYMBOL = "exact_symbol"
    FUZZY_NAME = "fuzzy_name"
    NONE = "none"


class PendingStatus(str, Enum):
    """Review lifecycle of a pending row."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PendingCandidate(BaseModel):
    """Best-known data for an unresolved symbol, written on first sighting."""

    symbol: str = Field(..., description="Raw input symbol")
    display_name: str | None = Field(None, description="Best-guess name")
    asset_class: AssetClass | None = Field(None, description="Best-guess asset class")
    coingecko_id: str | None = None
    polygon_ticker: str | None = None
    confidence_score: float = Field(0.0, ge=0.0, le=1.0)
    match_type: MatchType = MatchType.NONE
    context: dict[str, Any] = Field(default_factory=dict)


class PendingMapping(BaseModel):
    """Pending review row as stored in MongoDB."""

    pending_id: str = Field(..., description="Row identifier")
    normalized_symbol: str = Field(..., description="Normalized key")
    symbol: str = Field(..., description="Raw input as first seen")
    display_name: str | None = None
    asset_class: AssetClass | None = None
    coingecko_id: str | None = None
    polygon_ticker: str | None = None
    confidence_score: float = 0.0
    match_type: MatchType = MatchType.NONE
    status: PendingStatus = PendingStatus.PENDING
    seen_count: int = Field(1, ge=1, description="Sightings while pending")
    context: dict[str, Any] = Field(default_factory=dict)

    first_seen_at: datetime = Field(default_factory=utcnow)
    last_seen_at: datetime = Field(default_factory=utcnow)
    resolved_at: datetime | None = None

    class Config:
        json_schema_extra = {
            "example": {
                "pending_id": "pend_3f2a9c1b7e4d",
                "normalized_symbol": "PEPE2",
                "symbol": "pepe2",
                "display_name": "Pepe 2.0",
                "asset_class": "crypto",
                "coingecko_id": "pepe-2-0",
                "confidence_score": 0.72,
                "match_type": "fuzzy_name",
                "status": "pending",
                "seen_count": 3,
                "context": {"candidate": "pepe-2-0"},
            }
        }
