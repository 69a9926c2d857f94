"""
Data types for symbol resolution results.
"""

from dataclasses import asdict, dataclass, field
from typing import Any

from ...models.pending_mapping import MatchType
from ...models.symbol_mapping import AssetClass

# Source labels reported to callers
SOURCE_AUTHORITATIVE = "authoritative"
SOURCE_REFERENCE_AUTO = "reference_catalog_auto"
SOURCE_CORPUS_AUTO = "cg_master_auto"

REASON_EMPTY = "Empty symbol after normalization"
REASON_NO_MATCH = "No match found in any source"
REASON_IN_PROGRESS = "Resolution in progress, retry shortly"


def low_confidence_reason(confidence: float) -> str:
    return f"Low confidence match ({round(confidence * 100)}%) - added to pending queue"


@dataclass
class Candidate:
    """Best match a single source produced for a symbol."""

    match_type: MatchType
    confidence: float
    display_name: str | None = None
    asset_class: AssetClass | None = None
    coingecko_id: str | None = None
    polygon_ticker: str | None = None
    context: dict[str, Any] = field(default_factory=dict)


@dataclass
class ResolvedSymbol:
    """Capability record for a resolved symbol."""

    symbol: str
    normalized: str
    canonical: str
    display_name: str | None
    asset_class: str | None
    price_ok: bool
    chart_ok: bool
    derivs_ok: bool
    social_ok: bool
    confidence: float
    source: str
    coingecko_id: str | None = None
    polygon_ticker: str | None = None
    tradingview_symbol: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class MissingSymbol:
    """An input that did not resolve, with the reason."""

    symbol: str
    normalized: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ResolutionReport:
    """Resolver output; resolved + missing always covers every input."""

    symbols: list[ResolvedSymbol] = field(default_factory=list)
    missing: list[MissingSymbol] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.symbols) + len(self.missing)

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbols": [item.to_dict() for item in self.symbols],
            "missing": [item.to_dict() for item in self.missing],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResolutionReport":
        return cls(
            symbols=[ResolvedSymbol(**item) for item in data.get("symbols", [])],
            missing=[MissingSymbol(**item) for item in data.get("missing", [])],
        )
