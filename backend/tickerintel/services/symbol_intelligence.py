"""
Symbol intelligence service: cached entry point for symbol resolution.
"""

from typing import Any

import structlog

from .swr import CacheKeys, SWRCoordinator
from .symbols.normalizer import normalize_symbol
from .symbols.resolver import MultiSourceResolver
from .symbols.types import REASON_IN_PROGRESS, MissingSymbol, ResolutionReport

logger = structlog.get_logger()


class SymbolIntelligenceService:
    """Resolves symbol batches through the SWR cache."""

    def __init__(
        self,
        resolver: MultiSourceResolver,
        coordinator: SWRCoordinator,
        ttl_seconds: int = 150,
    ):
        self.resolver = resolver
        self.coordinator = coordinator
        self.ttl_seconds = ttl_seconds

    async def resolve(self, symbols: list[str]) -> dict[str, Any]:
        """
        Resolve a batch of raw symbols.

        Returns:
            {symbols, missing, cached} where resolved + missing covers every input.
            An empty batch returns empty lists without touching the cache.
        """
        if not symbols:
            return {"symbols": [], "missing": [], "cached": False}

        async def refresh() -> dict[str, Any]:
            report = await self.resolver.resolve(symbols)
            return report.to_dict()

        key = CacheKeys.symbol_resolution(symbols)
        result = await self.coordinator.get_or_refresh(key, self.ttl_seconds, refresh)

        if result.value is None:
            logger.warning("Symbol resolution unavailable", count=len(symbols))
            report = ResolutionReport(
                missing=[
                    MissingSymbol(
                        symbol=raw,
                        normalized=normalize_symbol(raw),
                        reason=REASON_IN_PROGRESS,
                    )
                    for raw in symbols
                ]
            )
        else:
            report = ResolutionReport.from_dict(result.value)

        return {**report.to_dict(), "cached": result.from_cache}
