"""
Multi-source symbol resolver.

Sources are consulted in strict priority order and the first one whose best
candidate reaches the confidence floor decides the outcome:

1. Authoritative symbol mappings (symbol or alias) -> confidence 1.0
2. Reference ticker catalog, exact ticker -> 0.85; stock listings at or above
   the promotion threshold are promoted immediately
3. Master coin corpus (exact symbol, else best fuzzy name) -> promoted only
   for exact-symbol matches at or above the corpus threshold
4. Nothing -> queued for review with confidence 0.0

Catalog hits found only through a quote-suffix, unwrap or substring lookup
(ETH -> ETHE) are partial: they never decide before the corpus has been
consulted and are never promoted. The corpus candidate wins unless the
partial hit scores higher.

A failing source is logged and skipped; it never aborts the batch.
"""

from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any, TypeVar

import structlog

from ...core.config import Settings
from ...database.repositories.reference_repository import (
    CoinCorpusRepository,
    ExchangePairRepository,
    ReferenceTickerRepository,
)
from ...database.repositories.symbol_mapping_repository import SymbolMappingRepository
from ...models.pending_mapping import MatchType, PendingCandidate
from ...models.reference import CorpusCoin, ReferenceTicker
from ...models.symbol_mapping import AssetClass, MappingSource, SymbolMapping
from .confidence import ConfidenceWeights, calculate_confidence
from .normalizer import apply_overrides, normalize_name, normalize_symbol, symbol_variants
from .pending_queue import PendingQueueManager
from .similarity import similarity
from .types import (
    REASON_EMPTY,
    REASON_NO_MATCH,
    SOURCE_AUTHORITATIVE,
    SOURCE_CORPUS_AUTO,
    SOURCE_REFERENCE_AUTO,
    Candidate,
    MissingSymbol,
    ResolutionReport,
    ResolvedSymbol,
    low_confidence_reason,
)

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class ResolverConfig:
    """Thresholds and lookup overrides injected into the resolver."""

    min_confidence: float = 0.5
    reference_promote_threshold: float = 0.85
    corpus_promote_threshold: float = 0.9
    corpus_scan_limit: int = 1000
    substring_min_length: int = 2
    symbol_overrides: dict[str, str] = field(default_factory=dict)
    weights: ConfidenceWeights = field(default_factory=ConfidenceWeights)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResolverConfig":
        return cls(
            min_confidence=settings.resolver_min_confidence,
            reference_promote_threshold=settings.reference_promote_threshold,
            corpus_promote_threshold=settings.corpus_promote_threshold,
            corpus_scan_limit=settings.corpus_scan_limit,
            symbol_overrides={
                normalize_symbol(k): normalize_symbol(v)
                for k, v in settings.symbol_overrides.items()
            },
            weights=ConfidenceWeights(
                partial_reference=settings.confidence_partial_reference,
                alias_bonus=settings.confidence_alias_bonus,
                verification_bonus=settings.confidence_verification_bonus,
                max_bonus=settings.confidence_max_bonus,
            ),
        )


class MultiSourceResolver:
    """Resolves free-form tickers into capability records or pending entries."""

    def __init__(
        self,
        mapping_repo: SymbolMappingRepository,
        reference_repo: ReferenceTickerRepository,
        corpus_repo: CoinCorpusRepository,
        pending_queue: PendingQueueManager,
        config: ResolverConfig | None = None,
        pair_repo: ExchangePairRepository | None = None,
    ):
        self.mapping_repo = mapping_repo
        self.reference_repo = reference_repo
        self.corpus_repo = corpus_repo
        self.pending_queue = pending_queue
        self.config = config or ResolverConfig()
        self.pair_repo = pair_repo

    async def resolve(self, symbols: list[str]) -> ResolutionReport:
        """
        Resolve every input symbol.

        Args:
            symbols: Raw ticker strings, in caller order

        Returns:
            Report whose resolved + missing entries cover every input exactly once
        """
        report = ResolutionReport()
        for raw in symbols:
            outcome = await self._resolve_one(raw)
            if isinstance(outcome, ResolvedSymbol):
                report.symbols.append(outcome)
            else:
                report.missing.append(outcome)

        logger.info(
            "Symbols resolved",
            requested=len(symbols),
            resolved=len(report.symbols),
            missing=len(report.missing),
        )
        return report

    async def _safe(self, source: str, symbol: str, call: Awaitable[T]) -> T | None:
        try:
            return await call
        except Exception as e:
            logger.warning(
                "Resolver source failed, falling through",
                source=source,
                symbol=symbol,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    async def _resolve_one(self, raw: Any) -> ResolvedSymbol | MissingSymbol:
        raw_text = raw if isinstance(raw, str) else ""
        normalized = apply_overrides(normalize_symbol(raw), self.config.symbol_overrides)
        if not normalized:
            return MissingSymbol(symbol=raw_text, normalized="", reason=REASON_EMPTY)

        mapping = await self._safe(
            "authoritative", normalized, self.mapping_repo.find_active(normalized)
        )
        if mapping is not None:
            return await self._from_mapping(raw_text, normalized, mapping)

        reference = await self._safe(
            "reference_catalog", normalized, self._match_reference(normalized)
        )
        if reference is not None and reference.confidence < self.config.min_confidence:
            reference = None

        if reference is not None and reference.match_type == MatchType.EXACT_REFERENCE:
            promote = (
                reference.asset_class == AssetClass.STOCK
                and reference.confidence >= self.config.reference_promote_threshold
            )
            return await self._settle(
                raw_text, normalized, reference, promote, MappingSource.REFERENCE_CATALOG_AUTO
            )

        corpus = await self._safe(
            "coin_corpus", normalized, self._match_corpus(raw_text, normalized)
        )
        if corpus is not None and corpus.confidence >= self.config.min_confidence and (
            reference is None or corpus.confidence >= reference.confidence
        ):
            promote = (
                corpus.match_type == MatchType.EXACT_SYMBOL
                and corpus.confidence >= self.config.corpus_promote_threshold
            )
            return await self._settle(
                raw_text, normalized, corpus, promote, MappingSource.CORPUS_AUTO
            )

        if reference is not None:
            return await self._settle(
                raw_text, normalized, reference, False, MappingSource.REFERENCE_CATALOG_AUTO
            )

        none = Candidate(
            match_type=MatchType.NONE,
            confidence=0.0,
            context={"match_type": MatchType.NONE.value},
        )
        await self._enqueue(raw_text, normalized, none)
        return MissingSymbol(symbol=raw_text, normalized=normalized, reason=REASON_NO_MATCH)

    # =========================================================================
    # Sources
    # =========================================================================

    async def _find_listing(self, symbol: str) -> ReferenceTicker | None:
        return await self.reference_repo.find_exact(
            [symbol, f"X:{symbol}USD", f"C:{symbol}"]
        )

    async def _match_reference(self, normalized: str) -> Candidate | None:
        listing = await self._find_listing(normalized)
        if listing is not None:
            return self._reference_candidate(listing, MatchType.EXACT_REFERENCE, normalized)

        for variant in symbol_variants(normalized)[1:]:
            listing = await self._find_listing(variant)
            if listing is not None:
                return self._reference_candidate(listing, MatchType.PARTIAL_REFERENCE, variant)

        if len(normalized) >= self.config.substring_min_length:
            matches = await self.reference_repo.find_containing(normalized, limit=5)
            if matches:
                return self._reference_candidate(
                    matches[0], MatchType.PARTIAL_REFERENCE, f"*{normalized}*"
                )
        return None

    def _reference_candidate(
        self, listing: ReferenceTicker, match_type: MatchType, matched_form: str
    ) -> Candidate:
        return Candidate(
            match_type=match_type,
            confidence=calculate_confidence(match_type, weights=self.config.weights),
            display_name=listing.name or listing.ticker,
            asset_class=listing.asset_class,
            polygon_ticker=listing.ticker,
            context={
                "match_type": match_type.value,
                "ticker": listing.ticker,
                "market": listing.market,
                "matched_form": matched_form,
                "exact": match_type == MatchType.EXACT_REFERENCE,
                "primary_exchange": listing.primary_exchange,
            },
        )

    async def _match_corpus(self, raw: str, normalized: str) -> Candidate | None:
        exact_rows = await self.corpus_repo.find_by_symbol(normalized)
        if exact_rows:
            coin = exact_rows[0]
            ambiguous = len(exact_rows) > 1
            return self._corpus_candidate(
                coin,
                MatchType.EXACT_SYMBOL,
                calculate_confidence(
                    MatchType.EXACT_SYMBOL,
                    ambiguous=ambiguous,
                    weights=self.config.weights,
                ),
                {"match_type": MatchType.EXACT_SYMBOL.value, "ambiguous": ambiguous},
            )

        query = normalize_name(raw) or normalized.lower()
        best: CorpusCoin | None = None
        best_score = 0.0
        for coin in await self.corpus_repo.scan(self.config.corpus_scan_limit):
            score = similarity(query, normalize_name(coin.name))
            if score > best_score:
                best, best_score = coin, score

        if best is None:
            return None

        verified = bool(
            await self._safe(
                "reference_catalog",
                normalized,
                self.reference_repo.has_active_listing(best.symbol.upper()),
            )
        )
        confidence = calculate_confidence(
            MatchType.FUZZY_NAME,
            name_similarity=best_score,
            externally_verified=verified,
            weights=self.config.weights,
        )
        return self._corpus_candidate(
            best,
            MatchType.FUZZY_NAME,
            confidence,
            {
                "match_type": MatchType.FUZZY_NAME.value,
                "similarity": round(best_score, 4),
                "verified": verified,
            },
        )

    @staticmethod
    def _corpus_candidate(
        coin: CorpusCoin, match_type: MatchType, confidence: float, context: dict[str, Any]
    ) -> Candidate:
        return Candidate(
            match_type=match_type,
            confidence=confidence,
            display_name=f"{coin.name} ({coin.symbol.upper()})",
            asset_class=AssetClass.CRYPTO,
            coingecko_id=coin.cg_id,
            context={"cg_id": coin.cg_id, **context},
        )

    # =========================================================================
    # Outcomes
    # =========================================================================

    async def _chart_ok(self, mapping: SymbolMapping) -> bool:
        """Flag or charting symbol on the row, else an active exchange pair (crypto)."""
        if mapping.chart_ok:
            return True
        if mapping.asset_class != AssetClass.CRYPTO or self.pair_repo is None:
            return False

        pair = await self._safe(
            "exchange_pairs", mapping.symbol, self.pair_repo.find_chart_pair(mapping.symbol)
        )
        if pair is None:
            return False
        logger.debug(
            "Chart verified by exchange pair", symbol=mapping.symbol, exchange=pair.exchange
        )
        return True

    async def _from_mapping(
        self, raw: str, normalized: str, mapping: SymbolMapping
    ) -> ResolvedSymbol:
        return ResolvedSymbol(
            symbol=raw,
            normalized=normalized,
            canonical=mapping.symbol,
            display_name=mapping.display_name,
            asset_class=mapping.asset_class.value,
            price_ok=mapping.price_supported,
            chart_ok=await self._chart_ok(mapping),
            derivs_ok=mapping.derivs_supported,
            social_ok=mapping.social_supported,
            confidence=1.0,
            source=SOURCE_AUTHORITATIVE,
            coingecko_id=mapping.coingecko_id,
            polygon_ticker=mapping.polygon_ticker,
            tradingview_symbol=mapping.tradingview_symbol,
        )

    async def _settle(
        self,
        raw: str,
        normalized: str,
        candidate: Candidate,
        promote: bool,
        source: MappingSource,
    ) -> ResolvedSymbol | MissingSymbol:
        if promote:
            resolved = await self._promote(raw, normalized, candidate, source)
            if resolved is not None:
                return resolved

        await self._enqueue(raw, normalized, candidate)
        return MissingSymbol(
            symbol=raw,
            normalized=normalized,
            reason=low_confidence_reason(candidate.confidence),
        )

    async def _promote(
        self, raw: str, normalized: str, candidate: Candidate, source: MappingSource
    ) -> ResolvedSymbol | None:
        mapping = SymbolMapping(
            symbol=normalized,
            display_name=candidate.display_name or normalized,
            display_symbol=normalized,
            asset_class=candidate.asset_class or AssetClass.CRYPTO,
            coingecko_id=candidate.coingecko_id,
            polygon_ticker=candidate.polygon_ticker,
            price_supported=True,
            source=source,
        )
        try:
            created = await self.pending_queue.promote(mapping)
        except Exception as e:
            logger.warning(
                "Auto-promotion failed, queuing instead",
                symbol=normalized,
                error=str(e),
            )
            return None

        logger.info(
            "Symbol auto-promoted",
            symbol=normalized,
            source=source.value,
            confidence=candidate.confidence,
            created=created,
        )
        label = (
            SOURCE_REFERENCE_AUTO
            if source == MappingSource.REFERENCE_CATALOG_AUTO
            else SOURCE_CORPUS_AUTO
        )
        return ResolvedSymbol(
            symbol=raw,
            normalized=normalized,
            canonical=normalized,
            display_name=mapping.display_name,
            asset_class=mapping.asset_class.value,
            price_ok=True,
            chart_ok=False,
            derivs_ok=False,
            social_ok=False,
            confidence=candidate.confidence,
            source=label,
            coingecko_id=mapping.coingecko_id,
            polygon_ticker=mapping.polygon_ticker,
        )

    async def _enqueue(self, raw: str, normalized: str, candidate: Candidate) -> None:
        pending = PendingCandidate(
            symbol=raw,
            display_name=candidate.display_name,
            asset_class=candidate.asset_class,
            coingecko_id=candidate.coingecko_id,
            polygon_ticker=candidate.polygon_ticker,
            confidence_score=candidate.confidence,
            match_type=candidate.match_type,
            context=candidate.context,
        )
        try:
            await self.pending_queue.upsert_seen(normalized, pending)
        except Exception as e:
            logger.error(
                "Failed to record pending mapping",
                symbol=normalized,
                error=str(e),
            )
