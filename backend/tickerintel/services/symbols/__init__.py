"""
Symbol resolution: normalization, scoring, multi-source lookup and review queue.
"""

from .confidence import ConfidenceWeights, calculate_confidence
from .normalizer import normalize_name, normalize_symbol, symbol_variants
from .pending_queue import PendingQueueManager
from .resolver import MultiSourceResolver, ResolverConfig
from .similarity import similarity
from .types import MissingSymbol, ResolutionReport, ResolvedSymbol

__all__ = [
    "ConfidenceWeights",
    "calculate_confidence",
    "normalize_name",
    "normalize_symbol",
    "symbol_variants",
    "similarity",
    "PendingQueueManager",
    "MultiSourceResolver",
    "ResolverConfig",
    "ResolvedSymbol",
    "MissingSymbol",
    "ResolutionReport",
]
