"""
Pydantic models for MongoDB collections.
Provides type safety and validation for database operations.
"""

from .pending_mapping import MatchType, PendingCandidate, PendingMapping, PendingStatus
from .reference import CorpusCoin, ExchangePair, ReferenceTicker
from .symbol_mapping import AssetClass, MappingSource, SymbolMapping

__all__ = [
    "AssetClass",
    "MappingSource",
    "SymbolMapping",
    "MatchType",
    "PendingStatus",
    "PendingCandidate",
    "PendingMapping",
    "ReferenceTicker",
    "CorpusCoin",
    "ExchangePair",
]
