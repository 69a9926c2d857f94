"""
Repository layer for MongoDB data access.
Provides clean abstraction over database operations.
"""

from .pending_mapping_repository import PendingMappingRepository
from .reference_repository import (
    CoinCorpusRepository,
    ExchangePairRepository,
    ReferenceTickerRepository,
)
from .symbol_mapping_repository import SymbolMappingRepository

__all__ = [
    "SymbolMappingRepository",
    "PendingMappingRepository",
    "ReferenceTickerRepository",
    "CoinCorpusRepository",
    "ExchangePairRepository",
]
