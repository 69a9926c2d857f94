"""
Stale-while-revalidate cache coordination shared by all cached read paths.
"""

from .coordinator import SWRCoordinator
from .keys import CacheKeys
from .types import CacheState, KeyValueStore, SWRResult

__all__ = ["SWRCoordinator", "CacheKeys", "CacheState", "KeyValueStore", "SWRResult"]
