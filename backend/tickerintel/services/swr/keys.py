"""
Cache key generators.

All cache keys follow the convention: {domain}:{type}:{identifier}, except the
symbol resolution key, which keeps its short "sil:" prefix so existing entries
stay addressable.
"""


class CacheKeys:
    """Cache key generators for every refresh-heavy read path."""

    SYMBOL_RESOLUTION = "sil"
    ASSET_DETAILS = "asset_details"
    NEWS = "news"
    LOCK = "lock"

    @staticmethod
    def symbol_resolution(symbols: list[str]) -> str:
        """
        Key for a resolve request; order-insensitive.

        Example:
            ["eth", "BTC"] -> sil:BTC,eth
        """
        cleaned = sorted(s.strip() for s in symbols)
        return f"{CacheKeys.SYMBOL_RESOLUTION}:{','.join(cleaned)}"

    @staticmethod
    def asset_details(asset_type: str, symbol: str) -> str:
        """
        Example:
            asset_details:stock:AAPL
        """
        return f"{CacheKeys.ASSET_DETAILS}:{asset_type.lower()}:{symbol.upper()}"

    @staticmethod
    def news(topic: str) -> str:
        """
        Example:
            news:feed:crypto
        """
        return f"{CacheKeys.NEWS}:feed:{topic.lower()}"

    @staticmethod
    def lock(cache_key: str) -> str:
        """Lock key guarding a cache key."""
        return f"{CacheKeys.LOCK}:{cache_key}"
