"""
Thin httpx clients for upstream market data providers.
"""

from .coingecko import CoinGeckoClient
from .news_feed import CryptoNewsClient, PolygonNewsClient
from .polygon import PolygonClient

__all__ = ["CoinGeckoClient", "CryptoNewsClient", "PolygonClient", "PolygonNewsClient"]
