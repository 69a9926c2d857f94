"""
CoinGecko coin details client.
"""

from typing import Any

import httpx

from .base import ProviderClient


class CoinGeckoClient(ProviderClient):
    """Fetches coin profile and market data by CoinGecko id."""

    service = "coingecko"

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://api.coingecko.com/api/v3",
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(base_url, client=client)
        self.api_key = api_key

    async def get_coin_details(self, coin_id: str) -> dict[str, Any] | None:
        """
        Coin details for a CoinGecko id.

        Raises:
            ExternalServiceError: If the request fails
        """
        headers = {"x-cg-demo-api-key": self.api_key} if self.api_key else None
        data = await self._get_json(
            f"/coins/{coin_id}",
            params={
                "localization": "false",
                "tickers": "false",
                "community_data": "false",
                "developer_data": "false",
            },
            headers=headers,
        )
        if not isinstance(data, dict) or not data.get("id"):
            return None

        market = data.get("market_data") or {}
        links = data.get("links") or {}
        homepages = [url for url in links.get("homepage", []) if url]
        return {
            "coingecko_id": data["id"],
            "symbol": (data.get("symbol") or "").upper(),
            "name": data.get("name"),
            "description": (data.get("description") or {}).get("en") or None,
            "categories": [c for c in data.get("categories", []) if c],
            "homepage_url": homepages[0] if homepages else None,
            "market_cap_rank": data.get("market_cap_rank"),
            "market_cap_usd": (market.get("market_cap") or {}).get("usd"),
            "circulating_supply": market.get("circulating_supply"),
            "total_supply": market.get("total_supply"),
            "max_supply": market.get("max_supply"),
            "image_url": (data.get("image") or {}).get("large"),
        }
