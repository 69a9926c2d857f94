"""
News feed clients.

Each client returns items already normalized to one shape:
{title, description, url, published_at, source, source_type, image_url, tickers}
"""

from typing import Any

import httpx

from ...core.utils.date_utils import utcfromtimestamp
from .base import ProviderClient


class CryptoNewsClient(ProviderClient):
    """CryptoCompare news feed."""

    service = "cryptocompare"

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://min-api.cryptocompare.com/data/v2/news/",
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(base_url, client=client)
        self.api_key = api_key

    async def get_latest(self, limit: int = 50) -> list[dict[str, Any]]:
        """Latest English crypto headlines, newest first."""
        headers = {"authorization": f"Apikey {self.api_key}"} if self.api_key else None
        data = await self._get_json(self.base_url, params={"lang": "EN"}, headers=headers)
        rows = data.get("Data") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            return []

        items = []
        for row in rows[:limit]:
            if not row.get("url") or not row.get("title"):
                continue
            published = row.get("published_on")
            items.append(
                {
                    "title": row["title"],
                    "description": row.get("body"),
                    "url": row["url"],
                    "published_at": (
                        utcfromtimestamp(published).isoformat() if published else None
                    ),
                    "source": (row.get("source_info") or {}).get("name")
                    or row.get("source"),
                    "source_type": "cryptocompare",
                    "image_url": row.get("imageurl"),
                    "tickers": [t for t in (row.get("categories") or "").split("|") if t],
                }
            )
        return items


class PolygonNewsClient(ProviderClient):
    """Polygon.io reference news."""

    service = "polygon"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.polygon.io",
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(base_url, client=client)
        self.api_key = api_key

    async def get_latest(
        self, limit: int = 50, ticker: str | None = None
    ) -> list[dict[str, Any]]:
        """Latest market headlines, optionally filtered to one ticker."""
        params: dict[str, Any] = {
            "apiKey": self.api_key,
            "limit": limit,
            "order": "desc",
            "sort": "published_utc",
        }
        if ticker:
            params["ticker"] = ticker

        data = await self._get_json("/v2/reference/news", params=params)
        rows = data.get("results") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            return []

        return [
            {
                "title": row["title"],
                "description": row.get("description"),
                "url": row["article_url"],
                "published_at": row.get("published_utc"),
                "source": (row.get("publisher") or {}).get("name"),
                "source_type": "polygon",
                "image_url": row.get("image_url"),
                "tickers": row.get("tickers") or [],
            }
            for row in rows
            if row.get("article_url") and row.get("title")
        ]
