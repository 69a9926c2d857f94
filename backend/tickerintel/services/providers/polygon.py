"""
Polygon.io reference API client (company details for stock listings).
"""

from typing import Any

import httpx

from .base import ProviderClient


class PolygonClient(ProviderClient):
    """Fetches company profile data for stock tickers."""

    service = "polygon"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.polygon.io",
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(base_url, client=client)
        self.api_key = api_key

    async def get_company_details(self, ticker: str) -> dict[str, Any] | None:
        """
        Company details for a ticker.

        Returns:
            Flattened profile dict, or None when Polygon has no results

        Raises:
            ExternalServiceError: If the request fails
        """
        data = await self._get_json(
            f"/v3/reference/tickers/{ticker.upper()}",
            params={"apiKey": self.api_key},
        )
        results = data.get("results") if isinstance(data, dict) else None
        if not results:
            return None

        address = results.get("address") or {}
        branding = results.get("branding") or {}
        return {
            "symbol": results.get("ticker", ticker.upper()),
            "name": results.get("name"),
            "description": results.get("description"),
            "market_cap": results.get("market_cap"),
            "homepage_url": results.get("homepage_url"),
            "primary_exchange": results.get("primary_exchange"),
            "sic_description": results.get("sic_description"),
            "total_employees": results.get("total_employees"),
            "list_date": results.get("list_date"),
            "city": address.get("city"),
            "state": address.get("state"),
            "logo_url": branding.get("logo_url"),
            "icon_url": branding.get("icon_url"),
        }
