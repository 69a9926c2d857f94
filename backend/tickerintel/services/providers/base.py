"""
Shared httpx client handling for upstream market data providers.
"""

from typing import Any

import httpx
import structlog

from ...core.exceptions import ExternalServiceError

logger = structlog.get_logger()


class ProviderClient:
    """
    Base class for provider API clients.

    Owns an httpx.AsyncClient unless one is injected for connection pooling.
    """

    service: str = "provider"

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """Close HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        GET a JSON document.

        Raises:
            ExternalServiceError: On transport errors, non-2xx responses or invalid JSON
        """
        client = await self._get_client()
        url = path if path.startswith("http") else f"{self.base_url}{path}"

        try:
            response = await client.get(url, params=params, headers=headers)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Provider returned error status",
                service=self.service,
                url=url,
                status_code=e.response.status_code,
            )
            raise ExternalServiceError(
                f"{self.service} returned HTTP {e.response.status_code}",
                service=self.service,
                upstream_status=e.response.status_code,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(
                "Provider request failed",
                service=self.service,
                url=url,
                error=str(e),
            )
            raise ExternalServiceError(
                f"{self.service} request failed: {e}", service=self.service
            ) from e
