"""
Asset detail endpoint.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request

from ..services.asset_details import AssetDetailService
from .dependencies.rate_limit import rate_limit_expensive
from .dependencies.services import get_asset_service
from .schemas import AssetDetailsRequest

router = APIRouter(prefix="/api/assets", tags=["assets"])


@router.post("/details")
@rate_limit_expensive
async def get_asset_details(
    request: Request,
    body: AssetDetailsRequest,
    service: AssetDetailService = Depends(get_asset_service),
) -> dict[str, Any]:
    """
    Cached detail payload for a stock, coin or forex pair.

    Includes `stale`, `swr`, `cached`, `as_of` and `age_seconds`. A stale
    payload is served while another request refreshes it.
    """
    return await service.get_details(body.symbol, body.type)
