"""
Cached news endpoint.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from ..services.news_cache import NewsCacheService
from .dependencies.rate_limit import rate_limit_standard
from .dependencies.services import get_news_service

router = APIRouter(prefix="/api/news", tags=["news"])


@router.get("")
@rate_limit_standard
async def get_news(
    request: Request,
    topic: str = Query("crypto", description="News topic (crypto, stocks, markets)"),
    service: NewsCacheService = Depends(get_news_service),
) -> dict[str, Any]:
    """Merged, deduplicated headlines for a topic, newest first."""
    return await service.get_news(topic)
