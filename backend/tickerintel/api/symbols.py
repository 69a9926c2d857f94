"""
Symbol resolution endpoint.
"""

import structlog
from fastapi import APIRouter, Depends, Request

from ..services.symbol_intelligence import SymbolIntelligenceService
from .dependencies.rate_limit import rate_limit_standard
from .dependencies.services import get_symbol_service
from .schemas import ResolveRequest, ResolveResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/symbols", tags=["symbols"])


@router.post("/resolve", response_model=ResolveResponse)
@rate_limit_standard
async def resolve_symbols(
    request: Request,
    body: ResolveRequest,
    service: SymbolIntelligenceService = Depends(get_symbol_service),
) -> ResolveResponse:
    """
    Resolve free-form tickers to canonical, provider-verified symbols.

    Every input appears exactly once, either in `symbols` or in `missing`.
    Responses are cached for a short window keyed by the sorted input list.
    """
    result = await service.resolve(body.symbols)
    return ResolveResponse(**result)
