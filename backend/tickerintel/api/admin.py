"""
Admin endpoints: pending mapping review, mapping retirement and cache invalidation.
"""

import structlog
from fastapi import APIRouter, Depends, Query

from ..core.exceptions import ValidationError
from ..services.swr import SWRCoordinator
from ..services.symbols.normalizer import normalize_symbol
from ..services.symbols.pending_queue import PendingQueueManager
from .dependencies.auth import require_admin
from .dependencies.services import get_coordinator, get_pending_queue
from .schemas import PendingActionResponse, PendingMappingResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/pending-mappings", response_model=list[PendingMappingResponse])
async def list_pending_mappings(
    limit: int = Query(100, ge=1, le=500),
    _: None = Depends(require_admin),
    queue: PendingQueueManager = Depends(get_pending_queue),
) -> list[PendingMappingResponse]:
    """Pending review rows, most frequently seen first."""
    rows = await queue.list_pending(limit)
    return [PendingMappingResponse(**row.model_dump(mode="json")) for row in rows]


@router.post("/pending-mappings/{pending_id}/approve", response_model=PendingActionResponse)
async def approve_pending_mapping(
    pending_id: str,
    _: None = Depends(require_admin),
    queue: PendingQueueManager = Depends(get_pending_queue),
) -> PendingActionResponse:
    """
    Approve a pending mapping and copy it into the symbol mapping table.

    Approving an already-resolved row is a no-op that reports its current status.
    """
    row = await queue.approve(pending_id)
    return PendingActionResponse(pending_id=row.pending_id, status=row.status)


@router.post("/pending-mappings/{pending_id}/reject", response_model=PendingActionResponse)
async def reject_pending_mapping(
    pending_id: str,
    _: None = Depends(require_admin),
    queue: PendingQueueManager = Depends(get_pending_queue),
) -> PendingActionResponse:
    """Reject a pending mapping."""
    row = await queue.reject(pending_id)
    return PendingActionResponse(pending_id=row.pending_id, status=row.status)


@router.post("/mappings/{symbol}/deactivate")
async def deactivate_symbol_mapping(
    symbol: str,
    _: None = Depends(require_admin),
    queue: PendingQueueManager = Depends(get_pending_queue),
) -> dict[str, str | bool]:
    """
    Deactivate a symbol mapping. Rows are never deleted.

    Cached resolve responses that include the symbol expire on their normal TTL.
    """
    normalized = normalize_symbol(symbol)
    if not normalized:
        raise ValidationError("Symbol is empty after normalization", symbol=symbol)

    await queue.deactivate_mapping(normalized)
    return {"symbol": normalized, "is_active": False}


@router.delete("/cache/{key:path}")
async def invalidate_cache_entry(
    key: str,
    _: None = Depends(require_admin),
    coordinator: SWRCoordinator = Depends(get_coordinator),
) -> dict[str, str | bool]:
    """Delete a cache entry so the next read refreshes it."""
    removed = await coordinator.invalidate(key)
    return {"key": key, "removed": removed}
