"""
Engine API endpoints.
Routes: /api/v1/status, /api/v1/entries, /api/v1/sort

ARCHITECTURE:
- These endpoints are thin HTTP boundaries
- All business logic is delegated to LifecycleService
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from tabage.interfaces.api.dependencies import get_lifecycle_service
from tabage.interfaces.api.types.engine_types import EntriesResponse, EntryResponse, PassResponse, StatusResponse
from tabage.services.lifecycle_svc import LifecycleService

# Router instance (included in the main app under /api prefix)
router = APIRouter(prefix="/v1")


# ----------------------------------------------------------------------
#  GET /status
# ----------------------------------------------------------------------
@router.get("/status")
async def get_status(
    lifecycle: LifecycleService = Depends(get_lifecycle_service),
) -> StatusResponse:
    """Engine state, tracked entry count and the last pass."""
    return StatusResponse.from_dto(lifecycle.status())


# ----------------------------------------------------------------------
#  GET /entries
# ----------------------------------------------------------------------
@router.get("/entries")
async def list_entries(
    limit: int | None = None,
    lifecycle: LifecycleService = Depends(get_lifecycle_service),
) -> EntriesResponse:
    """
    Tracked tabs, oldest first, with their age and bucket.

    Args:
        limit: Return at most this many entries
    """
    if limit is not None and limit < 1:
        raise HTTPException(status_code=400, detail="limit must be at least 1")
    summaries = lifecycle.describe_entries()
    shown = summaries[:limit] if limit else summaries
    return EntriesResponse(entries=[EntryResponse.from_dto(s) for s in shown], total=len(summaries))


# ----------------------------------------------------------------------
#  POST /sort
# ----------------------------------------------------------------------
@router.post("/sort")
async def sort_now(
    lifecycle: LifecycleService = Depends(get_lifecycle_service),
) -> PassResponse:
    """Run orphan reclamation and bucket reconciliation now."""
    if not lifecycle.is_ready:
        raise HTTPException(status_code=409, detail=f"Engine is {lifecycle.state.value}, not ready")
    report = await lifecycle.run_pass(reason="manual")
    return PassResponse.from_dto(report)
