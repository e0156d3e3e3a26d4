"""
Sandbox API endpoints - drive the in-memory host by hand.
Routes: /api/v1/sandbox/tabs, /api/v1/sandbox/groups

Only mounted when the Application runs on an InMemoryHost.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from tabage.helpers.exceptions import NotFoundError
from tabage.host.memory_host import InMemoryHost
from tabage.interfaces.api.dependencies import get_sandbox_host
from tabage.interfaces.api.types.sandbox_types import GroupResponse, OpenTabRequest, TabResponse

router = APIRouter(prefix="/v1/sandbox")


@router.get("/tabs")
async def list_tabs(host: InMemoryHost = Depends(get_sandbox_host)) -> list[TabResponse]:
    return [TabResponse.from_dto(r) for r in await host.list_resources()]


@router.post("/tabs", status_code=201)
async def open_tab(
    request: OpenTabRequest,
    host: InMemoryHost = Depends(get_sandbox_host),
) -> TabResponse:
    """Open a tab; the engine sees a created event exactly as from a browser."""
    resource = await host.open_resource(request.url, window_id=request.window_id, pinned=request.pinned)
    return TabResponse.from_dto(resource)


@router.delete("/tabs/{tab_id}", status_code=204)
async def close_tab(tab_id: int, host: InMemoryHost = Depends(get_sandbox_host)) -> None:
    try:
        await host.close_resource(tab_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.get("/groups")
async def list_groups(host: InMemoryHost = Depends(get_sandbox_host)) -> list[GroupResponse]:
    return [GroupResponse.from_dto(c, host.members(c.id)) for c in await host.list_containers()]
