"""
Settings API endpoints.
Routes: /api/v1/settings

Writes go through ConfigService validation; a successful write is announced
with a ``settings_changed`` message so the engine reloads and reschedules.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from tabage.helpers.exceptions import ConfigInvalidError
from tabage.host.host_protocols import MessageBus
from tabage.interfaces.api.dependencies import get_config_service, get_lifecycle_service, get_message_bus
from tabage.interfaces.api.types.settings_types import SettingsResponse, SettingsUpdateRequest
from tabage.services.config_svc import ConfigService
from tabage.services.lifecycle_svc import LifecycleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")


# ----------------------------------------------------------------------
#  GET /settings
# ----------------------------------------------------------------------
@router.get("/settings")
async def get_settings(
    config: ConfigService = Depends(get_config_service),
) -> SettingsResponse:
    """Effective settings, with any problems found in the stored ones."""
    return SettingsResponse.from_dto(config.settings)


# ----------------------------------------------------------------------
#  PUT /settings
# ----------------------------------------------------------------------
@router.put("/settings")
async def update_settings(
    request: SettingsUpdateRequest,
    config: ConfigService = Depends(get_config_service),
    lifecycle: LifecycleService = Depends(get_lifecycle_service),
    bus: MessageBus = Depends(get_message_bus),
) -> SettingsResponse:
    """
    Validate and save settings, then notify the engine.

    Returns 422 with every problem found when any value is invalid; nothing is saved then.
    """
    try:
        await config.save_user_settings(
            buckets=request.buckets,
            hour=request.scheduled_hour,
            minute=request.scheduled_minute,
            sort_on_startup=request.sort_on_startup,
        )
    except ConfigInvalidError as e:
        raise HTTPException(status_code=422, detail={"problems": e.problems}) from e

    await bus.send_message({"type": "settings_changed"})
    # A ready engine reloaded on the message; otherwise read the new values here
    settings = config.settings if lifecycle.is_ready else await config.load()
    return SettingsResponse.from_dto(settings)
