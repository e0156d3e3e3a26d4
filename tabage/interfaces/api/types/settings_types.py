"""Settings API types - bucket definitions and schedule.

Request bodies are deliberately loose: bucket rows are validated by
ConfigService so every problem can be reported together (HTTP 422).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from tabage.helpers.dto.config_dto import EngineSettings

# ──────────────────────────────────────────────────────────────────────
# Response Models
# ──────────────────────────────────────────────────────────────────────


class BucketModel(BaseModel):
    name: str
    days: int = Field(..., description="Minimum age in calendar days")


class SettingsResponse(BaseModel):
    """Effective settings after validation and fallback."""

    buckets: list[BucketModel]
    scheduled_hour: int
    scheduled_minute: int
    sort_on_startup: bool
    config_errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_dto(cls, settings: EngineSettings) -> SettingsResponse:
        return cls(
            buckets=[BucketModel(name=d.name, days=d.min_days) for d in settings.bucket_definitions],
            scheduled_hour=settings.scheduled_hour,
            scheduled_minute=settings.scheduled_minute,
            sort_on_startup=settings.sort_on_startup,
            config_errors=list(settings.config_errors),
        )


# ──────────────────────────────────────────────────────────────────────
# Request Models
# ──────────────────────────────────────────────────────────────────────


class SettingsUpdateRequest(BaseModel):
    """Partial settings update; omitted fields keep their stored value."""

    buckets: list[dict[str, Any]] | None = Field(
        default=None,
        description='Ordered rows like {"name": "Older", "days": 14}',
    )
    scheduled_hour: int | None = None
    scheduled_minute: int | None = None
    sort_on_startup: bool | None = None
