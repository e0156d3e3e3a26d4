"""Engine API types - status, tracked entries and sort passes.

These models are thin adapters around DTOs from helpers/dto/.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from tabage.helpers.time_helper import ms_to_iso

if TYPE_CHECKING:
    from tabage.helpers.dto.buckets_dto import EntrySummary
    from tabage.helpers.dto.lifecycle_dto import EngineStatus, PassReport

# ──────────────────────────────────────────────────────────────────────
# Response Models
# ──────────────────────────────────────────────────────────────────────


class PassResponse(BaseModel):
    """Counts from one reclamation + reconciliation pass."""

    reason: str
    finished_at: int = Field(..., description="Epoch milliseconds")
    orphans_removed: int
    refs_repaired: int
    moved: int
    containers_created: int
    failed_buckets: list[str] = Field(default_factory=list)

    @classmethod
    def from_dto(cls, report: PassReport) -> PassResponse:
        return cls(
            reason=report.reason,
            finished_at=report.finished_at,
            orphans_removed=report.sweep.removed,
            refs_repaired=report.sweep.repaired,
            moved=report.reconcile.moved,
            containers_created=report.reconcile.created_containers,
            failed_buckets=list(report.reconcile.failed_buckets),
        )


class StatusResponse(BaseModel):
    """Engine state for dashboards and health checks."""

    state: str = Field(..., description="uninitialized, loading or ready")
    entry_count: int
    deferred_events: int
    flush_pending: bool
    last_pass: PassResponse | None = None
    config_errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_dto(cls, status: EngineStatus) -> StatusResponse:
        return cls(
            state=status.state,
            entry_count=status.entry_count,
            deferred_events=status.deferred_events,
            flush_pending=status.flush_pending,
            last_pass=PassResponse.from_dto(status.last_pass) if status.last_pass else None,
            config_errors=list(status.config_errors),
        )


class EntryResponse(BaseModel):
    id: str
    created_at: int = Field(..., description="Epoch milliseconds")
    created: str = Field(..., description="Local ISO 8601 time")
    age_days: int
    bucket: str | None
    tab_id: int
    url: str

    @classmethod
    def from_dto(cls, summary: EntrySummary) -> EntryResponse:
        return cls(
            id=summary.entry_id,
            created_at=summary.created_at,
            created=ms_to_iso(summary.created_at),
            age_days=summary.age_days,
            bucket=summary.bucket_name,
            tab_id=summary.transient_ref,
            url=summary.locator,
        )


class EntriesResponse(BaseModel):
    entries: list[EntryResponse]
    total: int
