"""
Lifecycle domain DTOs.

Rules:
- Import only stdlib and typing (plus sibling DTO modules)
- Pure data structures only
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .buckets_dto import ReconcileResult
from .tracking_dto import SweepResult


@dataclass
class PassReport:
    """Outcome of one reclamation + reconciliation pass."""

    sweep: SweepResult
    reconcile: ReconcileResult
    finished_at: int
    reason: str = "scheduled"


@dataclass
class EngineStatus:
    """Snapshot of the orchestrator for status surfaces."""

    state: str
    entry_count: int
    deferred_events: int
    flush_pending: bool
    last_pass: PassReport | None = None
    config_errors: list[str] = field(default_factory=list)
