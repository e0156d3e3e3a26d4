"""
Bucket domain DTOs.

Bucket definitions plus the plan/result types of a reconciliation pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


@dataclass(frozen=True)
class BucketDefinition:
    """A named age threshold: the bucket applies from ``min_days`` old upwards."""

    name: str
    min_days: int

    def to_dict(self) -> dict[str, int | str]:
        # "days" is the key the stored settings have always used
        return {"name": self.name, "days": self.min_days}


@dataclass(frozen=True)
class ContainerAction:
    """One container-mutating step of a reconciliation pass.

    ``move``: add ``refs`` to the existing container ``container_id``.
    ``create``: create a container titled ``bucket_name`` from ``refs``.
    """

    kind: Literal["move", "create"]
    bucket_name: str
    refs: tuple[int, ...]
    container_id: int | None = None


@dataclass
class ReconcilePlan:
    """Desired moves computed from a consistent snapshot."""

    actions: list[ContainerAction] = field(default_factory=list)
    already_placed: int = 0
    unresolved_ids: list[str] = field(default_factory=list)
    unbucketed: int = 0

    @property
    def is_noop(self) -> bool:
        return not self.actions


@dataclass
class ReconcileResult:
    """What applying a plan actually did."""

    moved: int = 0
    created_containers: int = 0
    failed_buckets: list[str] = field(default_factory=list)
    applied: list[ContainerAction] = field(default_factory=list)


@dataclass(frozen=True)
class EntrySummary:
    """A tracked entry as shown to users: its age and the bucket it belongs in."""

    entry_id: str
    created_at: int
    age_days: int
    bucket_name: str | None
    transient_ref: int
    locator: str
