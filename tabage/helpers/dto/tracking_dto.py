"""
Tracking domain DTOs.

Persisted identity records plus the results of resolving them against live state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from .host_dto import Resource


@dataclass(frozen=True)
class Fingerprint:
    """Best-effort identity signature used when a transient ref goes stale.

    ``container_id`` is the containing window, not a tab group.
    """

    locator: str
    container_id: int
    position_hint: int

    @classmethod
    def of(cls, resource: Resource) -> Fingerprint:
        return cls(locator=resource.locator, container_id=resource.window_id, position_hint=resource.index)


@dataclass(frozen=True)
class TrackedEntry:
    """Durable record of one tracked resource."""

    id: str
    created_at: int  # epoch ms of first observation, never changes
    transient_ref: int
    fingerprint: Fingerprint

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created": self.created_at,
            "ref": self.transient_ref,
            "fingerprint": {
                "locator": self.fingerprint.locator,
                "containerId": self.fingerprint.container_id,
                "positionHint": self.fingerprint.position_hint,
            },
        }

    @classmethod
    def from_dict(cls, entry_id: str, data: dict[str, Any]) -> TrackedEntry:
        fp = data.get("fingerprint") or {}
        return cls(
            id=entry_id,
            created_at=int(data["created"]),
            transient_ref=int(data.get("ref", -1)),
            fingerprint=Fingerprint(
                locator=str(fp.get("locator", "")),
                container_id=int(fp.get("containerId", -1)),
                position_hint=int(fp.get("positionHint", -1)),
            ),
        )


@dataclass(frozen=True)
class Resolution:
    """Where a tracked entry lives right now."""

    resource: Resource
    matched_by: Literal["transient_ref", "fingerprint"]

    @property
    def ref(self) -> int:
        return self.resource.ref

    @property
    def locator(self) -> str:
        return self.resource.locator


@dataclass
class SweepResult:
    """Outcome of an orphan reclamation sweep."""

    checked: int = 0
    alive: int = 0
    repaired: int = 0
    removed_ids: list[str] = field(default_factory=list)

    @property
    def removed(self) -> int:
        return len(self.removed_ids)
