"""
Host snapshot DTOs.

Point-in-time views of host-owned objects. The host may invalidate any of
these the moment control returns to the event loop.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Resource:
    """A live tab as reported by the host.

    Attributes:
        ref: Host-assigned transient id (reused after restarts)
        locator: Current URL
        window_id: Id of the containing window
        index: Position within the window
        pinned: Pinned tabs are never grouped
        group_id: Id of the container the tab belongs to, None when ungrouped
    """

    ref: int
    locator: str
    window_id: int
    index: int
    pinned: bool = False
    group_id: int | None = None


@dataclass(frozen=True)
class Container:
    """A host tab group. ``title`` joins against bucket names."""

    id: int
    title: str = ""
    collapsed: bool = False
