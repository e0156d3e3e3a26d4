"""Sandbox API types - tabs and groups of the in-memory host."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from tabage.helpers.dto.host_dto import Container, Resource


class OpenTabRequest(BaseModel):
    url: str | None = None
    window_id: int = 1
    pinned: bool = False


class TabResponse(BaseModel):
    id: int
    url: str
    window_id: int
    index: int
    pinned: bool
    group_id: int | None

    @classmethod
    def from_dto(cls, resource: Resource) -> TabResponse:
        return cls(
            id=resource.ref,
            url=resource.locator,
            window_id=resource.window_id,
            index=resource.index,
            pinned=resource.pinned,
            group_id=resource.group_id,
        )


class GroupResponse(BaseModel):
    id: int
    title: str
    collapsed: bool
    tab_ids: list[int]

    @classmethod
    def from_dto(cls, container: Container, tab_ids: set[int]) -> GroupResponse:
        return cls(id=container.id, title=container.title, collapsed=container.collapsed, tab_ids=sorted(tab_ids))
