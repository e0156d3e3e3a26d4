"""In-memory host: a simulated browser implementing every capability protocol.

Used by the test suite and by ``tabage serve`` (sandbox mode). Mirrors the
behaviour of the real host where the engine depends on it:
- tab indexes are dense per window and shift when tabs open/close
- pinned tabs cannot be grouped
- a group that loses its last tab disappears
- a restart hands out fresh tab ids while keeping urls, windows and indexes
"""

from __future__ import annotations

import logging
from typing import Any

from tabage.helpers.dto.host_dto import Container, Resource
from tabage.helpers.exceptions import HostOperationFailedError, NotFoundError
from tabage.host.host_protocols import AlarmListener, MessageListener, ResourceEventListener

logger = logging.getLogger(__name__)

NEW_TAB_LOCATOR = "about:newtab"


class InMemoryHost:
    """Implements ResourceWatch, ResourceDirectory, ContainerService, TimerService and MessageBus."""

    def __init__(self) -> None:
        self.resources: dict[int, Resource] = {}
        self.containers: dict[int, Container] = {}
        self.alarms: dict[str, float] = {}
        self.container_ops: list[tuple[Any, ...]] = []
        self.failing_containers: set[int] = set()
        self.fail_create = False

        self._next_ref = 1
        self._next_container_id = 1
        self._resource_listeners: list[ResourceEventListener] = []
        self._alarm_listeners: list[AlarmListener] = []
        self._message_listeners: list[MessageListener] = []

    # ------------------------------------------------------------------
    # ResourceWatch
    # ------------------------------------------------------------------

    def add_resource_listener(self, listener: ResourceEventListener) -> None:
        self._resource_listeners.append(listener)

    # ------------------------------------------------------------------
    # ResourceDirectory
    # ------------------------------------------------------------------

    async def list_resources(self, include_pinned: bool = True) -> list[Resource]:
        ordered = sorted(self.resources.values(), key=lambda r: (r.window_id, r.index))
        return [r for r in ordered if include_pinned or not r.pinned]

    async def get_resource(self, ref: int) -> Resource:
        try:
            return self.resources[ref]
        except KeyError:
            raise NotFoundError(f"No tab with id {ref}") from None

    async def open_resource(
        self,
        locator: str | None = None,
        window_id: int = 1,
        pinned: bool = False,
        notify: bool = True,
    ) -> Resource:
        """Open a tab at the end of ``window_id`` and announce it to listeners."""
        ref = self._next_ref
        self._next_ref += 1
        index = sum(1 for r in self.resources.values() if r.window_id == window_id)
        resource = Resource(
            ref=ref,
            locator=locator or NEW_TAB_LOCATOR,
            window_id=window_id,
            index=index,
            pinned=pinned,
        )
        self.resources[ref] = resource
        if notify:
            for listener in list(self._resource_listeners):
                await listener.on_resource_created(resource)
        return resource

    # ------------------------------------------------------------------
    # Simulation helpers
    # ------------------------------------------------------------------

    async def close_resource(self, ref: int, notify: bool = True) -> None:
        resource = self.resources.pop(ref, None)
        if resource is None:
            raise NotFoundError(f"No tab with id {ref}")
        self._reindex(resource.window_id)
        self._drop_empty_containers()
        if notify:
            for listener in list(self._resource_listeners):
                await listener.on_resource_removed(ref)

    async def navigate(self, ref: int, locator: str) -> Resource:
        """Point a tab at a new url, emitting the loading and complete updates."""
        current = await self.get_resource(ref)
        updated = Resource(
            ref=ref,
            locator=locator,
            window_id=current.window_id,
            index=current.index,
            pinned=current.pinned,
            group_id=current.group_id,
        )
        self.resources[ref] = updated
        for complete in (False, True):
            for listener in list(self._resource_listeners):
                await listener.on_resource_updated(ref, updated, complete)
        return updated

    def restart(self) -> dict[int, int]:
        """Reassign every tab a fresh id, as a browser restart does. Returns old → new."""
        mapping: dict[int, int] = {}
        renumbered: dict[int, Resource] = {}
        for old_ref in sorted(self.resources):
            resource = self.resources[old_ref]
            new_ref = self._next_ref
            self._next_ref += 1
            mapping[old_ref] = new_ref
            renumbered[new_ref] = Resource(
                ref=new_ref,
                locator=resource.locator,
                window_id=resource.window_id,
                index=resource.index,
                pinned=resource.pinned,
                group_id=resource.group_id,
            )
        self.resources = renumbered
        return mapping

    def add_container(self, title: str, container_id: int | None = None, refs: list[int] | None = None) -> int:
        """Create a titled group directly, without recording a container op."""
        cid = container_id if container_id is not None else self._allocate_container_id()
        self._next_container_id = max(self._next_container_id, cid + 1)
        self.containers[cid] = Container(id=cid, title=title)
        for ref in refs or []:
            self._set_group(ref, cid)
        return cid

    async def fire_alarm(self, name: str) -> None:
        self.alarms.pop(name, None)
        for listener in list(self._alarm_listeners):
            await listener(name)

    def members(self, container_id: int) -> set[int]:
        return {r.ref for r in self.resources.values() if r.group_id == container_id}

    # ------------------------------------------------------------------
    # ContainerService
    # ------------------------------------------------------------------

    async def list_containers(self) -> list[Container]:
        return [self.containers[cid] for cid in sorted(self.containers)]

    async def create_container(self, refs: list[int]) -> int:
        if self.fail_create:
            raise HostOperationFailedError("Group creation rejected")
        self._check_groupable(refs)
        cid = self._allocate_container_id()
        self.containers[cid] = Container(id=cid)
        for ref in refs:
            self._set_group(ref, cid)
        self._drop_empty_containers()
        self.container_ops.append(("create", cid, tuple(refs)))
        return cid

    async def move_to_container(self, container_id: int, refs: list[int]) -> None:
        if container_id not in self.containers or container_id in self.failing_containers:
            raise HostOperationFailedError(f"Cannot move tabs into group {container_id}")
        self._check_groupable(refs)
        for ref in refs:
            self._set_group(ref, container_id)
        self._drop_empty_containers()
        self.container_ops.append(("move", container_id, tuple(refs)))

    async def update_container(
        self,
        container_id: int,
        title: str | None = None,
        collapsed: bool | None = None,
    ) -> None:
        current = self.containers.get(container_id)
        if current is None:
            raise NotFoundError(f"No group with id {container_id}")
        self.containers[container_id] = Container(
            id=container_id,
            title=current.title if title is None else title,
            collapsed=current.collapsed if collapsed is None else collapsed,
        )
        self.container_ops.append(("update", container_id, title, collapsed))

    # ------------------------------------------------------------------
    # TimerService
    # ------------------------------------------------------------------

    def create_alarm(self, name: str, delay_s: float) -> None:
        self.alarms[name] = delay_s

    def clear_alarm(self, name: str) -> None:
        self.alarms.pop(name, None)

    def add_alarm_listener(self, listener: AlarmListener) -> None:
        self._alarm_listeners.append(listener)

    # ------------------------------------------------------------------
    # MessageBus
    # ------------------------------------------------------------------

    def add_message_listener(self, listener: MessageListener) -> None:
        self._message_listeners.append(listener)

    async def send_message(self, message: dict[str, Any]) -> list[Any]:
        replies = []
        for listener in list(self._message_listeners):
            replies.append(await listener(message))
        return replies

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _allocate_container_id(self) -> int:
        cid = self._next_container_id
        self._next_container_id += 1
        return cid

    def _check_groupable(self, refs: list[int]) -> None:
        if not refs:
            raise HostOperationFailedError("At least one tab is required")
        for ref in refs:
            resource = self.resources.get(ref)
            if resource is None:
                raise NotFoundError(f"No tab with id {ref}")
            if resource.pinned:
                raise HostOperationFailedError(f"Tab {ref} is pinned and cannot be grouped")

    def _set_group(self, ref: int, container_id: int | None) -> None:
        current = self.resources[ref]
        self.resources[ref] = Resource(
            ref=current.ref,
            locator=current.locator,
            window_id=current.window_id,
            index=current.index,
            pinned=current.pinned,
            group_id=container_id,
        )

    def _reindex(self, window_id: int) -> None:
        in_window = sorted((r for r in self.resources.values() if r.window_id == window_id), key=lambda r: r.index)
        for position, resource in enumerate(in_window):
            if resource.index != position:
                self.resources[resource.ref] = Resource(
                    ref=resource.ref,
                    locator=resource.locator,
                    window_id=resource.window_id,
                    index=position,
                    pinned=resource.pinned,
                    group_id=resource.group_id,
                )

    def _drop_empty_containers(self) -> None:
        occupied = {r.group_id for r in self.resources.values() if r.group_id is not None}
        for cid in [cid for cid in self.containers if cid not in occupied]:
            logger.debug("Group %s has no tabs left, removing", cid)
            del self.containers[cid]
