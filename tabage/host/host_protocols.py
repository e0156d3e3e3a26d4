"""Capability interfaces consumed from the host environment.

Every host operation is a coroutine the caller suspends on. Failures surface as
NotFoundError (absent resource/container) or HostOperationFailedError (rejected call);
nothing is left unresolved.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

from tabage.helpers.dto.host_dto import Container, Resource

AlarmListener = Callable[[str], Awaitable[None]]
MessageListener = Callable[[dict[str, Any]], Awaitable[Any]]


@runtime_checkable
class ResourceEventListener(Protocol):
    """Receives resource lifecycle events from ResourceWatch."""

    async def on_resource_created(self, resource: Resource) -> None: ...

    async def on_resource_removed(self, ref: int) -> None: ...

    async def on_resource_updated(self, ref: int, resource: Resource, complete: bool) -> None:
        """``complete`` is True once the resource finished loading its locator."""
        ...


class ResourceWatch(Protocol):
    def add_resource_listener(self, listener: ResourceEventListener) -> None: ...


class ResourceDirectory(Protocol):
    async def list_resources(self, include_pinned: bool = True) -> list[Resource]: ...

    async def get_resource(self, ref: int) -> Resource:
        """Raises NotFoundError if no live resource has this ref."""
        ...

    async def open_resource(self, locator: str | None = None) -> Resource: ...


class ContainerService(Protocol):
    async def list_containers(self) -> list[Container]: ...

    async def create_container(self, refs: list[int]) -> int:
        """Group ``refs`` into a new untitled container and return its id."""
        ...

    async def move_to_container(self, container_id: int, refs: list[int]) -> None: ...

    async def update_container(
        self,
        container_id: int,
        title: str | None = None,
        collapsed: bool | None = None,
    ) -> None: ...


class KeyValueStore(Protocol):
    """Small named-key store with whole-value replace semantics."""

    async def get(self, keys: list[str]) -> dict[str, Any]:
        """Return values for the keys that exist; missing keys are omitted."""
        ...

    async def set(self, values: dict[str, Any]) -> None: ...


class TimerService(Protocol):
    def create_alarm(self, name: str, delay_s: float) -> None:
        """Schedule (or replace) a one-shot alarm firing after ``delay_s`` seconds."""
        ...

    def clear_alarm(self, name: str) -> None: ...

    def add_alarm_listener(self, listener: AlarmListener) -> None: ...


class MessageBus(Protocol):
    def add_message_listener(self, listener: MessageListener) -> None: ...

    async def send_message(self, message: dict[str, Any]) -> list[Any]:
        """Deliver ``message`` to every listener and collect their replies."""
        ...
