"""Host capability interfaces and the bundled in-memory host."""

from .host_protocols import (
    AlarmListener,
    ContainerService,
    KeyValueStore,
    MessageBus,
    MessageListener,
    ResourceDirectory,
    ResourceEventListener,
    ResourceWatch,
    TimerService,
)
from .memory_host import InMemoryHost

__all__ = [
    "AlarmListener",
    "ContainerService",
    "InMemoryHost",
    "KeyValueStore",
    "MessageBus",
    "MessageListener",
    "ResourceDirectory",
    "ResourceEventListener",
    "ResourceWatch",
    "TimerService",
]
