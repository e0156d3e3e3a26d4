"""Custom exceptions used across multiple layers.

Rules:
- Only put exceptions here if they need to be raised in one layer and caught in another.
- Keep exceptions simple and focused.
- No I/O, no config loading, no complex logic.
"""

from __future__ import annotations


class TabageError(Exception):
    """Base class for all engine errors."""


class NotFoundError(TabageError):
    """Raised when a resource, container or tracked entry is absent."""


class StaleReferenceError(NotFoundError):
    """Raised when a stored transient resource id no longer resolves."""

    def __init__(self, ref: int, message: str | None = None) -> None:
        self.ref = ref
        super().__init__(message or f"Transient reference {ref} is stale")


class HostOperationFailedError(TabageError):
    """Raised when the host rejects a create/move/update call."""


class ConfigInvalidError(TabageError):
    """Raised when bucket definitions or schedule settings are malformed.

    ``problems`` lists every issue found so the settings surface can show them all at once.
    """

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "Invalid configuration")


class StorageError(TabageError):
    """Raised when the key-value store cannot be read or written."""
