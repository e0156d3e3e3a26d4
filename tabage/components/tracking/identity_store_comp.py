"""Identity store component.

Owns every TrackedEntry. Entries live in memory and are written to the
KeyValueStore through a trailing-edge debounce, so a burst of creates and
removes costs one write. Entries mutated within the last debounce window can
be lost if the host dies without a shutdown signal.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from collections.abc import Callable, Collection
from typing import TYPE_CHECKING, Any

from tabage.components.infrastructure.debounce_comp import DebouncedAction
from tabage.components.tracking.fingerprint_comp import agrees_with, fingerprint_matches
from tabage.helpers.dto.tracking_dto import Fingerprint, TrackedEntry
from tabage.helpers.exceptions import NotFoundError
from tabage.helpers.time_helper import now_ms

if TYPE_CHECKING:
    from tabage.helpers.dto.host_dto import Resource
    from tabage.host.host_protocols import KeyValueStore

logger = logging.getLogger(__name__)

ENTRIES_KEY = "tabData"
FLUSH_DEBOUNCE_S = 5.0

# A ref no live resource can have; marks an entry whose ref was taken over
NO_REF = -1


class IdentityStore:
    """Durable mapping from stable entry id to creation time and fingerprint."""

    def __init__(
        self,
        kv: KeyValueStore,
        debounce_s: float = FLUSH_DEBOUNCE_S,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._kv = kv
        self._clock = clock
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))
        self._entries: dict[str, TrackedEntry] = {}
        self._flusher = DebouncedAction(self._write, debounce_s, name="identity-store")

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def writes(self) -> int:
        """Number of completed persistence writes."""
        return self._flusher.runs

    @property
    def flush_pending(self) -> bool:
        return self._flusher.pending

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, entry_id: str) -> TrackedEntry | None:
        return self._entries.get(entry_id)

    def all(self) -> list[TrackedEntry]:
        """Snapshot of all entries. Entries may be gone by the time the caller uses them."""
        return list(self._entries.values())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def record(self, resource: Resource, dead_refs: Collection[int] = ()) -> TrackedEntry:
        """
        Track a freshly observed resource, or return the entry already tracking it.

        A second created-event for the same tab never gets a new entry and never
        changes ``created_at``. A restored tab adopts the entry whose fingerprint
        it matches, but only when that entry's tab is known to be gone: its ref
        is ``NO_REF`` or listed in ``dead_refs``. Positions shift as neighbours
        close, so an entry whose tab is still open is never taken over.

        Args:
            resource: Host snapshot of the observed tab
            dead_refs: Refs the caller confirmed no longer exist on the host

        Returns:
            The new or existing entry
        """
        for entry in self._entries.values():
            if entry.transient_ref == resource.ref and agrees_with(entry, resource):
                return entry

        candidate = Fingerprint.of(resource)
        for entry in self._entries.values():
            if entry.transient_ref != NO_REF and entry.transient_ref not in dead_refs:
                continue
            if fingerprint_matches(entry.fingerprint, candidate):
                logger.info("Tab %s matches tracked entry %s by fingerprint", resource.ref, entry.id)
                return self.repair(entry.id, transient_ref=resource.ref)

        entry_id = self._new_id()
        while entry_id in self._entries:
            entry_id = self._new_id()

        self._release_ref(resource.ref, keep=None)
        entry = TrackedEntry(
            id=entry_id,
            created_at=self._clock(),
            transient_ref=resource.ref,
            fingerprint=candidate,
        )
        self._entries[entry_id] = entry
        logger.debug("Tracking tab %s as %s (%s)", resource.ref, entry_id, resource.locator)
        self._flusher.trigger()
        return entry

    def forget(self, entry_id: str) -> bool:
        """Remove an entry. Returns False when it was already gone."""
        if self._entries.pop(entry_id, None) is None:
            return False
        logger.debug("Forgot entry %s", entry_id)
        self._flusher.trigger()
        return True

    def repair(self, entry_id: str, transient_ref: int, locator: str | None = None) -> TrackedEntry:
        """
        Move an entry onto a new transient ref and, if given, a new locator.

        Container and position hints keep their recorded values; ``created_at`` never changes.

        Raises:
            NotFoundError: Unknown entry id
        """
        entry = self._entries.get(entry_id)
        if entry is None:
            raise NotFoundError(f"No tracked entry {entry_id}")

        fingerprint = entry.fingerprint
        if locator is not None and locator != fingerprint.locator:
            fingerprint = dataclasses.replace(fingerprint, locator=locator)

        self._release_ref(transient_ref, keep=entry_id)
        repaired = dataclasses.replace(entry, transient_ref=transient_ref, fingerprint=fingerprint)
        if repaired != entry:
            self._entries[entry_id] = repaired
            self._flusher.trigger()
        return repaired

    def _release_ref(self, ref: int, keep: str | None) -> None:
        # The host says ``ref`` now belongs to someone else; any other holder is stale
        for other in list(self._entries.values()):
            if other.transient_ref == ref and other.id != keep:
                self._entries[other.id] = dataclasses.replace(other, transient_ref=NO_REF)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def load(self) -> int:
        """
        Replace in-memory entries with the persisted map.

        Malformed records are dropped with a warning. Records in the legacy
        layout (keyed by tab id, only a creation time) are migrated with an
        empty fingerprint and persisted again.

        Raises:
            StorageError: The store could not be read

        Returns:
            Number of entries loaded
        """
        stored = await self._kv.get([ENTRIES_KEY])
        raw: dict[str, Any] = stored.get(ENTRIES_KEY) or {}
        if not isinstance(raw, dict):
            logger.warning("Stored entries are not a mapping (%s), starting empty", type(raw).__name__)
            raw = {}

        entries: dict[str, TrackedEntry] = {}
        migrated = 0
        for key, data in raw.items():
            try:
                if isinstance(data, dict) and "fingerprint" not in data:
                    entry = self._migrate_legacy(key, data)
                    migrated += 1
                else:
                    entry = TrackedEntry.from_dict(key, data)
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Dropping malformed stored entry %s: %s", key, exc)
                continue
            entries[entry.id] = entry

        self._entries = entries
        if migrated:
            logger.info("Migrated %d legacy entries to fingerprint layout", migrated)
            self._flusher.trigger()
        logger.info("Loaded %d tracked entries", len(entries))
        return len(entries)

    async def flush(self) -> None:
        """Write pending changes now (shutdown path)."""
        await self._flusher.flush()

    def close(self) -> None:
        self._flusher.cancel()

    async def _write(self) -> None:
        payload = {entry_id: entry.to_dict() for entry_id, entry in self._entries.items()}
        await self._kv.set({ENTRIES_KEY: payload})
        logger.debug("Saved %d tracked entries", len(payload))

    def _migrate_legacy(self, key: str, data: dict[str, Any]) -> TrackedEntry:
        return TrackedEntry(
            id=self._new_id(),
            created_at=int(data["created"]),
            transient_ref=int(key),
            fingerprint=Fingerprint(locator="", container_id=NO_REF, position_hint=NO_REF),
        )
