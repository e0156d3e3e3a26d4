"""Fingerprint resolution component.

Re-associates tracked entries with live resources when their transient ref
goes stale (tab closed and restored, browser restart).

Matching rules:
- Transient ref is a fast path only. A live resource found under the stored ref
  is accepted when it agrees with the stored fingerprint: same locator, or same
  window and position (an in-place navigation).
- Otherwise the fingerprint must match exactly: locator AND window AND position.
  The same strict rule is used for duplicate suppression and for the orphan
  sweep; there is no weaker locator+window fallback.
- Within one resolution pass a live resource is claimed by at most one entry.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from tabage.helpers.dto.tracking_dto import Fingerprint, Resolution, TrackedEntry
from tabage.helpers.exceptions import NotFoundError, StaleReferenceError

if TYPE_CHECKING:
    from tabage.components.tracking.identity_store_comp import IdentityStore
    from tabage.helpers.dto.host_dto import Resource

logger = logging.getLogger(__name__)


def fingerprint_matches(stored: Fingerprint, candidate: Fingerprint) -> bool:
    """Strict triple match on locator, container and position."""
    return (
        stored.locator == candidate.locator
        and stored.container_id == candidate.container_id
        and stored.position_hint == candidate.position_hint
    )


def agrees_with(entry: TrackedEntry, resource: Resource) -> bool:
    """Whether a resource found under the entry's stored ref is plausibly the same one."""
    fp = entry.fingerprint
    if not fp.locator:
        # Migrated entry recorded before fingerprints existed
        return True
    if fp.locator == resource.locator:
        return True
    return fp.container_id == resource.window_id and fp.position_hint == resource.index


class FingerprintResolver:
    """Matches live resources to tracked entries and repairs stale refs through the store."""

    def __init__(self, store: IdentityStore) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # resource → entry
    # ------------------------------------------------------------------

    def match_by_transient_ref(self, ref: int) -> TrackedEntry | None:
        for entry in self.store.all():
            if entry.transient_ref == ref:
                return entry
        return None

    def match_by_fingerprint(self, candidate: Fingerprint) -> TrackedEntry | None:
        for entry in self.store.all():
            if fingerprint_matches(entry.fingerprint, candidate):
                return entry
        return None

    def repair(self, entry_id: str, resolution: Resolution) -> TrackedEntry:
        """Point an entry at the resource it resolved to. Raises NotFoundError for unknown ids."""
        entry = self.store.get(entry_id)
        if entry is None:
            raise NotFoundError(f"No tracked entry {entry_id}")
        if entry.transient_ref == resolution.ref and entry.fingerprint.locator == resolution.locator:
            return entry
        logger.info(
            "Repairing entry %s: ref %s -> %s (matched by %s)",
            entry_id,
            entry.transient_ref,
            resolution.ref,
            resolution.matched_by,
        )
        return self.store.repair(entry_id, transient_ref=resolution.ref, locator=resolution.locator)

    # ------------------------------------------------------------------
    # entry → resource
    # ------------------------------------------------------------------

    def resolve(self, entry: TrackedEntry, live: dict[int, Resource], claimed: set[int] | None = None) -> Resolution:
        """
        Find the live resource for one entry.

        Args:
            entry: Entry to resolve
            live: Live resources keyed by ref, from one enumeration
            claimed: Refs already taken by other entries this pass (updated in place)

        Returns:
            Resolution naming the resource and how it was found

        Raises:
            NotFoundError: Neither the ref nor the fingerprint matches a live resource
        """
        claimed = claimed if claimed is not None else set()
        try:
            resolution = self._by_ref(entry, live, claimed)
        except StaleReferenceError as stale:
            resolution = self._by_fingerprint(entry, live.values(), claimed)
            if resolution is None:
                raise NotFoundError(f"Entry {entry.id} has no live resource") from stale
        claimed.add(resolution.ref)
        return resolution

    def resolve_all(self, entries: list[TrackedEntry], live: dict[int, Resource]) -> dict[str, Resolution]:
        """
        Resolve many entries against one snapshot. Unresolvable entries are absent from the result.

        Ref matches are settled first so a fingerprint scan can never steal a
        resource that another entry still holds by ref.
        """
        claimed: set[int] = set()
        resolved: dict[str, Resolution] = {}
        pending: list[TrackedEntry] = []

        for entry in entries:
            try:
                resolution = self._by_ref(entry, live, claimed)
            except StaleReferenceError:
                pending.append(entry)
                continue
            claimed.add(resolution.ref)
            resolved[entry.id] = resolution

        for entry in pending:
            resolution = self._by_fingerprint(entry, live.values(), claimed)
            if resolution is None:
                logger.debug("Entry %s (ref %s) not found by ref or fingerprint", entry.id, entry.transient_ref)
                continue
            claimed.add(resolution.ref)
            resolved[entry.id] = resolution

        return resolved

    def _by_ref(self, entry: TrackedEntry, live: dict[int, Resource], claimed: set[int]) -> Resolution:
        resource = live.get(entry.transient_ref)
        if resource is None or resource.ref in claimed or not agrees_with(entry, resource):
            raise StaleReferenceError(entry.transient_ref)
        return Resolution(resource=resource, matched_by="transient_ref")

    def _by_fingerprint(
        self,
        entry: TrackedEntry,
        candidates: Iterable[Resource],
        claimed: set[int],
    ) -> Resolution | None:
        for resource in candidates:
            if resource.ref in claimed:
                continue
            if fingerprint_matches(entry.fingerprint, Fingerprint.of(resource)):
                return Resolution(resource=resource, matched_by="fingerprint")
        return None
