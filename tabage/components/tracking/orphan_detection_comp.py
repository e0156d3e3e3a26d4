"""Orphan detection component.

Drops tracked entries whose resource no longer exists and repairs entries whose
resource is still open under a different ref.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tabage.helpers.dto.tracking_dto import SweepResult

if TYPE_CHECKING:
    from tabage.components.tracking.fingerprint_comp import FingerprintResolver
    from tabage.components.tracking.identity_store_comp import IdentityStore
    from tabage.helpers.dto.host_dto import Resource

logger = logging.getLogger(__name__)


def sweep_orphans(
    store: IdentityStore,
    resolver: FingerprintResolver,
    live_resources: list[Resource],
) -> SweepResult:
    """Reconcile the store against one enumeration of live resources.

    An entry is removed iff neither its transient ref nor its fingerprint
    matches a live resource. Entries resolved to a different ref or locator
    are repaired in place.

    Args:
        store: Identity store to clean
        resolver: Resolver bound to the same store
        live_resources: Every live resource, pinned included

    Returns:
        SweepResult with counts and removed entry ids

    """
    live = {resource.ref: resource for resource in live_resources}
    entries = store.all()
    resolutions = resolver.resolve_all(entries, live)

    result = SweepResult(checked=len(entries))
    for entry in entries:
        # Another handler may have forgotten it since the snapshot was taken
        if store.get(entry.id) is None:
            continue

        resolution = resolutions.get(entry.id)
        if resolution is None:
            store.forget(entry.id)
            result.removed_ids.append(entry.id)
            logger.info("Removed orphan entry %s (last ref %s)", entry.id, entry.transient_ref)
            continue

        result.alive += 1
        if resolution.ref != entry.transient_ref or resolution.locator != entry.fingerprint.locator:
            resolver.repair(entry.id, resolution)
            result.repaired += 1

    if result.removed or result.repaired:
        logger.info(
            "Orphan sweep: %d checked, %d alive, %d repaired, %d removed",
            result.checked,
            result.alive,
            result.repaired,
            result.removed,
        )
    return result
