"""Orphan reclamation workflow - drop entries whose tab is gone."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tabage.components.tracking.orphan_detection_comp import sweep_orphans

if TYPE_CHECKING:
    from tabage.components.tracking.fingerprint_comp import FingerprintResolver
    from tabage.components.tracking.identity_store_comp import IdentityStore
    from tabage.helpers.dto.tracking_dto import SweepResult
    from tabage.host.host_protocols import ResourceDirectory

logger = logging.getLogger(__name__)


async def reclaim_orphans_workflow(
    store: IdentityStore,
    resolver: FingerprintResolver,
    directory: ResourceDirectory,
) -> SweepResult:
    """Enumerate live tabs once and sweep the store against them.

    The sweep itself runs without suspending, so the enumeration is the only
    point where other events can interleave.

    Args:
        store: Identity store to clean
        resolver: Resolver bound to the store
        directory: Host resource directory

    Returns:
        SweepResult from the sweep

    """
    live = await directory.list_resources(include_pinned=True)
    logger.debug("Sweeping %d entries against %d live tabs", len(store), len(live))
    return sweep_orphans(store, resolver, live)
