"""Seed workflow - track every open tab on first install."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tabage.components.tracking.identity_store_comp import IdentityStore
    from tabage.host.host_protocols import ResourceDirectory

logger = logging.getLogger(__name__)


async def seed_store_workflow(store: IdentityStore, directory: ResourceDirectory) -> int:
    """Record every open non-pinned tab as created now.

    Returns:
        Number of entries added (tabs already tracked are not counted)

    """
    before = len(store)
    for resource in await directory.list_resources(include_pinned=False):
        store.record(resource)
    added = len(store) - before
    logger.info("Seeded %d open tab(s) as new", added)
    return added
