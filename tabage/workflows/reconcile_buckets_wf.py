"""Bucket reconciliation workflow - regroup every tracked tab by age."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from tabage.helpers.dto.buckets_dto import ReconcileResult
from tabage.helpers.time_helper import now_ms

if TYPE_CHECKING:
    from tabage.components.buckets.bucket_reconciler_comp import BucketReconciler
    from tabage.components.tracking.identity_store_comp import IdentityStore
    from tabage.helpers.dto.buckets_dto import BucketDefinition
    from tabage.host.host_protocols import ResourceDirectory

logger = logging.getLogger(__name__)


async def reconcile_buckets_workflow(
    store: IdentityStore,
    reconciler: BucketReconciler,
    directory: ResourceDirectory,
    definitions: Sequence[BucketDefinition],
    now: int | None = None,
) -> ReconcileResult:
    """Snapshot tabs and containers, plan moves, apply them.

    Tabs are enumerated before containers and the entry snapshot is taken after
    both awaits, so entries forgotten meanwhile are not planned.

    Args:
        store: Identity store supplying entries
        reconciler: Reconciler bound to the host container service
        directory: Host resource directory
        definitions: Active bucket definitions
        now: Evaluation time in epoch ms (current time when None)

    Returns:
        ReconcileResult describing what was moved and created

    """
    live_resources = await directory.list_resources(include_pinned=True)
    live_containers = await reconciler.containers.list_containers()
    entries = store.all()

    plan = reconciler.plan(entries, live_resources, live_containers, definitions, now if now is not None else now_ms())
    logger.info(
        "Reconcile plan: %d action(s), %d already placed, %d unresolved, %d unbucketed",
        len(plan.actions),
        plan.already_placed,
        len(plan.unresolved_ids),
        plan.unbucketed,
    )
    if plan.is_noop:
        return ReconcileResult()
    return await reconciler.apply(plan)
