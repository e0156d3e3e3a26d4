"""Bucket reconciler component.

Diffs desired bucket membership against live containers and issues the
smallest set of create/move calls. Planning is pure; applying talks to the host.

A container's title is the join key to a bucket name. When several containers
share a title, the first one listed is authoritative; the others are left alone
and their members are moved into the authoritative one on the next pass.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import tzinfo
from typing import TYPE_CHECKING

from tabage.components.buckets.age_classifier_comp import classify
from tabage.helpers.dto.buckets_dto import BucketDefinition, ContainerAction, ReconcilePlan, ReconcileResult
from tabage.helpers.exceptions import HostOperationFailedError, NotFoundError

if TYPE_CHECKING:
    from tabage.components.tracking.fingerprint_comp import FingerprintResolver
    from tabage.helpers.dto.host_dto import Container, Resource
    from tabage.helpers.dto.tracking_dto import Resolution, TrackedEntry
    from tabage.host.host_protocols import ContainerService

logger = logging.getLogger(__name__)


def title_index(containers: Sequence[Container]) -> dict[str, int]:
    """Map container title → id. Untitled containers are ignored; first title wins."""
    index: dict[str, int] = {}
    for container in containers:
        if container.title and container.title not in index:
            index[container.title] = container.id
    return index


def plan_reconciliation(
    entries: Sequence[TrackedEntry],
    resolutions: dict[str, Resolution],
    containers: Sequence[Container],
    definitions: Sequence[BucketDefinition],
    now: int,
    tz: tzinfo | None = None,
) -> ReconcilePlan:
    """
    Compute the container actions that bring every resource into its bucket.

    Args:
        entries: Tracked entries to place
        resolutions: Entry id → live resource, entries without one are skipped
        containers: Live containers from one enumeration
        definitions: Active bucket definitions
        now: Evaluation time, epoch ms
        tz: Timezone for calendar-day ages (system local when None)

    Returns:
        ReconcilePlan with at most one action per bucket
    """
    plan = ReconcilePlan()
    desired: dict[str, list[int]] = {definition.name: [] for definition in definitions}
    existing = title_index(containers)

    for entry in entries:
        resolution = resolutions.get(entry.id)
        if resolution is None:
            plan.unresolved_ids.append(entry.id)
            continue

        resource = resolution.resource
        if resource.pinned:
            continue

        bucket = classify(entry.created_at, now, definitions, tz)
        if bucket is None:
            plan.unbucketed += 1
            continue

        target_id = existing.get(bucket.name)
        if target_id is not None and resource.group_id == target_id:
            plan.already_placed += 1
            continue

        if resource.ref not in desired[bucket.name]:
            desired[bucket.name].append(resource.ref)

    for name, refs in desired.items():
        if not refs:
            continue
        if name in existing:
            plan.actions.append(ContainerAction(kind="move", bucket_name=name, refs=tuple(refs), container_id=existing[name]))
        else:
            plan.actions.append(ContainerAction(kind="create", bucket_name=name, refs=tuple(refs)))

    return plan


class BucketReconciler:
    """Plans and applies bucket moves against the host's container service."""

    def __init__(self, containers: ContainerService, resolver: FingerprintResolver, tz: tzinfo | None = None) -> None:
        self.containers = containers
        self.resolver = resolver
        self.tz = tz

    def plan(
        self,
        entries: Sequence[TrackedEntry],
        live_resources: Sequence[Resource],
        live_containers: Sequence[Container],
        definitions: Sequence[BucketDefinition],
        now: int,
    ) -> ReconcilePlan:
        """Resolve entries (repairing stale refs through the resolver) and plan moves."""
        live = {resource.ref: resource for resource in live_resources}
        resolutions = self.resolver.resolve_all(list(entries), live)

        for entry_id, resolution in resolutions.items():
            entry = self.resolver.store.get(entry_id)
            if entry is None:
                continue
            if resolution.ref != entry.transient_ref or resolution.locator != entry.fingerprint.locator:
                self.resolver.repair(entry_id, resolution)

        return plan_reconciliation(entries, resolutions, live_containers, definitions, now, self.tz)

    async def apply(self, plan: ReconcilePlan) -> ReconcileResult:
        """
        Execute a plan. A failing bucket is logged and skipped; the rest still run.
        """
        result = ReconcileResult()
        for action in plan.actions:
            try:
                if action.kind == "move":
                    await self._move(action, result)
                else:
                    await self._create(action, result)
            except (HostOperationFailedError, NotFoundError) as exc:
                logger.warning("Could not place %d tab(s) in '%s': %s", len(action.refs), action.bucket_name, exc)
                result.failed_buckets.append(action.bucket_name)
                continue
            result.applied.append(action)

        if result.moved or result.failed_buckets:
            logger.info(
                "Reconcile applied: %d moved, %d container(s) created, %d bucket(s) failed",
                result.moved,
                result.created_containers,
                len(result.failed_buckets),
            )
        return result

    async def _move(self, action: ContainerAction, result: ReconcileResult) -> None:
        if action.container_id is None:
            raise NotFoundError(f"Move into '{action.bucket_name}' has no target container")
        await self.containers.move_to_container(action.container_id, list(action.refs))
        result.moved += len(action.refs)
        logger.debug("Moved tabs %s to '%s' (group %s)", list(action.refs), action.bucket_name, action.container_id)

    async def _create(self, action: ContainerAction, result: ReconcileResult) -> None:
        # Another pass may have created the container while this one was suspended
        current = title_index(await self.containers.list_containers())
        existing_id = current.get(action.bucket_name)
        if existing_id is not None:
            logger.debug("Container '%s' appeared since planning, moving into %s", action.bucket_name, existing_id)
            await self._move(
                ContainerAction(kind="move", bucket_name=action.bucket_name, refs=action.refs, container_id=existing_id),
                result,
            )
            return

        first, *rest = action.refs
        container_id = await self.containers.create_container([first])
        await self.containers.update_container(container_id, title=action.bucket_name)
        result.created_containers += 1
        result.moved += 1
        if rest:
            await self.containers.move_to_container(container_id, rest)
            result.moved += len(rest)
        logger.info("Created container '%s' (%s) with %d tab(s)", action.bucket_name, container_id, len(action.refs))
