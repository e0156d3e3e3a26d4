"""Ensure containers workflow - create an empty-looking group per bucket.

A host container cannot exist without a member, so each missing bucket gets a
fresh blank tab, grouped, titled and collapsed.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from tabage.helpers.exceptions import HostOperationFailedError, NotFoundError

if TYPE_CHECKING:
    from tabage.helpers.dto.buckets_dto import BucketDefinition
    from tabage.host.host_protocols import ContainerService, ResourceDirectory

logger = logging.getLogger(__name__)


async def ensure_bucket_containers_workflow(
    definitions: Sequence[BucketDefinition],
    directory: ResourceDirectory,
    containers: ContainerService,
) -> dict[str, int]:
    """Create containers for buckets that have none.

    Each bucket is checked against a fresh container listing right before its
    container is created, so overlapping runs rarely produce duplicates.
    Duplicates that still slip through are tolerated.

    Args:
        definitions: Active bucket definitions
        directory: Used to open the seed tab
        containers: Host container service

    Returns:
        Bucket name → ref of the seed tab, for each container created

    """
    existing = {c.title for c in await containers.list_containers()}
    missing = [d.name for d in definitions if d.name not in existing]
    if not missing:
        logger.info("Bucket containers already exist")
        return {}

    logger.info("Creating missing bucket containers: %s", missing)
    created: dict[str, int] = {}
    for name in missing:
        try:
            if name in {c.title for c in await containers.list_containers()}:
                continue
            seed = await directory.open_resource()
            container_id = await containers.create_container([seed.ref])
            await containers.update_container(container_id, title=name, collapsed=True)
        except (HostOperationFailedError, NotFoundError) as exc:
            logger.warning("Could not create container '%s': %s", name, exc)
            continue
        created[name] = seed.ref
    return created
