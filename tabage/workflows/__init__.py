"""Workflows layer - multi-step operations that await the host between steps.

Workflows:
- Sequence host enumeration and component calls
- Re-validate store state after every await instead of trusting earlier snapshots
- Are called BY services, never by components
"""

from .ensure_containers_wf import ensure_bucket_containers_workflow
from .reclaim_orphans_wf import reclaim_orphans_workflow
from .reconcile_buckets_wf import reconcile_buckets_workflow
from .seed_store_wf import seed_store_workflow

__all__ = [
    "ensure_bucket_containers_workflow",
    "reclaim_orphans_workflow",
    "reconcile_buckets_workflow",
    "seed_store_workflow",
]
