"""Unit tests for the reconcile and reclaim workflows."""

from __future__ import annotations

import pytest

from tabage.components.buckets.bucket_config_comp import DEFAULT_BUCKETS
from tabage.helpers.time_helper import iso_to_ms
from tabage.workflows import reclaim_orphans_workflow, reconcile_buckets_workflow

DEFS = list(DEFAULT_BUCKETS)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_reconcile_groups_by_age(host, store, reconciler, clock) -> None:
    old_tab = await host.open_resource("https://old.example")
    store.record(old_tab)
    clock.set("2024-03-29T12:00:00+00:00")
    recent = await host.open_resource("https://recent.example")
    store.record(recent)

    result = await reconcile_buckets_workflow(
        store, reconciler, host, DEFS, now=iso_to_ms("2024-03-30T08:00:00+00:00")
    )

    titles = {c.title: c.id for c in await host.list_containers()}
    assert set(titles) == {"Yesterday", "Older"}
    assert host.members(titles["Older"]) == {old_tab.ref}
    assert host.members(titles["Yesterday"]) == {recent.ref}
    assert result.created_containers == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_reconcile_noop_returns_empty_result(host, store, reconciler) -> None:
    result = await reconcile_buckets_workflow(store, reconciler, host, DEFS, now=iso_to_ms("2024-03-30T08:00:00+00:00"))

    assert result.moved == 0
    assert result.applied == []
    assert host.container_ops == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_reclaim_forgets_closed_tabs(host, store, resolver) -> None:
    kept = await host.open_resource("https://kept.example")
    closed = await host.open_resource("https://closed.example")
    store.record(kept)
    closed_entry = store.record(closed)
    await host.close_resource(closed.ref)

    result = await reclaim_orphans_workflow(store, resolver, host)

    assert result.removed_ids == [closed_entry.id]
    assert len(store) == 1
