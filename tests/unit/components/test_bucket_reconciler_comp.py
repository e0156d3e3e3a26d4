"""Unit tests for BucketReconciler planning and applying."""

from __future__ import annotations

import pytest

from tabage.components.buckets.bucket_config_comp import DEFAULT_BUCKETS
from tabage.components.buckets.bucket_reconciler_comp import title_index
from tabage.helpers.dto.host_dto import Container
from tabage.helpers.time_helper import iso_to_ms

DEFS = list(DEFAULT_BUCKETS)
SAME_DAY = iso_to_ms("2024-03-10T18:00:00+00:00")
TWENTY_DAYS_LATER = iso_to_ms("2024-03-30T10:00:00+00:00")


async def plan_now(reconciler, store, host, now):
    return reconciler.plan(store.all(), await host.list_resources(), await host.list_containers(), DEFS, now)


class TestTitleIndex:
    @pytest.mark.unit
    def test_first_title_wins_and_untitled_ignored(self) -> None:
        index = title_index([Container(3, "Today"), Container(4, ""), Container(5, "Today"), Container(6, "Older")])
        assert index == {"Today": 3, "Older": 6}


class TestPlanAndApply:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_existing_container_gets_one_move_and_no_create(self, host, store, reconciler) -> None:
        seed = await host.open_resource("https://seed.example")
        host.add_container("Older", container_id=7, refs=[seed.ref])
        old_tab = await host.open_resource("https://old.example")
        store.record(old_tab)

        plan = await plan_now(reconciler, store, host, TWENTY_DAYS_LATER)

        assert len(plan.actions) == 1
        (action,) = plan.actions
        assert action.kind == "move"
        assert action.container_id == 7
        assert action.refs == (old_tab.ref,)

        result = await reconciler.apply(plan)

        assert result.moved == 1
        assert result.created_containers == 0
        assert host.container_ops == [("move", 7, (old_tab.ref,))]
        assert host.members(7) == {seed.ref, old_tab.ref}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_second_pass_is_noop(self, host, store, reconciler) -> None:
        for url in ("https://a.example", "https://b.example"):
            store.record(await host.open_resource(url))

        await reconciler.apply(await plan_now(reconciler, store, host, SAME_DAY))
        ops_after_first = list(host.container_ops)

        second = await plan_now(reconciler, store, host, SAME_DAY)

        assert second.is_noop
        assert second.already_placed == 2
        assert host.container_ops == ops_after_first

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_container_is_created_titled(self, host, store, reconciler) -> None:
        first = await host.open_resource("https://a.example")
        second = await host.open_resource("https://b.example")
        store.record(first)
        store.record(second)

        result = await reconciler.apply(await plan_now(reconciler, store, host, SAME_DAY))

        (container,) = await host.list_containers()
        assert container.title == "Today"
        assert host.members(container.id) == {first.ref, second.ref}
        assert result.created_containers == 1
        assert result.moved == 2
        assert [op[0] for op in host.container_ops] == ["create", "update", "move"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failing_bucket_does_not_stop_others(self, host, store, reconciler, clock) -> None:
        seed = await host.open_resource("https://seed.example")
        host.add_container("Older", container_id=7, refs=[seed.ref])
        host.failing_containers.add(7)

        old_tab = await host.open_resource("https://old.example")
        store.record(old_tab)
        clock.set("2024-03-30T09:00:00+00:00")
        new_tab = await host.open_resource("https://new.example")
        store.record(new_tab)

        result = await reconciler.apply(await plan_now(reconciler, store, host, TWENTY_DAYS_LATER))

        assert result.failed_buckets == ["Older"]
        assert result.created_containers == 1
        today = title_index(await host.list_containers())["Today"]
        assert host.members(today) == {new_tab.ref}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_degrades_to_move_when_container_appeared(self, host, store, reconciler) -> None:
        tracked = await host.open_resource("https://a.example")
        store.record(tracked)
        plan = await plan_now(reconciler, store, host, SAME_DAY)
        assert plan.actions[0].kind == "create"

        # Another pass created "Today" between planning and applying
        other = await host.open_resource("https://other.example")
        today_id = host.add_container("Today", refs=[other.ref])

        result = await reconciler.apply(plan)

        assert result.created_containers == 0
        assert host.container_ops == [("move", today_id, (tracked.ref,))]
        assert len(await host.list_containers()) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_duplicate_titles_converge_on_first(self, host, store, reconciler) -> None:
        a = await host.open_resource("https://a.example")
        b = await host.open_resource("https://b.example")
        first_id = host.add_container("Today", refs=[a.ref])
        second_id = host.add_container("Today", refs=[b.ref])
        store.record(b)

        await reconciler.apply(await plan_now(reconciler, store, host, SAME_DAY))

        assert host.members(first_id) == {a.ref, b.ref}
        assert second_id not in {c.id for c in await host.list_containers()}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_pinned_and_unresolved_are_skipped(self, host, store, reconciler) -> None:
        pinned = await host.open_resource("https://pinned.example", pinned=True)
        store.record(pinned)
        closed = await host.open_resource("https://closed.example")
        closed_entry = store.record(closed)
        await host.close_resource(closed.ref)

        plan = await plan_now(reconciler, store, host, SAME_DAY)

        assert plan.is_noop
        assert plan.unresolved_ids == [closed_entry.id]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stale_ref_is_repaired_before_planning(self, host, store, reconciler) -> None:
        opened = await host.open_resource("https://a.example")
        entry = store.record(opened)
        mapping = host.restart()

        plan = await plan_now(reconciler, store, host, SAME_DAY)

        new_ref = mapping[opened.ref]
        assert store.get(entry.id).transient_ref == new_ref
        assert plan.actions[0].refs == (new_ref,)
