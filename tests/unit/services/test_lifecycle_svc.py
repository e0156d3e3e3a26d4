"""
Unit tests for LifecycleService.

Tests verify:
- Install seeding, container creation and the startup sort
- Events before READY are deferred and replayed in order
- Storage failure keeps the engine UNINITIALIZED until the alarm retries
- Alarm passes reschedule; settings messages reload and ensure containers
"""

from __future__ import annotations

import pytest

from tabage.components.buckets.bucket_reconciler_comp import BucketReconciler, title_index
from tabage.components.tracking.fingerprint_comp import FingerprintResolver
from tabage.components.tracking.identity_store_comp import ENTRIES_KEY, IdentityStore
from tabage.helpers.exceptions import HostOperationFailedError
from tabage.services.config_svc import ConfigService
from tabage.services.lifecycle_svc import LifecycleService, LifecycleState
from tabage.services.scheduler_svc import SchedulerService

DEFAULT_TITLES = {"Today", "Yesterday", "Last Week", "Older"}


@pytest.fixture
def lifecycle(host, kv) -> LifecycleService:
    """Lifecycle over real components; creation times use the real clock so new tabs are 'Today'."""
    store = IdentityStore(kv, debounce_s=0.01)
    resolver = FingerprintResolver(store)
    service = LifecycleService(
        store=store,
        resolver=resolver,
        reconciler=BucketReconciler(host, resolver),
        config=ConfigService(kv),
        scheduler=SchedulerService(host),
        directory=host,
        containers=host,
    )
    service.attach(host, host, host)
    return service


class TestStart:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_install_seeds_creates_containers_and_sorts(self, host, lifecycle) -> None:
        a = await host.open_resource("https://a.example")
        b = await host.open_resource("https://b.example")

        assert await lifecycle.start("install") is True

        assert lifecycle.state is LifecycleState.READY
        assert len(lifecycle.store) == 2
        titles = title_index(await host.list_containers())
        assert set(titles) == DEFAULT_TITLES
        assert {a.ref, b.ref} <= host.members(titles["Today"])
        assert "scheduledTask" in host.alarms

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_seed_tabs_are_not_tracked(self, host, lifecycle) -> None:
        await lifecycle.start("install")

        assert len(lifecycle.store) == 0
        assert len(lifecycle.untracked_refs) == len(DEFAULT_TITLES)
        assert all(ref in host.resources for ref in lifecycle.untracked_refs)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_startup_does_not_seed(self, host, lifecycle) -> None:
        await host.open_resource("https://a.example", notify=False)

        await lifecycle.start("startup")

        assert len(lifecycle.store) == 0
        assert set(title_index(await host.list_containers())) == DEFAULT_TITLES

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_sort_on_startup_disabled(self, host, kv, lifecycle) -> None:
        kv.data["sortOnStartup"] = False
        await host.open_resource("https://a.example")

        await lifecycle.start("install")

        assert lifecycle.last_pass is None
        assert "move" not in {op[0] for op in host.container_ops}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_start_twice_is_ignored(self, host, lifecycle) -> None:
        await lifecycle.start("startup")
        ops = list(host.container_ops)

        assert await lifecycle.start("startup") is True
        assert host.container_ops == ops

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_storage_failure_then_alarm_retry(self, host, kv, lifecycle) -> None:
        kv.fail_reads = True

        assert await lifecycle.start("startup") is False
        assert lifecycle.state is LifecycleState.UNINITIALIZED
        # Nothing else would ever retry start()
        assert "scheduledTask" in host.alarms

        kv.fail_reads = False
        await host.fire_alarm("scheduledTask")

        assert lifecycle.state is LifecycleState.READY
        assert "scheduledTask" in host.alarms

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_alarm_retry_rearms(self, host, kv, lifecycle) -> None:
        kv.fail_reads = True
        await lifecycle.start("startup")

        await host.fire_alarm("scheduledTask")

        assert lifecycle.state is LifecycleState.UNINITIALIZED
        assert "scheduledTask" in host.alarms

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_alarm_retry_sorts_once(self, host, kv, lifecycle, monkeypatch) -> None:
        kv.fail_reads = True
        await lifecycle.start("startup")
        kv.fail_reads = False

        passes = []
        run_pass = lifecycle._run_pass_locked

        async def counting(*args, **kwargs):
            passes.append(kwargs.get("reason"))
            return await run_pass(*args, **kwargs)

        monkeypatch.setattr(lifecycle, "_run_pass_locked", counting)
        await host.fire_alarm("scheduledTask")

        assert passes == ["startup"]
        assert lifecycle.last_pass.reason == "startup"
        assert "scheduledTask" in host.alarms

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_host_failure_during_start_is_contained(self, host, lifecycle, monkeypatch) -> None:
        listed = host.list_resources
        calls = []

        async def flaky(include_pinned: bool = True):
            calls.append(include_pinned)
            if len(calls) == 1:
                raise HostOperationFailedError("tabs.query failed")
            return await listed(include_pinned=include_pinned)

        monkeypatch.setattr(host, "list_resources", flaky)
        early = await host.open_resource("https://early.example")

        assert await lifecycle.start("startup") is True

        assert lifecycle.state is LifecycleState.READY
        assert lifecycle.status().deferred_events == 0
        assert lifecycle.resolver.match_by_transient_ref(early.ref) is not None
        assert "scheduledTask" in host.alarms

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unexpected_failure_during_start_reverts(self, host, lifecycle, monkeypatch) -> None:
        async def broken():
            raise RuntimeError("host went away")

        monkeypatch.setattr(host, "list_containers", broken)

        with pytest.raises(RuntimeError):
            await lifecycle.start("startup")

        assert lifecycle.state is LifecycleState.UNINITIALIZED
        assert "scheduledTask" in host.alarms


class TestDeferredEvents:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_created_before_ready_is_replayed(self, host, lifecycle) -> None:
        tab = await host.open_resource("https://early.example")

        assert lifecycle.status().deferred_events == 1
        assert len(lifecycle.store) == 0

        await lifecycle.start("startup")

        assert lifecycle.status().deferred_events == 0
        assert lifecycle.resolver.match_by_transient_ref(tab.ref) is not None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_tab_closed_before_replay_is_skipped(self, host, lifecycle) -> None:
        tab = await host.open_resource("https://brief.example")
        await host.close_resource(tab.ref)

        await lifecycle.start("startup")

        assert len(lifecycle.store) == 0


class TestReadyEvents:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_created_and_removed(self, host, lifecycle) -> None:
        await lifecycle.start("startup")

        tab = await host.open_resource("https://new.example")
        assert lifecycle.resolver.match_by_transient_ref(tab.ref) is not None

        await host.close_resource(tab.ref)
        assert lifecycle.resolver.match_by_transient_ref(tab.ref) is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_completed_navigation_updates_locator(self, host, lifecycle) -> None:
        await lifecycle.start("startup")
        tab = await host.open_resource("https://before.example")
        entry = lifecycle.resolver.match_by_transient_ref(tab.ref)

        await host.navigate(tab.ref, "https://after.example")

        updated = lifecycle.store.get(entry.id)
        assert updated.fingerprint.locator == "https://after.example"
        assert updated.created_at == entry.created_at


    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_new_tab_in_old_position_of_open_tab_gets_own_entry(self, host, lifecycle) -> None:
        await lifecycle.start("startup")
        neighbour = await host.open_resource("https://x.example")
        kept = await host.open_resource()
        kept_entry = lifecycle.resolver.match_by_transient_ref(kept.ref)

        # kept shifts left; the new blank tab lands on its recorded position
        await host.close_resource(neighbour.ref)
        newcomer = await host.open_resource()

        newcomer_entry = lifecycle.resolver.match_by_transient_ref(newcomer.ref)
        assert newcomer_entry is not None
        assert newcomer_entry.id != kept_entry.id
        assert lifecycle.store.get(kept_entry.id).transient_ref == kept.ref
        assert len(lifecycle.store) == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_restored_tab_adopts_entry_of_closed_tab(self, host, lifecycle) -> None:
        await lifecycle.start("startup")
        original = await host.open_resource("https://docs.example")
        entry = lifecycle.resolver.match_by_transient_ref(original.ref)

        # Closed without an event reaching the engine, then reopened in place
        await host.close_resource(original.ref, notify=False)
        restored = await host.open_resource("https://docs.example")

        adopted = lifecycle.store.get(entry.id)
        assert adopted.transient_ref == restored.ref
        assert adopted.created_at == entry.created_at
        assert len(lifecycle.store) == 1


class TestAlarmAndMessages:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_alarm_runs_pass_and_reschedules(self, host, lifecycle) -> None:
        await lifecycle.start("startup")
        await host.open_resource("https://a.example")

        await host.fire_alarm("scheduledTask")

        assert lifecycle.last_pass is not None
        assert lifecycle.last_pass.reason == "scheduled"
        assert lifecycle.last_pass.reconcile.moved == 1
        assert "scheduledTask" in host.alarms

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_other_alarms_ignored(self, host, lifecycle) -> None:
        await lifecycle.start("startup")
        lifecycle.last_pass = None

        await host.fire_alarm("somethingElse")

        assert lifecycle.last_pass is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("message_type", ["settings_changed", "reloadOptions"])
    async def test_settings_message_reloads(self, host, kv, lifecycle, message_type) -> None:
        await lifecycle.start("startup")
        tracked_before = len(lifecycle.store)
        kv.data.update({"rootGroups": [{"name": "Fresh", "days": 0}, {"name": "Stale", "days": 3}], "scheduledHour": 6})

        (reply,) = await host.send_message({"type": message_type})

        assert reply["ok"] is True
        assert lifecycle.config.settings.scheduled_hour == 6
        assert {"Fresh", "Stale"} <= set(title_index(await host.list_containers()))
        assert len(lifecycle.store) == tracked_before

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_message_ignored(self, host, lifecycle) -> None:
        await lifecycle.start("startup")
        assert await host.send_message({"type": "ping"}) == [None]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_settings_message_before_ready(self, host, lifecycle) -> None:
        (reply,) = await host.send_message({"type": "settings_changed"})
        assert reply == {"ok": False, "state": "uninitialized"}


class TestShutdown:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_shutdown_flushes_pending_entries(self, host, kv, lifecycle) -> None:
        await lifecycle.start("startup")
        await host.open_resource("https://a.example")
        assert lifecycle.store.flush_pending

        await lifecycle.shutdown()

        assert len(kv.data[ENTRIES_KEY]) == 1
        assert not lifecycle.store.flush_pending
