"""Unit tests for IdentityStore: recording, de-duplication, repair, persistence."""

from __future__ import annotations

import asyncio

import pytest

from tabage.components.tracking.identity_store_comp import ENTRIES_KEY, NO_REF
from tabage.helpers.dto.host_dto import Resource
from tabage.helpers.exceptions import NotFoundError, StorageError


def tab(ref: int, url: str = "https://example.com", window: int = 1, index: int = 0) -> Resource:
    return Resource(ref=ref, locator=url, window_id=window, index=index)


class TestRecord:
    @pytest.mark.unit
    def test_new_resource_gets_entry(self, store, clock) -> None:
        entry = store.record(tab(5, index=2))

        assert entry.id == "e1"
        assert entry.created_at == clock.now
        assert entry.transient_ref == 5
        assert entry.fingerprint.container_id == 1
        assert entry.fingerprint.position_hint == 2
        assert len(store) == 1

    @pytest.mark.unit
    def test_duplicate_event_returns_existing_entry(self, store, clock) -> None:
        first = store.record(tab(5))
        clock.set("2024-03-11T10:00:00+00:00")
        second = store.record(tab(5))

        assert second == first
        assert len(store) == 1

    @pytest.mark.unit
    def test_restored_tab_repairs_ref_and_keeps_created_at(self, store, clock) -> None:
        original = store.record(tab(5, "https://docs.example", window=2, index=3))
        clock.set("2024-03-15T10:00:00+00:00")

        restored = store.record(tab(41, "https://docs.example", window=2, index=3), dead_refs={5})

        assert restored.id == original.id
        assert restored.created_at == original.created_at
        assert restored.transient_ref == 41
        assert len(store) == 1

    @pytest.mark.unit
    def test_fingerprint_match_on_open_tab_is_new_entry(self, store, clock) -> None:
        # Tab 5 shifted into index 1 after a neighbour closed; tab 9 opened where it used to be
        held = store.record(tab(5, "about:newtab", index=1))
        clock.set("2024-03-15T10:00:00+00:00")

        newcomer = store.record(tab(9, "about:newtab", index=1))

        assert newcomer.id != held.id
        assert newcomer.created_at == clock.now
        assert store.get(held.id).transient_ref == 5
        assert len(store) == 2

    @pytest.mark.unit
    def test_entry_without_ref_is_adopted(self, store) -> None:
        old = store.record(tab(5, "https://old.example", index=0))
        store.record(tab(5, "https://other.example", index=3))
        assert store.get(old.id).transient_ref == NO_REF

        restored = store.record(tab(12, "https://old.example", index=0))

        assert restored.id == old.id
        assert restored.transient_ref == 12

    @pytest.mark.unit
    def test_reused_ref_with_other_identity_is_new_entry(self, store) -> None:
        old = store.record(tab(5, "https://old.example", index=0))
        new = store.record(tab(5, "https://new.example", index=4))

        assert new.id != old.id
        assert store.get(old.id).transient_ref == NO_REF
        assert store.get(new.id).transient_ref == 5


class TestForgetAndRepair:
    @pytest.mark.unit
    def test_forget(self, store) -> None:
        entry = store.record(tab(1))
        assert store.forget(entry.id) is True
        assert store.forget(entry.id) is False
        assert store.get(entry.id) is None

    @pytest.mark.unit
    def test_repair_updates_ref_and_locator_only(self, store) -> None:
        entry = store.record(tab(1, "https://a.example", window=3, index=7))
        repaired = store.repair(entry.id, transient_ref=9, locator="https://b.example")

        assert repaired.transient_ref == 9
        assert repaired.fingerprint.locator == "https://b.example"
        assert repaired.fingerprint.container_id == 3
        assert repaired.fingerprint.position_hint == 7
        assert repaired.created_at == entry.created_at

    @pytest.mark.unit
    def test_repair_releases_ref_from_other_holder(self, store) -> None:
        a = store.record(tab(1, "https://a.example", index=0))
        b = store.record(tab(2, "https://b.example", index=1))

        store.repair(b.id, transient_ref=1)

        assert store.get(a.id).transient_ref == NO_REF
        assert store.get(b.id).transient_ref == 1

    @pytest.mark.unit
    def test_repair_unknown_raises(self, store) -> None:
        with pytest.raises(NotFoundError):
            store.repair("missing", transient_ref=1)


class TestPersistence:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_burst_of_mutations_is_one_write(self, store, kv) -> None:
        for ref in range(1, 11):
            store.record(tab(ref, f"https://site{ref}.example", index=ref))
        store.forget("e3")

        await asyncio.sleep(0.05)

        assert len(kv.writes) == 1
        assert store.writes == 1
        assert len(kv.data[ENTRIES_KEY]) == 9

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_flush_writes_immediately(self, store, kv) -> None:
        entry = store.record(tab(1))
        await store.flush()

        assert kv.data[ENTRIES_KEY][entry.id]["ref"] == 1
        assert not store.flush_pending

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_load_round_trips_entries(self, store, kv, clock) -> None:
        kv.data[ENTRIES_KEY] = {
            "abc": {
                "id": "abc",
                "created": 1000,
                "ref": 4,
                "fingerprint": {"locator": "https://x.example", "containerId": 2, "positionHint": 5},
            }
        }

        assert await store.load() == 1
        entry = store.get("abc")
        assert entry.created_at == 1000
        assert entry.fingerprint.locator == "https://x.example"
        assert not store.flush_pending

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_load_migrates_legacy_layout(self, store, kv) -> None:
        kv.data[ENTRIES_KEY] = {"12": {"created": 5000}}

        assert await store.load() == 1
        (entry,) = store.all()
        assert entry.transient_ref == 12
        assert entry.created_at == 5000
        assert entry.fingerprint.locator == ""
        assert store.flush_pending

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_load_drops_malformed_records(self, store, kv) -> None:
        kv.data[ENTRIES_KEY] = {
            "bad-legacy": {"created": "yesterday"},
            "bad-shape": "junk",
            "no-created": {"fingerprint": {}},
            "good": {"created": 1, "ref": 1, "fingerprint": {"locator": "u", "containerId": 1, "positionHint": 0}},
        }

        assert await store.load() == 1
        assert store.get("good") is not None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_load_failure_raises_storage_error(self, store, kv) -> None:
        kv.fail_reads = True
        with pytest.raises(StorageError):
            await store.load()
