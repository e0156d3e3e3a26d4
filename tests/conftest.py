"""
Pytest fixtures and configuration for the test suite.

Strategy:
- Real components everywhere; the host and key-value store are the in-memory ones
- Time is injected (FakeClock, explicit ``now``) and ages use UTC, never the machine's zone
- Config files and TABAGE_* variables from the developer machine are kept out
"""

from __future__ import annotations

import itertools
import os
from datetime import timezone

import pytest

from tabage.components.buckets.bucket_reconciler_comp import BucketReconciler
from tabage.components.tracking.fingerprint_comp import FingerprintResolver
from tabage.components.tracking.identity_store_comp import IdentityStore
from tabage.helpers.time_helper import iso_to_ms
from tabage.host.memory_host import InMemoryHost
from tabage.persistence.kv_store import InMemoryKeyValueStore

UTC = timezone.utc

# Debounce window short enough for tests to wait out
TEST_DEBOUNCE_S = 0.01


class FakeClock:
    """Epoch-ms clock tests move by hand."""

    def __init__(self, start_iso: str = "2024-03-10T10:00:00+00:00") -> None:
        self.now = iso_to_ms(start_iso)

    def __call__(self) -> int:
        return self.now

    def set(self, iso: str) -> None:
        self.now = iso_to_ms(iso)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Run every test from an empty directory with no TABAGE_* overrides."""
    for key in list(os.environ):
        if key.startswith("TABAGE_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def host() -> InMemoryHost:
    return InMemoryHost()


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(kv, clock) -> IdentityStore:
    counter = itertools.count(1)
    return IdentityStore(kv, debounce_s=TEST_DEBOUNCE_S, clock=clock, id_factory=lambda: f"e{next(counter)}")


@pytest.fixture
def resolver(store) -> FingerprintResolver:
    return FingerprintResolver(store)


@pytest.fixture
def reconciler(host, resolver) -> BucketReconciler:
    return BucketReconciler(host, resolver, tz=UTC)
