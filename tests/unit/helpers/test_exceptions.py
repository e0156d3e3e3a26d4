"""Unit tests for the shared exception hierarchy."""

from __future__ import annotations

import pytest

from tabage.helpers.exceptions import (
    ConfigInvalidError,
    HostOperationFailedError,
    NotFoundError,
    StaleReferenceError,
    StorageError,
    TabageError,
)


@pytest.mark.unit
def test_all_derive_from_tabage_error() -> None:
    for exc_type in (NotFoundError, StaleReferenceError, HostOperationFailedError, ConfigInvalidError, StorageError):
        assert issubclass(exc_type, TabageError)


@pytest.mark.unit
def test_stale_reference_is_a_not_found() -> None:
    exc = StaleReferenceError(42)
    assert isinstance(exc, NotFoundError)
    assert exc.ref == 42
    assert "42" in str(exc)


@pytest.mark.unit
def test_config_invalid_keeps_every_problem() -> None:
    exc = ConfigInvalidError(["Row 1: name is required", "Row 2: days must not be negative"])
    assert exc.problems == ["Row 1: name is required", "Row 2: days must not be negative"]
    assert "Row 2" in str(exc)
