"""
Helpers package.
"""

from .exceptions import (
    ConfigInvalidError,
    HostOperationFailedError,
    NotFoundError,
    StaleReferenceError,
    StorageError,
    TabageError,
)
from .time_helper import calendar_days_between, iso_to_ms, ms_to_iso, next_daily_run_delay_s, now_ms

__all__ = [
    "ConfigInvalidError",
    "HostOperationFailedError",
    "NotFoundError",
    "StaleReferenceError",
    "StorageError",
    "TabageError",
    "calendar_days_between",
    "iso_to_ms",
    "ms_to_iso",
    "next_daily_run_delay_s",
    "now_ms",
]
