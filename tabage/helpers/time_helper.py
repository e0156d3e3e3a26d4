"""Time utility helpers."""

from __future__ import annotations

import time
from datetime import datetime, timedelta, tzinfo


def now_ms() -> int:
    """
    Get current timestamp in milliseconds since epoch.

    Returns:
        Current time as integer milliseconds
    """
    return int(time.time() * 1000)


def local_datetime(ts_ms: int, tz: tzinfo | None = None) -> datetime:
    """Convert epoch milliseconds to an aware datetime in ``tz`` (system local when None)."""
    return datetime.fromtimestamp(ts_ms / 1000, tz=tz).astimezone(tz)


def calendar_days_between(start_ms: int, end_ms: int, tz: tzinfo | None = None) -> int:
    """
    Count local midnights crossed between two timestamps.

    Two timestamps 20 hours apart that straddle local midnight are one day apart;
    two timestamps 23 hours apart on the same local date are zero days apart.
    Negative spans (clock skew, end before start) clamp to 0.

    Args:
        start_ms: Earlier timestamp in epoch milliseconds
        end_ms: Later timestamp in epoch milliseconds
        tz: Timezone whose midnights count; system local when None

    Returns:
        Whole number of calendar days, never negative
    """
    start_day = local_datetime(start_ms, tz).date()
    end_day = local_datetime(end_ms, tz).date()
    return max(0, (end_day - start_day).days)


def next_daily_run_delay_s(hour: int, minute: int, now: datetime | None = None) -> float:
    """
    Seconds from ``now`` until the next local occurrence of hour:minute.

    If that time today is already past (or exactly now), the run rolls forward one day.

    Args:
        hour: Hour of day, 0-23
        minute: Minute of hour, 0-59
        now: Reference time; current local time when None

    Returns:
        Positive delay in seconds
    """
    current = now or datetime.now().astimezone()
    target = current.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if target <= current:
        target += timedelta(days=1)
    return (target - current).total_seconds()


def iso_to_ms(text: str) -> int:
    """
    Parse an ISO 8601 timestamp to epoch milliseconds.

    Naive timestamps are read as system local time.

    Raises:
        ValueError: Not a valid ISO 8601 timestamp
    """
    parsed = datetime.fromisoformat(text.strip())
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return int(parsed.timestamp() * 1000)


def ms_to_iso(ts_ms: int, tz: tzinfo | None = None) -> str:
    return local_datetime(ts_ms, tz).isoformat(timespec="seconds")
