"""Age classifier component.

Pure functions: no host access, no store access.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import tzinfo

from tabage.helpers.dto.buckets_dto import BucketDefinition, EntrySummary
from tabage.helpers.dto.tracking_dto import TrackedEntry
from tabage.helpers.time_helper import calendar_days_between


def age_in_days(created_at: int, now: int, tz: tzinfo | None = None) -> int:
    """Age in local calendar days; crossing one local midnight makes a resource one day old."""
    return calendar_days_between(created_at, now, tz)


def select_bucket(age_days: int, definitions: Sequence[BucketDefinition]) -> BucketDefinition | None:
    """
    Pick the definition with the largest ``min_days`` not above ``age_days``.

    Returns None when every threshold is above the age; the resource then
    stays unbucketed rather than being forced into the smallest bucket.
    """
    best: BucketDefinition | None = None
    for definition in definitions:
        if definition.min_days <= age_days and (best is None or definition.min_days > best.min_days):
            best = definition
    return best


def classify(
    created_at: int,
    now: int,
    definitions: Sequence[BucketDefinition],
    tz: tzinfo | None = None,
) -> BucketDefinition | None:
    """Bucket for a resource first seen at ``created_at`` (epoch ms), evaluated at ``now``."""
    return select_bucket(age_in_days(created_at, now, tz), definitions)


def summarize_entries(
    entries: Sequence[TrackedEntry],
    definitions: Sequence[BucketDefinition],
    now: int,
    tz: tzinfo | None = None,
) -> list[EntrySummary]:
    """Age and bucket for each entry, oldest first."""
    summaries = []
    for entry in sorted(entries, key=lambda e: (e.created_at, e.id)):
        age = age_in_days(entry.created_at, now, tz)
        bucket = select_bucket(age, definitions)
        summaries.append(
            EntrySummary(
                entry_id=entry.id,
                created_at=entry.created_at,
                age_days=age,
                bucket_name=bucket.name if bucket else None,
                transient_ref=entry.transient_ref,
                locator=entry.fingerprint.locator,
            )
        )
    return summaries
