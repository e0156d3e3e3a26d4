"""Bucket definition parsing, migration and validation.

Stored definitions have come in three shapes over time:
- ``{"name": ..., "days": N}``            (options page)
- ``{"name": ..., "min_days": N}``        (threshold form, canonical)
- ``{"name": ..., "minDays": N, "maxDays": M}`` (range form)

All are normalised to threshold form. ``maxDays``/``max_days`` is dropped:
selection always takes the highest threshold at or below the age, so the
upper bound never influences the result.
"""

from __future__ import annotations

import logging
from typing import Any

from tabage.helpers.dto.buckets_dto import BucketDefinition
from tabage.helpers.exceptions import ConfigInvalidError

logger = logging.getLogger(__name__)

DEFAULT_BUCKETS: tuple[BucketDefinition, ...] = (
    BucketDefinition(name="Today", min_days=0),
    BucketDefinition(name="Yesterday", min_days=1),
    BucketDefinition(name="Last Week", min_days=7),
    BucketDefinition(name="Older", min_days=14),
)

_THRESHOLD_KEYS = ("min_days", "minDays", "days")


def _threshold_of(row: dict[str, Any]) -> Any:
    for key in _THRESHOLD_KEYS:
        if key in row:
            return row[key]
    return None


def parse_bucket_definitions(raw: Any) -> list[BucketDefinition]:
    """
    Validate stored bucket rows and convert them to threshold form.

    Raises:
        ConfigInvalidError: With every problem found. Problems include a
            non-list value, an empty list, blank or duplicate names, missing,
            non-integer or negative thresholds and duplicate thresholds.
    """
    if not isinstance(raw, list):
        raise ConfigInvalidError([f"Bucket definitions must be a list, got {type(raw).__name__}"])
    if not raw:
        raise ConfigInvalidError(["At least one bucket definition is required"])

    problems: list[str] = []
    definitions: list[BucketDefinition] = []
    seen_names: set[str] = set()
    seen_days: dict[int, str] = {}

    for position, row in enumerate(raw, start=1):
        if not isinstance(row, dict):
            problems.append(f"Row {position}: expected an object, got {type(row).__name__}")
            continue

        name = str(row.get("name") or "").strip()
        if not name:
            problems.append(f"Row {position}: name is required")
        elif name in seen_names:
            problems.append(f"Row {position}: duplicate name '{name}'")

        threshold = _threshold_of(row)
        if isinstance(threshold, bool) or not isinstance(threshold, int | str):
            problems.append(f"Row {position}: days must be a whole number")
            continue
        try:
            days = int(threshold)
        except ValueError:
            problems.append(f"Row {position}: days must be a whole number, got '{threshold}'")
            continue
        if days < 0:
            problems.append(f"Row {position}: days must not be negative")
            continue
        if days in seen_days:
            problems.append(f"Row {position}: threshold {days} already used by '{seen_days[days]}'")
            continue

        if not name or name in seen_names:
            continue
        seen_names.add(name)
        seen_days[days] = name
        definitions.append(BucketDefinition(name=name, min_days=days))

    if problems:
        raise ConfigInvalidError(problems)
    return definitions


def load_bucket_definitions(raw: Any) -> tuple[list[BucketDefinition], list[str]]:
    """
    Definitions to run with, falling back to the defaults on invalid input.

    Returns:
        Tuple of (definitions, problems). *problems* is empty when the stored
        value was used, or when nothing was stored.
    """
    if raw is None:
        return list(DEFAULT_BUCKETS), []
    try:
        return parse_bucket_definitions(raw), []
    except ConfigInvalidError as exc:
        logger.warning("Invalid bucket definitions, using defaults: %s", exc)
        return list(DEFAULT_BUCKETS), exc.problems
