"""
Config domain DTOs.

Rules:
- Import only stdlib and typing (plus sibling DTO modules)
- Pure data structures only (no I/O, no validation logic)
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .buckets_dto import BucketDefinition


@dataclass
class EngineSettings:
    """Effective, validated engine settings.

    ``config_errors`` holds problems found in the user's stored settings. When it is
    non-empty the affected values have already been replaced by defaults.
    """

    bucket_definitions: list[BucketDefinition]
    scheduled_hour: int = 4
    scheduled_minute: int = 0
    sort_on_startup: bool = True
    db_path: str = "./config/tabage.db"
    config_errors: list[str] = field(default_factory=list)
