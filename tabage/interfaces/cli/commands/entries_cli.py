"""
Entries command: list persisted tracked tabs with their age and bucket.

Architecture:
- Uses CLI bootstrap service for the identity store and config
- Reads the store only; never writes
"""

from __future__ import annotations

import argparse
import asyncio

from tabage.components.buckets.age_classifier_comp import summarize_entries
from tabage.helpers.exceptions import StorageError
from tabage.helpers.time_helper import ms_to_iso, now_ms
from tabage.interfaces.cli.cli_ui import print_error, print_table, print_warning
from tabage.services.cli_bootstrap_svc import get_config_service, get_database, get_identity_store


def cmd_entries(args: argparse.Namespace) -> int:
    """Print every tracked entry, oldest first."""
    db = get_database()
    try:
        settings = asyncio.run(get_config_service(db).load())
        store = get_identity_store(db)
        asyncio.run(store.load())
    except StorageError as e:
        print_error(f"Could not read tracked entries: {e}")
        return 1
    finally:
        db.close()

    entries = store.all()
    if not entries:
        print_warning("No tracked tabs")
        return 0

    limit = getattr(args, "limit", None)
    summaries = summarize_entries(entries, settings.bucket_definitions, now_ms())
    if limit:
        summaries = summaries[:limit]

    rows = [
        (
            s.entry_id[:8],
            ms_to_iso(s.created_at),
            s.age_days,
            s.bucket_name or "-",
            s.transient_ref,
            s.locator or "(unknown)",
        )
        for s in summaries
    ]
    print_table(f"Tracked tabs ({len(entries)})", ["Id", "Created", "Age (days)", "Bucket", "Tab", "URL"], rows)
    return 0
