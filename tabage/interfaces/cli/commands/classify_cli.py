"""
Classify command: show which bucket a creation time falls into.
"""

from __future__ import annotations

import argparse
import asyncio

from tabage.components.buckets.age_classifier_comp import age_in_days, select_bucket
from tabage.helpers.exceptions import StorageError
from tabage.helpers.time_helper import iso_to_ms, now_ms
from tabage.interfaces.cli.cli_ui import InfoPanel, print_error
from tabage.services.cli_bootstrap_svc import get_config_service, get_database


def cmd_classify(args: argparse.Namespace) -> int:
    """Classify ``--created`` (evaluated at ``--now``, default current time) against the configured buckets."""
    try:
        created = iso_to_ms(args.created)
        now = iso_to_ms(args.now) if getattr(args, "now", None) else now_ms()
    except ValueError as e:
        print_error(f"Invalid timestamp: {e}")
        return 2

    db = get_database()
    try:
        settings = asyncio.run(get_config_service(db).load())
    except StorageError as e:
        print_error(f"Could not read settings: {e}")
        return 1
    finally:
        db.close()

    age = age_in_days(created, now)
    bucket = select_bucket(age, settings.bucket_definitions)
    content = f"""[bold]Age:[/bold] {age} day(s)
[bold]Bucket:[/bold] {bucket.name if bucket else "(none, below every threshold)"}"""
    InfoPanel.show("Classification", content, "green" if bucket else "yellow")
    return 0
