"""
Buckets command: show the effective bucket definitions and schedule.

Architecture:
- Uses CLI bootstrap service to get a ConfigService over the engine's database
- Does NOT depend on a running Application (separate process)
"""

from __future__ import annotations

import argparse
import asyncio

from tabage.helpers.exceptions import StorageError
from tabage.interfaces.cli.cli_ui import InfoPanel, print_error, print_table, print_warning
from tabage.services.cli_bootstrap_svc import get_config_service, get_database


def cmd_buckets(args: argparse.Namespace) -> int:
    """
    Print bucket thresholds in order plus the daily sort time.
    Problems in the stored settings are shown as warnings; the defaults they fell back to are listed.
    """
    db = get_database()
    try:
        settings = asyncio.run(get_config_service(db).load())
    except StorageError as e:
        print_error(f"Could not read settings: {e}")
        return 1
    finally:
        db.close()

    ordered = sorted(settings.bucket_definitions, key=lambda d: d.min_days)
    rows = [(d.name, d.min_days, _range_label(d.min_days, ordered)) for d in ordered]
    print_table("Buckets", ["Name", "Min days", "Covers"], rows)

    content = f"""[bold]Daily sort:[/bold] {settings.scheduled_hour:02d}:{settings.scheduled_minute:02d}
[bold]Sort on startup:[/bold] {"yes" if settings.sort_on_startup else "no"}
[bold]Database:[/bold] {settings.db_path}"""
    InfoPanel.show("Schedule", content)

    for problem in settings.config_errors:
        print_warning(problem)
    return 0


def _range_label(min_days: int, ordered: list) -> str:
    later = [d.min_days for d in ordered if d.min_days > min_days]
    if not later:
        return f"{min_days}+ days"
    upper = later[0] - 1
    if upper == min_days:
        return f"{min_days} day" + ("" if min_days == 1 else "s")
    return f"{min_days}-{upper} days"
