#!/usr/bin/env python3
"""
Main CLI entry point with argument parser and command dispatch.
"""

from __future__ import annotations

import argparse

from tabage.interfaces.cli.commands.buckets_cli import cmd_buckets
from tabage.interfaces.cli.commands.classify_cli import cmd_classify
from tabage.interfaces.cli.commands.entries_cli import cmd_entries
from tabage.interfaces.cli.commands.serve_cli import cmd_serve


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    p = argparse.ArgumentParser(
        prog="tabage",
        description="Tabage - group browser tabs by how long ago they were opened",
        epilog="Examples:\n"
        "  tabage buckets                             # Show bucket thresholds and schedule\n"
        "  tabage entries --limit 20                  # Oldest 20 tracked tabs\n"
        "  tabage classify --created 2024-05-01T09:00 # Which bucket a tab opened then is in\n"
        "  tabage serve --port 8357                   # HTTP API over a sandbox host",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    sub = p.add_subparsers(
        dest="cmd",
        title="commands",
        description="Available commands (use 'tabage <command> --help' for command-specific help)",
    )

    # buckets: Effective bucket definitions
    s = sub.add_parser("buckets", help="Show bucket definitions, schedule and config problems")
    s.set_defaults(func=cmd_buckets)

    # entries: Tracked tabs
    s = sub.add_parser("entries", help="List tracked tabs with age and bucket")
    s.add_argument("--limit", type=int, default=None, help="show at most this many entries (oldest first)")
    s.set_defaults(func=cmd_entries)

    # classify: Bucket for a timestamp
    s = sub.add_parser("classify", help="Show the bucket for a creation time")
    s.add_argument("--created", required=True, help="creation time, ISO 8601 (naive = local time)")
    s.add_argument("--now", default=None, help="evaluation time, ISO 8601 (default: now)")
    s.set_defaults(func=cmd_classify)

    # serve: HTTP API
    s = sub.add_parser("serve", help="Run the HTTP API over a sandbox in-memory host")
    s.add_argument("--host", default=None, help="bind address (default 127.0.0.1)")
    s.add_argument("--port", type=int, default=None, help="bind port (default 8357)")
    s.add_argument(
        "--reason",
        choices=["install", "startup"],
        default="startup",
        help="start as a first install (seeds open tabs) or a normal startup",
    )
    s.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    s.set_defaults(func=cmd_serve)

    return p


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # If no command provided, show help
    if args.cmd is None:
        parser.print_help()
        return 0

    result: int = args.func(args)
    return result


if __name__ == "__main__":
    raise SystemExit(main())
