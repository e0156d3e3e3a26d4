#!/usr/bin/env python3
"""
Rich output helpers shared by the tabage commands.
"""

from __future__ import annotations

from collections.abc import Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

COLOR_ERROR = "red"
COLOR_WARNING = "yellow"
COLOR_INFO = "cyan"


class InfoPanel:
    """Bordered block of ``label: value`` lines."""

    @staticmethod
    def show(title: str, content: str, border_style: str = COLOR_INFO):
        console.print(Panel(content, title=f"[bold]{title}[/bold]", border_style=border_style, box=box.ROUNDED))


def print_table(title: str, columns: Sequence[str], rows: Sequence[Sequence[object]]):
    """
    Print rows under ``columns``. None renders as an empty cell; numeric
    columns (judged by the first row) are right-aligned.
    """
    table = Table(title=title, box=box.ROUNDED, header_style=f"bold {COLOR_INFO}")
    first = rows[0] if rows else ()
    for position, column in enumerate(columns):
        numeric = position < len(first) and isinstance(first[position], int | float)
        table.add_column(column, justify="right" if numeric else "left")
    for row in rows:
        table.add_row(*("" if cell is None else str(cell) for cell in row))
    console.print(table)


def _status(symbol: str, color: str, message: str):
    console.print(f"[bold {color}]{symbol}[/bold {color}] {message}")


def print_error(message: str):
    _status("✗", COLOR_ERROR, message)


def print_warning(message: str):
    _status("⚠", COLOR_WARNING, message)
