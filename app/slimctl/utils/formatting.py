"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

if TYPE_CHECKING:
    from slimctl.cleanup.models import RemovalResult

THEME = Theme(
    {
        "text": "#ffffff",
        "muted": "#b2bec3",
        "bold_header": "bold #69B9A1",
        "border": "#29526d",
        "success": "#03b971",
        "warning": "#f5b332",
        "error": "#f53263",
        "info": "#0ec1c8",
        "outcome.deleted": "#03b971",
        "outcome.trashed": "#0e8ac8",
        "outcome.skipped": "#b2bec3",
        "outcome.failed": "#f53263",
    }
)


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances
console = Console(theme=THEME, color_system=_detect_color_system())
err_console = Console(theme=THEME, stderr=True, color_system=_detect_color_system())


def format_size(size: int) -> str:
    """Format a byte count for humans (e.g. ``1.5 MB``)."""
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TB"


def create_result_table(results: list[RemovalResult], title: str = "Removal Results") -> Table:
    """Create a table listing one removal result per row.

    Args:
        results: Results to display.
        title: Table title.

    Returns:
        Rich Table with path, outcome, reclaimed size and error columns.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    table.add_column("Path", no_wrap=True)
    table.add_column("Outcome")
    table.add_column("Reclaimed", style="info", justify="right")
    table.add_column("Error", style="error", overflow="ellipsis")

    for result in results:
        outcome = result.outcome.value
        if result.used_fallback:
            outcome += " (root)"
        table.add_row(
            result.path,
            f"[outcome.{result.outcome.value}]{outcome}[/]",
            format_size(result.reclaimed_bytes),
            result.error or "",
        )
    return table


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
