"""Shared utility functions for jekyllized.

Provides async command execution, JSON output, slug helpers and Rich-based
console reporting.  Everything that prints to the terminal goes through the
module-level ``console`` so tests can capture or silence it in one place.
"""

from __future__ import annotations

import asyncio
import json
import re
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously and wait for it to finish.

    Args:
        cmd: Executable followed by its arguments.
        cwd: Working directory for the child process.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.

    Raises:
        FileNotFoundError: If the executable does not exist.
    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=str(cwd) if cwd else None,
    )
    stdout_bytes, stderr_bytes = await process.communicate()

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def slugify(value: str) -> str:
    """Convert a string to a URL/filename-safe slug.

    Examples::

        slugify("My Jekyll Site") -> "my-jekyll-site"
        slugify("  Blog (2024)  ") -> "blog-2024"
    """
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower().strip())
    return slug.strip("-")


def compact_name(value: str | None) -> str:
    """Lowercase *value* and drop all whitespace (``"Jane Doe"`` -> ``"janedoe"``)."""
    if not value:
        return ""
    return re.sub(r"\s", "", value.lower())


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def dump_json(data: dict[str, Any] | list[Any]) -> str:
    """Serialise *data* the way npm writes ``package.json`` (2-space indent)."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
        format_duration(3661.0) -> "1h 1m 1s"
    """
    if seconds < 0:
        return "0.0s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    if hours > 0 or minutes > 0:
        parts.append(f"{int(secs)}s")
    else:
        parts.append(f"{secs:.1f}s")

    return " ".join(parts)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


STAGE_NAMES: dict[int, str] = {
    1: "TEXT FILES",
    2: "BINARY FILES",
    3: "GITIGNORE",
    4: "CNAME",
    5: "MANIFEST",
}

STAGE_COLORS: dict[int, str] = {
    1: "bright_cyan",
    2: "bright_green",
    3: "bright_yellow",
    4: "bright_magenta",
    5: "bright_blue",
}


def print_stage_header(stage: int, name: str) -> None:
    """Print a full-width rule announcing a pipeline stage."""
    color = STAGE_COLORS.get(stage, "white")
    console.print(
        Rule(
            f"[bold {color}] Stage {stage}: {name.upper()} [/bold {color}]",
            style=color,
        )
    )


def print_summary_table(data: dict[str, Any], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(escape(key), "" if value is None else escape(str(value)))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
