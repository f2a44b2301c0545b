"""Shared utility functions for rails-prepper.

Provides blocking command execution, Rich-based console output (Thor-style
status lines, stage headers, summary tables) and small name helpers.
Every command runs to completion before the next one starts.
"""

from __future__ import annotations

import os
import re
import shlex
import subprocess
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

console = Console()


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PrepperError(Exception):
    """Base class for errors that abort a template run."""


class CommandError(PrepperError):
    """Raised when a subprocess exits with a non-zero status."""

    def __init__(
        self,
        message: str,
        command: str = "",
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


# ---------------------------------------------------------------------------
# Command execution
# ---------------------------------------------------------------------------


def run_command(
    cmd: str | list[str],
    cwd: str | Path | None = None,
    timeout: int = 600,
    capture: bool = True,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command and block until it exits.

    Args:
        cmd: Shell command string or list of arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        capture: Whether to capture stdout/stderr (if ``False`` they inherit
            the parent's streams).
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  If *capture* is ``False``
        the stdout/stderr strings will be empty.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    try:
        completed = subprocess.run(
            cmd,
            shell=isinstance(cmd, str),
            cwd=str(cwd) if cwd else None,
            env=merged_env,
            capture_output=capture,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return (-1, "", f"Command timed out after {timeout}s: {format_command(cmd)}")

    stdout_str = (completed.stdout or "").strip()
    stderr_str = (completed.stderr or "").strip()
    return (completed.returncode, stdout_str, stderr_str)


def format_command(cmd: str | list[str]) -> str:
    """Return *cmd* as a single printable shell line."""
    if isinstance(cmd, str):
        return cmd
    return " ".join(shlex.quote(part) for part in cmd)


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def sanitize_name(name: str) -> str:
    """Convert an application directory name to a snake_case identifier.

    Examples::

        sanitize_name("my-shop") -> "my_shop"
        sanitize_name("  Blog App  ") -> "blog_app"
    """
    result = re.sub(r"[^a-zA-Z0-9_]", "_", name.strip().lower())
    result = re.sub(r"_+", "_", result)
    return result.strip("_")


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------

# Colours accepted by ``say``; mirrors the names a template author would use.
SAY_COLORS: dict[str, str] = {
    "red": "bold red",
    "green": "bold green",
    "yellow": "bold yellow",
    "blue": "bold blue",
    "cyan": "cyan",
    "magenta": "magenta",
}

STATUS_COLORS: dict[str, str] = {
    "create": "green",
    "insert": "green",
    "append": "green",
    "force": "yellow",
    "identical": "blue",
    "unchanged": "red",
    "skip": "yellow",
    "conflict": "red",
    "run": "green",
    "generate": "green",
    "rails": "green",
    "git": "green",
    "bundle": "green",
    "remove": "red",
}


def say(message: str = "", color: str | None = None) -> None:
    """Print a plain message, optionally coloured (``"red"``, ``"green"`` ...)."""
    style = SAY_COLORS.get(color or "", color)
    if style:
        console.print(message, style=style, markup=False, highlight=False)
    else:
        console.print(message, markup=False, highlight=False)


def say_status(status: str, message: str, color: str | None = None) -> None:
    """Print a right-aligned status word followed by *message*.

    Matches the look of a generator log::

              create  config/puma.rb
              insert  spec/rails_helper.rb
    """
    style = color or STATUS_COLORS.get(status, "white")
    console.print(
        f"[bold {style}]{status:>12}[/bold {style}]  {escape(message)}",
        highlight=False,
    )


def print_stage_header(name: str) -> None:
    """Print a full-width rule announcing a stage of the run."""
    console.print()
    console.print(Rule(f"[bold bright_cyan] {name} [/bold bright_cyan]", style="bright_cyan"))
    console.print()


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")
