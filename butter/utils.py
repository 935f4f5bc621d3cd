"""Shared utility functions for butter.

Provides async command execution, JSON I/O, slug normalisation, file-system
helpers and Rich-based console reporting.  Every operation in the package
reports through the single module-level ``console`` so output stays
consistent and can be captured in tests.
"""

from __future__ import annotations

import asyncio
import json
import os
import re
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()

PREFIX = "[yellow]\\[butter][/yellow]"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ButterError(Exception):
    """Base class for every error butter reports to the user."""


class ConfigError(ButterError):
    """Raised when the configuration document cannot be read or is incomplete."""


class RunnerError(ButterError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, message: str, command: str = "", stderr: str = "") -> None:
        self.command = command
        self.stderr = stderr
        super().__init__(message)


# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


def _merge_env(env: dict[str, str] | None) -> dict[str, str] | None:
    if not env:
        return None
    return {**os.environ, **env}


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously and wait for it to finish.

    Args:
        cmd: Executable and arguments.
        cwd: Working directory for the child process.
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.
    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=str(cwd) if cwd else None,
        env=_merge_env(env),
    )
    stdout_bytes, stderr_bytes = await process.communicate()

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


async def run_command_streaming(
    cmd: list[str],
    cwd: str | Path | None = None,
    env: dict[str, str] | None = None,
) -> AsyncIterator[str]:
    """Run a command and yield stdout lines as they arrive.

    The generator finishes when the process exits.  If the consumer stops
    early (or the surrounding task is cancelled) the child is killed.

    Yields:
        Individual lines of stdout (without trailing newlines).

    Raises:
        RunnerError: If the process exits on its own with a non-zero status.
    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
        cwd=str(cwd) if cwd else None,
        env=_merge_env(env),
    )

    assert process.stdout is not None  # guaranteed by PIPE

    try:
        while True:
            line_bytes = await process.stdout.readline()
            if not line_bytes:
                break
            yield line_bytes.decode("utf-8", errors="replace").rstrip("\n")
        returncode = await process.wait()
    finally:
        if process.returncode is None:
            process.kill()
            await process.wait()

    if returncode != 0:
        command = " ".join(cmd)
        raise RunnerError(f"`{command}` exited with status {returncode}", command=command)


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def slugify(name: str) -> str:
    """Convert an arbitrary user-supplied name to a path-safe slug.

    * Lowercases the input.
    * Collapses every run of non-alphanumeric characters into one hyphen.
    * Strips leading/trailing hyphens.

    Examples::

        slugify("Btn Primary!") -> "btn-primary"
        slugify("  Card__Header ") -> "card-header"
    """
    result = re.sub(r"[^a-z0-9]+", "-", name.strip().lower())
    return result.strip("-")


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def load_json_list(path: str | Path) -> list[Any]:
    """Load a JSON file that contains a top-level array.

    Returns an empty list if the file does not exist.  Malformed content
    raises ``json.JSONDecodeError``.
    """
    file_path = Path(path)
    if not file_path.exists():
        return []
    raw = file_path.read_text(encoding="utf-8")
    data = json.loads(raw)
    if isinstance(data, list):
        return data
    return [data]


def dump_json(data: dict[str, Any] | list[Any]) -> str:
    """Serialise *data* as pretty-printed JSON with a trailing newline."""
    return json.dumps(data, indent=2, ensure_ascii=False, default=str) + "\n"


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def write_text(path: Path, content: str) -> None:
    """Create parent dirs and write *content* to *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def has_visible_entries(path: Path) -> bool:
    """Return ``True`` if *path* holds anything other than dot-files."""
    if not path.is_dir():
        return False
    return any(not entry.name.startswith(".") for entry in path.iterdir())


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_info(message: str) -> None:
    """Print a plain status line."""
    console.print(f"{PREFIX} {escape(message)}")


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"{PREFIX} [bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"{PREFIX} [bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"{PREFIX} [bold yellow]{escape(message)}[/bold yellow]")


def print_summary_table(rows: list[tuple[str, str]], title: str, columns: tuple[str, str]) -> None:
    """Print a two-column table.

    Args:
        rows: ``(left, right)`` pairs.
        title: Table title.
        columns: Header labels for the two columns.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column(columns[0], style="dim", no_wrap=True)
    table.add_column(columns[1])

    for left, right in rows:
        table.add_row(left, str(right))

    console.print(table)
