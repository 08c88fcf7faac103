"""Rich output formatting for the hostsnap CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that machine-readable output on *stdout* is never
polluted with human-readable decoration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from snapshot_engine.models.diff import DiffResult
    from snapshot_engine.models.snapshot import SnapshotRecord


# ---------------------------------------------------------------------------
# Status colour mapping
# ---------------------------------------------------------------------------

_STATUS_COLOURS: dict[str, str] = {
    "FullMatch": "green",
    "SupersetMatch": "cyan",
    "NoMatch": "yellow",
    "FirstArgIsInvalidJson": "red",
    "SecondArgIsInvalidJson": "red",
    "BothArgsAreInvalidJson": "red",
    "Invalid": "red",
    "stored": "green",
    "failed": "red",
}


def _coloured_status(status: str) -> str:
    """Return a Rich markup string with the status colour-coded."""
    colour = _STATUS_COLOURS.get(status, "white")
    return f"[{colour}]{status}[/{colour}]"


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------


def display_upload_results(
    console: Console,
    stored: list[SnapshotRecord],
    failures: list[tuple[str, str]],
) -> None:
    """Render one row per uploaded file.

    Parameters
    ----------
    console:
        Rich console to write to (typically stderr).
    stored:
        Records created for the files that were accepted.
    failures:
        ``(filename, reason)`` pairs for the files that were rejected.
    """
    table = Table(title="Snapshot Upload", show_lines=False)
    table.add_column("File", style="bold")
    table.add_column("Host")
    table.add_column("Captured At")
    table.add_column("Status")

    from snapshot_engine.parser.timestamps import format_rfc3339

    for record in stored:
        table.add_row(
            record.original_name,
            record.host_identifier,
            format_rfc3339(record.captured_at),
            _coloured_status("stored"),
        )
    for filename, reason in failures:
        table.add_row(escape(filename), "-", "-", f"{_coloured_status('failed')} {escape(reason)}")

    console.print(table)
    console.print(f"[dim]{len(stored)} stored, {len(failures)} failed[/dim]")


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


def display_hosts(console: Console, hosts: list[str]) -> None:
    """Render the known hosts as a single-column table."""
    if not hosts:
        console.print("[dim]No snapshots have been stored yet.[/dim]")
        return

    table = Table(title=f"Hosts ({len(hosts)})")
    table.add_column("Host", style="bold")
    for host in hosts:
        table.add_row(host)
    console.print(table)


def display_timestamps(console: Console, host: str, timestamps: list[str]) -> None:
    """Render a host's snapshot capture times, oldest first.

    Each row also shows the canonical ``Z`` filename for that capture.
    """
    from snapshot_engine.parser.filename_codec import encode
    from snapshot_engine.parser.timestamps import parse_rfc3339

    if not timestamps:
        console.print(f"[dim]No snapshots stored for host {escape(host)}.[/dim]")
        return

    table = Table(title=f"Snapshots for {escape(host)}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Captured At")
    table.add_column("Canonical Name", style="dim")
    for position, timestamp in enumerate(timestamps, start=1):
        table.add_row(str(position), timestamp, encode(host, parse_rfc3339(timestamp)))
    console.print(table)


# ---------------------------------------------------------------------------
# Diff
# ---------------------------------------------------------------------------


def display_diff(console: Console, result: DiffResult, *, ansi: bool) -> None:
    """Render a comparison outcome with its annotated explanation.

    Explanations are wrapped in :class:`rich.text.Text` so that bracketed
    markers are never interpreted as Rich markup.  When *ansi* is set the
    explanation carries ANSI colour escapes and is decoded accordingly.
    """
    console.print(
        Panel(
            _coloured_status(result.status.value),
            title="Diff Status",
            border_style="blue",
            expand=False,
        )
    )
    if not result.explanation:
        return
    body = Text.from_ansi(result.explanation) if ansi else Text(result.explanation)
    console.print(body)
