"""hostsnap CLI application -- Typer-based operator interface.

Provides commands to upload snapshots, list hosts and capture times, compare
two snapshots, and serve the HTTP API.  Commands work directly against the
configured snapshot root and index database; no server is required.
Human-readable output goes to *stderr* via Rich; ``--json`` emits
machine-readable documents on *stdout* so that pipelines can compose cleanly.

Exit codes: 0 success, 1 invalid input or duplicate, 2 not found,
3 storage failure.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import typer
from rich.console import Console
from rich.markup import escape

from cli.display import (
    display_diff,
    display_hosts,
    display_timestamps,
    display_upload_results,
)

if TYPE_CHECKING:
    from snapshot_engine.config import Settings
    from snapshot_engine.store.snapshot_store import SnapshotStore

T = TypeVar("T")

# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="hostsnap",
    help="hostsnap - store and compare host configuration snapshots",
    no_args_is_help=True,
)
console = Console(stderr=True)

from cli.commands.serve import serve_command  # noqa: E402

app.command(name="serve")(serve_command)

# Mutable global options populated by the Typer callback.
_json_output: bool = False

EXIT_OK = 0
EXIT_CLIENT_ERROR = 1
EXIT_NOT_FOUND = 2
EXIT_SERVER_ERROR = 3


# ---------------------------------------------------------------------------
# Callback -- global options
# ---------------------------------------------------------------------------


@app.callback()
def _global_options(
    json_mode: bool = typer.Option(
        False,
        "--json/--no-json",
        help="Emit structured JSON to stdout instead of human-readable output.",
    ),
) -> None:
    """Global options applied to every command."""
    global _json_output  # noqa: PLW0603
    _json_output = json_mode


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, sort_keys=True, default=str))


def _exit_code_for(exc: Exception) -> int:
    """Map a core failure onto the CLI exit code convention."""
    from snapshot_engine.errors import SERVER_ERROR_KINDS, ErrorKind, SnapshotError

    if not isinstance(exc, SnapshotError) or exc.kind in SERVER_ERROR_KINDS:
        return EXIT_SERVER_ERROR
    if exc.kind == ErrorKind.NOT_FOUND:
        return EXIT_NOT_FOUND
    # Malformed input and duplicates.
    return EXIT_CLIENT_ERROR


def _fail(exc: Exception) -> typer.Exit:
    """Report *exc* and return the matching :class:`typer.Exit`."""
    from snapshot_engine.errors import SnapshotError

    code = _exit_code_for(exc)
    if isinstance(exc, SnapshotError):
        message, kind = exc.message, exc.kind.value
    else:
        message, kind = f"{type(exc).__name__}: {exc}", "Error"
    if _json_output:
        _emit_json({"error": kind, "detail": message})
    else:
        colour = "yellow" if code == EXIT_NOT_FOUND else "red"
        console.print(f"[{colour}]{kind}: {escape(message)}[/{colour}]")
    return typer.Exit(code=code)


def _load_core_settings() -> Settings:
    from snapshot_engine.config import load_settings

    return load_settings()


@asynccontextmanager
async def _open_store(settings: Settings) -> AsyncIterator[SnapshotStore]:
    """Yield a store bound to a freshly created index engine."""
    from snapshot_engine.state.database import create_tables, get_engine
    from snapshot_engine.state.index import SQLSnapshotIndex
    from snapshot_engine.store.snapshot_store import SnapshotStore

    engine = get_engine(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    try:
        await create_tables(engine)
        yield SnapshotStore(SQLSnapshotIndex(engine), settings.snapshot_root)
    finally:
        await engine.dispose()


def _run_with_store(operation: Callable[[SnapshotStore], Awaitable[T]]) -> T:
    """Run *operation* against the configured store on a fresh event loop."""
    settings = _load_core_settings()

    async def _main() -> T:
        async with _open_store(settings) as store:
            return await operation(store)

    return asyncio.run(_main())


# ---------------------------------------------------------------------------
# upload
# ---------------------------------------------------------------------------


@app.command()
def upload(
    files: list[Path] = typer.Argument(
        ...,
        help="Snapshot files named host_<ip>_<timestamp>.json.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Store one or more snapshot files under their canonical names.

    Every file is attempted; the exit code reflects the most severe failure.
    """
    from snapshot_engine.errors import SnapshotError
    from snapshot_engine.models.snapshot import SnapshotRecord

    settings = _load_core_settings()
    stored: list[SnapshotRecord] = []
    failures: list[tuple[str, str, int]] = []

    async def _upload_all(store: SnapshotStore) -> None:
        for path in files:
            size = path.stat().st_size
            if size > settings.max_snapshot_bytes:
                failures.append(
                    (path.name, f"exceeds the {settings.max_snapshot_bytes} byte limit", EXIT_CLIENT_ERROR)
                )
                continue
            try:
                with path.open("rb") as fh:
                    stored.append(await store.create(fh, path.name))
            except SnapshotError as exc:
                failures.append((path.name, f"{exc.kind.value}: {exc.message}", _exit_code_for(exc)))

    async def _main() -> None:
        async with _open_store(settings) as store:
            await _upload_all(store)

    try:
        asyncio.run(_main())
    except Exception as exc:
        raise _fail(exc) from exc

    if _json_output:
        from snapshot_engine.parser.timestamps import format_rfc3339

        _emit_json(
            {
                "stored": [
                    {
                        "id": record.id,
                        "host": record.host_identifier,
                        "captured_at": format_rfc3339(record.captured_at),
                        "filename": record.original_name,
                    }
                    for record in stored
                ],
                "failed": [{"filename": name, "detail": reason} for name, reason, _ in failures],
            }
        )
    else:
        display_upload_results(console, stored, [(name, reason) for name, reason, _ in failures])

    if failures:
        raise typer.Exit(code=max(code for _, _, code in failures))


# ---------------------------------------------------------------------------
# hosts / timestamps
# ---------------------------------------------------------------------------


@app.command()
def hosts() -> None:
    """List every host with at least one stored snapshot."""

    async def _list(store: SnapshotStore) -> set[str]:
        return await store.list_hosts()

    try:
        known = sorted(_run_with_store(_list))
    except Exception as exc:
        raise _fail(exc) from exc

    if _json_output:
        _emit_json(known)
    else:
        display_hosts(console, known)


@app.command()
def timestamps(
    host: str = typer.Argument(..., help="Host IP address."),
) -> None:
    """List a host's snapshot capture times, oldest first."""

    async def _list(store: SnapshotStore) -> list[str]:
        return await store.list_snapshot_timestamps(host)

    try:
        captured = _run_with_store(_list)
    except Exception as exc:
        raise _fail(exc) from exc

    if _json_output:
        _emit_json(captured)
    else:
        display_timestamps(console, host, captured)


# ---------------------------------------------------------------------------
# diff
# ---------------------------------------------------------------------------


@app.command()
def diff(
    host: str = typer.Argument(..., help="Host IP address."),
    first: str = typer.Argument(..., metavar="T1", help="RFC 3339 capture time of the first snapshot."),
    second: str = typer.Argument(..., metavar="T2", help="RFC 3339 capture time of the second snapshot."),
    plain: bool = typer.Option(
        False,
        "--plain",
        help="Use bracketed text markers instead of terminal colours.",
    ),
) -> None:
    """Compare two snapshots of HOST taken at T1 and T2."""
    from snapshot_engine.diff.json_diff import JSONDiffEngine
    from snapshot_engine.models.diff import DiffMarkers

    settings = _load_core_settings()
    ansi = not (plain or _json_output)
    engine = JSONDiffEngine(
        markers=DiffMarkers.console() if ansi else DiffMarkers.plain(),
        max_depth=settings.diff_max_depth,
    )

    async def _resolve(store: SnapshotStore) -> tuple[str, str]:
        return (
            await store.resolve_location(host, first),
            await store.resolve_location(host, second),
        )

    try:
        location_a, location_b = _run_with_store(_resolve)
        result = engine.compare(location_a, location_b)
    except Exception as exc:
        raise _fail(exc) from exc

    if _json_output:
        _emit_json({"DiffStatus": result.status.value, "Differences": result.explanation})
    else:
        display_diff(console, result, ansi=ansi)
