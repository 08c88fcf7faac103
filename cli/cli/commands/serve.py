"""``hostsnap serve`` -- run the snapshot HTTP service.

Starts the FastAPI application under uvicorn against the configured snapshot
root and index database.  With the default settings this needs no external
services: the index is a SQLite file under ``.hostsnap/``.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

logger = logging.getLogger(__name__)


def serve_command(
    host: str | None = typer.Option(
        None,
        "--host",
        help="Host to bind to (defaults to API_HOST).",
    ),
    port: int | None = typer.Option(
        None,
        "--port",
        "-p",
        help="Port to listen on (defaults to API_PORT).",
    ),
    reload: bool = typer.Option(
        False,
        "--reload",
        help="Enable auto-reload on code changes.",
    ),
) -> None:
    """Serve the snapshot upload, lookup, and diff endpoints over HTTP."""
    console = Console(stderr=True)

    from api.config import load_api_settings
    from snapshot_engine.config import load_settings

    api_settings = load_api_settings()
    core_settings = load_settings()
    bind_host = host or api_settings.host
    bind_port = port or api_settings.port

    console.print(
        Panel(
            _build_services_table(bind_host, bind_port, str(core_settings.snapshot_root), core_settings.database_url),
            title="Host Snapshot Service",
            border_style="blue",
        )
    )

    try:
        import uvicorn

        uvicorn_config = uvicorn.Config(
            "api.main:app",
            host=bind_host,
            port=bind_port,
            reload=reload,
            log_level="debug" if api_settings.debug else "info",
            access_log=False,
        )
        server = uvicorn.Server(uvicorn_config)

        console.print(f"[green]✓[/green] API server starting on http://{bind_host}:{bind_port}")
        console.print(f"[green]✓[/green] OpenAPI docs at http://{bind_host}:{bind_port}/docs")

        server.run()

    except KeyboardInterrupt:
        console.print("[yellow]Server stopped.[/yellow]")
    except Exception as exc:
        logger.debug("Server exited with an error", exc_info=True)
        console.print(f"[red]Server error: {exc}[/red]")
        raise typer.Exit(code=3) from exc


def _build_services_table(host: str, port: int, snapshot_root: str, database_url: str) -> Table:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("API", f"http://{host}:{port}/api")
    table.add_row("Snapshots", snapshot_root)
    table.add_row("Index", database_url.split("://", 1)[0])
    return table
