"""FastAPI application entry-point for the host snapshot service."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from snapshot_engine.config import PlatformEnv
from snapshot_engine.errors import CLIENT_ERROR_KINDS, SERVER_ERROR_KINDS, ErrorKind, SnapshotError
from snapshot_engine.state.database import create_tables
from sqlalchemy.exc import SQLAlchemyError

from api import __version__
from api.config import load_api_settings
from api.dependencies import dispose_services, get_core_settings, get_settings, init_services
from api.middleware.logging import RequestLoggingMiddleware
from api.routers import health, hosts, snapshots

logger = logging.getLogger(__name__)

# HTTP status per error kind.  NotFound is an absence, not a failure.
_STATUS_BY_KIND: dict[ErrorKind, int] = {
    **{kind: 400 for kind in CLIENT_ERROR_KINDS},
    **{kind: 500 for kind in SERVER_ERROR_KINDS},
    ErrorKind.DUPLICATE_SNAPSHOT: 409,
    ErrorKind.NOT_FOUND: 204,
}


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup / shutdown lifecycle.

    On startup:
    - Initialise the index engine, snapshot store, and diff engine.
    - Create index tables if they do not exist (dev or local SQLite).
    - Switch to JSON logging when requested.

    On shutdown:
    - Dispose the engine connection pool.
    """
    settings = get_settings()
    core_settings = get_core_settings()

    engine = init_services(core_settings)
    is_local = core_settings.is_local_index()
    logger.info(
        "Snapshot services initialised (%s index, root=%s)",
        "local" if is_local else "postgres",
        core_settings.snapshot_root,
    )

    if core_settings.env == PlatformEnv.DEV or is_local:
        await create_tables(engine)

    if settings.structured_logging or core_settings.structured_logging:
        from api.middleware.json_formatter import install_json_logging

        install_json_logging()
        logger.info("Structured JSON logging enabled")

    yield

    await dispose_services()
    logger.info("Application shutdown complete")


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Construct and configure the FastAPI application."""
    settings = load_api_settings()

    app = FastAPI(
        title="Host Snapshot API",
        description="Ingest, index, and compare host configuration snapshots.",
        version=__version__,
        lifespan=lifespan,
    )

    # -- Middleware (last added runs outermost) ------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Accept", "Content-Type", "X-Correlation-ID"],
        expose_headers=["X-Correlation-ID"],
        max_age=300,
    )
    app.add_middleware(RequestLoggingMiddleware)

    # -- Routers -------------------------------------------------------------

    app.include_router(health.router, prefix="/api")
    app.include_router(hosts.router, prefix="/api")
    app.include_router(snapshots.router, prefix="/api")

    # -- Exception handlers --------------------------------------------------

    @app.exception_handler(SnapshotError)
    async def snapshot_error_handler(request: Request, exc: SnapshotError) -> Response:
        status_code = _STATUS_BY_KIND.get(exc.kind, 500)
        if status_code == 204:
            return Response(status_code=204)
        if status_code >= 500:
            logger.error("%s on %s: %s", exc.kind.value, request.url.path, exc.message)
        else:
            logger.warning("%s on %s: %s", exc.kind.value, request.url.path, exc.message)
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "kind": exc.kind.value},
        )

    @app.exception_handler(TimeoutError)
    async def timeout_error_handler(request: Request, exc: TimeoutError) -> JSONResponse:
        logger.error("Index lookup timed out on %s", request.url.path)
        return JSONResponse(status_code=504, content={"detail": "Index lookup timed out"})

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("Database error: %s", exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal database error"},
        )

    return app


# Module-level application instance used by ``uvicorn api.main:app``.
app = create_app()
