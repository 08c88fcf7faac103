"""Shared fixtures for snapshot API tests.

Builds the application with :func:`create_app` and replaces the lifespan-owned
services with a real store and SQLite index rooted in ``tmp_path``.  The
httpx ``ASGITransport`` does not run the lifespan, so every dependency the
routers use is overridden here.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from snapshot_engine.config import Settings
from snapshot_engine.diff.json_diff import JSONDiffEngine
from snapshot_engine.state.database import create_tables
from snapshot_engine.state.index import SQLSnapshotIndex
from snapshot_engine.state.sqlite_adapter import get_local_engine
from snapshot_engine.store.snapshot_store import SnapshotStore
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from api.config import APISettings
from api.dependencies import (
    get_core_settings,
    get_db_session,
    get_diff_engine,
    get_settings,
    get_store,
)
from api.main import create_app

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def api_settings() -> APISettings:
    return APISettings(_env_file=None, index_timeout_seconds=2.0)  # type: ignore[call-arg]


@pytest.fixture
def core_settings(tmp_path: Path) -> Settings:
    return Settings(  # type: ignore[call-arg]
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'index.db'}",
        snapshot_root=tmp_path / "snapshots",
        max_snapshot_bytes=1024,
    )


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine(core_settings: Settings):
    eng = get_local_engine(core_settings.database_url.split("///", 1)[-1])
    await create_tables(eng)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def store(engine, core_settings: Settings) -> SnapshotStore:
    return SnapshotStore(SQLSnapshotIndex(engine), core_settings.snapshot_root)


@pytest.fixture
def diff_engine() -> JSONDiffEngine:
    return JSONDiffEngine()


# ---------------------------------------------------------------------------
# Application & client
# ---------------------------------------------------------------------------


@pytest.fixture
def app(api_settings, core_settings, engine, store, diff_engine):
    """FastAPI application wired to the temporary store."""
    application = create_app()
    factory = async_sessionmaker(engine, expire_on_commit=False)

    async def _session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    application.dependency_overrides[get_settings] = lambda: api_settings
    application.dependency_overrides[get_core_settings] = lambda: core_settings
    application.dependency_overrides[get_store] = lambda: store
    application.dependency_overrides[get_diff_engine] = lambda: diff_engine
    application.dependency_overrides[get_db_session] = _session
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

