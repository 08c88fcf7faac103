"""FastAPI dependency injection for settings, the snapshot store, and the diff engine.

The application owns one engine, store, and diff engine per lifespan.  They
are created by :func:`init_services` at startup and handed to request
handlers through the ``*Dep`` aliases below; tests replace them with
``app.dependency_overrides``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from snapshot_engine.config import Settings, load_settings
from snapshot_engine.diff.json_diff import JSONDiffEngine
from snapshot_engine.state.database import get_engine
from snapshot_engine.state.index import SQLSnapshotIndex
from snapshot_engine.store.snapshot_store import SnapshotStore
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from api.config import APISettings, load_api_settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

_settings_cache: APISettings | None = None
_core_settings_cache: Settings | None = None


def get_settings() -> APISettings:
    """Return the cached :class:`APISettings` singleton."""
    global _settings_cache  # noqa: PLW0603
    if _settings_cache is None:
        _settings_cache = load_api_settings()
    return _settings_cache


def get_core_settings() -> Settings:
    """Return the cached core :class:`Settings` singleton."""
    global _core_settings_cache  # noqa: PLW0603
    if _core_settings_cache is None:
        _core_settings_cache = load_settings()
    return _core_settings_cache


SettingsDep = Annotated[APISettings, Depends(get_settings)]
CoreSettingsDep = Annotated[Settings, Depends(get_core_settings)]

# ---------------------------------------------------------------------------
# Engine, store, diff engine
# ---------------------------------------------------------------------------

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None
_store: SnapshotStore | None = None
_diff_engine: JSONDiffEngine | None = None

_NOT_INITIALISED = "Snapshot services have not been initialised. Ensure init_services() is called during startup."


def init_services(settings: Settings) -> AsyncEngine:
    """Create and cache the engine, snapshot store, and diff engine."""
    global _engine, _session_factory, _store, _diff_engine  # noqa: PLW0603
    _engine = get_engine(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    _store = SnapshotStore(SQLSnapshotIndex(_engine), settings.snapshot_root)
    _diff_engine = JSONDiffEngine(max_depth=settings.diff_max_depth)
    return _engine


async def dispose_services() -> None:
    """Dispose the engine pool and drop cached services (call during shutdown)."""
    global _engine, _session_factory, _store, _diff_engine  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
    _store = None
    _diff_engine = None


def get_store() -> SnapshotStore:
    """Return the application's :class:`SnapshotStore`."""
    if _store is None:
        raise RuntimeError(_NOT_INITIALISED)
    return _store


def get_diff_engine() -> JSONDiffEngine:
    """Return the application's :class:`JSONDiffEngine`."""
    if _diff_engine is None:
        raise RuntimeError(_NOT_INITIALISED)
    return _diff_engine


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an ``AsyncSession`` for probes; commits on clean exit, rolls back on error."""
    if _session_factory is None:
        raise RuntimeError(_NOT_INITIALISED)
    session = _session_factory()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


StoreDep = Annotated[SnapshotStore, Depends(get_store)]
DiffEngineDep = Annotated[JSONDiffEngine, Depends(get_diff_engine)]
SessionDep = Annotated[AsyncSession, Depends(get_db_session)]
