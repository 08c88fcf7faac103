"""Shared fixtures for snapshot core unit tests.

Index-backed tests run against a real SQLite file under ``tmp_path`` so that
every session the index opens sees the same database.
"""

from __future__ import annotations

from pathlib import Path

import pytest_asyncio

from snapshot_engine.state.database import create_tables
from snapshot_engine.state.index import SQLSnapshotIndex
from snapshot_engine.state.sqlite_adapter import get_local_engine
from snapshot_engine.store.snapshot_store import SnapshotStore


@pytest_asyncio.fixture
async def engine(tmp_path: Path):
    """Provide an async engine over a fresh SQLite index with tables created."""
    eng = get_local_engine(tmp_path / "index" / "index.db")
    await create_tables(eng)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def index(engine) -> SQLSnapshotIndex:
    return SQLSnapshotIndex(engine)


@pytest_asyncio.fixture
async def store(index: SQLSnapshotIndex, tmp_path: Path) -> SnapshotStore:
    return SnapshotStore(index, tmp_path / "snapshots")
