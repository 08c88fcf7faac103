"""Snapshot index persistence layer (PostgreSQL or SQLite)."""

from snapshot_engine.state.database import create_tables, get_engine, get_session
from snapshot_engine.state.index import SnapshotIndex, SQLSnapshotIndex
from snapshot_engine.state.repository import SnapshotRepository

__all__ = [
    "SQLSnapshotIndex",
    "SnapshotIndex",
    "SnapshotRepository",
    "create_tables",
    "get_engine",
    "get_session",
]
