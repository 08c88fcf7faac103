"""Snapshot ingestion and lookup."""

from snapshot_engine.store.snapshot_store import SnapshotStore

__all__ = ["SnapshotStore"]
