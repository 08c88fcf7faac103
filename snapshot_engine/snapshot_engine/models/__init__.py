"""Domain models for the snapshot core."""

from snapshot_engine.models.diff import DiffMarkers, DiffResult, DiffStatus
from snapshot_engine.models.snapshot import SnapshotRecord

__all__ = [
    "DiffMarkers",
    "DiffResult",
    "DiffStatus",
    "SnapshotRecord",
]
