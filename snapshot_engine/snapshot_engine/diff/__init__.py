"""Deterministic structural diff engine for JSON snapshots."""

from snapshot_engine.diff.json_diff import DEFAULT_MAX_DEPTH, JSONDiffEngine
from snapshot_engine.models.diff import DiffMarkers, DiffResult, DiffStatus

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "DiffMarkers",
    "DiffResult",
    "DiffStatus",
    "JSONDiffEngine",
]
