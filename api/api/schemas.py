"""Response schemas for the snapshot API.

Field names of :class:`DiffResponse` are serialised with the capitalised
aliases existing clients consume (``DiffStatus`` / ``Differences``).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from snapshot_engine.models.diff import DiffStatus


class SnapshotCreatedResponse(BaseModel):
    """Returned after a snapshot upload succeeds.  Never carries the stored path."""

    id: str
    host: str
    captured_at: datetime
    filename: str


class DiffResponse(BaseModel):
    """Outcome of comparing two snapshots of one host."""

    model_config = ConfigDict(populate_by_name=True)

    diff_status: DiffStatus = Field(..., alias="DiffStatus")
    differences: str = Field(default="", alias="Differences")


class HealthResponse(BaseModel):
    status: str
    version: str
    db: str
