"""Snapshot record model.

A snapshot record describes one stored configuration capture: which host it
came from, when it was captured, and where its bytes live.  Records are
created once by the ingestion path and never mutated afterwards.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


def _new_snapshot_id() -> str:
    return uuid.uuid4().hex


class SnapshotRecord(BaseModel):
    """Immutable index entry for one stored snapshot."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        default_factory=_new_snapshot_id,
        min_length=1,
        description="Opaque unique identifier generated at creation.",
    )
    host_identifier: str = Field(
        ...,
        min_length=1,
        description="Originating host as written in the snapshot filename.",
    )
    captured_at: datetime = Field(
        ...,
        description="Timezone-aware UTC capture instant decoded from the filename.",
    )
    stored_location: str = Field(
        ...,
        min_length=1,
        description="Absolute path of the payload's only copy.",
    )
    original_name: str = Field(
        ...,
        min_length=1,
        description="Validated filename as submitted.",
    )
