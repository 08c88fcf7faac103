"""Snapshot index contract and its SQL implementation.

The snapshot store depends only on :class:`SnapshotIndex`.  Every method is a
coroutine, so callers bound wait time with ``asyncio.wait_for`` and cancel by
cancelling the task; the index itself never imposes a deadline.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol, runtime_checkable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine

from snapshot_engine.errors import IndexConflictError
from snapshot_engine.models.snapshot import SnapshotRecord
from snapshot_engine.state.database import get_session
from snapshot_engine.state.repository import SnapshotRepository

logger = logging.getLogger(__name__)


@runtime_checkable
class SnapshotIndex(Protocol):
    """Keyed store mapping (host, capture time) to stored locations."""

    async def insert(self, record: SnapshotRecord) -> None:
        """Record one snapshot.

        Raises:
            IndexConflictError: If the (host, capture time) pair or the
                stored location is already indexed.
            Exception: Any other storage-layer failure.
        """
        ...

    async def get_by_timestamp(self, host: str, captured_at: datetime) -> SnapshotRecord | None:
        """Point lookup by host and capture instant."""
        ...

    async def get_by_location(self, host: str, stored_location: str) -> SnapshotRecord | None:
        """Point lookup by host and stored location."""
        ...

    async def list_hosts(self) -> list[str]:
        """Distinct hosts with at least one snapshot."""
        ...

    async def list_timestamps(self, host: str) -> list[datetime]:
        """Capture instants of every snapshot for *host*."""
        ...


class SQLSnapshotIndex:
    """:class:`SnapshotIndex` backed by the SQLAlchemy ``snapshots`` table.

    Each call runs in its own session and transaction, so an inserted record
    is committed (and visible to other callers) by the time ``insert``
    returns.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def insert(self, record: SnapshotRecord) -> None:
        try:
            async with get_session(self._engine) as session:
                await SnapshotRepository(session).insert(record)
        except IntegrityError as exc:
            raise IndexConflictError(
                f"snapshot already indexed for host {record.host_identifier} at {record.captured_at.isoformat()}"
            ) from exc
        logger.debug("Indexed snapshot id=%s host=%s", record.id, record.host_identifier)

    async def get_by_timestamp(self, host: str, captured_at: datetime) -> SnapshotRecord | None:
        async with get_session(self._engine) as session:
            return await SnapshotRepository(session).get_by_timestamp(host, captured_at)

    async def get_by_location(self, host: str, stored_location: str) -> SnapshotRecord | None:
        async with get_session(self._engine) as session:
            return await SnapshotRepository(session).get_by_location(host, stored_location)

    async def list_hosts(self) -> list[str]:
        async with get_session(self._engine) as session:
            return await SnapshotRepository(session).list_hosts()

    async def list_timestamps(self, host: str) -> list[datetime]:
        async with get_session(self._engine) as session:
            return await SnapshotRepository(session).list_timestamps(host)
