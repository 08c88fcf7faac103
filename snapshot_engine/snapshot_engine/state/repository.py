"""Repository class providing CRUD access to the snapshot index.

The repository takes an ``AsyncSession`` at construction time and operates
within the caller's transaction boundary.  Writes call ``session.flush()`` so
constraint violations surface immediately; the caller is responsible for
committing (or relying on the ``get_session`` context manager).
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from snapshot_engine.models.snapshot import SnapshotRecord
from snapshot_engine.state.tables import SnapshotTable

logger = logging.getLogger(__name__)


def _to_record(row: SnapshotTable) -> SnapshotRecord:
    return SnapshotRecord(
        id=row.id,
        host_identifier=row.host_ip,
        captured_at=row.captured_at,
        stored_location=row.stored_location,
        original_name=row.original_name,
    )


class SnapshotRepository:
    """CRUD operations for the ``snapshots`` table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def insert(self, record: SnapshotRecord) -> SnapshotTable:
        """Persist *record*.

        Raises ``sqlalchemy.exc.IntegrityError`` on flush when the
        ``(host_ip, captured_at)`` pair or the stored location already exists.
        """
        row = SnapshotTable(
            id=record.id,
            host_ip=record.host_identifier,
            captured_at=record.captured_at,
            stored_location=record.stored_location,
            original_name=record.original_name,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get_by_timestamp(self, host_ip: str, captured_at: datetime) -> SnapshotRecord | None:
        """Return the snapshot captured for *host_ip* at *captured_at*, or ``None``."""
        stmt = select(SnapshotTable).where(
            SnapshotTable.host_ip == host_ip,
            SnapshotTable.captured_at == captured_at,
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        return _to_record(row) if row is not None else None

    async def get_by_location(self, host_ip: str, stored_location: str) -> SnapshotRecord | None:
        """Return the snapshot of *host_ip* stored at *stored_location*, or ``None``."""
        stmt = select(SnapshotTable).where(
            SnapshotTable.host_ip == host_ip,
            SnapshotTable.stored_location == stored_location,
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        return _to_record(row) if row is not None else None

    async def list_hosts(self) -> list[str]:
        """Return every distinct host with at least one snapshot, sorted."""
        stmt = select(SnapshotTable.host_ip).distinct().order_by(SnapshotTable.host_ip)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_timestamps(self, host_ip: str) -> list[datetime]:
        """Return the capture instants of every snapshot for *host_ip*, ascending."""
        stmt = (
            select(SnapshotTable.captured_at)
            .where(SnapshotTable.host_ip == host_ip)
            .order_by(SnapshotTable.captured_at)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
