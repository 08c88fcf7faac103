"""Collision-safe snapshot persistence with index coordination.

A snapshot is stored in two steps: its bytes are written to
``<root>/<canonical filename>`` with an exclusive create, then a record is
inserted into the index.  The index is the authoritative existence signal,
so a record only becomes visible once the file is complete, and a failed
insert removes the file it was meant to describe.

Every operation is a single attempt.  Cleanup of a partially stored file is
best effort; a failing cleanup is logged and the triggering error is still
the one raised.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from pathlib import Path
from typing import BinaryIO

from snapshot_engine.errors import (
    DuplicateSnapshotError,
    IndexConflictError,
    IndexFailedError,
    SnapshotNotFoundError,
    WriteFailedError,
    describe_failure,
)
from snapshot_engine.models.snapshot import SnapshotRecord
from snapshot_engine.parser.filename_codec import decode
from snapshot_engine.parser.timestamps import format_rfc3339, parse_rfc3339
from snapshot_engine.state.index import SnapshotIndex

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Places snapshot bytes on disk exactly once and indexes them.

    Parameters
    ----------
    index:
        Index the store records snapshots in and resolves lookups through.
    root:
        Directory holding one file per snapshot.  Created on first write.
    """

    def __init__(self, index: SnapshotIndex, root: Path | str) -> None:
        self._index = index
        self._root = Path(root).resolve()

    @property
    def root(self) -> Path:
        return self._root

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def create(self, content: BinaryIO, claimed_filename: str) -> SnapshotRecord:
        """Store *content* under *claimed_filename* and index it.

        Cancelling the call (for example through ``asyncio.wait_for``) removes
        any file it wrote before the cancellation propagates.

        Raises
        ------
        InvalidFormatError, InvalidHostError, InvalidTimestampError
            If the filename is not a valid canonical snapshot name.
        DuplicateSnapshotError
            If the file already exists or the (host, timestamp) pair is
            already indexed.
        WriteFailedError
            If the bytes could not be written.  No file is left behind.
        IndexFailedError
            If the index insert failed.  No file is left behind.
        """
        filename = Path(claimed_filename).name
        host, captured_at = decode(filename)
        location = self._root / filename

        write = asyncio.ensure_future(asyncio.to_thread(self._write_exclusive, location, content))
        try:
            await asyncio.shield(write)
        except asyncio.CancelledError:
            # The worker thread cannot be interrupted; let it finish, then undo it.
            await asyncio.wait([write])
            if not write.cancelled() and write.exception() is None:
                self._discard(location)
            raise

        record = SnapshotRecord(
            host_identifier=host,
            captured_at=captured_at,
            stored_location=str(location),
            original_name=filename,
        )
        try:
            await self._index.insert(record)
        except IndexConflictError as exc:
            await asyncio.to_thread(self._discard, location)
            raise DuplicateSnapshotError(
                f"a snapshot for host {host} at {format_rfc3339(captured_at)} already exists"
            ) from exc
        except Exception as exc:
            logger.error("Index insert failed for snapshot %s", filename, exc_info=True)
            await asyncio.to_thread(self._discard, location)
            raise IndexFailedError(f"failed to record snapshot in index: {describe_failure(exc)}") from exc
        except BaseException:
            # Cancelled with the insert pending.  Discard synchronously; a
            # further await here could itself be cancelled.
            self._discard(location)
            raise

        logger.info("Stored snapshot host=%s captured_at=%s", host, format_rfc3339(captured_at))
        return record

    def _write_exclusive(self, location: Path, content: BinaryIO) -> None:
        try:
            location.parent.mkdir(parents=True, exist_ok=True)
            dst = open(location, "xb")  # noqa: SIM115
        except FileExistsError as exc:
            raise DuplicateSnapshotError(f"attempting to add duplicate snapshot: {location.name}") from exc
        except OSError as exc:
            raise WriteFailedError(f"failed to create snapshot file: {describe_failure(exc)}") from exc

        logger.debug("Writing snapshot to %s", location)
        try:
            with dst:
                shutil.copyfileobj(content, dst)
                dst.flush()
                os.fsync(dst.fileno())
        except Exception as exc:
            self._discard(location)
            raise WriteFailedError(f"failed to write snapshot contents: {describe_failure(exc)}") from exc

    @staticmethod
    def _discard(location: Path) -> None:
        try:
            location.unlink(missing_ok=True)
        except OSError:
            logger.warning("Failed to remove partially stored snapshot %s", location, exc_info=True)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    async def resolve_location(self, host: str, timestamp_text: str) -> str:
        """Return the stored location of *host*'s snapshot at *timestamp_text*.

        Raises
        ------
        InvalidTimestampError
            If *timestamp_text* is not RFC 3339.
        SnapshotNotFoundError
            If no snapshot is indexed for the pair.
        """
        captured_at = parse_rfc3339(timestamp_text)
        record = await self._index.get_by_timestamp(host, captured_at)
        if record is None:
            raise SnapshotNotFoundError(f"no snapshot for host {host} at {format_rfc3339(captured_at)}")
        return record.stored_location

    async def get_record(self, host: str, stored_location: str) -> SnapshotRecord:
        """Return the record of *host*'s snapshot stored at *stored_location*."""
        record = await self._index.get_by_location(host, stored_location)
        if record is None:
            raise SnapshotNotFoundError(f"no snapshot for host {host} at the requested location")
        return record

    async def list_hosts(self) -> set[str]:
        """Return every host with at least one snapshot."""
        return set(await self._index.list_hosts())

    async def list_snapshot_timestamps(self, host: str) -> list[str]:
        """Return RFC 3339 capture times of *host*'s snapshots, oldest first."""
        instants = await self._index.list_timestamps(host)
        return [format_rfc3339(instant) for instant in sorted(instants)]
