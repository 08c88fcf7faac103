"""Snapshot upload, download, and diff endpoints."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from snapshot_engine.errors import ReadFailedError, describe_failure
from snapshot_engine.parser.filename_codec import FILENAME_FORMAT_HINT, is_well_formed

from api.dependencies import CoreSettingsDep, DiffEngineDep, SettingsDep, StoreDep
from api.schemas import DiffResponse, SnapshotCreatedResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/snapshot", tags=["snapshots"])


@router.post("")
async def create_snapshot(
    store: StoreDep,
    core_settings: CoreSettingsDep,
    file: UploadFile | None = File(default=None),
) -> SnapshotCreatedResponse:
    """Store an uploaded snapshot under its canonical filename.

    The lenient filename check runs first so malformed names get the format
    hint; the store then applies the strict host/timestamp validation.
    Uploads are not subject to the index timeout: cancelling a write in
    progress would strand its file.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="Missing file under form field 'file'")

    filename = Path(file.filename or "").name
    if not is_well_formed(filename):
        raise HTTPException(status_code=400, detail=FILENAME_FORMAT_HINT)

    if file.size is not None and file.size > core_settings.max_snapshot_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Snapshot exceeds the {core_settings.max_snapshot_bytes} byte limit",
        )

    record = await store.create(file.file, filename)
    return SnapshotCreatedResponse(
        id=record.id,
        host=record.host_identifier,
        captured_at=record.captured_at,
        filename=record.original_name,
    )


@router.get("")
async def get_snapshot(
    store: StoreDep,
    settings: SettingsDep,
    ip: str | None = Query(default=None, description="Host IP address."),
    at: str | None = Query(default=None, description="RFC 3339 capture time."),
) -> Response:
    """Return the raw JSON document of one snapshot."""
    if not ip or not at:
        raise HTTPException(status_code=406, detail="No host ip or timestamp defined")

    location = await asyncio.wait_for(store.resolve_location(ip, at), timeout=settings.index_timeout_seconds)
    try:
        content = await asyncio.to_thread(Path(location).read_bytes)
    except OSError as exc:
        raise ReadFailedError(f"failed to read contents of snapshot: {describe_failure(exc)}") from exc
    return Response(content=content, media_type="application/json")


@router.get("/diff")
async def diff_snapshots(
    store: StoreDep,
    diff_engine: DiffEngineDep,
    settings: SettingsDep,
    ip: str | None = Query(default=None, description="Host IP address."),
    t1: str | None = Query(default=None, description="RFC 3339 capture time of the first snapshot."),
    t2: str | None = Query(default=None, description="RFC 3339 capture time of the second snapshot."),
) -> DiffResponse:
    """Compare two snapshots of one host.  Computed on every request."""
    if not ip or not t1 or not t2:
        raise HTTPException(status_code=406, detail="No host ip or timestamps defined")

    location_a = await asyncio.wait_for(store.resolve_location(ip, t1), timeout=settings.index_timeout_seconds)
    location_b = await asyncio.wait_for(store.resolve_location(ip, t2), timeout=settings.index_timeout_seconds)
    result = await asyncio.to_thread(diff_engine.compare, location_a, location_b)
    logger.info("Compared snapshots host=%s status=%s", ip, result.status.value)
    return DiffResponse(diff_status=result.status, differences=result.explanation)
