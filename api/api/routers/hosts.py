"""Host listing endpoints."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Query

from api.dependencies import SettingsDep, StoreDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/host", tags=["hosts"])


@router.get("/all")
async def list_hosts(store: StoreDep, settings: SettingsDep) -> list[str]:
    """Return every host with at least one snapshot, sorted."""
    hosts = await asyncio.wait_for(store.list_hosts(), timeout=settings.index_timeout_seconds)
    logger.info("Listed %d hosts", len(hosts))
    return sorted(hosts)


@router.get("")
async def list_host_snapshots(
    store: StoreDep,
    settings: SettingsDep,
    ip: str | None = Query(default=None, description="Host IP address."),
) -> list[str]:
    """Return the RFC 3339 capture times of every snapshot for a host."""
    if not ip:
        raise HTTPException(status_code=406, detail="No host ip defined")
    return await asyncio.wait_for(store.list_snapshot_timestamps(ip), timeout=settings.index_timeout_seconds)
