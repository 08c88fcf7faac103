"""Health-check endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from sqlalchemy import text

from api import __version__
from api.dependencies import SessionDep
from api.schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(session: SessionDep) -> HealthResponse:
    """Return service health.

    Always HTTP 200 so load-balancers see the service as alive; the ``db``
    field reports whether the index database answered.
    """
    db_status = "ok"
    try:
        await session.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("DB health check failed: %s", exc)
        db_status = "degraded"
    return HealthResponse(status="healthy", version=__version__, db=db_status)
