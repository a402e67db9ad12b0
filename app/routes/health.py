"""
Skenderaj Places Backend — Health Check Route
==============================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs SELECT 1 against the database and reports whether the media
       host is configured.

Status levels:
    - healthy:   database reachable, media host configured
    - degraded:  database reachable, uploads unavailable
    - unhealthy: database unreachable
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from app import __version__
from app.config import settings
from app.database import engine
from app.schemas.place import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check() -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", e)

    # Configuration only; a live ping would spend Admin API quota on every probe
    media_status = "configured" if settings.media_host_configured else "not_configured"
    if media_status != "configured" and overall == "healthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        media_host=media_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
