"""
MoodTrack Backend — Health Check Route
========================================

What:  GET /health for Docker health checks and load balancer probes.
How:   Runs SELECT 1 against the database and reads the music provider's
       circuit breaker state (no outbound call).

Status levels:
    - healthy:   database reachable, breaker closed          (HTTP 200)
    - degraded:  database reachable, breaker open            (HTTP 200)
    - unhealthy: database unreachable                        (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from moodtrack import __version__
from moodtrack.database import engine
from moodtrack.schemas.common import HealthResponse
from moodtrack.services.music_service import CircuitBreaker, music_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    music_status = "available"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if music_service.circuit_breaker.state == CircuitBreaker.OPEN:
        music_status = "circuit_open"
        if overall == "healthy":
            overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        music_service=music_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
