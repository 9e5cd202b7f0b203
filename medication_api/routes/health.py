"""
Medication API - Health Check Route
===================================

What:  Health check endpoint for monitoring and container health checks.
How:   Pings MongoDB through the database attached to the application.

Status levels:
    - healthy:   MongoDB answered the ping
    - unhealthy: MongoDB unreachable, or no database attached
"""

import logging
import time

from fastapi import APIRouter, Request

from medication_api import __version__
from medication_api.schemas.medication import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    database = getattr(request.app.state, "database", None)
    if database is None or not await database.ping():
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable")

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
