"""
BoxIT Backend — Health Check Route
===================================

What:  GET /health for container probes and load balancers.

Status levels:
    healthy:   database reachable and image storage usable (HTTP 200)
    degraded:  database reachable, storage misconfigured (HTTP 200)
    unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from boxit import __version__
from boxit.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(request: Request):
    database = request.app.state.database
    storage = request.app.state.storage

    db_ok = await database.ping()
    try:
        storage_ok = await storage.health_check()
    except Exception as e:
        logger.warning("Health check: storage check failed: %s", str(e))
        storage_ok = False

    if not db_ok:
        overall = "unhealthy"
    elif not storage_ok:
        overall = "degraded"
    else:
        overall = "healthy"

    body = HealthResponse(
        status=overall,
        version=__version__,
        database="connected" if db_ok else "disconnected",
        storage=f"{storage.name}:{'available' if storage_ok else 'unavailable'}",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(status_code=503 if not db_ok else 200, content=body.model_dump())
