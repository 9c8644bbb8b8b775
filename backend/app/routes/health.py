"""
Accounting Notes Backend — Health Check Route
===============================================

What:  Health check endpoint for monitoring and container probes.
How:   Checks the database connection and the upload directory.

Status levels:
    - healthy:   database reachable and storage writable (HTTP 200)
    - unhealthy: either dependency failing (HTTP 503)
"""

import logging
import os
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app import __version__
from app.schemas.note import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "A dependency is unavailable", "model": HealthResponse}},
)
async def health_check(request: Request):
    """
    Check the database and upload directory.

    Check details:
        Database: Executes SELECT 1 through the application's Database
        Storage:  Upload directory exists and is writable
    """
    db_status = "connected"
    storage_status = "writable"
    overall = "healthy"

    try:
        reachable = await request.app.state.db.ping()
    except Exception as e:
        reachable = False
        logger.warning("Health check: database unreachable: %s", str(e))
    if not reachable:
        db_status = "disconnected"
        overall = "unhealthy"

    storage_root = request.app.state.file_service.storage_root
    if not (storage_root.is_dir() and os.access(storage_root, os.W_OK)):
        storage_status = "unavailable"
        overall = "unhealthy"
        logger.warning("Health check: storage directory unavailable: %s", storage_root)

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(status_code=200 if overall == "healthy" else 503, content=body.model_dump())
