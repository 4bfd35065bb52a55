"""
Cookbook Backend — Service Routes (welcome + health)
======================================================

What:  GET / returns the API welcome message; GET /health reports service
       status for monitoring and container health checks.
How:   The health check counts stored recipes and verifies that the uploads
       directory exists (or can be created) and is writable.

Status levels:
    - healthy:   uploads directory writable (HTTP 200)
    - degraded:  uploads directory unavailable; reads still work (HTTP 200)
"""

import logging
import os
import time

from fastapi import APIRouter, Request

from cookbook import __version__
from cookbook.schemas.common import HealthResponse, WelcomeResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_model=WelcomeResponse, summary="API welcome message")
async def welcome() -> WelcomeResponse:
    return WelcomeResponse(
        message="Welcome to the API! Use /api for API routes.",
        status="ok",
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Returns the health status of the backend, the number of stored recipes "
        "and whether image uploads can be written."
    ),
)
async def health_check(request: Request) -> HealthResponse:
    store = request.app.state.store
    uploads_dir = request.app.state.upload_service.uploads_dir

    uploads_status = "writable"
    overall = "healthy"

    try:
        uploads_dir.mkdir(parents=True, exist_ok=True)
        if not os.access(uploads_dir, os.W_OK):
            uploads_status = "unavailable"
    except OSError as e:
        uploads_status = "unavailable"
        logger.warning("Health check: uploads directory unusable: %s", str(e))

    if uploads_status != "writable":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        recipes=len(store.recipes),
        uploads_dir=uploads_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
