"""
Quotes API — Health Check Route
=================================

What:  GET /health for monitoring and load balancer probes.
How:   Runs `SELECT 1` against the engine and counts the stored quotes.
Who:   Docker health checks, load balancers, uptime monitors. Never gated.

Status levels:
    healthy:   database reachable and the quote store answered
    unhealthy: either check failed (still HTTP 200, the body says why)
"""

import logging
import time

from fastapi import APIRouter, Request

from quotes_api import __version__
from quotes_api.database import ping
from quotes_api.dependencies import QuoteStoreDep
from quotes_api.schemas.common import ApiResponse, HealthStatus

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Uptime is measured from module import
_start_time = time.time()


@router.get(
    "/health",
    response_model=ApiResponse[HealthStatus],
    response_model_exclude_none=True,
    summary="Service health check",
)
async def health_check(request: Request, store: QuoteStoreDep) -> ApiResponse[HealthStatus]:
    db_status = "connected"
    overall = "healthy"
    quote_count = None

    try:
        await ping(request.app.state.engine)
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    try:
        quote_count = await store.count()
    except Exception as e:
        overall = "unhealthy"
        logger.warning("Health check: quote store unavailable: %s", str(e))

    status = HealthStatus(
        status=overall,
        version=__version__,
        database=db_status,
        quote_backend=store.backend_name,
        quote_count=quote_count,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return ApiResponse(status_code=200, message="Service is " + overall, data=status)
