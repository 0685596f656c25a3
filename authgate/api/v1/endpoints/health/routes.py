"""Health check API routes."""

import time

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.api.dependencies import get_database_session
from authgate.utils.clock import utcnow
from .schemas import HealthResponse, ReadinessResponse

router = APIRouter(prefix="/health", tags=["Health Check"])


@router.get(
    "/",
    response_model=HealthResponse,
    summary="Basic health check",
    description="Simple health check endpoint.",
    responses={
        200: {"description": "Service is healthy"},
    },
)
async def basic_health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns minimal health status information without dependency checks.
    Useful for load balancer health checks.
    """
    return HealthResponse(
        status="healthy",
        timestamp=utcnow().isoformat() + "Z",
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Check if the application is ready to serve requests.",
    responses={
        200: {"description": "Service is ready"},
        503: {"description": "Service is not ready"},
    },
)
async def readiness_check(
    response: Response,
    session: AsyncSession = Depends(get_database_session),
) -> ReadinessResponse:
    """
    Readiness probe for deployments.

    Verifies the database answers a trivial query and reports its latency.
    """
    checks = {}
    ready = True

    try:
        start_time = time.perf_counter()
        await session.execute(text("SELECT 1"))
        latency = (time.perf_counter() - start_time) * 1000
        checks["database"] = {"status": "ready", "latency_ms": round(latency, 2)}
    except SQLAlchemyError as e:
        checks["database"] = {"status": "not_ready", "error": str(e)}
        ready = False

    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(
        ready=ready,
        checks=checks,
    )
