"""Liveness and readiness endpoints."""

from datetime import datetime

from fastapi import APIRouter, status
from pydantic import BaseModel

from clinic_portal.config import settings
from clinic_portal.core.redis_client import check_redis_connection
from clinic_portal.database import check_database_connection
from clinic_portal.dependencies import ClockDep

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str


class DetailedHealthResponse(HealthResponse):
    """Readiness report including dependencies and the clinic clock."""

    database: str
    redis: str
    clinic_timezone: str
    clinic_time: datetime


def _state(healthy: bool) -> str:
    return "healthy" if healthy else "unhealthy"


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness check",
)
async def health_check() -> HealthResponse:
    """Report that the API process is up."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
)
async def detailed_health_check(clock: ClockDep) -> DetailedHealthResponse:
    """
    Check the database and Redis, and show the clinic-local time.

    The database is required; Redis only backs caching and rate limiting,
    so losing it marks the service ``degraded`` rather than ``unhealthy``.
    """
    db_healthy = await check_database_connection()
    redis_healthy = await check_redis_connection()

    if not db_healthy:
        overall = "unhealthy"
    elif not redis_healthy:
        overall = "degraded"
    else:
        overall = "healthy"

    return DetailedHealthResponse(
        status=overall,
        version=settings.app_version,
        environment=settings.environment,
        database=_state(db_healthy),
        redis=_state(redis_healthy),
        clinic_timezone=settings.clinic_timezone,
        clinic_time=clock.local_now(),
    )


@router.get("/ping", status_code=status.HTTP_200_OK, summary="Simple ping")
async def ping() -> dict[str, str]:
    return {"message": "pong"}
