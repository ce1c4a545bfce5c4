"""Health check endpoints."""

from fastapi import APIRouter, Request

from edutrack.config import get_settings
from edutrack.core.database import CassandraConnection
from edutrack.core.redis import ping_redis


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """The process answers."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool]:
    """Dependencies of the progress API.

    ``progress`` is False until Cassandra is up and the services are wired.
    Redis is optional; without it only the write rate limit is off.
    """
    settings = get_settings()
    return {
        "status": "ready",
        "environment": settings.environment,
        "debug": settings.debug,
        "cassandra": CassandraConnection.is_connected(),
        "redis": await ping_redis(),
        "progress": getattr(request.app.state, "progress_service", None) is not None,
    }


@router.get("")
async def health() -> dict[str, str]:
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
