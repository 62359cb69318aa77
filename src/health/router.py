"""Health check endpoints."""

from typing import Any

import redis.asyncio as redis
from fastapi import APIRouter, status
from fastapi.responses import ORJSONResponse

from src.config import get_settings
from src.core.database.async_cassandra import AsyncCassandraConnection
from src.core.logging import get_logger
from src.core.redis import get_redis


logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


async def redis_state() -> str:
    """``up``, ``down`` or ``disabled`` when the app started without Redis."""
    client = get_redis()
    if client is None:
        return "disabled"
    try:
        await client.ping()
    except redis.RedisError as e:
        logger.warning("health_redis_ping_failed", error=str(e))
        return "down"
    return "up"


def cassandra_state() -> str:
    return "up" if AsyncCassandraConnection.is_connected() else "down"


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness() -> Any:
    """Readiness probe.

    Cassandra is required; Redis only backs the duplicate-comment guard, so
    its state is reported without failing the probe.
    """
    checks = {"cassandra": cassandra_state(), "redis": await redis_state()}
    ready = checks["cassandra"] == "up"
    body = {"status": "ready" if ready else "not_ready", "checks": checks}
    if not ready:
        return ORJSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
