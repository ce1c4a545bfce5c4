# ruff: noqa: PLW0603
"""Redis client for the progress write rate limit.

Redis is optional: when it is down at startup the API runs without a rate
limit instead of refusing progress writes.
"""

import redis.asyncio as redis

from edutrack.config import Settings, get_settings
from edutrack.core.logging import get_logger


logger = get_logger(__name__)

_client: redis.Redis | None = None


async def connect_redis(settings: Settings | None = None) -> redis.Redis:
    """Create the shared client and check it answers.

    Raises:
        redis.ConnectionError: If the server is unreachable
    """
    global _client

    settings = settings or get_settings()
    client = redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_timeout,
        decode_responses=True,
    )

    try:
        await client.ping()
    except redis.ConnectionError as e:
        logger.warning("redis_connection_failed", error=str(e))
        await client.aclose()
        raise

    _client = client
    logger.info("redis_connected")
    return _client


async def close_redis() -> None:
    global _client

    if _client is not None:
        await _client.aclose()
        _client = None
        logger.info("redis_disconnected")


def get_redis() -> redis.Redis | None:
    """Shared client, None when Redis is not in use."""
    return _client


async def ping_redis() -> bool:
    """Readiness check; never raises."""
    if _client is None:
        return False
    try:
        return bool(await _client.ping())
    except redis.RedisError:
        return False


def progress_rate_key(user_id: str) -> str:
    """Per-minute progress write counter for a user."""
    return f"progress:rate:{user_id}:minute"
