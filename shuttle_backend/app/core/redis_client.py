"""
Redis connection used for per-trip request locks and the readiness probe.
"""

import logging

import redis.asyncio as redis
from shuttle_backend.app.core.config import settings

logger = logging.getLogger(__name__)

# Lazily connects on first command
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """FastAPI dependency for the shared Redis client."""
    return redis_client


async def ping_redis(client=None) -> bool:
    """True when Redis answers PING; connection errors count as down."""
    client = client or redis_client
    try:
        return bool(await client.ping())
    except (redis.RedisError, OSError) as exc:
        logger.warning("Redis ping failed: %s", exc)
        return False


async def close_redis() -> None:
    await redis_client.aclose()
