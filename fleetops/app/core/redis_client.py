"""
Redis client for the trip change feed.

Table change events are published on Redis pub/sub for external
listeners such as UI gateways. The service itself only publishes.
"""

import logging

import redis.asyncio as redis
from fleetops.app.core.config import settings

logger = logging.getLogger("fleetops.redis")

# Connection is lazy; nothing is opened until the first command.
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def ping_redis() -> bool:
    """
    Test Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await redis_client.ping()
    except redis.RedisError as exc:
        logger.warning("Redis ping failed: %s", exc)
        return False
