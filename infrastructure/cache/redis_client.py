"""Async Redis connection factory.

Returns a connected client, or None when the URI is empty or the server does
not answer a PING. A None result makes the app fall back to the process-local
challenge store, which is only correct for single-worker deployments.
"""

from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from shared.logging import get_logger

log = get_logger(__name__)


def _mask(redis_uri: str) -> str:
    return redis_uri.split("@")[-1]


async def create_redis_client(
    redis_uri: Optional[str], timeout_seconds: float = 5.0
) -> Optional[aioredis.Redis]:
    """Connect to Redis and return a client, or None on failure."""
    if not redis_uri:
        log.info("redis_not_configured")
        return None
    client: aioredis.Redis = aioredis.from_url(
        redis_uri,
        decode_responses=True,
        socket_timeout=timeout_seconds,
        socket_connect_timeout=timeout_seconds,
    )
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        log.warning(
            "redis_connection_failed",
            uri=_mask(redis_uri),
            error=str(e),
            error_type=type(e).__name__,
        )
        await client.aclose()
        return None
    log.info("redis_connected", uri=_mask(redis_uri))
    return client
