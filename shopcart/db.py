"""
Storage Module - Upstash Redis client for cart snapshots

Provides a factory for the async Upstash Redis client plus key naming
and TTL constants. Clients are created per call site and passed into
CartStorage explicitly; there is no module-level singleton so each
session (and each test) owns its own client.
"""

from typing import Optional

from upstash_redis.asyncio import Redis as AsyncRedis

from shopcart import config
from shopcart.errors import StorageUnavailable


def get_redis(url: Optional[str] = None, token: Optional[str] = None) -> AsyncRedis:
    """
    Create an async Upstash Redis client.

    Uses standard Upstash env var names unless url/token are given:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN

    Raises:
        StorageUnavailable: If url or token is missing
    """
    url = url or config.UPSTASH_REDIS_REST_URL
    token = token or config.UPSTASH_REDIS_REST_TOKEN
    if not url or not token:
        raise StorageUnavailable("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
    return AsyncRedis(url=url, token=token)


class RedisKeys:
    """Redis key prefixes for cart data."""

    CART = config.CART_STORAGE_PREFIX  # cart:{session_id}

    @staticmethod
    def cart_key(session_id: str) -> str:
        return f"{RedisKeys.CART}{session_id}"


class TTL:
    """Time-to-live constants for Redis keys (seconds, 0 = none)."""

    CART = config.CART_TTL_SECONDS
