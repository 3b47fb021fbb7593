"""
Async cache (Redis/ValKey) connection initialization.

The service keeps one redis.asyncio client for its lifetime. The client owns
a connection pool and reconnects on demand, so it is shared across request
handlers without extra locking.

Example:
    >>> from libs.core.redis_client import init_cache_client
    >>> cache = await init_cache_client("redis://valkey:6379", max_attempts=5)
    >>> await close_cache_client(cache)
"""

from __future__ import annotations

import logging

import redis.asyncio as redis_asyncio
from redis.exceptions import ConnectionError, RedisError, TimeoutError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from libs.core.common.exceptions import CacheConnectionError

logger = logging.getLogger(__name__)

SOCKET_CONNECT_TIMEOUT_SECONDS = 5
SOCKET_TIMEOUT_SECONDS = 5


async def init_cache_client(redis_url: str, max_attempts: int = 3) -> redis_asyncio.Redis:
    """
    Create the cache client and prove connectivity with PING.

    Args:
        redis_url: Redis/ValKey URL (e.g., "redis://valkey:6379")
        max_attempts: Attempts for connection/timeout errors (>= 1)

    Returns:
        Connected redis.asyncio.Redis client

    Raises:
        CacheConnectionError: Invalid URL, or server unreachable after all attempts
    """
    logger.info("Initializing cache connection")
    try:
        client = redis_asyncio.Redis.from_url(
            redis_url,
            socket_connect_timeout=SOCKET_CONNECT_TIMEOUT_SECONDS,
            socket_timeout=SOCKET_TIMEOUT_SECONDS,
        )
    except ValueError as e:
        raise CacheConnectionError(f"Invalid cache URL: {e}", cause=e) from e

    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=0.5, max=5),
            retry=retry_if_exception_type((ConnectionError, TimeoutError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                await client.ping()
    except RedisError as e:
        await client.aclose()
        raise CacheConnectionError(f"Cannot connect to cache: {e}", cause=e) from e

    logger.info("Cache connection established")
    return client


async def close_cache_client(client: redis_asyncio.Redis) -> None:
    """Close the client and its connection pool."""
    # aclose() is the async close in redis.asyncio 5.0+
    await client.aclose()
    logger.info("Cache connection closed")
