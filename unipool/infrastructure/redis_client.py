"""
Redis async connection pool used for booking notifications.

Publishing happens after the database commit, so socket timeouts are kept
short: a slow or unreachable Redis delays the response by at most
``redis_socket_timeout`` and never affects the seat ledger.
"""

import redis.asyncio as aioredis

from unipool.config import settings

_pool = aioredis.ConnectionPool.from_url(
    settings.redis_url,
    decode_responses=True,
    socket_timeout=settings.redis_socket_timeout,
    socket_connect_timeout=settings.redis_socket_timeout,
)


async def get_redis() -> aioredis.Redis:
    """Return a Redis client backed by the shared connection pool."""
    return aioredis.Redis(connection_pool=_pool)


async def close_redis() -> None:
    await _pool.disconnect()
