"""Redis async connection pool shared by the store lock and the worker."""

from __future__ import annotations

import redis.asyncio as aioredis

from unipool.config import settings

_pool = aioredis.ConnectionPool.from_url(
    settings.redis_url, decode_responses=True
)
_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Return the process-wide client backed by the shared pool."""
    global _client
    if _client is None:
        _client = aioredis.Redis(connection_pool=_pool)
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
    await _pool.disconnect()
