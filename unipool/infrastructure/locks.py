"""
Redis-based distributed lock.

Serialises every load -> mutate -> save sequence on the carpool document
so that concurrent requests (or several API processes sharing one store)
cannot interleave a seat decrement with another booking.

Implementation uses SET NX EX for acquire (polled until a timeout) and a
Lua script for atomic check-and-delete on release.
"""

from __future__ import annotations

import asyncio
import time
import uuid

import redis.asyncio as aioredis

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class LockNotAcquired(RuntimeError):
    """The lock stayed busy for the whole wait timeout."""


class DistributedLock:
    def __init__(
        self,
        client: aioredis.Redis,
        key: str,
        ttl_seconds: int = 30,
        timeout_seconds: float = 10.0,
        poll_seconds: float = 0.05,
    ):
        self.redis = client
        self.key = f"lock:{key}"
        self.ttl = ttl_seconds
        self.timeout = timeout_seconds
        self.poll = poll_seconds
        self.token = str(uuid.uuid4())

    async def acquire(self, blocking: bool = False) -> bool:
        """Try to acquire; with *blocking*, retry until the timeout."""
        deadline = time.monotonic() + self.timeout
        while True:
            if await self.redis.set(self.key, self.token, nx=True, ex=self.ttl):
                return True
            if not blocking or time.monotonic() >= deadline:
                return False
            await asyncio.sleep(self.poll)

    async def release(self) -> None:
        """Release only if we still own the lock (atomic via Lua)."""
        await self.redis.eval(_RELEASE_SCRIPT, 1, self.key, self.token)

    # context-manager support
    async def __aenter__(self):
        if not await self.acquire(blocking=True):
            raise LockNotAcquired(f"Could not acquire lock: {self.key}")
        return self

    async def __aexit__(self, *args):
        await self.release()
