"""
Cross-cutting request concerns.

* ``limiter``           -- per-client rate limiting (slowapi).
* ``simulated_latency`` -- optional artificial delay before a handler runs,
  mimicking a remote backend for UI demos.  Disabled when
  ``simulated_latency_ms`` is 0.
"""

import asyncio
import functools

from slowapi import Limiter
from slowapi.util import get_remote_address

from unipool.config import settings

limiter = Limiter(key_func=get_remote_address)


def simulated_latency(func):
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        if settings.simulated_latency_ms > 0:
            await asyncio.sleep(settings.simulated_latency_ms / 1000)
        return await func(*args, **kwargs)

    return wrapper
