"""
Background Cleanup Worker
=========================

Runs every ``cleanup_interval_seconds`` (default 1 h) and drops rides that
departed more than ``ride_retention_hours`` ago.

Concurrency safety
------------------
Each cycle goes through ``Store.transaction``, i.e. the same Redis lock
that guards bookings, so a cleanup never interleaves with a seat change.
"""

from __future__ import annotations

import asyncio
import logging

from unipool.config import settings
from unipool.domain.errors import PersistenceError
from unipool.infrastructure.database import async_session_factory
from unipool.infrastructure.redis_client import get_redis
from unipool.infrastructure.store import Store
from unipool.services.maintenance import MaintenanceService

logger = logging.getLogger(__name__)

_task: asyncio.Task | None = None
_stop_event: asyncio.Event | None = None


# ── Public API ────────────────────────────────────────────────────────


async def start_cleanup_loop() -> None:
    global _task, _stop_event
    _stop_event = asyncio.Event()
    _task = asyncio.create_task(_loop())
    logger.info(
        "Cleanup worker started (interval=%ds)", settings.cleanup_interval_seconds
    )


async def stop_cleanup_loop() -> None:
    if _stop_event:
        _stop_event.set()
    if _task:
        _task.cancel()
        try:
            await _task
        except asyncio.CancelledError:
            pass
    logger.info("Cleanup worker stopped")


# ── Internals ─────────────────────────────────────────────────────────


async def _loop() -> None:
    """Periodic loop: run a cleanup cycle then sleep."""
    assert _stop_event is not None
    while not _stop_event.is_set():
        try:
            await run_cleanup_cycle()
        except Exception:
            logger.exception("Unhandled error in cleanup cycle")
        # Wait for the interval or until stop is signalled
        try:
            await asyncio.wait_for(
                _stop_event.wait(), timeout=settings.cleanup_interval_seconds
            )
            break
        except asyncio.TimeoutError:
            pass  # next cycle


async def run_cleanup_cycle() -> int:
    """Execute one cleanup cycle.  Returns the number of rides removed."""
    store = Store(async_session_factory, await get_redis())
    try:
        return await MaintenanceService(store).cleanup_old_rides()
    except PersistenceError:
        logger.warning("Cleanup skipped: store unavailable or busy")
        return 0
