"""Ride search over the current store snapshot."""

from __future__ import annotations

import logging
from typing import Optional

from unipool.domain.entities import Ride
from unipool.domain.errors import PersistenceError
from unipool.domain.search import RideFilters, filter_rides
from unipool.infrastructure.store import Store

logger = logging.getLogger(__name__)


class RideSearch:
    def __init__(self, store: Store):
        self.store = store

    async def search_rides(self, filters: Optional[RideFilters] = None) -> list[Ride]:
        """Rides matching every supplied filter, earliest departure first.

        An unavailable store yields an empty list rather than an error.
        """
        try:
            snapshot = await self.store.load()
        except PersistenceError:
            logger.warning("Ride search served empty: store unavailable")
            return []
        return filter_rides(snapshot.rides, filters or RideFilters())

    async def find_ride(self, ride_id: str) -> Optional[Ride]:
        rides = await self.search_rides(RideFilters(id=ride_id))
        return rides[0] if rides else None
