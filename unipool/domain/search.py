"""
Ride search filters
===================

All supplied filters must match:

* ``pickup``  -- case-insensitive substring of the ride's pickup
* ``dropoff`` -- exact string equality
* ``time``    -- ``|departure - time| <= 30 min``
* ``id``      -- exact ride id (single-ride lookup through the same path)

Results are ordered ascending by departure time.  The sort is stable, so
rides departing at the same instant keep their store order.

Complexity: O(N log N) for N stored rides.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from .entities import Ride, ensure_aware

SEARCH_WINDOW_MINUTES = 30


@dataclass(frozen=True)
class RideFilters:
    pickup: Optional[str] = None
    dropoff: Optional[str] = None
    time: Optional[datetime] = None
    id: Optional[str] = None


def minutes_apart(a: datetime, b: datetime) -> float:
    """Absolute distance between two instants in minutes."""
    return abs((ensure_aware(a) - ensure_aware(b)).total_seconds()) / 60


def matches(ride: Ride, filters: RideFilters) -> bool:
    if filters.pickup and filters.pickup.lower() not in ride.pickup.lower():
        return False
    if filters.dropoff and ride.dropoff != filters.dropoff:
        return False
    if filters.time is not None and (
        minutes_apart(ride.departure_time, filters.time) > SEARCH_WINDOW_MINUTES
    ):
        return False
    if filters.id and ride.id != filters.id:
        return False
    return True


def filter_rides(rides: Iterable[Ride], filters: RideFilters) -> list[Ride]:
    selected = [r for r in rides if matches(r, filters)]
    return sorted(selected, key=lambda r: r.departure_time)
