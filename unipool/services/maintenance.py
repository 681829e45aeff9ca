"""Store housekeeping: integrity report and stale-ride cleanup."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Callable

from unipool.config import settings
from unipool.domain.entities import Snapshot, utcnow
from unipool.infrastructure.store import Store

logger = logging.getLogger(__name__)


def integrity_errors(snapshot: Snapshot) -> list[str]:
    """Describe every record that breaks a data-model rule."""
    errors: list[str] = []

    for idx, user in enumerate(snapshot.users):
        if not (user.id and user.name and user.email):
            errors.append(f"Invalid user at index {idx}")

    for idx, ride in enumerate(snapshot.rides):
        if not (ride.id and ride.pickup and ride.dropoff):
            errors.append(f"Invalid ride at index {idx}")
        for booking_id in ride.booking_ids:
            booking = snapshot.find_booking(booking_id)
            if booking is None or not booking.is_confirmed:
                errors.append(f"Ride {ride.id} lists inactive booking {booking_id}")
        if ride.available_seats + len(ride.booking_ids) != ride.seats:
            errors.append(f"Ride {ride.id} seat count does not match its bookings")

    active = Counter(
        (b.ride_id, b.rider_id) for b in snapshot.bookings if b.is_confirmed
    )
    for (ride_id, rider_id), count in active.items():
        if count > 1:
            errors.append(f"Rider {rider_id} holds {count} bookings on ride {ride_id}")

    return errors


class MaintenanceService:
    def __init__(self, store: Store, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    async def validate_data(self) -> list[str]:
        errors = integrity_errors(await self.store.load())
        if errors:
            logger.warning("Data validation errors: %s", errors)
        return errors

    async def cleanup_old_rides(
        self, retention_hours: int = settings.ride_retention_hours
    ) -> int:
        """Drop rides that departed more than *retention_hours* ago."""
        cutoff = self.clock() - timedelta(hours=retention_hours)
        async with self.store.transaction() as snapshot:
            before = len(snapshot.rides)
            snapshot.rides = [r for r in snapshot.rides if r.departure_time > cutoff]
            removed = before - len(snapshot.rides)

        if removed:
            logger.info("Cleanup removed %d rides departed before %s", removed, cutoff)
        return removed
