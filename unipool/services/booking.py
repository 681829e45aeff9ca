"""
Booking Engine
==============

Seat accounting for rides, run entirely inside ``Store.transaction`` so
each operation is one locked load -> mutate -> save.

Per (ride, rider) pair the booking lifecycle is::

    NONE --book--> CONFIRMED --cancel--> CANCELLED

A cancelled booking is never revived; booking again issues a new record
with a new id.

Late-cancellation policy
------------------------
Cancelling less than 60 minutes before departure (or after it) appends a
score-2 rating from ``"system"`` to the rider's *as rider* ledger.  The
penalty is not configurable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from unipool.domain.entities import (
    SYSTEM_RATER_ID,
    Booking,
    RatingRecord,
    RecurrenceRule,
    Ride,
    Snapshot,
    utcnow,
)
from unipool.domain.enums import RatingCategory
from unipool.domain.errors import AlreadyBooked, NoSeatsAvailable, NotFound, ValidationError
from unipool.domain.recurrence import make_instance, recurrence_departures
from unipool.infrastructure.store import Store

logger = logging.getLogger(__name__)

LATE_CANCELLATION_MINUTES = 60
LATE_CANCELLATION_SCORE = 2
LATE_CANCELLATION_REVIEW = "Late cancellation penalty"


@dataclass
class RideSpec:
    """Caller-supplied description of a ride to post."""

    driver_id: str
    pickup: str
    dropoff: str
    departure_time: Optional[datetime]
    seats: int
    recurring: Optional[RecurrenceRule] = None


class BookingEngine:
    def __init__(self, store: Store, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    # ── Rides ────────────────────────────────────────────────────────

    async def create_ride(self, spec: RideSpec) -> Ride:
        pickup = (spec.pickup or "").strip()
        dropoff = (spec.dropoff or "").strip()
        if not pickup:
            raise ValidationError("Pickup location is required")
        if not dropoff:
            raise ValidationError("Destination is required")
        if spec.departure_time is None:
            raise ValidationError("Departure time is required")
        if spec.seats < 1:
            raise ValidationError("A ride needs at least one seat")

        now = self.clock()
        async with self.store.transaction() as snapshot:
            ride = Ride(
                id=self.store.new_id("r"),
                pickup=pickup,
                dropoff=dropoff,
                departure_time=spec.departure_time,
                driver_id=spec.driver_id,
                seats=spec.seats,
                recurring=spec.recurring,
                created_at=now,
            )
            snapshot.rides.append(ride)
            instances: list[Ride] = []
            if ride.recurring and ride.recurring.enabled:
                instances = self._expand_recurring(ride, now)
                snapshot.rides.extend(instances)

        logger.info(
            "Ride %s created by %s (%d recurring instances)",
            ride.id, ride.driver_id, len(instances),
        )
        return ride

    def _expand_recurring(self, base: Ride, now: datetime) -> list[Ride]:
        instances: list[Ride] = []
        for departure in recurrence_departures(base.recurring, base.departure_time, now):
            try:
                instances.append(make_instance(base, departure, self.store.new_id("r")))
            except Exception:
                logger.exception(
                    "Skipping recurring instance of %s on %s", base.id, departure.date()
                )
        return instances

    # ── Bookings ─────────────────────────────────────────────────────

    async def book_ride(
        self, ride_id: str, rider_id: str, pickup_point: Optional[str] = None
    ) -> Booking:
        """Reserve one seat.

        Raises ``NotFound``, ``NoSeatsAvailable`` or ``AlreadyBooked``;
        nothing is saved in those cases.
        """
        async with self.store.transaction() as snapshot:
            ride = snapshot.find_ride(ride_id)
            if ride is None:
                raise NotFound(f"Ride {ride_id} not found")
            if not ride.has_open_seat:
                raise NoSeatsAvailable(f"No seats available on ride {ride_id}")
            if snapshot.confirmed_booking(ride, rider_id) is not None:
                raise AlreadyBooked("You have already booked this ride")

            booking = Booking(
                id=self.store.new_id("b"),
                ride_id=ride.id,
                rider_id=rider_id,
                driver_id=ride.driver_id,
                pickup_point=pickup_point or ride.pickup,
                booking_time=self.clock(),
            )
            ride.reserve_seat(booking.id)
            snapshot.bookings.append(booking)

            rider = snapshot.find_user(rider_id)
            if rider is not None and ride.id not in rider.ride_history:
                rider.ride_history.append(ride.id)

        logger.info(
            "Booking %s: rider %s on ride %s (%d seats left)",
            booking.id, rider_id, ride_id, ride.available_seats,
        )
        return booking

    async def cancel_booking(self, ride_id: str, rider_id: str) -> bool:
        """Cancel the rider's confirmed booking; ``False`` if there is none."""
        async with self.store.transaction() as snapshot:
            ride = snapshot.find_ride(ride_id)
            if ride is None:
                return False
            booking = snapshot.confirmed_booking(ride, rider_id)
            if booking is None:
                return False

            now = self.clock()
            if ride.minutes_from(now) < LATE_CANCELLATION_MINUTES:
                self._apply_late_penalty(snapshot, rider_id, now)

            ride.release_seat(booking.id)
            booking.cancel(now)

        logger.info("Booking %s cancelled by rider %s", booking.id, rider_id)
        return True

    @staticmethod
    def _apply_late_penalty(snapshot: Snapshot, rider_id: str, now: datetime) -> None:
        rider = snapshot.find_user(rider_id)
        if rider is None:
            return
        rider.ratings.append(
            RatingCategory.RIDER,
            RatingRecord(
                rating=LATE_CANCELLATION_SCORE,
                rater_id=SYSTEM_RATER_ID,
                review=LATE_CANCELLATION_REVIEW,
                timestamp=now,
            ),
        )
        logger.info("Late cancellation penalty applied to rider %s", rider_id)
