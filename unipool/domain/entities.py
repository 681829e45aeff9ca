"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Booking``: enforces valid lifecycle transitions
  (CONFIRMED -> CANCELLED).
- ``Ride.reserve_seat`` / ``Ride.release_seat`` encapsulate the seat
  invariant ``0 <= available_seats <= seats``.
- ``RatingLedger.upsert`` keeps at most one record per rater and category.
- ``Snapshot`` is the in-memory form of the single stored document.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .enums import (
    BOOKING_TRANSITIONS,
    WEEKDAYS,
    BookingStatus,
    RatingCategory,
    Role,
)
from .errors import InvalidStateTransition, NoSeatsAvailable, ValidationError

MAX_REVIEW_LENGTH = 200
SYSTEM_RATER_ID = "system"


def ensure_aware(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Ratings ───────────────────────────────────────────────────────────


@dataclass
class RatingRecord:
    rating: int
    rater_id: Optional[str] = None
    review: str = ""
    timestamp: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not 1 <= self.rating <= 5:
            raise ValidationError(f"Rating must be between 1 and 5, got {self.rating}")
        if len(self.review) > MAX_REVIEW_LENGTH:
            raise ValidationError(
                f"Review must be at most {MAX_REVIEW_LENGTH} characters"
            )


@dataclass
class RatingLedger:
    driver: list[RatingRecord] = field(default_factory=list)
    rider: list[RatingRecord] = field(default_factory=list)

    def for_category(self, category: RatingCategory) -> list[RatingRecord]:
        if RatingCategory(category) is RatingCategory.DRIVER:
            return self.driver
        return self.rider

    def upsert(self, category: RatingCategory, record: RatingRecord) -> None:
        """Replace the rater's previous record in place, else append."""
        ledger = self.for_category(category)
        for idx, existing in enumerate(ledger):
            if existing.rater_id == record.rater_id:
                ledger[idx] = record
                return
        ledger.append(record)

    def append(self, category: RatingCategory, record: RatingRecord) -> None:
        self.for_category(category).append(record)

    def average(self, category: RatingCategory) -> Optional[float]:
        ledger = self.for_category(category)
        if not ledger:
            return None
        return sum(r.rating for r in ledger) / len(ledger)


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class User:
    id: str
    name: str
    email: str
    role: Role = Role.RIDER
    ratings: RatingLedger = field(default_factory=RatingLedger)
    preferences: dict[str, Any] = field(default_factory=dict)
    ride_history: list[str] = field(default_factory=list)
    created_at: Optional[datetime] = None


@dataclass
class RecurrenceRule:
    enabled: bool = False
    days: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        unknown = [d for d in self.days if d not in WEEKDAYS]
        if unknown:
            raise ValidationError(f"Unknown weekday(s): {', '.join(unknown)}")


@dataclass
class Ride:
    id: str
    pickup: str
    dropoff: str
    departure_time: datetime
    driver_id: str
    seats: int
    available_seats: Optional[int] = None
    booking_ids: list[str] = field(default_factory=list)
    recurring: Optional[RecurrenceRule] = None
    is_recurring: bool = False
    parent_ride_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.seats < 1:
            raise ValidationError("A ride needs at least one seat")
        if self.available_seats is None:
            self.available_seats = self.seats
        if not 0 <= self.available_seats <= self.seats:
            raise ValidationError(
                f"available_seats={self.available_seats} outside 0..{self.seats}"
            )
        self.departure_time = ensure_aware(self.departure_time)

    @property
    def has_open_seat(self) -> bool:
        return self.available_seats > 0

    def minutes_from(self, moment: datetime) -> float:
        """Signed minutes between *moment* and departure (negative if past)."""
        return (self.departure_time - moment).total_seconds() / 60

    def reserve_seat(self, booking_id: str) -> None:
        if self.available_seats <= 0:
            raise NoSeatsAvailable(f"No seats available on ride {self.id}")
        self.available_seats -= 1
        self.booking_ids.append(booking_id)

    def release_seat(self, booking_id: str) -> None:
        if booking_id in self.booking_ids:
            self.booking_ids.remove(booking_id)
        if self.available_seats < self.seats:
            self.available_seats += 1


@dataclass
class Booking:
    id: str
    ride_id: str
    rider_id: str
    driver_id: str
    status: BookingStatus = BookingStatus.CONFIRMED
    pickup_point: str = ""
    booking_time: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED

    def transition_to(self, new_status: BookingStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        allowed = BOOKING_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition from {self.status} to {new_status}"
            )
        self.status = new_status

    def cancel(self, at: datetime) -> None:
        self.transition_to(BookingStatus.CANCELLED)
        self.cancelled_at = at


# ── Aggregate ─────────────────────────────────────────────────────────


@dataclass
class Snapshot:
    users: list[User] = field(default_factory=list)
    rides: list[Ride] = field(default_factory=list)
    bookings: list[Booking] = field(default_factory=list)

    def find_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.users if u.id == user_id), None)

    def find_ride(self, ride_id: str) -> Optional[Ride]:
        return next((r for r in self.rides if r.id == ride_id), None)

    def find_booking(self, booking_id: str) -> Optional[Booking]:
        return next((b for b in self.bookings if b.id == booking_id), None)

    def confirmed_booking(self, ride: Ride, rider_id: str) -> Optional[Booking]:
        for booking in self.bookings:
            if (
                booking.ride_id == ride.id
                and booking.rider_id == rider_id
                and booking.is_confirmed
            ):
                return booking
        return None

    def bookings_for_rider(self, rider_id: str) -> list[Booking]:
        return [b for b in self.bookings if b.rider_id == rider_id]

    def rides_for_driver(self, driver_id: str) -> list[Ride]:
        return [r for r in self.rides if r.driver_id == driver_id]
