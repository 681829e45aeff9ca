"""Users, rating ledgers and profile statistics."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from unipool.domain.entities import Booking, RatingRecord, Ride, User, utcnow
from unipool.domain.enums import BookingStatus, HistoryKind, RatingCategory, Role
from unipool.domain.errors import NotFound, ValidationError
from unipool.infrastructure.store import Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserStats:
    total_rides_as_driver: int
    total_rides_as_rider: int
    total_rides: int
    average_driver_rating: Optional[float]
    average_rider_rating: Optional[float]
    member_since: Optional[datetime]


@dataclass(frozen=True)
class HistoryEntry:
    ride: Ride
    role: Role
    booking_id: Optional[str] = None
    booking_status: Optional[BookingStatus] = None


def _rounded(value: Optional[float]) -> Optional[float]:
    return round(value, 1) if value is not None else None


class ProfileService:
    def __init__(self, store: Store, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    async def register_user(self, name: str, email: str, role: Role) -> User:
        name, email = name.strip(), email.strip().lower()
        if not name or not email:
            raise ValidationError("Name and email are required")

        async with self.store.transaction() as snapshot:
            if any(u.email.lower() == email for u in snapshot.users):
                raise ValidationError("User with this email already exists")
            user = User(
                id=self.store.new_id("u"),
                name=name,
                email=email,
                role=role,
                created_at=self.clock(),
            )
            snapshot.users.append(user)

        logger.info("Registered user %s (%s)", user.id, role.value)
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self.store.find_user_by_id(user_id)

    async def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        preferences: Optional[dict[str, Any]] = None,
    ) -> User:
        """Rename the user and/or merge *preferences* into the stored ones."""
        if name is not None and not name.strip():
            raise ValidationError("Name cannot be blank")

        async with self.store.transaction() as snapshot:
            user = snapshot.find_user(user_id)
            if user is None:
                raise NotFound(f"User {user_id} not found")
            if name is not None:
                user.name = name.strip()
            if preferences:
                user.preferences.update(preferences)
        return user

    async def submit_rating(
        self,
        subject_user_id: str,
        rater_id: str,
        category: RatingCategory,
        score: int,
        review: Optional[str] = None,
    ) -> User:
        """Record *rater_id*'s rating; a repeat rating replaces the earlier one."""
        record = RatingRecord(
            rating=score,
            rater_id=rater_id,
            review=(review or "").strip(),
            timestamp=self.clock(),
        )
        async with self.store.transaction() as snapshot:
            user = snapshot.find_user(subject_user_id)
            if user is None:
                raise NotFound(f"User {subject_user_id} not found")
            user.ratings.upsert(category, record)
        return user

    async def get_user_ratings(
        self, user_id: str, category: RatingCategory
    ) -> list[RatingRecord]:
        user = await self.store.find_user_by_id(user_id)
        if user is None:
            return []
        return list(user.ratings.for_category(category))

    async def get_average_rating(
        self, user_id: str, category: RatingCategory
    ) -> Optional[float]:
        user = await self.store.find_user_by_id(user_id)
        if user is None:
            return None
        return _rounded(user.ratings.average(category))

    async def get_user_stats(self, user_id: str) -> UserStats:
        snapshot = await self.store.load()
        user = snapshot.find_user(user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")

        as_driver = len(snapshot.rides_for_driver(user_id))
        as_rider = len(snapshot.bookings_for_rider(user_id))
        return UserStats(
            total_rides_as_driver=as_driver,
            total_rides_as_rider=as_rider,
            total_rides=as_driver + as_rider,
            average_driver_rating=_rounded(user.ratings.average(RatingCategory.DRIVER)),
            average_rider_rating=_rounded(user.ratings.average(RatingCategory.RIDER)),
            member_since=user.created_at,
        )

    async def get_ride_history(
        self, user_id: str, kind: HistoryKind = HistoryKind.ALL
    ) -> list[HistoryEntry]:
        """Rides driven and/or booked, newest departure first."""
        snapshot = await self.store.load()
        history: list[HistoryEntry] = []

        if kind in (HistoryKind.ALL, HistoryKind.DRIVER):
            history.extend(
                HistoryEntry(ride=r, role=Role.DRIVER)
                for r in snapshot.rides_for_driver(user_id)
            )
        if kind in (HistoryKind.ALL, HistoryKind.RIDER):
            for booking in snapshot.bookings_for_rider(user_id):
                ride = snapshot.find_ride(booking.ride_id)
                if ride is None:
                    continue
                history.append(
                    HistoryEntry(
                        ride=ride,
                        role=Role.RIDER,
                        booking_id=booking.id,
                        booking_status=booking.status,
                    )
                )

        history.sort(key=lambda e: e.ride.departure_time, reverse=True)
        return history

    async def get_user_bookings(self, user_id: str) -> list[Booking]:
        return (await self.store.load()).bookings_for_rider(user_id)

    async def get_driver_rides(self, driver_id: str) -> list[Ride]:
        return (await self.store.load()).rides_for_driver(driver_id)
