"""
Ride Recommendation Scoring  (Strategy Pattern)
===============================================

Two ranking strategies over the rides currently in the store.

Proximity + rating (basic)
--------------------------
Candidates: campus-bound (``dropoff == "FCC"``), open seat, departing
within 30 min of now.

    score = 0.7 x driver_average + 0.3 x (1 / minutes_from_now)

``driver_average`` is the mean of the driver's *as driver* ledger, 0 when
the ledger is empty.

Smart (preference-aware)
------------------------
Candidates: open seat, departing within 60 min, optionally restricted to a
destination and a tighter ``max_time`` window.

    score = 0.5 x driver_rating + 0.3 x time_score + 0.2 x seat_score

* ``driver_rating`` -- ledger mean once 3+ ratings exist, else 3.0
* ``time_score``    -- ``max(0, 1 - minutes / 60)``
* ``seat_score``    -- ``min(1, available_seats / 4)``

Only the top 10 are returned.

Both sorts are stable: equal scores keep store order.

Complexity: O(N log N) for N stored rides (driver lookup is O(1) via a
pre-built id map).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Mapping, Optional

from .entities import Booking, Ride, User
from .enums import RatingCategory
from .search import minutes_apart

# Departures closer than one second are scored as one second away.
MIN_PROXIMITY_MINUTES = 1 / 60

SMART_RESULT_LIMIT = 10


@dataclass(frozen=True)
class ScoredRide:
    ride: Ride
    score: float
    minutes_from_now: float


@dataclass(frozen=True)
class SmartPreferences:
    destination: Optional[str] = None
    max_time: Optional[float] = None  # minutes


@dataclass
class PreferenceProfile:
    favorite_destinations: list[str] = field(default_factory=list)
    preferred_times: list[int] = field(default_factory=list)
    favorite_drivers: list[str] = field(default_factory=list)


# ── Strategy hierarchy ────────────────────────────────────────────────


class ScoringStrategy(ABC):
    window_minutes: float

    def eligible(self, ride: Ride, minutes: float) -> bool:
        return ride.has_open_seat and minutes <= self.window_minutes

    @abstractmethod
    def score(self, ride: Ride, driver: Optional[User], minutes: float) -> float: ...


class ProximityRatingScoring(ScoringStrategy):
    RATING_WEIGHT = 0.7
    PROXIMITY_WEIGHT = 0.3
    window_minutes = 30

    def __init__(self, campus_destination: str = "FCC"):
        self.campus_destination = campus_destination

    @staticmethod
    def driver_rating(driver: Optional[User]) -> float:
        if driver is None:
            return 0.0
        average = driver.ratings.average(RatingCategory.DRIVER)
        return average if average is not None else 0.0

    def eligible(self, ride: Ride, minutes: float) -> bool:
        return ride.dropoff == self.campus_destination and super().eligible(
            ride, minutes
        )

    def score(self, ride: Ride, driver: Optional[User], minutes: float) -> float:
        proximity = 1 / max(minutes, MIN_PROXIMITY_MINUTES)
        return (
            self.RATING_WEIGHT * self.driver_rating(driver)
            + self.PROXIMITY_WEIGHT * proximity
        )


class SmartScoring(ScoringStrategy):
    RATING_WEIGHT = 0.5
    TIME_WEIGHT = 0.3
    SEAT_WEIGHT = 0.2
    COLD_START_RATING = 3.0
    MIN_RATINGS = 3
    SEAT_SATURATION = 4
    window_minutes = 60

    def __init__(self, preferences: Optional[SmartPreferences] = None):
        self.preferences = preferences or SmartPreferences()

    @classmethod
    def driver_rating(cls, driver: Optional[User]) -> float:
        if driver is None:
            return cls.COLD_START_RATING
        ledger = driver.ratings.driver
        if len(ledger) < cls.MIN_RATINGS:
            return cls.COLD_START_RATING
        return sum(r.rating for r in ledger) / len(ledger)

    def eligible(self, ride: Ride, minutes: float) -> bool:
        if not super().eligible(ride, minutes):
            return False
        prefs = self.preferences
        if prefs.destination and ride.dropoff != prefs.destination:
            return False
        if prefs.max_time and minutes > prefs.max_time:
            return False
        return True

    def score(self, ride: Ride, driver: Optional[User], minutes: float) -> float:
        time_score = max(0.0, 1 - minutes / self.window_minutes)
        seat_score = min(1.0, ride.available_seats / self.SEAT_SATURATION)
        return (
            self.RATING_WEIGHT * self.driver_rating(driver)
            + self.TIME_WEIGHT * time_score
            + self.SEAT_WEIGHT * seat_score
        )


# ── Ranking ───────────────────────────────────────────────────────────


def rank_rides(
    rides: Iterable[Ride],
    users_by_id: Mapping[str, User],
    strategy: ScoringStrategy,
    now: datetime,
    limit: Optional[int] = None,
) -> list[ScoredRide]:
    scored: list[ScoredRide] = []
    for ride in rides:
        minutes = minutes_apart(ride.departure_time, now)
        if not strategy.eligible(ride, minutes):
            continue
        driver = users_by_id.get(ride.driver_id)
        scored.append(ScoredRide(ride, strategy.score(ride, driver, minutes), minutes))

    scored.sort(key=lambda s: s.score, reverse=True)
    return scored[:limit] if limit is not None else scored


def analyze_preferences(
    bookings: Iterable[Booking], rides_by_id: Mapping[str, Ride]
) -> PreferenceProfile:
    """Distinct destinations, departure hours and drivers, first-seen order."""
    profile = PreferenceProfile()
    for booking in bookings:
        ride = rides_by_id.get(booking.ride_id)
        if ride is None:
            continue
        if ride.dropoff not in profile.favorite_destinations:
            profile.favorite_destinations.append(ride.dropoff)
        hour = ride.departure_time.hour
        if hour not in profile.preferred_times:
            profile.preferred_times.append(hour)
        if ride.driver_id not in profile.favorite_drivers:
            profile.favorite_drivers.append(ride.driver_id)
    return profile
