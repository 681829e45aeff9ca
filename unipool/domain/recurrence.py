"""
Recurring-ride expansion.

A ride posted with ``recurring.enabled`` spawns one instance per matching
weekday within the next ``RECURRENCE_HORIZON_DAYS`` calendar days (today
excluded).  Each instance keeps the base ride's time-of-day and starts with
an empty booking list and every seat open.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from .entities import RecurrenceRule, Ride
from .enums import WEEKDAYS

RECURRENCE_HORIZON_DAYS = 7


def recurrence_departures(
    rule: RecurrenceRule,
    departure: datetime,
    now: datetime,
    horizon_days: int = RECURRENCE_HORIZON_DAYS,
) -> list[datetime]:
    """Departure instants for every selected weekday in the horizon."""
    if not rule.enabled or not rule.days:
        return []

    today = now.astimezone(departure.tzinfo).date()
    wanted = set(rule.days)
    result: list[datetime] = []
    for offset in range(1, horizon_days + 1):
        day = today + timedelta(days=offset)
        if WEEKDAYS[day.weekday()] in wanted:
            result.append(datetime.combine(day, departure.timetz()))
    return result


def make_instance(base: Ride, departure: datetime, new_id: str) -> Ride:
    return Ride(
        id=new_id,
        pickup=base.pickup,
        dropoff=base.dropoff,
        departure_time=departure,
        driver_id=base.driver_id,
        seats=base.seats,
        available_seats=base.seats,
        booking_ids=[],
        recurring=(
            RecurrenceRule(base.recurring.enabled, list(base.recurring.days))
            if base.recurring
            else None
        ),
        is_recurring=True,
        parent_ride_id=base.id,
        created_at=base.created_at,
    )
