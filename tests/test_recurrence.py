"""Recurring-ride expansion over the 7-day horizon."""

from datetime import datetime, timezone

from unipool.domain.entities import RecurrenceRule, Ride
from unipool.domain.recurrence import make_instance, recurrence_departures

from conftest import SUNDAY_NOON

DEPARTURE = datetime(2026, 10, 18, 8, 30, tzinfo=timezone.utc)


class TestRecurrenceDepartures:
    def test_sunday_mon_wed_gives_next_monday_and_wednesday(self):
        rule = RecurrenceRule(enabled=True, days=["Mon", "Wed"])
        departures = recurrence_departures(rule, DEPARTURE, SUNDAY_NOON)
        assert departures == [
            datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc),
            datetime(2026, 10, 21, 8, 30, tzinfo=timezone.utc),
        ]

    def test_today_excluded_and_next_week_day_included(self):
        # Today is Sunday: only next Sunday (7 days ahead) qualifies
        rule = RecurrenceRule(enabled=True, days=["Sun"])
        departures = recurrence_departures(rule, DEPARTURE, SUNDAY_NOON)
        assert departures == [datetime(2026, 10, 25, 8, 30, tzinfo=timezone.utc)]

    def test_every_day(self):
        rule = RecurrenceRule(
            enabled=True, days=["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
        )
        assert len(recurrence_departures(rule, DEPARTURE, SUNDAY_NOON)) == 7

    def test_disabled_rule_gives_nothing(self):
        rule = RecurrenceRule(enabled=False, days=["Mon"])
        assert recurrence_departures(rule, DEPARTURE, SUNDAY_NOON) == []


class TestMakeInstance:
    def test_instance_starts_empty_with_all_seats(self):
        base = Ride(
            id="r1", pickup="Gulberg", dropoff="FCC", departure_time=DEPARTURE,
            driver_id="d1", seats=3,
            recurring=RecurrenceRule(enabled=True, days=["Mon"]),
        )
        base.reserve_seat("b1")

        departure = datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc)
        instance = make_instance(base, departure, "r2")

        assert instance.id == "r2"
        assert instance.departure_time == departure
        assert instance.is_recurring is True
        assert instance.parent_ride_id == "r1"
        assert instance.booking_ids == []
        assert instance.available_seats == 3
        assert instance.recurring is not base.recurring
