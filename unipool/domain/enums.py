"""Domain enumerations and state-transition rules."""

import enum


class Role(str, enum.Enum):
    DRIVER = "Driver"
    RIDER = "Rider"


class RatingCategory(str, enum.Enum):
    DRIVER = "driver"
    RIDER = "rider"


class BookingStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# State machine: maps current status -> set of valid next statuses.
# A cancelled booking is never revived; re-booking issues a new record.
BOOKING_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: set(),
}


class HistoryKind(str, enum.Enum):
    ALL = "all"
    DRIVER = "driver"
    RIDER = "rider"


# Weekday abbreviations indexed by ``date.weekday()``
WEEKDAYS: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
