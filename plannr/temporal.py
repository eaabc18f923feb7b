"""
Date and clock-time primitives.

ScheduleDate is a calendar day with a sortable identifier. Time24 is a
time of day packed into an HHMM integer (930 -> 9:30), with minute
arithmetic that normalizes overflow into the hour and clamps at midnight.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from functools import total_ordering

import pytz

DEFAULT_TIMEZONE = "UTC"
MINUTES_PER_DAY = 24 * 60


@total_ordering
@dataclass(frozen=True)
class ScheduleDate:
    """A calendar day (day/month/year)."""

    day: int
    month: int
    year: int

    def __post_init__(self) -> None:
        # Raises ValueError for impossible dates (e.g. 31 February)
        date(self.year, self.month, self.day)

    @classmethod
    def from_date(cls, value: date) -> "ScheduleDate":
        return cls(day=value.day, month=value.month, year=value.year)

    @classmethod
    def from_id(cls, identifier: str) -> "ScheduleDate":
        """Parse a "YYYY-MM-DD" identifier."""
        return cls.from_date(date.fromisoformat(identifier))

    def to_date(self) -> date:
        return date(self.year, self.month, self.day)

    @property
    def id(self) -> str:
        """Canonical sortable identifier, e.g. "2025-06-06"."""
        return self.to_date().isoformat()

    @property
    def weekday_label(self) -> str:
        return self.to_date().strftime("%A")

    def next_day(self) -> "ScheduleDate":
        return self.add_days(1)

    def add_days(self, days: int) -> "ScheduleDate":
        return ScheduleDate.from_date(self.to_date() + timedelta(days=days))

    def days_until(self, other: "ScheduleDate") -> int:
        """Number of days from self to other (negative if other is earlier)."""
        return (other.to_date() - self.to_date()).days

    def __lt__(self, other: "ScheduleDate") -> bool:
        if not isinstance(other, ScheduleDate):
            return NotImplemented
        return (self.year, self.month, self.day) < (other.year, other.month, other.day)

    def __str__(self) -> str:
        return f"{self.day}/{self.month}/{self.year}"


@total_ordering
@dataclass(frozen=True)
class Time24:
    """
    Time of day in 24-hour form.

    Hours run 0-23; 24:00 is the one extra value and marks the end of a
    day. Minute arithmetic clamps into 0:00-24:00.
    """

    hour: int
    minute: int = 0

    def __post_init__(self) -> None:
        end_of_day = (self.hour, self.minute) == (24, 0)
        if not 0 <= self.minute < 60 or not (0 <= self.hour <= 23 or end_of_day):
            raise ValueError(f"Invalid time {self.hour}:{self.minute:02d}")

    @classmethod
    def from_int(cls, value: int) -> "Time24":
        """Build from HHMM encoding (930 -> 9:30, 1745 -> 17:45)."""
        if value < 0:
            raise ValueError(f"Invalid HHMM time: {value}")
        return cls(hour=value // 100, minute=value % 100)

    @classmethod
    def from_minutes(cls, minutes: int) -> "Time24":
        """Build from minutes since midnight, clamped to 0:00-24:00."""
        minutes = min(max(0, minutes), MINUTES_PER_DAY)
        return cls(hour=minutes // 60, minute=minutes % 60)

    def to_int(self) -> int:
        return self.hour * 100 + self.minute

    @property
    def total_minutes(self) -> int:
        return self.hour * 60 + self.minute

    def add_minutes(self, minutes: int) -> "Time24":
        return Time24.from_minutes(self.total_minutes + minutes)

    def subtract_minutes(self, minutes: int) -> "Time24":
        return Time24.from_minutes(self.total_minutes - minutes)

    def minutes_until(self, other: "Time24") -> int:
        return other.total_minutes - self.total_minutes

    def is_before(self, other: "Time24") -> bool:
        return self < other

    def is_after(self, other: "Time24") -> bool:
        return self > other

    def __lt__(self, other: "Time24") -> bool:
        if not isinstance(other, Time24):
            return NotImplemented
        return self.to_int() < other.to_int()

    def __str__(self) -> str:
        return format_time(self)

    def to_12_hour_string(self) -> str:
        return format_time_12h(self)


def parse_hhmm(time_str: str) -> Time24:
    """Parse "HH:MM" string to Time24."""
    parts = time_str.split(":")
    return Time24(int(parts[0]), int(parts[1]))


def format_time(t: Time24) -> str:
    """Format as "H:MM" (24-hour)."""
    return f"{t.hour}:{t.minute:02d}"


def format_time_12h(t: Time24) -> str:
    """Format as "H:MM AM/PM" (12-hour format for user-facing text)."""
    hour = t.hour % 24
    period = "AM" if hour < 12 else "PM"
    if hour == 0:
        hour = 12
    elif hour > 12:
        hour -= 12
    return f"{hour}:{t.minute:02d} {period}"


def current_datetime_in_tz(tz_name: str | None = None) -> datetime:
    """
    Get current datetime in the specified timezone.

    Repairs compare "now" against block dates and clock times that are
    local to the user, so the result is naive local time.

    Args:
        tz_name: IANA timezone name (e.g., "America/Los_Angeles"), UTC if None

    Returns:
        Current datetime in the specified timezone (naive, for local comparisons)
    """
    tz = pytz.timezone(tz_name or DEFAULT_TIMEZONE)
    now_utc = datetime.now(pytz.UTC)
    now_local = now_utc.astimezone(tz)
    return now_local.replace(tzinfo=None)


def split_datetime(value: datetime) -> tuple[ScheduleDate, Time24]:
    """Split a naive datetime into its ScheduleDate and Time24 parts."""
    return ScheduleDate.from_date(value.date()), Time24(value.hour, value.minute)
