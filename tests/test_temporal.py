"""
Tests for date and clock-time primitives.
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest
import time_machine

sys.path.insert(0, str(Path(__file__).parent.parent))

from plannr.temporal import (
    ScheduleDate,
    Time24,
    current_datetime_in_tz,
    format_time,
    format_time_12h,
    parse_hhmm,
    split_datetime,
)


class TestScheduleDate:
    """Calendar-day arithmetic and ordering."""

    def test_id_is_sortable_iso_string(self):
        """The id is zero-padded so string order matches date order."""
        assert ScheduleDate(6, 6, 2025).id == "2025-06-06"
        assert ScheduleDate(9, 6, 2025).id < ScheduleDate(10, 6, 2025).id

    def test_next_day_rolls_over_month_and_year(self):
        """next_day crosses month and year boundaries."""
        assert ScheduleDate(30, 6, 2025).next_day() == ScheduleDate(1, 7, 2025)
        assert ScheduleDate(31, 12, 2025).next_day() == ScheduleDate(1, 1, 2026)

    def test_leap_day(self):
        """28 Feb rolls to 29 Feb only in leap years."""
        assert ScheduleDate(28, 2, 2024).next_day() == ScheduleDate(29, 2, 2024)
        assert ScheduleDate(28, 2, 2025).next_day() == ScheduleDate(1, 3, 2025)

    def test_impossible_date_rejected(self):
        """Dates that do not exist raise ValueError."""
        with pytest.raises(ValueError):
            ScheduleDate(31, 2, 2025)

    def test_ordering(self):
        """Dates compare chronologically, not by field order."""
        assert ScheduleDate(31, 5, 2025) < ScheduleDate(1, 6, 2025)
        assert ScheduleDate(1, 1, 2026) > ScheduleDate(31, 12, 2025)
        assert max(ScheduleDate(6, 6, 2025), ScheduleDate(7, 6, 2025)) == ScheduleDate(7, 6, 2025)

    def test_weekday_label(self):
        """6 June 2025 is a Friday."""
        assert ScheduleDate(6, 6, 2025).weekday_label == "Friday"

    def test_from_id_round_trips(self):
        """from_id parses what id produces."""
        date = ScheduleDate(12, 6, 2025)
        assert ScheduleDate.from_id(date.id) == date

    def test_days_until(self):
        assert ScheduleDate(6, 6, 2025).days_until(ScheduleDate(12, 6, 2025)) == 6
        assert ScheduleDate(12, 6, 2025).days_until(ScheduleDate(6, 6, 2025)) == -6


class TestTime24:
    """Clock-time arithmetic."""

    def test_hhmm_encoding(self):
        """930 decodes to 9:30 and back."""
        time = Time24.from_int(930)
        assert (time.hour, time.minute) == (9, 30)
        assert time.to_int() == 930

    def test_add_minutes_normalizes_overflow(self):
        """Minute overflow carries into the hour."""
        assert Time24(9, 45).add_minutes(30) == Time24(10, 15)

    def test_subtract_minutes_clamps_at_midnight(self):
        """Subtraction never goes below 0:00."""
        assert Time24(0, 20).subtract_minutes(45) == Time24(0, 0)

    def test_end_of_day_is_representable(self):
        """2400 marks the end of a day."""
        assert Time24(23, 30).add_minutes(30) == Time24(24, 0)
        assert Time24.from_int(2400) > Time24.from_int(2359)

    def test_addition_clamps_at_end_of_day(self):
        """Nothing past 24:00 is produced."""
        assert Time24(23, 30).add_minutes(90) == Time24(24, 0)
        assert Time24.from_minutes(2000) == Time24(24, 0)

    @pytest.mark.parametrize("hour,minute", [(30, 0), (24, 5), (25, 0), (-1, 0)])
    def test_invalid_hour_rejected(self, hour, minute):
        """Hours are 0-23, plus the single 24:00 end-of-day value."""
        with pytest.raises(ValueError):
            Time24(hour, minute)

    def test_invalid_hhmm_rejected(self):
        with pytest.raises(ValueError):
            Time24.from_int(2430)

    def test_minutes_until(self):
        assert Time24(9, 0).minutes_until(Time24(10, 30)) == 90
        assert Time24(10, 30).minutes_until(Time24(9, 0)) == -90

    def test_invalid_minute_rejected(self):
        """Minutes must be 0-59."""
        with pytest.raises(ValueError):
            Time24(9, 60)

    def test_is_before_and_after(self):
        assert Time24(8, 0).is_before(Time24(8, 5))
        assert Time24(17, 0).is_after(Time24(16, 59))

    def test_formatting(self):
        """24-hour and 12-hour formatting."""
        assert str(Time24(9, 5)) == "9:05"
        assert format_time(Time24(17, 30)) == "17:30"
        assert format_time_12h(Time24(0, 15)) == "12:15 AM"
        assert format_time_12h(Time24(12, 0)) == "12:00 PM"
        assert format_time_12h(Time24(17, 30)) == "5:30 PM"
        assert Time24(9, 30).to_12_hour_string() == "9:30 AM"

    def test_parse_hhmm(self):
        assert parse_hhmm("08:30") == Time24(8, 30)


class TestCurrentTime:
    """Timezone-aware "now" used by repairs."""

    @time_machine.travel("2025-06-06T20:00:00Z", tick=False)
    def test_defaults_to_utc(self):
        """Without a timezone, now is naive UTC."""
        now = current_datetime_in_tz()
        assert now == datetime(2025, 6, 6, 20, 0)
        assert now.tzinfo is None

    @time_machine.travel("2025-06-06T20:00:00Z", tick=False)
    def test_converts_to_local_time(self):
        """20:00 UTC is 13:00 in Los Angeles during PDT."""
        now = current_datetime_in_tz("America/Los_Angeles")
        assert now == datetime(2025, 6, 6, 13, 0)

    @time_machine.travel("2025-06-06T23:30:00Z", tick=False)
    def test_local_date_can_differ_from_utc(self):
        """Late UTC evening is already the next day in Tokyo."""
        date, time = split_datetime(current_datetime_in_tz("Asia/Tokyo"))
        assert date == ScheduleDate(7, 6, 2025)
        assert time == Time24(8, 30)
