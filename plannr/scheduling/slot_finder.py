"""
Time-slot search within one day.

Candidates are stepped in SLOT_STEP_MINUTES increments. A slot is valid
when it lies inside [lower, upper], keeps min_gap minutes to every block
already in the day, and passes the day's flexible-placement check.
"""

from ..day_calendar import DailyCalendar
from ..temporal import Time24

SLOT_STEP_MINUTES = 5


def _round_up_to_step(minutes: int) -> int:
    remainder = minutes % SLOT_STEP_MINUTES
    return minutes if remainder == 0 else minutes + SLOT_STEP_MINUTES - remainder


def slot_fits(calendar: DailyCalendar, start: Time24, end: Time24, duration: int) -> bool:
    if not calendar.gap_respected(start, end):
        return False
    return calendar.check_flexible(start, end, duration) is None


def find_earliest_slot(
    calendar: DailyCalendar, duration: int, lower: Time24, upper: Time24
) -> tuple[Time24, Time24] | None:
    """
    First slot of `duration` minutes starting at or after `lower`.

    Args:
        calendar: Day to search
        duration: Minutes required
        lower: Earliest allowed start
        upper: Latest allowed end

    Returns:
        (start, end) or None if nothing fits
    """
    # Capacity does not depend on the slot, so fail fast
    if calendar.exceeds_working_limit(duration):
        return None

    start_minutes = _round_up_to_step(lower.total_minutes)
    while start_minutes + duration <= upper.total_minutes:
        start = Time24.from_minutes(start_minutes)
        end = start.add_minutes(duration)
        if slot_fits(calendar, start, end, duration):
            return start, end
        start_minutes += SLOT_STEP_MINUTES
    return None


def find_latest_slot(
    calendar: DailyCalendar, duration: int, lower: Time24, upper: Time24
) -> tuple[Time24, Time24] | None:
    """Last slot of `duration` minutes ending at or before `upper`."""
    if calendar.exceeds_working_limit(duration):
        return None

    start_minutes = upper.total_minutes - duration
    while start_minutes >= lower.total_minutes:
        start = Time24.from_minutes(start_minutes)
        end = start.add_minutes(duration)
        if slot_fits(calendar, start, end, duration):
            return start, end
        start_minutes -= SLOT_STEP_MINUTES
    return None
