"""
Interchangeable placement strategies.

Each strategy decides three things for flexible placement:
- order_key: tie-break among obligations the dependency order leaves free
- candidate_days: which eligible day to try first
- find_slot: which slot inside a day to take
"""

from ..day_calendar import DailyCalendar
from ..temporal import ScheduleDate, Time24
from ..types import PRIORITY_RANK, FlexibleObligation
from .slot_finder import find_earliest_slot, find_latest_slot


class SchedulingStrategy:
    """Shared defaults: chronological days, earliest slot, input order."""

    name = "earliest_fit"
    label = "Earliest Fit"

    def order_key(
        self, obligation: FlexibleObligation, effective_deadline: ScheduleDate
    ) -> tuple:
        # Input position is appended by the topological sort
        return ()

    def candidate_days(self, calendars: list[DailyCalendar]) -> list[DailyCalendar]:
        return sorted(calendars, key=lambda c: c.date)

    def find_slot(
        self, calendar: DailyCalendar, duration: int, lower: Time24, upper: Time24
    ) -> tuple[Time24, Time24] | None:
        return find_earliest_slot(calendar, duration, lower, upper)


class EarliestFit(SchedulingStrategy):
    """First eligible day, first fitting slot, obligations in input order."""


class BalancedWork(SchedulingStrategy):
    """Least-loaded eligible day first; longer obligations are placed first."""

    name = "balanced_work"
    label = "Balanced Work"

    def order_key(
        self, obligation: FlexibleObligation, effective_deadline: ScheduleDate
    ) -> tuple:
        return (-obligation.duration,)

    def candidate_days(self, calendars: list[DailyCalendar]) -> list[DailyCalendar]:
        return sorted(calendars, key=lambda c: (c.working_minutes(), c.date))


class DeadlineOriented(SchedulingStrategy):
    """
    Most urgent first (deadline, then priority), placed as late as possible.

    Taking the latest day and the latest slot before the deadline leaves
    earlier slack free for obligations not yet processed.
    """

    name = "deadline_oriented"
    label = "Deadline Oriented"

    def order_key(
        self, obligation: FlexibleObligation, effective_deadline: ScheduleDate
    ) -> tuple:
        return (effective_deadline, -PRIORITY_RANK[obligation.priority])

    def candidate_days(self, calendars: list[DailyCalendar]) -> list[DailyCalendar]:
        return sorted(calendars, key=lambda c: c.date, reverse=True)

    def find_slot(
        self, calendar: DailyCalendar, duration: int, lower: Time24, upper: Time24
    ) -> tuple[Time24, Time24] | None:
        return find_latest_slot(calendar, duration, lower, upper)


STRATEGIES: dict[str, type[SchedulingStrategy]] = {
    EarliestFit.name: EarliestFit,
    BalancedWork.name: BalancedWork,
    DeadlineOriented.name: DeadlineOriented,
}


def normalize_strategy_name(name: str) -> str:
    """
    Map a strategy name or display label to its canonical name.

    "Earliest Fit", "earliest-fit" and "earliest_fit" all resolve to
    "earliest_fit".

    Raises:
        ValueError: If the name matches no strategy
    """
    canonical = name.strip().lower().replace("-", "_").replace(" ", "_")
    if canonical not in STRATEGIES:
        raise ValueError(
            f"Unknown strategy '{name}'. Expected one of: {', '.join(STRATEGIES)}"
        )
    return canonical


def get_strategy(name: str) -> SchedulingStrategy:
    return STRATEGIES[normalize_strategy_name(name)]()
