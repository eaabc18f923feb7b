"""
The multi-day result of a scheduler run.
"""

import copy
from collections.abc import Iterator
from dataclasses import dataclass, field

from .day_calendar import DailyCalendar
from .dependencies import DependencyGraph
from .temporal import ScheduleDate, Time24
from .types import Break, Obligation, PlacedBlock


@dataclass
class Placement:
    """
    Ordered date -> DailyCalendar mapping plus the settings that built it.

    Treated as a value once returned: repairs work on a deep copy.
    """

    num_days: int
    first_date: ScheduleDate
    min_gap: int
    working_hours_limit: int
    dependencies: DependencyGraph
    strategy: str
    window_start: Time24
    window_end: Time24
    days: dict[str, DailyCalendar] = field(default_factory=dict)

    @classmethod
    def empty(
        cls,
        first_date: ScheduleDate,
        num_days: int,
        min_gap: int,
        working_hours_limit: int,
        dependencies: DependencyGraph,
        strategy: str,
        window_start: Time24,
        window_end: Time24,
    ) -> "Placement":
        """A placement with one empty DailyCalendar per date."""
        if num_days < 1:
            raise ValueError(f"num_days must be at least 1, got {num_days}")
        placement = cls(
            num_days=num_days,
            first_date=first_date,
            min_gap=min_gap,
            working_hours_limit=working_hours_limit,
            dependencies=dependencies,
            strategy=strategy,
            window_start=window_start,
            window_end=window_end,
        )
        current = first_date
        for _ in range(num_days):
            placement.days[current.id] = DailyCalendar(current, min_gap, working_hours_limit)
            current = current.next_day()
        return placement

    @property
    def first_day_label(self) -> str:
        return self.first_date.weekday_label

    @property
    def last_date(self) -> ScheduleDate:
        return self.first_date.add_days(self.num_days - 1)

    def dates(self) -> list[ScheduleDate]:
        return [calendar.date for calendar in self.days.values()]

    def calendar_for(self, date: ScheduleDate) -> DailyCalendar | None:
        return self.days.get(date.id)

    def contains_date(self, date: ScheduleDate) -> bool:
        return date.id in self.days

    def blocks(self) -> list[PlacedBlock]:
        """Every PlacedBlock, in date then start order."""
        return [block for calendar in self.days.values() for block in calendar]

    def locate_block(self, obligation: Obligation | str) -> PlacedBlock | None:
        for calendar in self.days.values():
            block = calendar.block_for(obligation)
            if block is not None:
                return block
        return None

    def obligations(self) -> list[Obligation]:
        return [event for calendar in self.days.values() for event in calendar.events]

    def breaks(self) -> list[tuple[ScheduleDate, Break]]:
        return [(calendar.date, brk) for calendar in self.days.values() for brk in calendar.breaks]

    def total_occupied_hours(self) -> int:
        """Sum of each day's floored working hours."""
        return sum(calendar.calculate_working_hours() for calendar in self.days.values())

    def copy(self) -> "Placement":
        return copy.deepcopy(self)

    def __iter__(self) -> Iterator[DailyCalendar]:
        return iter(list(self.days.values()))

    def __len__(self) -> int:
        return len(self.days)

    def __str__(self) -> str:
        return "\n".join(str(calendar) for calendar in self.days.values())
