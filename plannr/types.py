"""
Data structures for schedule generation.

Obligations are a tagged variant (rigid | flexible) dispatched on `kind`.
PlacedBlock is the projection of an obligation or break once it has been
written into a day.
"""

from dataclasses import dataclass, field
from typing import Literal
from uuid import uuid4

from .temporal import ScheduleDate, Time24

# =============================================================================
# Enumerations
# =============================================================================

ActivityType = Literal[
    "personal",
    "meeting",
    "work",
    "event",
    "education",
    "travel",
    "recreational",
    "errand",
    "other",
    "break",
]

ACTIVITY_TYPES: tuple[str, ...] = ActivityType.__args__

Priority = Literal["low", "medium", "high"]

PRIORITY_RANK = {"low": 1, "medium": 2, "high": 3}

BlockType = Literal["rigid", "flexible", "break"]

StrategyName = Literal["earliest_fit", "balanced_work", "deadline_oriented"]

# Outcome of a trial flexible placement on a day (None means it fits)
PlacementIssue = Literal["conflict", "working_limit"]


def _new_id() -> str:
    return str(uuid4())


def _validate_duration(name: str, duration: int) -> None:
    if duration <= 0:
        raise ValueError(f"Duration of '{name}' must be positive, got {duration}")


# =============================================================================
# Obligations
# =============================================================================


@dataclass(frozen=True)
class RigidObligation:
    """An obligation fixed to a date and time range. Never moved."""

    name: str
    activity: ActivityType
    date: ScheduleDate
    start: Time24
    end: Time24
    id: str = field(default_factory=_new_id)
    kind: Literal["rigid"] = field(default="rigid", init=False)

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError(f"Rigid obligation '{self.name}' must end after it starts")

    @property
    def duration(self) -> int:
        return self.start.minutes_until(self.end)


@dataclass(frozen=True)
class FlexibleObligation:
    """An obligation with a duration and deadline; the engine picks when."""

    name: str
    activity: ActivityType
    duration: int  # minutes
    priority: Priority
    deadline: ScheduleDate  # inclusive
    id: str = field(default_factory=_new_id)
    kind: Literal["flexible"] = field(default="flexible", init=False)

    def __post_init__(self) -> None:
        _validate_duration(self.name, self.duration)


Obligation = RigidObligation | FlexibleObligation


@dataclass(frozen=True)
class Break:
    """A non-work interval. Occupies time but not capacity."""

    start: Time24
    end: Time24

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError(f"Break must end after it starts ({self.start}-{self.end})")

    @property
    def duration(self) -> int:
        return self.start.minutes_until(self.end)

    @property
    def name(self) -> str:
        return "Break"


# =============================================================================
# Placed blocks
# =============================================================================


@dataclass
class PlacedBlock:
    """A concrete (date, start, end) entry in a daily calendar."""

    block_type: BlockType
    name: str
    date: ScheduleDate
    start: Time24
    end: Time24
    duration: int
    activity: ActivityType
    priority: Priority
    deadline: ScheduleDate
    completed: bool = False
    backend_id: str | None = None  # External-system correlation id
    obligation_id: str | None = None  # None for breaks

    @classmethod
    def for_rigid(cls, obligation: RigidObligation) -> "PlacedBlock":
        return cls(
            block_type="rigid",
            name=obligation.name,
            date=obligation.date,
            start=obligation.start,
            end=obligation.end,
            duration=obligation.duration,
            activity=obligation.activity,
            priority="high",
            deadline=obligation.date,
            obligation_id=obligation.id,
        )

    @classmethod
    def for_flexible(
        cls, obligation: FlexibleObligation, date: ScheduleDate, start: Time24, end: Time24
    ) -> "PlacedBlock":
        return cls(
            block_type="flexible",
            name=obligation.name,
            date=date,
            start=start,
            end=end,
            duration=obligation.duration,
            activity=obligation.activity,
            priority=obligation.priority,
            deadline=obligation.deadline,
            obligation_id=obligation.id,
        )

    @classmethod
    def for_break(cls, brk: Break, date: ScheduleDate) -> "PlacedBlock":
        return cls(
            block_type="break",
            name="Break",
            date=date,
            start=brk.start,
            end=brk.end,
            duration=brk.duration,
            activity="break",
            priority="low",
            deadline=date,
        )

    @property
    def is_break(self) -> bool:
        return self.block_type == "break"

    @property
    def uid(self) -> str:
        """Stable identifier for calendar export."""
        name = "_".join(self.name.split())
        return f"{self.date.id}-{self.start.to_int():04d}-{name}@plannr.scheduler"

    def overlaps(self, start: Time24, end: Time24) -> bool:
        return start < self.end and end > self.start

    def gap_to(self, start: Time24, end: Time24) -> int:
        """Minutes between this block and [start, end] (0 if they touch or overlap)."""
        if end <= self.start:
            return end.minutes_until(self.start)
        if start >= self.end:
            return self.end.minutes_until(start)
        return 0


# =============================================================================
# Request configuration
# =============================================================================


@dataclass
class ScheduleRequest:
    """Everything needed to build a placement from scratch."""

    first_date: ScheduleDate
    rigid_events: list[RigidObligation] = field(default_factory=list)
    flexible_events: list[FlexibleObligation] = field(default_factory=list)
    breaks: list[tuple[ScheduleDate, Break]] = field(default_factory=list)
    repeated_breaks: list[Break] = field(default_factory=list)
    dependencies: dict[str, list[str]] = field(default_factory=dict)  # id -> prerequisite ids
    strategy: str = "earliest_fit"
    day_window_start: Time24 = field(default_factory=lambda: Time24(8, 0))
    day_window_end: Time24 = field(default_factory=lambda: Time24(18, 0))
    num_days: int = 7
    min_gap: int = 0  # minutes
    daily_capacity_hours: int = 8
