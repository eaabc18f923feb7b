"""
One day's placed blocks.

Enforces no-overlap, the minimum gap around flexible placements, and the
daily working-hours ceiling for non-break work.
"""

from collections.abc import Iterator

from .errors import EventConflict, WorkingLimitExceeded
from .temporal import ScheduleDate, Time24
from .types import (
    Break,
    FlexibleObligation,
    Obligation,
    PlacedBlock,
    PlacementIssue,
    RigidObligation,
)


class DailyCalendar:
    """
    The source obligations, breaks and sorted PlacedBlocks of a single date.

    Rigid events and breaks are written without checks (the Scheduler
    validates them up front). Flexible events go through check_flexible
    and nothing is committed when it reports an issue.
    """

    def __init__(self, date: ScheduleDate, min_gap: int = 0, working_hours_limit: int = 8) -> None:
        self.date = date
        self.min_gap = min_gap
        self.working_hours_limit = working_hours_limit
        self.events: list[Obligation] = []
        self.breaks: list[Break] = []
        self.blocks: list[PlacedBlock] = []

    @property
    def day_label(self) -> str:
        return self.date.weekday_label

    @property
    def rigid_events(self) -> list[RigidObligation]:
        return [e for e in self.events if e.kind == "rigid"]

    @property
    def flexible_events(self) -> list[FlexibleObligation]:
        return [e for e in self.events if e.kind == "flexible"]

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_rigid_event(self, event: RigidObligation) -> PlacedBlock:
        block = PlacedBlock.for_rigid(event)
        self.events.append(event)
        self.blocks.append(block)
        self.sort_schedule()
        return block

    def add_break(self, brk: Break) -> PlacedBlock:
        block = PlacedBlock.for_break(brk, self.date)
        self.breaks.append(brk)
        self.blocks.append(block)
        self.sort_schedule()
        return block

    def check_flexible(self, start: Time24, end: Time24, duration: int) -> PlacementIssue | None:
        """
        Check whether a flexible block could be written at [start, end].

        Args:
            start: Proposed start
            end: Proposed end
            duration: Minutes counted against the working-hours limit

        Returns:
            None if it fits, otherwise "conflict" or "working_limit"
        """
        if self._first_overlap(start, end) is not None:
            return "conflict"
        if self.exceeds_working_limit(duration):
            return "working_limit"
        return None

    def add_flexible_event(
        self, event: FlexibleObligation, start: Time24, end: Time24
    ) -> PlacedBlock:
        """
        Place a flexible obligation at [start, end].

        Raises:
            EventConflict: If the interval overlaps an existing block
            WorkingLimitExceeded: If the day's work would exceed the limit
        """
        issue = self.check_flexible(start, end, event.duration)
        if issue == "conflict":
            raise EventConflict(event, self._first_overlap(start, end).name)
        if issue == "working_limit":
            raise WorkingLimitExceeded(event, self.date, self.working_hours_limit)

        block = PlacedBlock.for_flexible(event, self.date, start, end)
        self.events.append(event)
        self.blocks.append(block)
        self.sort_schedule()
        return block

    def remove_event(self, event: Obligation) -> PlacedBlock | None:
        """Remove an obligation and its block. Returns the removed block, if any."""
        self.events = [e for e in self.events if e.id != event.id]
        for block in self.blocks:
            if block.block_type == "break":
                continue
            if block.obligation_id == event.id or (
                block.obligation_id is None and block.name == event.name
            ):
                self.blocks.remove(block)
                return block
        return None

    def remove_break(self, brk: Break) -> PlacedBlock | None:
        """Remove a break and its block, matched by time range."""
        for existing in self.breaks:
            if existing.start == brk.start and existing.end == brk.end:
                self.breaks.remove(existing)
                break
        for block in self.blocks:
            if block.is_break and block.start == brk.start and block.end == brk.end:
                self.blocks.remove(block)
                return block
        return None

    def sort_schedule(self) -> None:
        # list.sort is stable, so equal starts keep insertion order
        self.blocks.sort(key=lambda b: b.start.total_minutes)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def working_minutes(self) -> int:
        return sum(b.duration for b in self.blocks if not b.is_break)

    def calculate_working_hours(self) -> int:
        """Non-break work placed this day, floored to whole hours."""
        return self.working_minutes() // 60

    def exceeds_working_limit(self, duration: int) -> bool:
        """True if adding `duration` minutes would push floored hours over the limit."""
        return (self.working_minutes() + duration) // 60 > self.working_hours_limit

    def remaining_capacity_minutes(self) -> int:
        return max(0, (self.working_hours_limit + 1) * 60 - 1 - self.working_minutes())

    def gap_respected(self, start: Time24, end: Time24) -> bool:
        """True if [start, end] keeps min_gap minutes from every block."""
        for block in self.blocks:
            if block.overlaps(start, end) or block.gap_to(start, end) < self.min_gap:
                return False
        return True

    def block_for(self, obligation: Obligation | str) -> PlacedBlock | None:
        obligation_id = obligation if isinstance(obligation, str) else obligation.id
        for block in self.blocks:
            if block.obligation_id == obligation_id:
                return block
        return None

    def _first_overlap(self, start: Time24, end: Time24) -> PlacedBlock | None:
        for block in self.blocks:
            if block.overlaps(start, end):
                return block
        return None

    def __iter__(self) -> Iterator[PlacedBlock]:
        # Snapshot so each iteration is independent of later mutations
        return iter(list(self.blocks))

    def __len__(self) -> int:
        return len(self.blocks)

    def __str__(self) -> str:
        lines = [f"{self.day_label} {self.date}"]
        for block in self.blocks:
            lines.append(f"  {block.start}-{block.end} {block.name} ({block.block_type})")
        return "\n".join(lines)
