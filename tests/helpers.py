"""
Test helper functions for placement validation.

These functions can be imported by test modules for placement analysis.
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from plannr.placement import Placement
from plannr.scheduler import Scheduler
from plannr.temporal import ScheduleDate, Time24
from plannr.types import PlacedBlock


def june(day: int) -> ScheduleDate:
    """A date in June 2025 (the 6th is a Friday)."""
    return ScheduleDate(day, 6, 2025)


def t(hhmm: int) -> Time24:
    """Shorthand for Time24.from_int."""
    return Time24.from_int(hhmm)


def build_week(scheduler: Scheduler, week_events, strategy: str = "earliest_fit") -> Placement:
    """Build the week scenario: 7 days, 30 min gap, 6h limit, 08:00-17:00."""
    rigid, flexible, breaks, repeated_breaks, graph = week_events
    return scheduler.build(
        rigid_events=rigid,
        flexible_events=flexible,
        breaks=breaks,
        repeated_breaks=repeated_breaks,
        dependency_graph=graph,
        strategy=strategy,
        day_window_start=t(800),
        day_window_end=t(1700),
        first_date=june(6),
        num_days=7,
        min_gap=30,
        daily_capacity_hours=6,
    )


def blocks_by_name(placement: Placement) -> dict[str, PlacedBlock]:
    """Map block name to block (breaks excluded)."""
    return {b.name: b for b in placement.blocks() if not b.is_break}


def block_positions(placement: Placement) -> list[tuple[str, int, int, str]]:
    """(date id, start HHMM, end HHMM, name) for every block, in order."""
    return [(b.date.id, b.start.to_int(), b.end.to_int(), b.name) for b in placement.blocks()]


# ============================================================================
# Invariant checks
# ============================================================================


def find_overlaps(placement: Placement) -> list[str]:
    """
    Find pairs of blocks on the same day whose intervals intersect.

    Returns:
        List of human-readable overlap descriptions (empty when clean)
    """
    problems = []
    for calendar in placement:
        blocks = list(calendar)
        for i, first in enumerate(blocks):
            for second in blocks[i + 1 :]:
                if first.overlaps(second.start, second.end):
                    problems.append(
                        f"{calendar.date}: '{first.name}' {first.start}-{first.end} overlaps "
                        f"'{second.name}' {second.start}-{second.end}"
                    )
    return problems


def find_gap_violations(placement: Placement) -> list[str]:
    """Flexible blocks closer than min_gap to any neighbour on their day."""
    problems = []
    for calendar in placement:
        for block in calendar:
            if block.block_type != "flexible":
                continue
            for other in calendar:
                if other is block:
                    continue
                gap = other.gap_to(block.start, block.end)
                if gap < placement.min_gap:
                    problems.append(
                        f"{calendar.date}: '{block.name}' is {gap} min from '{other.name}'"
                    )
    return problems


def find_capacity_violations(placement: Placement) -> list[str]:
    return [
        f"{c.date}: {c.calculate_working_hours()}h > {c.working_hours_limit}h"
        for c in placement
        if c.calculate_working_hours() > c.working_hours_limit
    ]


def find_dependency_violations(placement: Placement) -> list[str]:
    """Edges whose prerequisite does not finish before the dependent starts."""
    problems = []
    for dependent, prerequisite in placement.dependencies.edges():
        after = placement.locate_block(dependent)
        before = placement.locate_block(prerequisite)
        if after is None or before is None:
            continue
        if (before.date, before.end) > (after.date, after.start):
            problems.append(
                f"'{prerequisite.name}' ({before.date} {before.end}) must precede "
                f"'{dependent.name}' ({after.date} {after.start})"
            )
    return problems


def find_window_violations(placement: Placement) -> list[str]:
    """Flexible blocks outside the day window or after their deadline."""
    problems = []
    for block in placement.blocks():
        if block.block_type != "flexible":
            continue
        if block.start < placement.window_start or block.end > placement.window_end:
            problems.append(f"'{block.name}' {block.start}-{block.end} is outside the window")
        if block.date > block.deadline:
            problems.append(f"'{block.name}' on {block.date} is after its deadline {block.deadline}")
    return problems


def assert_valid_placement(placement: Placement, check_deadlines: bool = True) -> None:
    """Assert every structural invariant of a placement holds."""
    problems = (
        find_overlaps(placement)
        + find_gap_violations(placement)
        + find_capacity_violations(placement)
        + find_dependency_violations(placement)
    )
    if check_deadlines:
        problems += find_window_violations(placement)
    assert not problems, "\n".join(problems)
