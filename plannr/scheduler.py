"""
Multi-day placement of rigid obligations, breaks and flexible obligations.

Architecture:
1. Dependency graph is validated (cycles propagate to the caller)
2. One DailyCalendar per date is created
3. Breaks are written (repeating ones onto every day)
4. Rigid obligations are written on their declared day
5. Flexible obligations are placed in dependency + strategy order (scheduling/)
6. Anything left unplaced is reported as SchedulingInfeasible
"""

import logging
from collections.abc import Iterable

from .day_calendar import DailyCalendar
from .dependencies import DependencyGraph
from .errors import EventConflict, SchedulingInfeasible, WorkingLimitExceeded
from .placement import Placement
from .scheduling.flexible_placer import FlexiblePlacer
from .scheduling.strategies import get_strategy, normalize_strategy_name
from .temporal import ScheduleDate, Time24
from .types import Break, FlexibleObligation, RigidObligation, ScheduleRequest

logger = logging.getLogger(__name__)


class Scheduler:
    """
    Builds a Placement from scratch.

    Rigid obligations are never moved: one that overlaps another rigid
    obligation or a break is rejected with EventConflict before any
    rigid obligation is written, and so is rigid work that alone exceeds
    a day's working limit. A flexible obligation with no slot before its
    deadline is a hard failure, raised once every other obligation has
    been attempted.
    """

    def build(
        self,
        rigid_events: list[RigidObligation],
        flexible_events: list[FlexibleObligation],
        breaks: list[tuple[ScheduleDate, Break]],
        repeated_breaks: list[Break],
        dependency_graph: DependencyGraph | None,
        strategy: str,
        day_window_start: Time24,
        day_window_end: Time24,
        first_date: ScheduleDate,
        num_days: int,
        min_gap: int,
        daily_capacity_hours: int,
    ) -> Placement:
        """
        Place everything into `num_days` daily calendars starting at `first_date`.

        Args:
            rigid_events: Fixed obligations, written as declared
            flexible_events: Obligations the engine chooses a slot for
            breaks: One-off (date, break) pairs
            repeated_breaks: Break templates applied to every day
            dependency_graph: Must-precede edges (None for no dependencies)
            strategy: "earliest_fit", "balanced_work" or "deadline_oriented"
            day_window_start: Earliest clock time for flexible placement
            day_window_end: Latest clock time for flexible placement
            first_date: First day of the placement
            num_days: Number of days
            min_gap: Minutes kept between a flexible block and its neighbours
            daily_capacity_hours: Ceiling on floored non-break hours per day

        Returns:
            The completed Placement

        Raises:
            CircularDependency: If the dependency graph has a cycle
            EventConflict: If a rigid obligation or break overlaps another block
            WorkingLimitExceeded: If rigid work alone exceeds a day's working limit
            SchedulingInfeasible: If any flexible obligation could not be placed
            ValueError: For invalid settings or rigid obligations outside the range
        """
        # 1. Validate inputs and the dependency graph
        strategy_name = normalize_strategy_name(strategy)
        validate_settings(day_window_start, day_window_end, min_gap, daily_capacity_hours)
        validate_unique_ids([*rigid_events, *flexible_events])
        graph = dependency_graph.copy() if dependency_graph is not None else DependencyGraph()
        graph.validate()

        # 2. One calendar per date
        placement = Placement.empty(
            first_date=first_date,
            num_days=num_days,
            min_gap=min_gap,
            working_hours_limit=daily_capacity_hours,
            dependencies=graph,
            strategy=strategy_name,
            window_start=day_window_start,
            window_end=day_window_end,
        )

        # 3. Breaks before anything else so they act as hard obstacles
        place_breaks(placement, breaks, repeated_breaks)

        # 4. Rigid obligations on their declared day
        place_rigid_events(placement, rigid_events)

        # 5. Flexible obligations
        placer = FlexiblePlacer(placement, get_strategy(strategy_name))
        unplaced = placer.place_all(flexible_events)

        # 6. Report anything that did not fit
        if unplaced:
            raise SchedulingInfeasible(unplaced, placement)

        logger.info(
            "Built %d-day placement (%s): %d rigid, %d flexible, %d working hours",
            num_days,
            strategy_name,
            len(rigid_events),
            len(flexible_events),
            placement.total_occupied_hours(),
        )
        return placement


def build_placement(request: ScheduleRequest) -> Placement:
    """
    Build a placement from a ScheduleRequest.

    Dependencies in the request are given by obligation id.
    """
    graph = DependencyGraph.from_id_map(
        request.dependencies, [*request.rigid_events, *request.flexible_events]
    )
    return Scheduler().build(
        rigid_events=request.rigid_events,
        flexible_events=request.flexible_events,
        breaks=request.breaks,
        repeated_breaks=request.repeated_breaks,
        dependency_graph=graph,
        strategy=request.strategy,
        day_window_start=request.day_window_start,
        day_window_end=request.day_window_end,
        first_date=request.first_date,
        num_days=request.num_days,
        min_gap=request.min_gap,
        daily_capacity_hours=request.daily_capacity_hours,
    )


def place_breaks(
    placement: Placement,
    breaks: Iterable[tuple[ScheduleDate, Break]],
    repeated_breaks: Iterable[Break],
) -> None:
    """
    Write one-off breaks onto their day and repeating breaks onto every day.

    Raises:
        EventConflict: If a break overlaps a block already in its day
    """
    for date, brk in breaks:
        calendar = placement.calendar_for(date)
        if calendar is None:
            logger.warning("Break %s-%s on %s is outside the placement; skipping.", brk.start, brk.end, date)
            continue
        _ensure_clear(calendar, brk)
        calendar.add_break(brk)
    for brk in repeated_breaks:
        for calendar in placement:
            _ensure_clear(calendar, brk)
            calendar.add_break(brk)


def place_rigid_events(placement: Placement, rigid_events: list[RigidObligation]) -> None:
    """
    Write rigid obligations after checking them against each other and
    against every block already in their day.

    Raises:
        ValueError: If an obligation's date is outside the placement
        EventConflict: If a rigid obligation overlaps another block
        WorkingLimitExceeded: If a day's rigid work would exceed the working limit
    """
    for event in rigid_events:
        if not placement.contains_date(event.date):
            raise ValueError(
                f"Rigid obligation '{event.name}' on {event.date} is outside the placement "
                f"({placement.first_date} to {placement.last_date})"
            )

    for index, event in enumerate(rigid_events):
        _ensure_clear(placement.calendar_for(event.date), event)
        for other in rigid_events[index + 1 :]:
            if other.date == event.date and event.start < other.end and event.end > other.start:
                raise EventConflict(event, other.name)

    # Rigid work counts toward the daily ceiling like anything else
    minutes_by_date: dict[ScheduleDate, int] = {}
    for event in rigid_events:
        calendar = placement.calendar_for(event.date)
        total = minutes_by_date.get(event.date, calendar.working_minutes()) + event.duration
        if total // 60 > placement.working_hours_limit:
            raise WorkingLimitExceeded(event, event.date, placement.working_hours_limit)
        minutes_by_date[event.date] = total

    for event in rigid_events:
        placement.calendar_for(event.date).add_rigid_event(event)


def _ensure_clear(calendar: DailyCalendar, subject: RigidObligation | Break) -> None:
    for block in calendar:
        if block.overlaps(subject.start, subject.end):
            raise EventConflict(subject, block.name)


def validate_settings(
    window_start: Time24, window_end: Time24, min_gap: int, daily_capacity_hours: int
) -> None:
    if window_end <= window_start:
        raise ValueError(f"Day window must end after it starts ({window_start}-{window_end})")
    if min_gap < 0:
        raise ValueError(f"min_gap must not be negative, got {min_gap}")
    if daily_capacity_hours < 0:
        raise ValueError(f"daily_capacity_hours must not be negative, got {daily_capacity_hours}")


def validate_unique_ids(obligations: list) -> None:
    seen: set[str] = set()
    for obligation in obligations:
        if obligation.id in seen:
            raise ValueError(f"Duplicate obligation id: {obligation.id}")
        seen.add(obligation.id)
