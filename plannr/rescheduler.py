"""
Repairs to an existing placement.

This module handles:
1. Missed tasks: incomplete flexible blocks that ended before "now" are
   lifted and re-placed into current and future time, together with any
   not-yet-started dependents
2. New items: breaks, rigid and flexible obligations merged into a
   placement without moving anything already there
3. Strategy switch: every incomplete flexible block is re-placed under a
   new strategy (and optionally a new day window)

Key design decisions:
- Every repair works on a deep copy; the placement passed in is never changed
- Completed blocks, rigid blocks and breaks are never moved
- Deadlines hold unless the caller opts in to relaxing them for missed tasks
- Concessions (missed rigid work, blocks outside a new window, opted-in
  relaxed deadlines) are recorded in `violations` rather than raised
"""

import logging
from datetime import datetime

from .day_calendar import DailyCalendar
from .dependencies import DependencyGraph
from .errors import SchedulingInfeasible
from .placement import Placement
from .scheduler import place_breaks, place_rigid_events, validate_settings, validate_unique_ids
from .scheduling.flexible_placer import ConstraintViolation, FlexiblePlacer
from .scheduling.strategies import get_strategy, normalize_strategy_name
from .temporal import ScheduleDate, Time24, current_datetime_in_tz, split_datetime
from .types import Break, FlexibleObligation, Obligation, PlacedBlock, RigidObligation

logger = logging.getLogger(__name__)


class Rescheduler:
    """
    Re-derives the affected portion of a placement.

    Constructed from the placement it will repair; the extracted
    obligations, breaks and dependencies describe that placement.
    """

    def __init__(self, placement: Placement) -> None:
        self.breaks: list[tuple[ScheduleDate, Break]] = placement.breaks()
        self.rigid_events: list[RigidObligation] = [
            e for e in placement.obligations() if e.kind == "rigid"
        ]
        self.flexible_events: list[FlexibleObligation] = [
            e for e in placement.obligations() if e.kind == "flexible"
        ]
        self.dependencies: DependencyGraph = placement.dependencies
        self.completed_blocks: list[PlacedBlock] = [b for b in placement.blocks() if b.completed]
        self.strategy = placement.strategy
        self.num_days = placement.num_days
        self.first_date = placement.first_date
        self.first_day_label = placement.first_day_label
        self.min_gap = placement.min_gap
        self.working_hours_limit = placement.working_hours_limit
        self.violations: list[ConstraintViolation] = []

    # -------------------------------------------------------------------------
    # Missed tasks
    # -------------------------------------------------------------------------

    def missed_tasks_replacement(
        self,
        placement: Placement,
        now: datetime | None = None,
        tz_name: str | None = None,
        relax_deadlines: bool = False,
    ) -> Placement:
        """
        Re-place missed flexible tasks using the placement's own strategy.

        A block is missed when it ended at or before `now` and is not
        completed. Completed blocks and blocks still ahead keep their
        date, start and end, except incomplete blocks that have not started
        and depend (directly or transitively) on a missed task: those are
        re-placed after it.

        Args:
            placement: Placement to repair
            now: Current local time (defaults to now in `tz_name`)
            tz_name: IANA timezone used when `now` is not given (UTC if None)
            relax_deadlines: Allow a task with no slot before its deadline to
                go as late as the last day, recorded as a violation

        Returns:
            New Placement with missed tasks moved to current/future slots

        Raises:
            SchedulingInfeasible: If a missed task (or a dependent moved with
                it) fits nowhere before its deadline
        """
        return self._repair_missed(placement, placement.strategy, now, tz_name, relax_deadlines)

    def missed_task_shifting(
        self,
        placement: Placement,
        now: datetime | None = None,
        tz_name: str | None = None,
        relax_deadlines: bool = False,
    ) -> Placement:
        """Shift missed flexible tasks to the earliest open slot after `now`."""
        return self._repair_missed(placement, "earliest_fit", now, tz_name, relax_deadlines)

    def _repair_missed(
        self,
        placement: Placement,
        strategy_name: str,
        now: datetime | None,
        tz_name: str | None,
        relax_deadlines: bool,
    ) -> Placement:
        self.violations = []
        if now is None:
            now = current_datetime_in_tz(tz_name)
        current = split_datetime(now)

        result = placement.copy()
        missed: list[FlexibleObligation] = []
        for calendar in result:
            for block in calendar:
                if block.completed or block.is_break or (block.date, block.end) > current:
                    continue
                if block.block_type == "rigid":
                    self.violations.append(
                        ConstraintViolation(
                            obligation_name=block.name,
                            date=block.date,
                            action_taken="left_in_place",
                            reason="Rigid obligation was missed; rigid work is never moved",
                        )
                    )
                    continue
                source = _source_of(calendar, block)
                if source is None:
                    logger.warning("No source obligation for block '%s' on %s; skipping.", block.name, block.date)
                    continue
                calendar.remove_event(source)
                missed.append(source)

        if not missed:
            logger.info("No missed tasks before %s", now)
            return result

        followers = _lift_pending_dependents(result, missed, current)
        placer = FlexiblePlacer(
            result, get_strategy(strategy_name), not_before=now, relax_overdue=relax_deadlines
        )
        unplaced = placer.place_all([*missed, *followers])
        self.violations.extend(placer.violations)
        if unplaced:
            raise SchedulingInfeasible(unplaced, result)

        logger.info(
            "Re-placed %d missed task(s) and %d dependent(s) using %s",
            len(missed),
            len(followers),
            strategy_name,
        )
        return result

    # -------------------------------------------------------------------------
    # New items
    # -------------------------------------------------------------------------

    def add_new_time_blocks(
        self,
        placement: Placement,
        new_events: list[Obligation],
        new_breaks: list[tuple[ScheduleDate, Break]] | None = None,
        new_repeated_breaks: list[Break] | None = None,
        new_dependency_graph: DependencyGraph | None = None,
        now: datetime | None = None,
    ) -> Placement:
        """
        Merge new obligations and breaks into a placement.

        Every block already in the placement stays exactly where it is.
        New breaks and rigid obligations must not overlap existing blocks.

        Args:
            placement: Placement to extend
            new_events: New rigid and/or flexible obligations
            new_breaks: New one-off (date, break) pairs
            new_repeated_breaks: New breaks applied to every day
            new_dependency_graph: Edges to merge (may reference existing obligations)
            now: If given, new flexible obligations are placed after it

        Returns:
            New Placement with the new items added

        Raises:
            EventConflict: If a new break or rigid obligation overlaps an existing block
            WorkingLimitExceeded: If new rigid work pushes a day over its working limit
            CircularDependency: If merged edges would create a cycle
            SchedulingInfeasible: If a new flexible obligation cannot be placed
        """
        self.violations = []
        new_breaks = new_breaks or []
        new_repeated_breaks = new_repeated_breaks or []
        validate_unique_ids([*placement.obligations(), *new_events])

        result = placement.copy()

        # 1. Breaks (one-off then repeating), checked against what is already there
        place_breaks(result, new_breaks, new_repeated_breaks)

        # 2. Rigid obligations, checked the same way
        new_rigid = [e for e in new_events if e.kind == "rigid"]
        place_rigid_events(result, new_rigid)

        # 3. Dependencies
        if new_dependency_graph is not None:
            result.dependencies.merge(new_dependency_graph)

        # 4. Only the new flexible obligations
        new_flexible = [e for e in new_events if e.kind == "flexible"]
        placer = FlexiblePlacer(result, get_strategy(result.strategy), not_before=now)
        unplaced = placer.place_all(new_flexible)
        if unplaced:
            raise SchedulingInfeasible(unplaced, result)

        logger.info(
            "Added %d rigid, %d flexible obligation(s) and %d break(s)",
            len(new_rigid),
            len(new_flexible),
            len(new_breaks) + len(new_repeated_breaks),
        )
        return result

    # -------------------------------------------------------------------------
    # Strategy switch
    # -------------------------------------------------------------------------

    def strategy_switch(
        self,
        placement: Placement,
        new_strategy: str,
        day_window: tuple[Time24, Time24] | None = None,
        now: datetime | None = None,
    ) -> Placement:
        """
        Re-place every incomplete flexible obligation under `new_strategy`.

        Rigid blocks and breaks stay where they are; any that fall outside
        the (possibly new) day window are recorded as violations.

        Args:
            placement: Placement to re-plan
            new_strategy: Strategy name or display label
            day_window: Optional new (start, end) window for flexible placement
            now: If given, nothing is placed before it

        Returns:
            New Placement under the new strategy

        Raises:
            SchedulingInfeasible: If a re-placed obligation fits nowhere
        """
        self.violations = []
        strategy_name = normalize_strategy_name(new_strategy)

        result = placement.copy()
        result.strategy = strategy_name
        if day_window is not None:
            window_start, window_end = day_window
            validate_settings(window_start, window_end, result.min_gap, result.working_hours_limit)
            result.window_start = window_start
            result.window_end = window_end

        lifted: list[FlexibleObligation] = []
        for calendar in result:
            for block in calendar:
                if block.block_type == "flexible":
                    if block.completed:
                        continue
                    source = _source_of(calendar, block)
                    if source is None:
                        logger.warning("No source obligation for block '%s' on %s; skipping.", block.name, block.date)
                        continue
                    calendar.remove_event(source)
                    lifted.append(source)
                elif block.start < result.window_start or block.end > result.window_end:
                    self.violations.append(
                        ConstraintViolation(
                            obligation_name=block.name,
                            date=block.date,
                            action_taken="outside_window",
                            reason=(
                                f"{block.block_type.capitalize()} block {block.start}-{block.end} is "
                                f"outside the day window {result.window_start}-{result.window_end}"
                            ),
                        )
                    )
                    logger.warning("'%s' on %s is outside the new day window", block.name, block.date)

        placer = FlexiblePlacer(result, get_strategy(strategy_name), not_before=now)
        unplaced = placer.place_all(lifted)
        if unplaced:
            raise SchedulingInfeasible(unplaced, result)

        logger.info("Switched strategy to %s; re-placed %d task(s)", strategy_name, len(lifted))
        return result

    def get_detailed_violations(self) -> list[dict]:
        """
        Get detailed list of what the last repair had to concede.

        Useful for debugging and detailed user feedback.
        """
        return [
            {
                "name": v.obligation_name,
                "date": v.date.id if v.date else None,
                "action": v.action_taken,
                "reason": v.reason,
            }
            for v in self.violations
        ]


def diff_placements(old: Placement, new: Placement) -> list[dict]:
    """
    Calculate differences between two placements.

    Blocks are matched by obligation id; breaks are not reported.

    Args:
        old: Placement before a repair
        new: Placement after it

    Returns:
        List of change dicts with {name, change, old_date, old_start, new_date, new_start, description}
    """
    changes = []

    old_blocks = {b.obligation_id: b for b in old.blocks() if b.obligation_id is not None}
    new_blocks = {b.obligation_id: b for b in new.blocks() if b.obligation_id is not None}

    for obligation_id, block in new_blocks.items():
        previous = old_blocks.get(obligation_id)
        if previous is None:
            changes.append(
                {
                    "name": block.name,
                    "change": "added",
                    "old_date": None,
                    "old_start": None,
                    "new_date": block.date.id,
                    "new_start": str(block.start),
                    "description": f"Added {block.name}",
                }
            )
        elif (previous.date, previous.start, previous.end) != (block.date, block.start, block.end):
            changes.append(
                {
                    "name": block.name,
                    "change": "moved",
                    "old_date": previous.date.id,
                    "old_start": str(previous.start),
                    "new_date": block.date.id,
                    "new_start": str(block.start),
                    "description": (
                        f"{block.name}: {previous.date} {previous.start} → {block.date} {block.start}"
                    ),
                }
            )

    for obligation_id, block in old_blocks.items():
        if obligation_id not in new_blocks:
            changes.append(
                {
                    "name": block.name,
                    "change": "removed",
                    "old_date": block.date.id,
                    "old_start": str(block.start),
                    "new_date": None,
                    "new_start": None,
                    "description": f"Removed {block.name}",
                }
            )

    return changes


def _lift_pending_dependents(
    placement: Placement, missed: list[FlexibleObligation], current: tuple[ScheduleDate, Time24]
) -> list[FlexibleObligation]:
    """
    Remove incomplete, not-yet-started flexible blocks that depend on a
    missed task, so they can be re-placed after it.

    Completed or in-progress dependents stay put and bound the missed task.
    """
    waiting: set[str] = set()
    for obligation in missed:
        waiting |= placement.dependencies.all_dependents_of(obligation)

    lifted: list[FlexibleObligation] = []
    for calendar in placement:
        for block in calendar:
            if block.block_type != "flexible" or block.obligation_id not in waiting:
                continue
            if block.completed or (block.date, block.start) < current:
                continue
            source = _source_of(calendar, block)
            if source is None:
                continue
            calendar.remove_event(source)
            lifted.append(source)
            logger.debug("Moving '%s' with its missed prerequisite", block.name)
    return lifted


def _source_of(calendar: DailyCalendar, block: PlacedBlock) -> Obligation | None:
    for event in calendar.events:
        if event.id == block.obligation_id:
            return event
    return None

