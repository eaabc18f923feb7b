"""
Dependency-aware placement of flexible obligations.

Shared by the Scheduler (initial build) and the Rescheduler (repairs).
For each obligation, in dependency order:
1. Earliest eligible point: after the latest-placed prerequisite (and "now")
2. Latest eligible point: its deadline, tightened by its dependents
3. Ask the strategy for a day/slot between the two

Records unplaced obligations and any constraint it had to relax.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from ..errors import UnplacedObligation
from ..placement import Placement
from ..temporal import ScheduleDate, Time24, split_datetime
from ..types import FlexibleObligation, Obligation, PlacedBlock
from .strategies import SchedulingStrategy

logger = logging.getLogger(__name__)

# (date, clock time) bound; tuples compare date first
Moment = tuple[ScheduleDate, Time24]


@dataclass
class ConstraintViolation:
    """Record of a constraint that a placement or repair had to concede."""

    obligation_name: str
    date: ScheduleDate | None
    action_taken: Literal["deadline_relaxed", "left_in_place", "outside_window"]
    reason: str


class FlexiblePlacer:
    """
    Place flexible obligations into an existing Placement, in place.

    Day-local conflicts and capacity limits are searched past by checking
    outcomes; nothing is raised for them.
    """

    def __init__(
        self,
        placement: Placement,
        strategy: SchedulingStrategy,
        not_before: datetime | None = None,
        relax_overdue: bool = False,
    ) -> None:
        """
        Args:
            placement: Placement to write into
            strategy: Strategy choosing order, day and slot
            not_before: Nothing is placed before this moment (repairs pass "now")
            relax_overdue: When an obligation has no slot before its deadline,
                place it by the last day instead of leaving it unplaced. Placed
                and rigid dependents still bound it
        """
        self.placement = placement
        self.strategy = strategy
        self.not_before: Moment | None = split_datetime(not_before) if not_before else None
        self.relax_overdue = relax_overdue
        self.violations: list[ConstraintViolation] = []
        self.unplaced: list[UnplacedObligation] = []
        self._batch: set[str] = set()
        self._failed: set[str] = set()
        self._latest_cache: dict[tuple[str, bool, bool], Moment] = {}

    def place_all(self, obligations: list[FlexibleObligation]) -> list[UnplacedObligation]:
        """
        Place every obligation, prerequisites first.

        Returns:
            Obligations that could not be placed, with reasons
        """
        self._batch = {o.id for o in obligations}
        self._latest_cache = {}
        ordered = self.placement.dependencies.topological_order(
            obligations,
            key=lambda o: self.strategy.order_key(o, self.latest_finish(o)[0]),
        )
        for obligation in ordered:
            self.place(obligation)
        return self.unplaced

    def place(self, obligation: FlexibleObligation) -> PlacedBlock | None:
        earliest = self.earliest_start(obligation)
        if earliest is None:
            return self._fail(obligation, "a prerequisite could not be placed")

        hard = self.latest_finish(obligation, tighten=False)
        overdue = hard < earliest
        block = None
        if not overdue:
            # Try leaving room for dependents first, then only the hard bound
            soft = self.latest_finish(obligation)
            block = self._search(obligation, earliest, soft)
            if block is None and soft != hard:
                block = self._search(obligation, earliest, hard)

        if block is None and self.relax_overdue:
            # Deadline moves out to the last day; dependents still bound it
            relaxed = self.latest_finish(obligation, tighten=False, relaxed=True)
            if relaxed != hard and earliest < relaxed:
                block = self._search(obligation, earliest, relaxed)
            if block is not None:
                self.violations.append(
                    ConstraintViolation(
                        obligation_name=obligation.name,
                        date=block.date,
                        action_taken="deadline_relaxed",
                        reason=f"No slot on or before {hard[0]}; placed on {block.date} instead",
                    )
                )
                logger.warning(
                    "Relaxed deadline of '%s' from %s to %s", obligation.name, hard[0], block.date
                )

        if block is None:
            if overdue:
                reason = f"latest allowed date {hard[0]} is before earliest eligible date {earliest[0]}"
            else:
                reason = f"no open slot on or before {hard[0]}"
            return self._fail(obligation, reason)
        return block

    def earliest_start(self, obligation: Obligation) -> Moment | None:
        """
        Earliest moment the obligation may start.

        Returns None if a prerequisite in this batch failed to place.
        """
        earliest: Moment = (self.placement.first_date, self.placement.window_start)
        if self.not_before is not None:
            earliest = max(earliest, self.not_before)

        for prerequisite in self.placement.dependencies.prerequisites_of(obligation):
            if prerequisite.id in self._failed:
                return None
            block = self.placement.locate_block(prerequisite)
            if block is not None:
                earliest = max(earliest, (block.date, block.end))
            elif prerequisite.id in self._batch:
                return None
            else:
                logger.warning(
                    "'%s' references prerequisite '%s' which is not in the placement; ignoring.",
                    obligation.name,
                    prerequisite.name,
                )
        return earliest

    def latest_finish(
        self, obligation: Obligation, tighten: bool = True, relaxed: bool = False
    ) -> Moment:
        """
        Latest moment the obligation may end.

        Its own deadline, bounded so every dependent can still follow it:
        placed dependents by their block start and rigid ones by their fixed
        start. Unplaced flexible dependents bound it by their own latest
        date; with `tighten` they also reserve their duration plus the
        minimum gap before their latest finish. With `relaxed`, deadlines
        are replaced by the end of the last day but dependents still apply.
        """
        cache_key = (obligation.id, tighten, relaxed)
        if cache_key in self._latest_cache:
            return self._latest_cache[cache_key]

        placement = self.placement
        if obligation.kind == "rigid":
            latest: Moment = (obligation.date, obligation.start)
        elif relaxed:
            latest = (placement.last_date, placement.window_end)
        else:
            latest = (min(obligation.deadline, placement.last_date), placement.window_end)

        for dependent in placement.dependencies.dependents_of(obligation):
            block = placement.locate_block(dependent)
            if block is not None:
                bound: Moment = (block.date, block.start)
            elif dependent.kind == "rigid":
                bound = (dependent.date, dependent.start)
            elif dependent.id in self._batch:
                dependent_date, dependent_end = self.latest_finish(dependent, tighten, relaxed)
                bound = (dependent_date, dependent_end)
                if tighten:
                    start_minutes = (
                        dependent_end.total_minutes - dependent.duration - placement.min_gap
                    )
                    if start_minutes <= placement.window_start.total_minutes:
                        bound = (dependent_date.add_days(-1), placement.window_end)
                    else:
                        bound = (dependent_date, Time24.from_minutes(start_minutes))
            else:
                continue
            latest = min(latest, bound)

        self._latest_cache[cache_key] = latest
        return latest

    def _search(
        self, obligation: FlexibleObligation, earliest: Moment, latest: Moment
    ) -> PlacedBlock | None:
        earliest_date, earliest_time = earliest
        latest_date, latest_time = latest
        window_start = self.placement.window_start
        window_end = self.placement.window_end

        eligible = [c for c in self.placement if earliest_date <= c.date <= latest_date]
        for calendar in self.strategy.candidate_days(eligible):
            lower = max(window_start, earliest_time) if calendar.date == earliest_date else window_start
            upper = min(window_end, latest_time) if calendar.date == latest_date else window_end
            if lower >= upper:
                continue
            slot = self.strategy.find_slot(calendar, obligation.duration, lower, upper)
            if slot is None:
                continue
            block = calendar.add_flexible_event(obligation, *slot)
            logger.debug("Placed '%s' on %s at %s-%s", obligation.name, calendar.date, *slot)
            return block
        return None

    def _fail(self, obligation: FlexibleObligation, reason: str) -> None:
        self._failed.add(obligation.id)
        self.unplaced.append(UnplacedObligation(obligation, reason))
        logger.warning("Could not place '%s': %s", obligation.name, reason)
        return None
