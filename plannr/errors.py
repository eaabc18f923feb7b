"""
Error kinds raised by the scheduling engine.

EventConflict and WorkingLimitExceeded are day-local and recoverable:
the scheduler searches past them by checking outcomes before committing.
CircularDependency and SchedulingInfeasible always reach the caller.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .placement import Placement
    from .temporal import ScheduleDate
    from .types import Break, FlexibleObligation, Obligation


class PlannrError(Exception):
    """Base class for scheduling errors."""


class CircularDependency(PlannrError):
    def __init__(self, dependent: "Obligation", prerequisite: "Obligation"):
        self.dependent = dependent
        self.prerequisite = prerequisite
        super().__init__(
            f"Circular dependency detected: '{prerequisite.name}' already requires "
            f"'{dependent.name}', so '{dependent.name}' cannot depend on it"
        )


class EventConflict(PlannrError):
    def __init__(self, obligation: "Obligation | Break", conflicting: str | None = None):
        self.obligation = obligation
        self.conflicting = conflicting
        detail = f" with '{conflicting}'" if conflicting else ""
        super().__init__(f"'{obligation.name}' conflicts{detail}")


class WorkingLimitExceeded(PlannrError):
    def __init__(self, obligation: "Obligation", date: "ScheduleDate", limit_hours: int):
        self.obligation = obligation
        self.date = date
        self.limit_hours = limit_hours
        super().__init__(
            f"Adding '{obligation.name}' on {date} exceeds the {limit_hours}h working limit"
        )


@dataclass
class UnplacedObligation:
    """A flexible obligation that found no day/slot, and why."""

    obligation: "FlexibleObligation"
    reason: str


class SchedulingInfeasible(PlannrError):
    def __init__(self, unplaced: list[UnplacedObligation], partial: "Placement | None" = None):
        self.unplaced = unplaced
        self.partial = partial
        names = ", ".join(f"'{u.obligation.name}'" for u in unplaced)
        super().__init__(f"Could not place {len(unplaced)} obligation(s): {names}")
