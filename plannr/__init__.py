"""
Plannr Scheduling Engine

Places rigid obligations, flexible deadline-bound obligations and breaks
into a conflict-free, capacity-respecting multi-day placement, and repairs
an existing placement when tasks are missed, items are added, or the
strategy changes.

Main entry points: Scheduler.build / build_placement and Rescheduler
"""

from .day_calendar import DailyCalendar
from .dependencies import DependencyGraph
from .errors import (
    CircularDependency,
    EventConflict,
    PlannrError,
    SchedulingInfeasible,
    UnplacedObligation,
    WorkingLimitExceeded,
)
from .placement import Placement
from .rescheduler import Rescheduler, diff_placements
from .scheduler import Scheduler, build_placement
from .scheduling import ConstraintViolation
from .serialization import placement_from_dict, placement_to_dict
from .temporal import ScheduleDate, Time24
from .types import (
    Break,
    FlexibleObligation,
    Obligation,
    PlacedBlock,
    RigidObligation,
    ScheduleRequest,
)

__all__ = [
    # Types
    "ScheduleDate",
    "Time24",
    "RigidObligation",
    "FlexibleObligation",
    "Obligation",
    "Break",
    "PlacedBlock",
    "ScheduleRequest",
    # Structures
    "DependencyGraph",
    "DailyCalendar",
    "Placement",
    # Errors
    "PlannrError",
    "CircularDependency",
    "EventConflict",
    "WorkingLimitExceeded",
    "SchedulingInfeasible",
    "UnplacedObligation",
    # Scheduler
    "Scheduler",
    "build_placement",
    # Rescheduler
    "Rescheduler",
    "ConstraintViolation",
    "diff_placements",
    # Serialization
    "placement_to_dict",
    "placement_from_dict",
]
