"""
Flexible placement layer.

Modules:
- slot_finder: earliest/latest fitting slot within one day
- strategies: Earliest-Fit, Balanced-Work and Deadline-Oriented heuristics
- flexible_placer: dependency-ordered placement shared by build and repair
"""

from .flexible_placer import ConstraintViolation, FlexiblePlacer
from .slot_finder import SLOT_STEP_MINUTES, find_earliest_slot, find_latest_slot
from .strategies import (
    STRATEGIES,
    BalancedWork,
    DeadlineOriented,
    EarliestFit,
    SchedulingStrategy,
    get_strategy,
    normalize_strategy_name,
)

__all__ = [
    "FlexiblePlacer",
    "ConstraintViolation",
    "SLOT_STEP_MINUTES",
    "find_earliest_slot",
    "find_latest_slot",
    "SchedulingStrategy",
    "EarliestFit",
    "BalancedWork",
    "DeadlineOriented",
    "STRATEGIES",
    "get_strategy",
    "normalize_strategy_name",
]
