"""
Tests for the three placement strategies.
"""

import pytest

from plannr.dependencies import DependencyGraph
from plannr.scheduling.strategies import (
    BalancedWork,
    DeadlineOriented,
    EarliestFit,
    get_strategy,
    normalize_strategy_name,
)
from plannr.types import FlexibleObligation

from helpers import assert_valid_placement, blocks_by_name, june, t


def build(scheduler, flexible, strategy, graph=None, num_days=2):
    return scheduler.build(
        rigid_events=[],
        flexible_events=flexible,
        breaks=[],
        repeated_breaks=[],
        dependency_graph=graph,
        strategy=strategy,
        day_window_start=t(800),
        day_window_end=t(1800),
        first_date=june(6),
        num_days=num_days,
        min_gap=0,
        daily_capacity_hours=8,
    )


class TestStrategyNames:
    """Canonical names and display labels both resolve."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("earliest_fit", "earliest_fit"),
            ("Earliest Fit", "earliest_fit"),
            ("balanced-work", "balanced_work"),
            ("  Deadline Oriented ", "deadline_oriented"),
        ],
    )
    def test_normalize(self, name, expected):
        assert normalize_strategy_name(name) == expected

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Expected one of"):
            normalize_strategy_name("Random Fit")

    def test_get_strategy_types(self):
        assert isinstance(get_strategy("Earliest Fit"), EarliestFit)
        assert isinstance(get_strategy("balanced_work"), BalancedWork)
        assert isinstance(get_strategy("deadline_oriented"), DeadlineOriented)


class TestEarliestFit:
    """Obligations go to the first day and slot that fits, in input order."""

    def test_input_order_is_kept(self, scheduler):
        tasks = [FlexibleObligation(n, "work", 60, "low", june(7)) for n in ("C", "A", "B")]
        placement = build(scheduler, tasks, "earliest_fit")
        starts = {name: block.start for name, block in blocks_by_name(placement).items()}

        assert starts == {"C": t(800), "A": t(900), "B": t(1000)}


class TestBalancedWork:
    """Longest first, onto the least-loaded day."""

    def test_spreads_work_across_days(self, scheduler):
        """
        Long (2h) lands on day 1; Medium (1h) on empty day 2; Short then
        joins day 2, which is still lighter.
        """
        tasks = [
            FlexibleObligation("Short", "work", 30, "low", june(7)),
            FlexibleObligation("Long", "work", 120, "low", june(7)),
            FlexibleObligation("Medium", "work", 60, "low", june(7)),
        ]
        placement = build(scheduler, tasks, "balanced_work")
        blocks = blocks_by_name(placement)

        assert (blocks["Long"].date, blocks["Long"].start) == (june(6), t(800))
        assert (blocks["Medium"].date, blocks["Medium"].start) == (june(7), t(800))
        assert (blocks["Short"].date, blocks["Short"].start) == (june(7), t(900))
        assert_valid_placement(placement)


class TestDeadlineOriented:
    """Most urgent first, as late as the deadline allows."""

    def test_places_as_late_as_possible(self, scheduler):
        tasks = [
            FlexibleObligation("Later", "work", 60, "low", june(7)),
            FlexibleObligation("Urgent", "work", 60, "high", june(6)),
        ]
        placement = build(scheduler, tasks, "deadline_oriented")
        blocks = blocks_by_name(placement)

        assert (blocks["Urgent"].date, blocks["Urgent"].start) == (june(6), t(1700))
        assert (blocks["Later"].date, blocks["Later"].start) == (june(7), t(1700))

    def test_leaves_room_for_dependent(self, scheduler):
        """A prerequisite placed late still leaves its dependent a slot after it."""
        a = FlexibleObligation("A", "work", 60, "medium", june(7))
        b = FlexibleObligation("B", "work", 60, "medium", june(7))
        graph = DependencyGraph()
        graph.add_dependency(b, a)

        placement = build(scheduler, [b, a], "deadline_oriented", graph=graph)
        blocks = blocks_by_name(placement)

        assert (blocks["A"].date, blocks["A"].start, blocks["A"].end) == (june(7), t(1600), t(1700))
        assert (blocks["B"].date, blocks["B"].start, blocks["B"].end) == (june(7), t(1700), t(1800))

    def test_priority_breaks_deadline_ties(self, scheduler):
        """With equal deadlines, high priority claims the latest slot."""
        low = FlexibleObligation("Low", "work", 60, "low", june(6))
        high = FlexibleObligation("High", "work", 60, "high", june(6))
        placement = build(scheduler, [low, high], "deadline_oriented", num_days=1)
        blocks = blocks_by_name(placement)

        assert blocks["High"].start == t(1700)
        assert blocks["Low"].start == t(1600)
