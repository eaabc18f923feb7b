"""
Pytest fixtures for scheduling engine tests.
"""

import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from plannr.dependencies import DependencyGraph
from plannr.scheduler import Scheduler
from plannr.types import Break, FlexibleObligation, RigidObligation

from helpers import build_week, june, t


@pytest.fixture
def scheduler():
    """Scheduler instance."""
    return Scheduler()


@pytest.fixture
def week_events():
    """
    A week of coursework and work starting Friday 6 June 2025.

    Returns (rigid, flexible, one-off breaks, repeated breaks, graph).
    """
    rigid = [
        RigidObligation("Church Visit", "personal", june(6), t(1000), t(1100)),
        RigidObligation("Math Midterm", "education", june(7), t(1000), t(1200)),
        RigidObligation("Physio Checkup", "personal", june(8), t(900), t(930)),
        RigidObligation("Team Workshop", "work", june(9), t(1400), t(1600)),
        RigidObligation("Chemistry Quiz", "education", june(9), t(900), t(1000)),
        RigidObligation("Staff Meeting", "work", june(10), t(1100), t(1200)),
        RigidObligation("Manager Check-In", "work", june(10), t(1500), t(1530)),
        RigidObligation("Final Presentation", "work", june(11), t(1500), t(1600)),
        RigidObligation("Dinner Party", "personal", june(12), t(1900), t(2100)),
    ]
    flexible = [
        FlexibleObligation("Study Math Chapters", "education", 90, "high", june(7)),
        FlexibleObligation("Fill Health Journal", "personal", 30, "low", june(8)),
        FlexibleObligation("Slide Draft", "work", 60, "medium", june(9)),
        FlexibleObligation("Write Research Notes", "education", 45, "medium", june(10)),
        FlexibleObligation("Data Cleaning", "work", 30, "low", june(10)),
        FlexibleObligation("Weekly Planning", "personal", 20, "low", june(12)),
        FlexibleObligation("Report Draft", "work", 90, "high", june(11)),
        FlexibleObligation("Design Mockups", "work", 60, "medium", june(11)),
        FlexibleObligation("Proofread Notes", "education", 30, "low", june(11)),
        FlexibleObligation("Buy Gifts", "personal", 45, "low", june(12)),
        FlexibleObligation("Reflective Essay", "education", 60, "high", june(12)),
        FlexibleObligation("Meditation Session", "personal", 30, "low", june(8)),
        FlexibleObligation("Read Case Studies", "education", 60, "medium", june(9)),
        FlexibleObligation("Finalize Budget", "work", 40, "medium", june(11)),
        FlexibleObligation("Email Follow-Ups", "work", 30, "low", june(10)),
        FlexibleObligation("Packing Checklist", "personal", 20, "low", june(12)),
    ]
    breaks = [
        (june(7), Break(t(1300), t(1330))),
        (june(9), Break(t(1200), t(1230))),
        (june(10), Break(t(1000), t(1030))),
        (june(11), Break(t(900), t(930))),
    ]
    repeated_breaks = [Break(t(1700), t(1730))]

    by_name = {e.name: e for e in [*rigid, *flexible]}
    graph = DependencyGraph()
    for dependent, prerequisite in [
        ("Math Midterm", "Study Math Chapters"),
        ("Fill Health Journal", "Physio Checkup"),
        ("Write Research Notes", "Slide Draft"),
        ("Proofread Notes", "Write Research Notes"),
        ("Reflective Essay", "Proofread Notes"),
        ("Design Mockups", "Slide Draft"),
        ("Design Mockups", "Report Draft"),
        ("Report Draft", "Staff Meeting"),
        ("Finalize Budget", "Report Draft"),
        ("Email Follow-Ups", "Staff Meeting"),
        ("Buy Gifts", "Weekly Planning"),
        ("Packing Checklist", "Buy Gifts"),
    ]:
        graph.add_dependency(by_name[dependent], by_name[prerequisite])

    return rigid, flexible, breaks, repeated_breaks, graph


@pytest.fixture
def week_placement(scheduler, week_events):
    """The week scenario built with Earliest-Fit."""
    return build_week(scheduler, week_events)


@pytest.fixture
def six_task_placement(scheduler):
    """
    Two days, six one-hour tasks due on day 2, packed onto day 1 back to back
    (08:00-14:00) by Earliest-Fit with no gap.
    """
    tasks = [
        FlexibleObligation(f"Task {i}", "work", 60, "medium", june(7)) for i in range(1, 7)
    ]
    return scheduler.build(
        rigid_events=[],
        flexible_events=tasks,
        breaks=[],
        repeated_breaks=[],
        dependency_graph=None,
        strategy="earliest_fit",
        day_window_start=t(800),
        day_window_end=t(1800),
        first_date=june(6),
        num_days=2,
        min_gap=0,
        daily_capacity_hours=8,
    )
