"""
Plain-dict interchange for placements.

Produces and consumes JSON-compatible dicts with camelCase keys. Dates
are {date, month, year} triples and clock times are HHMM integers.

Dependencies are written twice: `eventDependencyIds` (id -> prerequisite
ids) is authoritative, and `eventDependencies` (name -> prerequisite
names) is kept for consumers that only know display names. When only the
name map is present, names are matched case-insensitively.
"""

import logging

from .day_calendar import DailyCalendar
from .dependencies import DependencyGraph
from .errors import CircularDependency
from .placement import Placement
from .scheduling.strategies import normalize_strategy_name
from .temporal import ScheduleDate, Time24
from .types import (
    Break,
    FlexibleObligation,
    Obligation,
    PlacedBlock,
    RigidObligation,
)

logger = logging.getLogger(__name__)


def _require(data: dict, what: str, *keys: str) -> None:
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be an object, got {type(data).__name__}")
    missing = [k for k in keys if data.get(k) is None]
    if missing:
        raise ValueError(f"{what} missing required field(s): {', '.join(missing)}")


# =============================================================================
# Primitives
# =============================================================================


def date_to_dict(value: ScheduleDate) -> dict:
    return {"date": value.day, "month": value.month, "year": value.year}


def date_from_dict(data: dict) -> ScheduleDate:
    _require(data, "Date", "date", "month", "year")
    return ScheduleDate(day=data["date"], month=data["month"], year=data["year"])


def break_to_dict(brk: Break) -> dict:
    return {"duration": brk.duration, "startTime": brk.start.to_int(), "endTime": brk.end.to_int()}


def break_from_dict(data: dict) -> Break:
    _require(data, "Break", "startTime", "endTime")
    return Break(start=Time24.from_int(data["startTime"]), end=Time24.from_int(data["endTime"]))


# =============================================================================
# Obligations and blocks
# =============================================================================


def obligation_to_dict(obligation: Obligation) -> dict:
    """Serialize a rigid or flexible obligation."""
    data = {
        "id": obligation.id,
        "name": obligation.name,
        "type": obligation.kind,
        "activityType": obligation.activity,
        "duration": obligation.duration,
    }
    if obligation.kind == "rigid":
        data["date"] = date_to_dict(obligation.date)
        data["startTime"] = obligation.start.to_int()
        data["endTime"] = obligation.end.to_int()
    else:
        data["priority"] = obligation.priority
        data["deadline"] = date_to_dict(obligation.deadline)
    return data


def obligation_from_dict(data: dict) -> Obligation:
    """
    Parse a rigid or flexible obligation.

    The variant comes from `type`; payloads without it are told apart by
    their fields (a deadline means flexible).
    """
    _require(data, "Obligation", "name")
    kind = data.get("type")
    if kind is None:
        kind = "flexible" if data.get("deadline") is not None else "rigid"

    extra = {"id": data["id"]} if data.get("id") else {}
    activity = data.get("activityType", "other")
    if kind == "rigid":
        _require(data, "Rigid obligation", "date", "startTime", "endTime")
        return RigidObligation(
            name=data["name"],
            activity=activity,
            date=date_from_dict(data["date"]),
            start=Time24.from_int(data["startTime"]),
            end=Time24.from_int(data["endTime"]),
            **extra,
        )
    if kind == "flexible":
        _require(data, "Flexible obligation", "duration", "deadline")
        return FlexibleObligation(
            name=data["name"],
            activity=activity,
            duration=data["duration"],
            priority=data.get("priority", "medium"),
            deadline=date_from_dict(data["deadline"]),
            **extra,
        )
    raise ValueError(f"Unknown obligation type: {kind}")


def block_to_dict(block: PlacedBlock) -> dict:
    return {
        "name": block.name,
        "type": block.block_type,
        "date": date_to_dict(block.date),
        "activityType": block.activity,
        "priority": block.priority,
        "startTime": block.start.to_int(),
        "endTime": block.end.to_int(),
        "duration": block.duration,
        "completed": block.completed,
        "deadline": date_to_dict(block.deadline),
        "backendId": block.backend_id,
        "obligationId": block.obligation_id,
    }


def block_from_dict(data: dict) -> PlacedBlock:
    _require(data, "Time block", "name", "type", "date", "startTime", "endTime")
    date = date_from_dict(data["date"])
    start = Time24.from_int(data["startTime"])
    end = Time24.from_int(data["endTime"])
    return PlacedBlock(
        block_type=data["type"],
        name=data["name"],
        date=date,
        start=start,
        end=end,
        duration=data.get("duration") or start.minutes_until(end),
        activity=data.get("activityType") or ("break" if data["type"] == "break" else "other"),
        priority=data.get("priority") or "low",
        deadline=date_from_dict(data["deadline"]) if data.get("deadline") else date,
        completed=bool(data.get("completed", False)),
        backend_id=data.get("backendId") or None,
        obligation_id=data.get("obligationId") or None,
    )


def reconstruct_sources(
    blocks: list[PlacedBlock],
) -> tuple[list[Obligation], list[Break]]:
    """
    Rebuild approximate source obligations and breaks from blocks alone.

    Blocks without an obligation id are given the id of the obligation
    rebuilt for them (their backend id when they have one).
    """
    events: list[Obligation] = []
    breaks: list[Break] = []
    for block in blocks:
        if block.is_break:
            breaks.append(Break(start=block.start, end=block.end))
            continue
        extra = {}
        if block.obligation_id or block.backend_id:
            extra["id"] = block.obligation_id or block.backend_id
        if block.block_type == "rigid":
            obligation: Obligation = RigidObligation(
                name=block.name,
                activity=block.activity,
                date=block.date,
                start=block.start,
                end=block.end,
                **extra,
            )
        else:
            obligation = FlexibleObligation(
                name=block.name,
                activity=block.activity,
                duration=block.duration,
                priority=block.priority,
                deadline=block.deadline,
                **extra,
            )
        block.obligation_id = obligation.id
        events.append(obligation)
    return events, breaks


# =============================================================================
# Days and placements
# =============================================================================


def day_to_dict(calendar: DailyCalendar) -> dict:
    return {
        "day": calendar.day_label,
        "date": date_to_dict(calendar.date),
        "minGap": calendar.min_gap,
        "workingHoursLimit": calendar.working_hours_limit,
        "events": [obligation_to_dict(e) for e in calendar.events],
        "breaks": [break_to_dict(b) for b in calendar.breaks],
        "timeBlocks": [block_to_dict(b) for b in calendar.blocks],
    }


def day_from_dict(data: dict) -> DailyCalendar:
    """
    Parse a day.

    When `events` and `breaks` are empty but `timeBlocks` are not, the
    source objects are reconstructed from the blocks.
    """
    _require(data, "Day", "date", "minGap", "workingHoursLimit")
    calendar = DailyCalendar(
        date=date_from_dict(data["date"]),
        min_gap=data["minGap"],
        working_hours_limit=data["workingHoursLimit"],
    )
    raw_events = data.get("events") or []
    raw_breaks = data.get("breaks") or []
    blocks = [block_from_dict(b) for b in data.get("timeBlocks") or []]

    if not raw_events and not raw_breaks and blocks:
        events, breaks = reconstruct_sources(blocks)
    else:
        events = [obligation_from_dict(e) for e in raw_events]
        breaks = [break_from_dict(b) for b in raw_breaks]
        _link_blocks(blocks, events)

    calendar.events = events
    calendar.breaks = breaks
    calendar.blocks = blocks
    calendar.sort_schedule()
    return calendar


def _link_blocks(blocks: list[PlacedBlock], events: list[Obligation]) -> None:
    """Fill in missing obligation ids on blocks by matching names."""
    by_name = {_normalize_name(e.name): e for e in events}
    for block in blocks:
        if block.is_break or block.obligation_id:
            continue
        match = by_name.get(_normalize_name(block.name))
        if match is not None:
            block.obligation_id = match.id


def placement_to_dict(placement: Placement) -> dict:
    """Convert a placement to a JSON-serializable dict."""
    return {
        "numDays": placement.num_days,
        "day1Date": date_to_dict(placement.first_date),
        "day1Day": placement.first_day_label,
        "minGap": placement.min_gap,
        "workingHoursLimit": placement.working_hours_limit,
        "strategy": placement.strategy,
        "startTime": placement.window_start.to_int(),
        "endTime": placement.window_end.to_int(),
        "eventDependencies": dependencies_to_name_map(placement.dependencies),
        "eventDependencyIds": dependencies_to_id_map(placement.dependencies),
        "schedule": [[date_id, day_to_dict(calendar)] for date_id, calendar in placement.days.items()],
    }


def placement_from_dict(data: dict) -> Placement:
    """
    Rebuild a placement from a dict produced by placement_to_dict.

    Raises:
        ValueError: If a required field is missing or malformed
    """
    _require(data, "Placement", "numDays", "day1Date", "schedule", "startTime", "endTime")

    days: dict[str, DailyCalendar] = {}
    for entry in data["schedule"]:
        if not isinstance(entry, (list, tuple)) or len(entry) != 2:
            raise ValueError(f"Schedule entry must be a [dateId, day] pair, got {entry!r}")
        _, raw_day = entry
        calendar = day_from_dict(raw_day)
        days[calendar.date.id] = calendar

    obligations = [event for calendar in days.values() for event in calendar.events]
    if data.get("eventDependencyIds"):
        graph = dependencies_from_id_map(data["eventDependencyIds"], obligations)
    else:
        graph = dependencies_from_name_map(data.get("eventDependencies") or {}, obligations)

    first = next(iter(days.values()), None)
    return Placement(
        num_days=data["numDays"],
        first_date=date_from_dict(data["day1Date"]),
        min_gap=data.get("minGap", first.min_gap if first else 0),
        working_hours_limit=data.get("workingHoursLimit", first.working_hours_limit if first else 8),
        dependencies=graph,
        strategy=normalize_strategy_name(data.get("strategy") or "earliest_fit"),
        window_start=Time24.from_int(data["startTime"]),
        window_end=Time24.from_int(data["endTime"]),
        days=dict(sorted(days.items())),
    )


# =============================================================================
# Dependencies
# =============================================================================


def _normalize_name(name: str) -> str:
    return name.strip().lower()


def dependencies_to_name_map(graph: DependencyGraph) -> dict[str, list[str]]:
    """Convert a graph to {dependent name: [prerequisite names]}."""
    name_map: dict[str, list[str]] = {}
    for dependent, prerequisite in graph.edges():
        name_map.setdefault(dependent.name, []).append(prerequisite.name)
    return name_map


def dependencies_to_id_map(graph: DependencyGraph) -> dict[str, list[str]]:
    id_map: dict[str, list[str]] = {}
    for dependent, prerequisite in graph.edges():
        id_map.setdefault(dependent.id, []).append(prerequisite.id)
    return id_map


def dependencies_from_id_map(
    id_map: dict[str, list[str]], obligations: list[Obligation]
) -> DependencyGraph:
    """
    Rebuild a graph from {dependent id: [prerequisite ids]}.

    Raises:
        ValueError: If an id matches no obligation
        CircularDependency: If the edges contain a cycle
    """
    return DependencyGraph.from_id_map(id_map, obligations)


def dependencies_from_name_map(
    name_map: dict[str, list[str]], obligations: list[Obligation]
) -> DependencyGraph:
    """
    Rebuild a graph from {dependent name: [prerequisite names]}.

    Names are matched trimmed and case-insensitively. Unknown names and
    edges that would close a cycle are logged and skipped.
    """
    by_name: dict[str, Obligation] = {}
    for obligation in obligations:
        key = _normalize_name(obligation.name)
        if key in by_name and by_name[key].id != obligation.id:
            logger.warning("Duplicate obligation name '%s'; dependencies use the last one", obligation.name)
        by_name[key] = obligation

    graph = DependencyGraph()
    matched = 0
    for dependent_name, prerequisite_names in name_map.items():
        dependent = by_name.get(_normalize_name(dependent_name))
        if dependent is None:
            logger.warning("Obligation not found for dependency mapping: '%s'", dependent_name)
            continue
        for prerequisite_name in prerequisite_names:
            prerequisite = by_name.get(_normalize_name(prerequisite_name))
            if prerequisite is None:
                logger.warning(
                    "Dependency '%s' not found for obligation '%s'", prerequisite_name, dependent_name
                )
                continue
            try:
                graph.add_dependency(dependent, prerequisite)
                matched += 1
            except CircularDependency as e:
                logger.error("Skipping dependency '%s' -> '%s': %s", dependent_name, prerequisite_name, e)

    logger.info("Dependency reconstruction: %d edge(s) matched", matched)
    return graph
