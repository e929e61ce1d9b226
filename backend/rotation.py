"""Rotation scheduling: timing, validation and the printable group matrix.

Example: 3 stations of 10 minutes for 3 groups. Every group visits each
station once, starting at a different one, so the whole rotation takes 30
minutes and all groups finish together.
"""

import math
import uuid
from typing import Optional

from loguru import logger

from grouping import effective_groups, has_modified_partners
from models import Group, RotationBlock, RotationDrill, RotationResult, RotationSlot, StationDrill
from time_engine import station_duration


def calculate_rotation(stations: list[RotationDrill], groups: list[Group]) -> RotationResult:
    """Start and end time of every drill for every group.

    Group g begins at station g and moves round-robin through the rest. Times
    accumulate along the group's own path, so with uneven stations the groups
    change stations at different minutes.
    """
    if not stations or not groups:
        return RotationResult(total_session_time=0, time_per_group=0, rotation_schedule=[])

    time_per_group = sum(station_duration(s) for s in stations)
    count = len(stations)
    schedule = []

    for group_index, group in enumerate(groups):
        current = 0
        for step in range(count):
            station = stations[(step + group_index) % count]
            for drill in station.drills or []:
                schedule.append(RotationSlot(
                    group_id=group.id,
                    drill_id=drill.drill_id,
                    start_time=current,
                    end_time=current + drill.duration,
                    coach_id=station.coach_id,
                ))
                current += drill.duration

    logger.debug(f"Rotation: {count} stations, {len(groups)} groups, {time_per_group} min per group")
    return RotationResult(
        total_session_time=time_per_group,
        time_per_group=time_per_group,
        rotation_schedule=schedule,
    )


def get_groups_at_time(schedule: list[RotationSlot], minute: int) -> dict[str, RotationSlot]:
    return {s.group_id: s for s in schedule if s.start_time <= minute < s.end_time}


def rotation_total_time(stations: list[RotationDrill], simultaneous: bool = False) -> int:
    times = [station_duration(s) for s in stations]
    if simultaneous:
        return max(times, default=0)
    return sum(times)


def stations_in_sync(stations: list[RotationDrill]) -> bool:
    return len({station_duration(s) for s in stations}) <= 1


def validate_rotation(
    stations: list[RotationDrill],
    groups: list[Group],
    simultaneous: bool = False,
) -> list[str]:
    """Collect every problem with a rotation setup.

    Findings are warnings: the schedule can still be calculated and the caller
    decides whether to save.
    """
    issues = []

    if not stations:
        issues.append("No stations in rotation")

    if not groups:
        issues.append("No groups created for rotation")

    if len(stations) < len(groups):
        issues.append(
            f"Not enough stations ({len(stations)}) for groups ({len(groups)}). "
            "Add more stations or reduce groups."
        )

    without_coach = [s for s in stations if not s.coach_ids]
    if without_coach:
        issues.append(f"{len(without_coach)} station(s) have no coach assigned")

    empty_stations = [s for s in stations if station_duration(s) <= 0]
    if empty_stations:
        issues.append(f"{len(empty_stations)} station(s) have no duration set")

    bad_drills = [d for s in stations for d in s.drills or [] if d.duration <= 0]
    if bad_drills:
        issues.append(f"{len(bad_drills)} drill(s) have no duration set")

    if simultaneous and not stations_in_sync(stations):
        times = [station_duration(s) for s in stations]
        issues.append(
            f"Station durations differ ({min(times)}-{max(times)} min). "
            f"Sync all stations to {max(times)} min?"
        )

    return issues


def generate_rotation_matrix(
    stations: list[RotationDrill],
    groups: list[Group],
    drill_titles: dict[str, str],
) -> list[list[str]]:
    """Rows are station start times, columns are groups.

    Stations that take no time get no row, so every row starts at a distinct
    minute. A cell shows the drill the group begins at that minute and occupies
    time with, or '-' when there is none, which happens when station durations
    are uneven.
    """
    result = calculate_rotation(stations, groups)
    starts = {}
    for slot in result.rotation_schedule:
        if slot.end_time > slot.start_time:
            starts.setdefault((slot.group_id, slot.start_time), slot)

    matrix = [["Time"] + [g.name for g in groups]]
    current = 0
    for station in stations:
        duration = station_duration(station)
        if duration <= 0:
            current += duration
            continue
        row = [f"{current}-{current + duration}m"]
        for group in groups:
            slot = starts.get((group.id, current))
            row.append(drill_titles.get(slot.drill_id, "Unknown") if slot else "-")
        matrix.append(row)
        current += duration

    return matrix


# ============ BUILDER ============

def _rescale_drills(drills: list[StationDrill], target: int) -> list[StationDrill]:
    current_total = sum(d.duration for d in drills)
    if len(drills) == 1:
        return [drills[0].model_copy(update={"duration": max(1, target)})]

    rescaled = []
    remaining = target
    for index, drill in enumerate(drills):
        if index == len(drills) - 1:
            duration = max(1, remaining)
        elif current_total > 0:
            duration = max(1, math.floor(drill.duration * target / current_total + 0.5))
        else:
            duration = max(1, target // len(drills))
        remaining -= duration
        rescaled.append(drill.model_copy(update={"duration": duration}))
    return rescaled


def sync_station_durations(stations: list[RotationDrill], target: Optional[int] = None) -> list[RotationDrill]:
    """Stretch or shrink every station to the same length.

    Drills keep their proportions, each keeps at least one minute and the last
    drill takes the rounding remainder. Defaults to the longest station.
    """
    if target is None:
        target = max((station_duration(s) for s in stations), default=0)

    synced = []
    for station in stations:
        if not station.drills or station_duration(station) == target:
            synced.append(station)
            continue
        synced.append(station.model_copy(update={"drills": _rescale_drills(station.drills, target)}))
    return synced


def auto_assign_groups(stations: list[RotationDrill], groups: list[Group]) -> list[RotationDrill]:
    if not stations or not groups:
        return list(stations)
    return [
        station.model_copy(update={"group_ids": [groups[index % len(groups)].id]})
        for index, station in enumerate(stations)
    ]


def assign_all_groups_to_all(stations: list[RotationDrill], groups: list[Group]) -> list[RotationDrill]:
    group_ids = [g.id for g in groups]
    return [station.model_copy(update={"group_ids": list(group_ids)}) for station in stations]


def build_rotation_block(
    stations: list[RotationDrill],
    practice_groups: dict[str, Group],
    rotation_groups: Optional[dict[str, Group]] = None,
    name: str = "",
    simultaneous: bool = False,
    block_id: Optional[str] = None,
    order: int = 0,
) -> RotationBlock:
    """Turn builder state into a session block.

    Stations without assigned groups get every effective group. Per-station
    group overrides are only stored when partners were changed for this
    rotation or for the station itself.
    """
    rotation_groups = rotation_groups or {}
    partners_modified = has_modified_partners(rotation_groups, practice_groups)
    available = rotation_groups or practice_groups
    all_ids = list(available)

    saved = []
    for station in stations:
        group_ids = station.group_ids or all_ids
        update = {"group_ids": list(group_ids), "station_groups": None}

        if station.station_groups or partners_modified:
            overrides = {**rotation_groups, **(station.station_groups or {})}
            resolved = effective_groups(group_ids, overrides, {})
            if resolved:
                update["station_groups"] = {g.id: g for g in resolved}

        saved.append(station.model_copy(update=update))

    return RotationBlock(
        id=block_id or str(uuid.uuid4()),
        order=order,
        notes=name or "Rotation",
        rotation_drills=saved,
        simultaneous_stations=simultaneous,
    )
