"""Practice time budget: block durations, water breaks and remaining time."""

import uuid
from typing import Iterable, Optional

from loguru import logger

from constants import (
    TIME_CRITICAL_PERCENT, TIME_WARNING_PERCENT,
    WATER_BREAK_DURATION, WATER_BREAK_INTERVAL, WATER_BREAK_LABEL,
)
from models import RotationBlock, RotationDrill, SingleBlock, TimeEngineResult


def station_duration(station: RotationDrill) -> int:
    """Total minutes one group spends at a station (its drills run back to back)."""
    return sum(drill.duration or 0 for drill in station.drills or [])


def block_duration(block) -> int:
    """Minutes consumed by one session block.

    Rotation blocks count the time for one group to visit every station once.
    Simultaneous stations are not taken into account here.
    """
    if isinstance(block, SingleBlock):
        minutes = block.duration or 0
    elif isinstance(block, RotationBlock):
        minutes = sum(station_duration(s) for s in block.rotation_drills or [])
    else:
        minutes = 0
    return max(0, minutes)


def water_breaks_needed(used_minutes: int) -> int:
    if used_minutes <= WATER_BREAK_INTERVAL:
        return 0
    return used_minutes // WATER_BREAK_INTERVAL


def water_break_positions(blocks: Iterable) -> list[int]:
    """Indices after which a water break should be shown.

    At most one position is recorded per block, even when a long block
    crosses more than one threshold.
    """
    positions = []
    cumulative = 0
    next_break_at = WATER_BREAK_INTERVAL

    for index, block in enumerate(blocks):
        cumulative += block_duration(block)
        if cumulative >= next_break_at:
            positions.append(index + 1)
            next_break_at += WATER_BREAK_INTERVAL

    return positions


def remaining_time(total_minutes: int, blocks: Iterable, auto_water_breaks: bool = True) -> TimeEngineResult:
    drill_minutes = sum(block_duration(b) for b in blocks)

    # Breaks come from raw drill time only
    breaks = water_breaks_needed(drill_minutes) if auto_water_breaks else 0
    used = drill_minutes + breaks * WATER_BREAK_DURATION
    remaining = total_minutes - used

    logger.debug(
        f"Time budget: total={total_minutes} drills={drill_minutes} breaks={breaks} remaining={remaining}"
    )
    return TimeEngineResult(
        total_minutes=total_minutes,
        used_minutes=used,
        remaining_minutes=remaining,
        is_over_limit=remaining < 0,
        water_breaks_inserted=breaks,
    )


def make_water_break_block(order: int = 0, block_id: Optional[str] = None) -> SingleBlock:
    return SingleBlock(
        id=block_id or str(uuid.uuid4()),
        order=order,
        drill_id="",
        duration=WATER_BREAK_DURATION,
        notes=WATER_BREAK_LABEL,
    )


def is_water_break(block) -> bool:
    return isinstance(block, SingleBlock) and block.notes == WATER_BREAK_LABEL


def insert_water_breaks(blocks: list) -> list:
    """Place a water-break block at every break position and renumber the blocks.

    Existing water-break blocks are dropped first, so running this again after
    an edit moves the breaks instead of piling them up.
    """
    drills = [b for b in blocks if not is_water_break(b)]
    positions = set(water_break_positions(drills))

    placed = []
    for index, block in enumerate(drills, start=1):
        placed.append(block)
        if index in positions:
            placed.append(make_water_break_block())

    logger.debug(f"Placed {len(positions)} water break(s) among {len(drills)} blocks")
    return [block.model_copy(update={"order": order}) for order, block in enumerate(placed)]


def format_time(minutes: int) -> str:
    """Format minutes as '1h 5m' or '45m', keeping the sign."""
    hours, mins = divmod(abs(minutes), 60)
    sign = "-" if minutes < 0 else ""
    if hours > 0:
        return f"{sign}{hours}h {mins}m"
    return f"{sign}{mins}m"


def time_status(remaining_minutes: int, total_minutes: int) -> str:
    """Classify how much of the practice is left: over, critical, warning or ok."""
    if remaining_minutes < 0:
        return "over"
    if total_minutes <= 0:
        return "critical"
    percent_remaining = remaining_minutes / total_minutes * 100
    if percent_remaining <= TIME_CRITICAL_PERCENT:
        return "critical"
    if percent_remaining <= TIME_WARNING_PERCENT:
        return "warning"
    return "ok"


def used_percent(result: TimeEngineResult) -> float:
    if result.total_minutes <= 0:
        return 100.0 if result.used_minutes > 0 else 0.0
    remaining = max(0.0, min(100.0, result.remaining_minutes / result.total_minutes * 100))
    return 100.0 - remaining


def time_label(result: TimeEngineResult) -> str:
    if result.is_over_limit:
        return f"{format_time(abs(result.remaining_minutes))} over"
    return f"{format_time(result.remaining_minutes)} left"
