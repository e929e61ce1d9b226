"""Splitting present players into groups and partner units.

Groups and partners share one keyed collection (group id -> Group) but form two
independent partitions: a player may sit in one group and one partner unit at
the same time, never in two units of the same type.
"""

import math
import random
import uuid
from typing import Optional

from loguru import logger

from constants import GROUP_LETTERS, MAX_GROUP_SIZE, MIN_GROUP_SIZE, TARGET_GROUP_SIZE
from models import Group, GroupAssignment, GroupStats, Player, RotationDrill


def get_present_players(players: list[Player], attendance: dict[str, bool]) -> list[Player]:
    return [p for p in players if attendance.get(p.id) is True and p.status == "active"]


def group_name(index: int) -> str:
    if index < len(GROUP_LETTERS):
        return f"Group {GROUP_LETTERS[index]}"
    return f"Group {index + 1}"


def _shuffled(players: list[Player], rng: Optional[random.Random]) -> list[Player]:
    rng = rng or random.Random()
    shuffled = list(players)
    rng.shuffle(shuffled)
    return shuffled


def create_groups(
    present_players: list[Player],
    number_of_groups: int,
    rng: Optional[random.Random] = None,
) -> list[Group]:
    """Shuffle present players and deal them round-robin into balanced groups.

    The group count is capped at the number of players, so sizes never differ
    by more than one and no group is empty.
    """
    if number_of_groups <= 0 or not present_players:
        return []

    actual_groups = min(number_of_groups, len(present_players))
    buckets = [[] for _ in range(actual_groups)]
    for index, player in enumerate(_shuffled(present_players, rng)):
        buckets[index % actual_groups].append(player.id)

    logger.debug(f"Created {actual_groups} groups from {len(present_players)} players")
    return [
        Group(id=str(uuid.uuid4()), name=group_name(i), player_ids=ids, type="group")
        for i, ids in enumerate(buckets)
    ]


def create_partners(present_players: list[Player], rng: Optional[random.Random] = None) -> list[Group]:
    """Pair players up; with an odd count the last pair becomes a trio."""
    if len(present_players) < 2:
        return []

    shuffled = _shuffled(present_players, rng)
    pairs = [[p.id for p in shuffled[i:i + 2]] for i in range(0, len(shuffled) - 1, 2)]
    if len(shuffled) % 2 == 1:
        pairs[-1].append(shuffled[-1].id)

    return [
        Group(id=str(uuid.uuid4()), name=f"Partners {i + 1}", player_ids=ids, type="partner")
        for i, ids in enumerate(pairs)
    ]


def balance_groups(groups: list[Group]) -> list[Group]:
    """Even out group sizes without shuffling.

    Groups are ordered largest first, their members concatenated in that order
    and sliced back so the first `remainder` groups get one extra player.
    Ids, names and types are kept.
    """
    if not groups:
        return []

    total = sum(len(g.player_ids) for g in groups)
    target, remainder = divmod(total, len(groups))

    ordered = sorted(groups, key=lambda g: len(g.player_ids), reverse=True)
    all_ids = [pid for g in ordered for pid in g.player_ids]

    balanced = []
    start = 0
    for index, group in enumerate(ordered):
        size = target + 1 if index < remainder else target
        balanced.append(group.model_copy(update={"player_ids": all_ids[start:start + size]}))
        start += size
    return balanced


def suggest_group_count(player_count: int, drill_count: int) -> int:
    """Suggest a group count that keeps groups at 3-5 players.

    When the number of rotation stations fits that band, one group per
    station is preferred.
    """
    if player_count <= 0:
        return 0

    min_groups = math.ceil(player_count / MAX_GROUP_SIZE)
    max_groups = player_count // MIN_GROUP_SIZE
    if min_groups <= drill_count <= max_groups:
        return drill_count

    return max(1, math.floor(player_count / TARGET_GROUP_SIZE + 0.5))


def get_group_stats(groups: list[Group]) -> GroupStats:
    if not groups:
        return GroupStats(total_players=0, average_size=0, min_size=0, max_size=0)

    sizes = [len(g.player_ids) for g in groups]
    total = sum(sizes)
    return GroupStats(
        total_players=total,
        average_size=total / len(groups),
        min_size=min(sizes),
        max_size=max(sizes),
    )


def assign_groups_to_drills(groups: list[Group], stations: list[RotationDrill]) -> list[GroupAssignment]:
    """Order in which each group reaches each station; group i starts at station i."""
    assignments = []
    count = len(stations)
    for group_index, group in enumerate(groups):
        for station_index, station in enumerate(stations):
            first_drill = station.drills[0].drill_id if station.drills else ""
            assignments.append(GroupAssignment(
                group_id=group.id,
                drill_id=first_drill,
                rotation_order=(station_index - group_index) % count,
            ))
    return assignments


# ============ KEYED COLLECTION EDITS ============

def groups_of_type(groups_by_id: dict[str, Group], group_type: str) -> list[Group]:
    return [g for g in groups_by_id.values() if g.type == group_type]


def replace_partition(groups_by_id: dict[str, Group], new_groups: list[Group], group_type: str) -> dict[str, Group]:
    """Swap out every unit of one type, leaving the other partition untouched."""
    updated = {gid: g for gid, g in groups_by_id.items() if g.type != group_type}
    for group in new_groups:
        updated[group.id] = group.model_copy(update={"type": group_type})
    return updated


def clear_partition(groups_by_id: dict[str, Group], group_type: str) -> dict[str, Group]:
    return replace_partition(groups_by_id, [], group_type)


def rename_group(groups_by_id: dict[str, Group], group_id: str, new_name: str) -> dict[str, Group]:
    name = new_name.strip()
    if group_id not in groups_by_id or not name:
        return dict(groups_by_id)

    updated = dict(groups_by_id)
    updated[group_id] = groups_by_id[group_id].model_copy(update={"name": name})
    return updated


def add_player_to_group(groups_by_id: dict[str, Group], group_id: str, player_id: str) -> dict[str, Group]:
    """Add a player unless they already belong to a unit of the same type."""
    target = groups_by_id.get(group_id)
    if target is None:
        return dict(groups_by_id)

    if any(player_id in g.player_ids for g in groups_of_type(groups_by_id, target.type)):
        logger.debug(f"Player {player_id} already assigned to a {target.type}")
        return dict(groups_by_id)

    updated = dict(groups_by_id)
    updated[group_id] = target.model_copy(update={"player_ids": target.player_ids + [player_id]})
    return updated


def remove_player_from_group(groups_by_id: dict[str, Group], group_id: str, player_id: str) -> dict[str, Group]:
    group = groups_by_id.get(group_id)
    if group is None:
        return dict(groups_by_id)

    updated = dict(groups_by_id)
    updated[group_id] = group.model_copy(
        update={"player_ids": [pid for pid in group.player_ids if pid != player_id]}
    )
    return updated


def move_player(
    groups_by_id: dict[str, Group],
    player_id: str,
    from_group_id: str,
    to_group_id: str,
) -> dict[str, Group]:
    """Move a player between two units of the same type.

    Moves across types, from or to unknown units, or of a player who is not in
    the source unit leave the collection unchanged.
    """
    source = groups_by_id.get(from_group_id)
    target = groups_by_id.get(to_group_id)
    if source is None or target is None or from_group_id == to_group_id:
        return dict(groups_by_id)
    if source.type != target.type:
        logger.debug(f"Rejected move of {player_id} from {source.type} to {target.type}")
        return dict(groups_by_id)
    if player_id not in source.player_ids:
        return dict(groups_by_id)

    updated = dict(groups_by_id)
    updated[from_group_id] = source.model_copy(
        update={"player_ids": [pid for pid in source.player_ids if pid != player_id]}
    )
    if player_id not in target.player_ids:
        updated[to_group_id] = target.model_copy(update={"player_ids": target.player_ids + [player_id]})
    return updated


def unassigned_players(
    present_players: list[Player],
    groups_by_id: dict[str, Group],
    group_type: str,
) -> list[Player]:
    assigned = {pid for g in groups_of_type(groups_by_id, group_type) for pid in g.player_ids}
    return [p for p in present_players if p.id not in assigned]


# ============ PER-BLOCK OVERRIDES ============

def effective_group(
    group_id: str,
    overrides: Optional[dict[str, Group]],
    base: dict[str, Group],
) -> Optional[Group]:
    """The group as seen by one drill or station: its override if any, else the practice group."""
    if overrides and group_id in overrides:
        return overrides[group_id]
    return base.get(group_id)


def effective_groups(
    group_ids: list[str],
    overrides: Optional[dict[str, Group]],
    base: dict[str, Group],
) -> list[Group]:
    resolved = (effective_group(gid, overrides, base) for gid in group_ids)
    return [g for g in resolved if g is not None]


def has_modified_partners(overrides: Optional[dict[str, Group]], base: dict[str, Group]) -> bool:
    if not overrides:
        return False

    for group_id, override in overrides.items():
        practice_group = base.get(group_id)
        if practice_group is None or sorted(practice_group.player_ids) != sorted(override.player_ids):
            return True
    return False
