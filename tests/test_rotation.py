"""Tests for rotation timing, validation, the group matrix and builder helpers."""

import pytest

from models import Group, RotationDrill, StationDrill
from rotation import (
    assign_all_groups_to_all, auto_assign_groups, build_rotation_block, calculate_rotation,
    generate_rotation_matrix, get_groups_at_time, rotation_total_time, stations_in_sync,
    sync_station_durations, validate_rotation,
)
from time_engine import block_duration
from factories import make_groups, make_station


def stations_of(*durations):
    return [make_station(d, name=f"s{i}") for i, d in enumerate(durations)]


def slots_for(result, group_id):
    return sorted((s for s in result.rotation_schedule if s.group_id == group_id), key=lambda s: s.start_time)


class TestCalculateRotation:
    def test_even_stations_cover_whole_rotation(self):
        stations = stations_of(10, 10, 10)
        groups = make_groups(3)
        result = calculate_rotation(stations, groups)

        assert result.total_session_time == 30
        assert result.time_per_group == 30
        for group in groups:
            slots = slots_for(result, group.id)
            assert {s.drill_id for s in slots} == {"s0-0", "s1-0", "s2-0"}
            assert slots[0].start_time == 0
            assert slots[-1].end_time == 30
            for previous, current in zip(slots, slots[1:]):
                assert previous.end_time == current.start_time

    def test_groups_start_at_offset_stations(self):
        result = calculate_rotation(stations_of(10, 10, 10), make_groups(3))
        first = {s.group_id: s.drill_id for s in result.rotation_schedule if s.start_time == 0}
        assert first == {"g0": "s0-0", "g1": "s1-0", "g2": "s2-0"}

    def test_uneven_stations_follow_each_path(self):
        result = calculate_rotation(stations_of(10, 20), make_groups(2))
        second = slots_for(result, "g1")
        assert [(s.drill_id, s.start_time, s.end_time) for s in second] == [
            ("s1-0", 0, 20), ("s0-0", 20, 30),
        ]

    def test_station_with_several_drills(self):
        stations = [make_station(5, 5, name="combo"), make_station(10, name="solo")]
        result = calculate_rotation(stations, make_groups(2))
        first = slots_for(result, "g0")
        assert [(s.drill_id, s.start_time) for s in first] == [("combo-0", 0), ("combo-1", 5), ("solo-0", 10)]
        assert result.total_session_time == 20

    def test_coach_is_first_station_coach(self):
        station = RotationDrill(
            drills=[StationDrill(drill_id="d", duration=5)], coach_ids=["c2", "c3"],
        )
        result = calculate_rotation([station], make_groups(1))
        assert result.rotation_schedule[0].coach_id == "c2"

    @pytest.mark.parametrize("stations,groups", [([], make_groups(2)), (stations_of(10), [])])
    def test_empty_setup(self, stations, groups):
        result = calculate_rotation(stations, groups)
        assert result.total_session_time == 0
        assert result.rotation_schedule == []

    def test_more_groups_than_stations_still_scheduled(self):
        result = calculate_rotation(stations_of(10, 10), make_groups(5))
        assert len(result.rotation_schedule) == 10
        assert result.total_session_time == 20

    def test_groups_at_time(self):
        result = calculate_rotation(stations_of(10, 20), make_groups(2))
        active = get_groups_at_time(result.rotation_schedule, 15)
        assert active["g0"].drill_id == "s1-0"
        assert active["g1"].drill_id == "s1-0"
        assert get_groups_at_time(result.rotation_schedule, 30) == {}


class TestValidateRotation:
    def test_valid_rotation(self):
        assert validate_rotation(stations_of(10, 10, 10), make_groups(3)) == []

    def test_nothing_set_up(self):
        assert validate_rotation([], []) == ["No stations in rotation", "No groups created for rotation"]

    def test_too_few_stations_does_not_block_schedule(self):
        stations = stations_of(10, 10)
        groups = make_groups(5)

        issues = validate_rotation(stations, groups)
        assert any("Not enough stations (2) for groups (5)" in issue for issue in issues)
        assert len(calculate_rotation(stations, groups).rotation_schedule) == 10

    def test_missing_coach_and_durations(self):
        stations = [
            make_station(10, name="a", coach=""),
            make_station(0, name="b"),
            make_station(5, -1, name="c", coach=""),
        ]
        issues = validate_rotation(stations, make_groups(3))
        assert "2 station(s) have no coach assigned" in issues
        assert "1 station(s) have no duration set" in issues
        assert "2 drill(s) have no duration set" in issues

    def test_simultaneous_mismatch(self):
        issues = validate_rotation(stations_of(10, 15), make_groups(2), simultaneous=True)
        assert issues == ["Station durations differ (10-15 min). Sync all stations to 15 min?"]
        assert validate_rotation(stations_of(10, 15), make_groups(2)) == []


class TestRotationMatrix:
    def test_even_matrix(self):
        stations = stations_of(10, 10, 10)
        titles = {"s0-0": "Bunting", "s1-0": "Grounders", "s2-0": "Pop flies"}
        matrix = generate_rotation_matrix(stations, make_groups(3), titles)

        assert matrix[0] == ["Time", "Group 0", "Group 1", "Group 2"]
        assert matrix[1] == ["0-10m", "Bunting", "Grounders", "Pop flies"]
        assert matrix[2] == ["10-20m", "Grounders", "Pop flies", "Bunting"]
        assert matrix[3] == ["20-30m", "Pop flies", "Bunting", "Grounders"]

    def test_uneven_stations_leave_gaps(self):
        titles = {"s0-0": "Bunting", "s1-0": "Grounders"}
        matrix = generate_rotation_matrix(stations_of(10, 20), make_groups(2), titles)

        assert matrix[1] == ["0-10m", "Bunting", "Grounders"]
        assert matrix[2] == ["10-30m", "Grounders", "-"]

    def test_unknown_title(self):
        matrix = generate_rotation_matrix(stations_of(10), make_groups(1), {})
        assert matrix[1] == ["0-10m", "Unknown"]

    def test_station_without_time_gets_no_row(self):
        titles = {"s0-0": "Bunting", "s1-0": "Grounders", "s2-0": "Pop flies"}
        stations = stations_of(10, 0, 10)

        assert generate_rotation_matrix(stations, make_groups(1), titles) == [
            ["Time", "Group 0"],
            ["0-10m", "Bunting"],
            ["10-20m", "Pop flies"],
        ]
        two_groups = generate_rotation_matrix(stations, make_groups(2), titles)
        assert two_groups[1:] == [["0-10m", "Bunting", "Pop flies"], ["10-20m", "Pop flies", "Bunting"]]


class TestBuilder:
    def test_total_time_by_mode(self):
        stations = stations_of(10, 15, 5)
        assert rotation_total_time(stations) == 30
        assert rotation_total_time(stations, simultaneous=True) == 15
        assert rotation_total_time([], simultaneous=True) == 0

    def test_in_sync(self):
        assert stations_in_sync(stations_of(10, 10))
        assert not stations_in_sync(stations_of(10, 12))
        assert stations_in_sync([])

    def test_sync_to_longest_station(self):
        stations = [make_station(10), make_station(5, 5), make_station(4, 2)]
        synced = sync_station_durations(stations)

        assert [[d.duration for d in s.drills] for s in synced] == [[10], [5, 5], [7, 3]]
        assert stations[2].drills[0].duration == 4

    def test_sync_to_target(self):
        stations = [make_station(10), make_station(5, 5), make_station(4, 2)]
        synced = sync_station_durations(stations, target=12)
        assert [[d.duration for d in s.drills] for s in synced] == [[12], [6, 6], [8, 4]]
        assert stations_in_sync(synced)

    def test_sync_keeps_at_least_one_minute(self):
        synced = sync_station_durations([make_station(1, 9)], target=2)
        assert [d.duration for d in synced[0].drills] == [1, 1]

    def test_zero_target_still_leaves_one_minute_per_drill(self):
        synced = sync_station_durations([make_station(10), make_station(4, 2)], target=0)
        assert [[d.duration for d in s.drills] for s in synced] == [[1], [1, 1]]

    def test_auto_assign_cycles_groups(self):
        groups = make_groups(2)
        assigned = auto_assign_groups(stations_of(10, 10, 10), groups)
        assert [s.group_ids for s in assigned] == [["g0"], ["g1"], ["g0"]]

    def test_assign_all(self):
        assigned = assign_all_groups_to_all(stations_of(10, 10), make_groups(3))
        assert all(s.group_ids == ["g0", "g1", "g2"] for s in assigned)


class TestBuildRotationBlock:
    @pytest.fixture
    def practice_groups(self):
        return {
            "g0": Group(id="g0", name="A", player_ids=["a", "b"]),
            "g1": Group(id="g1", name="B", player_ids=["c", "d"]),
        }

    def test_defaults_to_all_groups(self, practice_groups):
        block = build_rotation_block(stations_of(10, 15), practice_groups, name="Infield")

        assert block.notes == "Infield"
        assert block.simultaneous_stations is False
        assert all(s.group_ids == ["g0", "g1"] for s in block.rotation_drills)
        assert all(s.station_groups is None for s in block.rotation_drills)
        assert block_duration(block) == 25

    def test_modified_partners_are_stored_per_station(self, practice_groups):
        rotation_groups = {
            "g0": practice_groups["g0"].model_copy(update={"player_ids": ["a", "c"]}),
            "g1": practice_groups["g1"].model_copy(update={"player_ids": ["b", "d"]}),
        }
        stations = auto_assign_groups(stations_of(10, 10), list(practice_groups.values()))
        block = build_rotation_block(stations, practice_groups, rotation_groups, simultaneous=True)

        assert block.simultaneous_stations is True
        assert block.notes == "Rotation"
        first, second = block.rotation_drills
        assert first.station_groups == {"g0": rotation_groups["g0"]}
        assert second.station_groups == {"g1": rotation_groups["g1"]}

    def test_station_override_wins(self, practice_groups):
        override = practice_groups["g1"].model_copy(update={"player_ids": ["d"]})
        station = make_station(10).model_copy(update={"group_ids": ["g1"], "station_groups": {"g1": override}})
        block = build_rotation_block([station], practice_groups)
        assert block.rotation_drills[0].station_groups == {"g1": override}
