"""
Integration tests for the public scheduling entry points.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from podplay.config import merge_settings
from podplay.constraints import Scorer
from podplay.models import Match, ScheduleDay, TimeWindow
from podplay.pods import build_all_group_matches, build_group_matches, distribute_teams_to_groups
from podplay.scheduler import _stages, schedule_group_matches, schedule_group_matches_beam_search

from schedule_checks import assert_valid_schedule

DATE = "2026-05-01"


class TestScheduleGroupMatches:
    """Tests for the escalation ladder entry point."""

    def test_mixed_pods_scheduled_greedily(self, mixed_pods, one_day, courts):
        result = schedule_group_matches(mixed_pods, one_day, 60, courts)
        assert result.success
        assert result.strategy == "greedy"
        assert len(result.assignments) == len(mixed_pods)
        assert_valid_schedule(mixed_pods, 60)

    def test_courts_follow_slot_index(self, three_pod, one_day, courts):
        result = schedule_group_matches(three_pod, one_day, 60, courts)
        for assignment in result.assignments:
            assert assignment.court_id == courts[assignment.slot_index % len(courts)]
            assert three_pod[assignment.match_index].court_id == assignment.court_id

    def test_blackout_respected(self, three_pod, one_day, courts, morning_blackout):
        result = schedule_group_matches(three_pod, one_day, 60, courts, team_restrictions=morning_blackout)
        assert result.success
        assert_valid_schedule(three_pod, 60, morning_blackout)
        assert all(m.start_time >= "12:00" for m in three_pod if "T1" in m.teams)

    def test_availability_windows(self, three_pod, one_day, courts):
        windows = [TimeWindow(DATE, "13:00", "18:00")]
        result = schedule_group_matches(three_pod, one_day, 60, courts, availability_windows=windows)
        assert result.success
        assert min(m.start_time for m in three_pod) == "13:00"

    def test_not_enough_slots(self, three_pod, courts):
        days = [ScheduleDay(DATE, "09:00", "10:00")]
        result = schedule_group_matches(three_pod, days, 60, courts)
        assert not result.success
        assert result.error == "Not enough slots: need 3 but only 2 available"
        assert not any(m.is_scheduled for m in three_pod)

    def test_no_days_or_courts(self, three_pod, one_day):
        assert not schedule_group_matches(three_pod, [], 60, ["Court 1"]).success
        assert not schedule_group_matches(three_pod, one_day, 60, []).success

    def test_empty_match_list(self, one_day, courts):
        result = schedule_group_matches([], one_day, 60, courts)
        assert result.success
        assert result.assignments == []

    def test_backtracking_after_greedy_dead_end(self):
        """Greedy gives X the only slot Y can use; backtracking swaps them."""
        days = [ScheduleDay(DATE, "09:00", "11:00")]
        matches = [Match("X", "T1", "T2"), Match("Y", "T3", "T4")]
        restrictions = {"T3": [TimeWindow(DATE, "10:00", "00:00")]}
        log = []
        result = schedule_group_matches(matches, days, 60, ["Court 1"], team_restrictions=restrictions,
                                        on_log=log.append)
        assert result.success
        assert result.strategy == "strict backtracking"
        assert matches[1].start_time == "09:00"
        assert any(line.startswith("greedy failed") for line in log)

    def test_shuffled_order_after_base_order_fails(self):
        """With a beam of 1 backtracking repeats greedy; only putting Y first works."""
        days = [ScheduleDay(DATE, "09:00", "11:00")]
        matches = [Match("X", "T1", "T2"), Match("Y", "T3", "T4")]
        restrictions = {"T3": [TimeWindow(DATE, "10:00", "00:00")]}
        settings = {'strict_beam_width': 1, 'relaxed_beam_width': 1, 'random_retries': 20}
        log = []
        result = schedule_group_matches(matches, days, 60, ["Court 1"], team_restrictions=restrictions,
                                        settings=settings, on_log=log.append)
        assert result.success
        assert result.strategy.startswith("randomized greedy #")
        assert (matches[0].start_time, matches[1].start_time) == ("10:00", "09:00")
        for label in ("greedy", "strict backtracking", "relaxed backtracking"):
            assert any(line.startswith(f"{label} failed") for line in log)

    def test_relaxed_when_order_cannot_hold(self, four_pod):
        days = [ScheduleDay(DATE, "09:00", "13:00")]
        result = schedule_group_matches(four_pod, days, 60, ["Court 1"])
        assert result.success
        assert result.strategy == "relaxed backtracking"
        assert all(m.is_scheduled for m in four_pod)

    def test_impossible_rest(self, three_pod):
        """Three matches sharing teams need 09:00, 11:00 and 13:00."""
        days = [ScheduleDay(DATE, "09:00", "13:00")]
        result = schedule_group_matches(three_pod, days, 60, ["Court 1"], settings={'random_retries': 1})
        assert not result.success
        assert "scheduling attempts failed" in result.error
        assert not any(m.is_scheduled for m in three_pod)

    def test_two_days(self, two_days, courts):
        matches = build_all_group_matches({"A": ["T1", "T2", "T3"], "B": ["T4", "T5", "T6"],
                                           "C": ["T7", "T8", "T9", "T10"]})
        result = schedule_group_matches(matches, two_days, 60, courts)
        assert result.success
        assert_valid_schedule(matches, 60)

    @pytest.mark.slow
    def test_larger_tournament(self, courts):
        teams = [f"T{i}" for i in range(1, 26)]
        groups = distribute_teams_to_groups(teams, [4, 4, 4, 4, 3, 3, 3])
        matches = []
        for group_id, group_teams in zip("ABCDEFG", groups):
            matches.extend(build_group_matches(group_id, group_teams))
        days = [ScheduleDay(DATE, "09:00", "21:00"), ScheduleDay("2026-05-02", "09:00", "21:00")]
        result = schedule_group_matches(matches, days, 60, courts)
        assert result.success
        assert_valid_schedule(matches, 60)


class TestStages:
    """Tests for the escalation order."""

    def test_default_ladder(self, mixed_pods):
        labels = [label for label, _, _ in _stages(mixed_pods, merge_settings(), Scorer())]
        assert labels[:3] == ["greedy", "strict backtracking", "relaxed backtracking"]
        assert len(labels) == 3 + 2 * 5

    def test_greedy_disabled_without_retries(self, mixed_pods):
        settings = merge_settings({'greedy_enabled': False, 'random_retries': 0})
        labels = [label for label, _, _ in _stages(mixed_pods, settings, Scorer())]
        assert labels == ["strict backtracking", "relaxed backtracking"]

    def test_shuffles_are_reproducible(self, mixed_pods):
        settings = merge_settings({'random_seed': 42})
        first = [order for _, _, order in _stages(mixed_pods, settings, Scorer())]
        second = [order for _, _, order in _stages(mixed_pods, settings, Scorer())]
        assert first == second
        assert sorted(first[3]) == list(range(len(mixed_pods)))


class TestBeamSearchEntryPoint:
    """Tests for schedule_group_matches_beam_search."""

    def test_mixed_pods(self, mixed_pods, one_day, courts):
        log = []
        result = schedule_group_matches_beam_search(mixed_pods, one_day, 60, courts, on_log=log.append)
        assert result.success
        assert result.strategy == "pod beam search"
        assert_valid_schedule(mixed_pods, 60)
        assert log[-1] == "7 matches assigned"

    def test_malformed_group_fails_run(self, four_pod, one_day, courts):
        result = schedule_group_matches_beam_search(four_pod[:3], one_day, 60, courts)
        assert not result.success
        assert "Group B" in result.error

    def test_not_enough_slots(self, mixed_pods, courts):
        days = [ScheduleDay(DATE, "09:00", "11:00")]
        result = schedule_group_matches_beam_search(mixed_pods, days, 60, courts)
        assert not result.success
        assert result.error == "Not enough slots: need 7 but only 4 available"
