"""
Unit tests for the pod beam search.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from podplay.beam_search import PATTERNS_3, PATTERNS_4, PodBeamSearchScheduler
from podplay.constraints import ScheduleState
from podplay.errors import NoLegalCandidateError
from podplay.models import ScheduleDay, TimeWindow
from podplay.pods import build_group_matches, collect_pods
from podplay.slots import generate_time_slots

from schedule_checks import assert_valid_schedule

DATE = "2026-05-01"


def apply_placements(state):
    for idx, position in state.placements.items():
        slot = state.slots[position]
        match = state.matches[idx]
        match.date, match.start_time, match.end_time = slot.date, slot.start_time, slot.end_time
        match.court_id = slot.index


class TestPatterns:
    def test_pattern_catalogue(self):
        assert len(PATTERNS_3) == 6 and all(len(p) == 3 for p in PATTERNS_3)
        assert len(PATTERNS_4) == 6 and all(len(p) == 4 for p in PATTERNS_4)
        assert all(p[0] == 0 for p in PATTERNS_3 + PATTERNS_4)


class TestCandidates:
    """Tests for candidate generation."""

    def test_one_court_three_pod_uses_first_pattern(self, three_pod, one_day):
        state = ScheduleState(three_pod, generate_time_slots(one_day, 60, 1), 60)
        pod = collect_pods(three_pod)[0]
        scheduler = PodBeamSearchScheduler()
        candidates = scheduler.generate_candidates(state, pod, set(), set())
        best_score, best_positions = candidates[0]
        assert best_positions == [0, 2, 4]
        assert best_score == 6000 - 240

    def test_invalid_combination_rejected(self, four_pod, one_day):
        """Match 3 right after match 2 breaks the pod order."""
        state = ScheduleState(four_pod, generate_time_slots(one_day, 60, 1), 60)
        pod = collect_pods(four_pod)[0]
        scheduler = PodBeamSearchScheduler()
        assert not scheduler.is_valid_combination(state, pod, [0, 1, 2, 3])
        assert scheduler.is_valid_combination(state, pod, [0, 1, 3, 4])

    def test_enumeration_fallback(self, three_pod, one_day):
        """With two courts no pattern spans far enough; enumeration still finds a placement."""
        state = ScheduleState(three_pod, generate_time_slots(one_day, 60, 2), 60)
        pod = collect_pods(three_pod)[0]
        candidates = PodBeamSearchScheduler().generate_candidates(state, pod, set(), set())
        assert candidates
        starts = [state.slots[p].start_time for p in candidates[0][1]]
        assert starts == ["09:00", "11:00", "13:00"]

    def test_max_candidates(self, three_pod, one_day):
        state = ScheduleState(three_pod, generate_time_slots(one_day, 60, 1), 60)
        pod = collect_pods(three_pod)[0]
        assert len(PodBeamSearchScheduler(max_candidates=2).generate_candidates(state, pod, set(), set())) == 2

    def test_restricted_positions(self, three_pod, one_day, morning_blackout):
        state = ScheduleState(three_pod, generate_time_slots(one_day, 60, 1), 60, morning_blackout)
        pod = collect_pods(three_pod)[0]
        restricted = PodBeamSearchScheduler().restricted_positions(state, pod)
        assert restricted == {0, 1, 2}


class TestPodBeamSearchScheduler:
    """Tests for PodBeamSearchScheduler.schedule."""

    def test_four_pods_placed_first(self, mixed_pods):
        pods = collect_pods(mixed_pods)
        ordered = PodBeamSearchScheduler().order_pods(pods, {"A": set(), "B": set()})
        assert [p.group_id for p in ordered] == ["B", "A"]

    def test_most_restricted_first(self):
        matches = build_group_matches("A", ["T1", "T2", "T3"]) + build_group_matches("C", ["T8", "T9", "T10"])
        pods = collect_pods(matches)
        ordered = PodBeamSearchScheduler().order_pods(pods, {"A": set(), "C": {0, 1}})
        assert [p.group_id for p in ordered] == ["C", "A"]

    def test_equal_pods_ordered_by_group_id(self):
        """Pods given as C, A with the same size and blackouts come out A, C."""
        matches = build_group_matches("C", ["T8", "T9", "T10"]) + build_group_matches("A", ["T1", "T2", "T3"])
        pods = collect_pods(matches)
        assert [p.group_id for p in pods] == ["C", "A"]
        ordered = PodBeamSearchScheduler().order_pods(pods, {"A": {4}, "C": {7}})
        assert [p.group_id for p in ordered] == ["A", "C"]

    def test_schedules_mixed_pods(self, mixed_pods, one_day, courts, morning_blackout):
        state = ScheduleState(mixed_pods, generate_time_slots(one_day, 60, len(courts)), 60, morning_blackout)
        log = []
        PodBeamSearchScheduler(on_log=log.append).schedule(state, collect_pods(mixed_pods))
        assert state.is_complete
        apply_placements(state)
        assert_valid_schedule(mixed_pods, 60, morning_blackout)
        assert any("Group B placed" in line for line in log)

    def test_no_room_for_pod(self, four_pod):
        days = [ScheduleDay(DATE, "09:00", "13:00")]
        state = ScheduleState(four_pod, generate_time_slots(days, 60, 1), 60)
        with pytest.raises(NoLegalCandidateError) as exc_info:
            PodBeamSearchScheduler().schedule(state, collect_pods(four_pod))
        assert "Could not assign slots for group B (pod 1/1)" in str(exc_info.value)

    def test_blackout_everywhere(self, three_pod, one_day):
        restrictions = {"T2": [TimeWindow(DATE, "00:00", "00:00")]}
        state = ScheduleState(three_pod, generate_time_slots(one_day, 60, 1), 60, restrictions)
        with pytest.raises(NoLegalCandidateError):
            PodBeamSearchScheduler().schedule(state, collect_pods(three_pod))
