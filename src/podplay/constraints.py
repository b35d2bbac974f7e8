"""
Hard scheduling rules and the scoring vocabulary shared by every strategy.

Rules:
- Rest: two matches of the same team on the same date need a full match
  duration between the end of the first and the start of the second.
- Pod order: in a 4-team pod, match 3 (winners) follows matches 1 and 2 with
  the same one-duration gap, and match 4 (losers) starts no earlier than the
  end of match 3. Neither may land on an earlier date than its prerequisite.
- Blackout: a team never plays inside one of its restricted windows.

The teams of matches 3 and 4 of a 4-team pod are unknown until the first
round is played, so the rest rule only sees known teams and the pod order
rule covers the rest.
"""
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Set

from podplay.models import Match, TimeSlot, TimeWindow
from podplay.slots import time_to_minutes

logger = logging.getLogger(__name__)

DEPENDENCY_BONUS = 500
COMPACTION_BONUS = 200
COMPACTION_WINDOW_MINUTES = 180
ORDER3_PENALTY = 25000
ORDER4_PENALTY = 10000


def rest_ok(first: TimeSlot, second: TimeSlot, match_duration: int) -> bool:
    """True when two slots of the same team leave a full match duration of rest."""
    if first.date != second.date:
        return True
    earlier, later = (first, second) if first.start_minutes <= second.start_minutes else (second, first)
    return later.start_minutes >= earlier.end_minutes + match_duration


def follows(prerequisite: TimeSlot, dependent: TimeSlot, gap: int) -> bool:
    """True when `dependent` starts at least `gap` minutes after `prerequisite` ends."""
    if dependent.date != prerequisite.date:
        return dependent.date > prerequisite.date
    return dependent.start_minutes >= prerequisite.end_minutes + gap


def slot_violates_restriction(slot: TimeSlot, restricted_windows: Optional[List[TimeWindow]]) -> bool:
    """A slot is blacked out when it starts inside any restricted window on its date."""
    if not restricted_windows:
        return False
    for window in restricted_windows:
        if slot.date != window.date:
            continue
        window_start = time_to_minutes(window.start_time)
        window_end = time_to_minutes(window.end_time, end_of_range=True)
        if window_start <= slot.start_minutes < window_end:
            return True
    return False


def _order_violation(prerequisite: Match, prerequisite_slot: TimeSlot,
                     dependent: Match, dependent_slot: TimeSlot, match_duration: int) -> Set[int]:
    if prerequisite.match_order in (1, 2) and dependent.match_order == 3:
        if not follows(prerequisite_slot, dependent_slot, match_duration):
            return {3}
    if prerequisite.match_order == 3 and dependent.match_order == 4:
        if not follows(prerequisite_slot, dependent_slot, 0):
            return {4}
    return set()


def check_pair(match_a: Match, slot_a: TimeSlot, match_b: Match, slot_b: TimeSlot, match_duration: int):
    """
    Compare two placed matches.

    Returns (rest_violated, violated_orders) where violated_orders holds 3
    and/or 4 for each broken pod order rule.
    """
    shared = set(match_a.known_teams()) & set(match_b.known_teams())
    rest_violated = bool(shared) and not rest_ok(slot_a, slot_b, match_duration)

    violated_orders = set()
    if match_a.group_id is not None and match_a.group_id == match_b.group_id \
            and match_a.match_order and match_b.match_order:
        violated_orders |= _order_violation(match_a, slot_a, match_b, slot_b, match_duration)
        violated_orders |= _order_violation(match_b, slot_b, match_a, slot_a, match_duration)
    return rest_violated, violated_orders


class ScheduleState:
    """
    The working buffer of one strategy run.

    Holds the slot list sorted by time and the tentative placement of
    matches (match index -> position in `slots`). Each strategy attempt gets
    its own state; nothing is written to the caller's matches until a
    strategy has placed every match.
    """

    def __init__(self, matches: List[Match], slots: List[TimeSlot], match_duration: int,
                 team_restrictions: Optional[Dict] = None):
        self.matches = matches
        self.slots = sorted(slots, key=lambda s: s.sort_key)
        self.match_duration = match_duration
        self.team_restrictions = team_restrictions or {}
        self.placements = {}
        self.used = set()
        self._team_matches = defaultdict(set)
        self._group_matches = defaultdict(set)
        self._pod_teams = self._collect_pod_teams()

    def _collect_pod_teams(self):
        pod_teams = defaultdict(list)
        for match in self.matches:
            if match.group_id is None or match.match_order is None:
                continue
            for team in match.known_teams():
                if team not in pod_teams[match.group_id]:
                    pod_teams[match.group_id].append(team)
        return pod_teams

    def assign(self, match_idx: int, position: int):
        if position in self.used:
            raise ValueError(f"Slot {position} is already taken")
        self.placements[match_idx] = position
        self.used.add(position)
        match = self.matches[match_idx]
        for team in match.known_teams():
            self._team_matches[team].add(match_idx)
        if match.group_id is not None:
            self._group_matches[match.group_id].add(match_idx)

    def unassign(self, match_idx: int):
        position = self.placements.pop(match_idx)
        self.used.discard(position)
        match = self.matches[match_idx]
        for team in match.known_teams():
            self._team_matches[team].discard(match_idx)
        if match.group_id is not None:
            self._group_matches[match.group_id].discard(match_idx)

    def load(self, placements: Dict[int, int]):
        for match_idx in list(self.placements):
            self.unassign(match_idx)
        for match_idx, position in placements.items():
            self.assign(match_idx, position)

    def slot_of(self, match_idx: int) -> Optional[TimeSlot]:
        position = self.placements.get(match_idx)
        return None if position is None else self.slots[position]

    def placed_for_team(self, team) -> Set[int]:
        return self._team_matches.get(team, set())

    def placed_in_group(self, group_id) -> Set[int]:
        return self._group_matches.get(group_id, set())

    def blackout_teams(self, match_idx: int) -> List:
        """Teams whose restrictions apply to a match; the whole pod when its teams are still unknown."""
        match = self.matches[match_idx]
        known = match.known_teams()
        if known or match.group_id is None:
            return known
        return self._pod_teams.get(match.group_id, [])

    @property
    def is_complete(self) -> bool:
        return len(self.placements) == len(self.matches)


def violates_rest(state: ScheduleState, match_idx: int, slot: TimeSlot) -> bool:
    match = state.matches[match_idx]
    for team in match.known_teams():
        for other_idx in state.placed_for_team(team):
            if other_idx == match_idx:
                continue
            rest_violated, _ = check_pair(match, slot, state.matches[other_idx],
                                          state.slot_of(other_idx), state.match_duration)
            if rest_violated:
                return True
    return False


def pod_order_violations(state: ScheduleState, match_idx: int, slot: TimeSlot) -> Set[int]:
    match = state.matches[match_idx]
    violated = set()
    if match.match_order is None or match.group_id is None:
        return violated
    for other_idx in state.placed_in_group(match.group_id):
        if other_idx == match_idx:
            continue
        _, orders = check_pair(match, slot, state.matches[other_idx],
                               state.slot_of(other_idx), state.match_duration)
        violated |= orders
    return violated


def violates_pod_order(state: ScheduleState, match_idx: int, slot: TimeSlot) -> bool:
    return bool(pod_order_violations(state, match_idx, slot))


def violates_blackout(state: ScheduleState, match_idx: int, slot: TimeSlot) -> bool:
    for team in state.blackout_teams(match_idx):
        if slot_violates_restriction(slot, state.team_restrictions.get(team)):
            return True
    return False


def is_legal_slot(state: ScheduleState, match_idx: int, position: int, relaxed: bool = False) -> bool:
    """Free, not blacked out, rested; pod order is hard unless `relaxed`."""
    if position in state.used:
        return False
    slot = state.slots[position]
    if violates_blackout(state, match_idx, slot):
        return False
    if violates_rest(state, match_idx, slot):
        return False
    if not relaxed and violates_pod_order(state, match_idx, slot):
        return False
    return True


class Scorer:
    """
    Scoring shared by the greedy, backtracking and beam search strategies so
    that they break ties the same way.
    """

    def __init__(self, order3_penalty=ORDER3_PENALTY, order4_penalty=ORDER4_PENALTY,
                 dependency_bonus=DEPENDENCY_BONUS, compaction_bonus=COMPACTION_BONUS,
                 compaction_window_minutes=COMPACTION_WINDOW_MINUTES):
        self.order3_penalty = order3_penalty
        self.order4_penalty = order4_penalty
        self.dependency_bonus = dependency_bonus
        self.compaction_bonus = compaction_bonus
        self.compaction_window_minutes = compaction_window_minutes

    def earliness(self, state: ScheduleState, position: int) -> float:
        return len(state.slots) - position

    def dependency(self, state: ScheduleState, match_idx: int, slot: TimeSlot) -> float:
        match = state.matches[match_idx]
        if match.match_order is None:
            return 0
        violated = pod_order_violations(state, match_idx, slot)
        score = 0
        if 3 in violated:
            score -= self.order3_penalty
        if 4 in violated:
            score -= self.order4_penalty
        if match.match_order in (3, 4) and not violated:
            prerequisites = (1, 2) if match.match_order == 3 else (3,)
            placed = state.placed_in_group(match.group_id)
            if any(state.matches[idx].match_order in prerequisites for idx in placed):
                score += self.dependency_bonus
        return score

    def compaction(self, state: ScheduleState, match_idx: int, slot: TimeSlot) -> float:
        score = 0
        for team in state.matches[match_idx].known_teams():
            for other_idx in state.placed_for_team(team):
                other = state.slot_of(other_idx)
                if other.date == slot.date and \
                        abs(other.start_minutes - slot.start_minutes) <= self.compaction_window_minutes:
                    score += self.compaction_bonus
        return score

    def slot_score(self, state: ScheduleState, match_idx: int, position: int) -> float:
        slot = state.slots[position]
        return (self.earliness(state, position)
                + self.dependency(state, match_idx, slot)
                + self.compaction(state, match_idx, slot))

    def pattern_score(self, pattern_index: int, num_patterns: int, slots: List[TimeSlot]) -> float:
        """Pod candidates: pattern priority minus the pod's span in minutes."""
        minutes = [slot.absolute_minutes for slot in slots]
        return (num_patterns - pattern_index) * 1000 - (max(minutes) - min(minutes))


def rank_candidates(state: ScheduleState, match_idx: int, scorer: Scorer, relaxed: bool = False):
    """
    Legal positions for a match as (score, position), best first.

    Slots sharing a date and start time differ only by court, so only the
    first free one of each time is offered.
    """
    seen_times = set()
    candidates = []
    for position, slot in enumerate(state.slots):
        if position in state.used:
            continue
        key = (slot.date, slot.start_minutes)
        if key in seen_times:
            continue
        seen_times.add(key)
        if not is_legal_slot(state, match_idx, position, relaxed=relaxed):
            continue
        candidates.append((scorer.slot_score(state, match_idx, position), position))
    candidates.sort(key=lambda c: (-c[0], c[1]))
    return candidates
