"""
Pod-level beam search.

Works on whole pods instead of single matches. Each pod is placed by
applying a catalogue of relative offset patterns over the free slot list,
keeping the best `max_candidates` placements per beam state and the best
`beam_width` global states after each pod.

Pattern offsets index the pod's free slots (sorted by time). For 4-team
pods the offsets are for matches 1, 2, 3 and 4 in that order.
"""
import logging
from itertools import combinations, islice
from typing import Callable, Dict, List, Optional, Set

from podplay.constraints import ScheduleState, Scorer, check_pair, slot_violates_restriction
from podplay.errors import NoLegalCandidateError
from podplay.pods import Pod

logger = logging.getLogger(__name__)

PATTERNS_3 = [
    [0, 2, 4],
    [0, 2, 5],
    [0, 3, 5],
    [0, 3, 6],
    [0, 2, 6],
    [0, 4, 6],
]

PATTERNS_4 = [
    [0, 1, 4, 6],
    [0, 1, 4, 5],
    [0, 1, 6, 9],
    [0, 2, 6, 9],
    [0, 1, 8, 12],
    [0, 2, 5, 7],
]


class _BeamState:
    __slots__ = ("used", "assignments", "score")

    def __init__(self, used: Set[int], assignments: Dict, score: float):
        self.used = used
        self.assignments = assignments
        self.score = score


class PodBeamSearchScheduler:
    name = "pod beam search"

    def __init__(self, beam_width: int = 10, max_candidates: int = 30, max_enumeration: int = 20000,
                 scorer: Optional[Scorer] = None, on_log: Optional[Callable[[str], None]] = None):
        self.beam_width = beam_width
        self.max_candidates = max_candidates
        self.max_enumeration = max_enumeration
        self.scorer = scorer or Scorer()
        self.on_log = on_log

    def _log(self, message: str):
        logger.info(message)
        if self.on_log:
            self.on_log(message)

    @staticmethod
    def patterns_for(pod: Pod) -> List[List[int]]:
        return PATTERNS_4 if pod.size == 4 else PATTERNS_3

    def restricted_positions(self, state: ScheduleState, pod: Pod) -> Set[int]:
        """Positions blacked out for any team of the pod."""
        restricted = set()
        windows = [state.team_restrictions.get(team) for team in pod.teams]
        windows = [w for w in windows if w]
        if not windows:
            return restricted
        for position, slot in enumerate(state.slots):
            if any(slot_violates_restriction(slot, w) for w in windows):
                restricted.add(position)
        return restricted

    def is_valid_combination(self, state: ScheduleState, pod: Pod, positions: List[int]) -> bool:
        """Hard rules between the pod's own matches: rest for shared teams and pod order."""
        placed = list(zip(pod.match_indexes, positions))
        for (idx_a, pos_a), (idx_b, pos_b) in combinations(placed, 2):
            rest_violated, orders = check_pair(state.matches[idx_a], state.slots[pos_a],
                                               state.matches[idx_b], state.slots[pos_b],
                                               state.match_duration)
            if rest_violated or orders:
                return False
        return True

    def _ordered(self, state: ScheduleState, pod: Pod, positions) -> List[int]:
        # Round robin matches are interchangeable, so their slots go in time order.
        if pod.size == 3:
            return sorted(positions, key=lambda p: state.slots[p].sort_key)
        return list(positions)

    def generate_candidates(self, state: ScheduleState, pod: Pod, used: Set[int],
                            restricted: Set[int]):
        patterns = self.patterns_for(pod)
        free = [p for p in range(len(state.slots)) if p not in used and p not in restricted]
        if len(free) < pod.size:
            return []

        candidates = []
        for pattern_index, pattern in enumerate(patterns):
            max_offset = max(pattern)
            for start in range(len(free) - max_offset):
                positions = [free[start + offset] for offset in pattern]
                if not self.is_valid_combination(state, pod, positions):
                    continue
                slots = [state.slots[p] for p in positions]
                candidates.append((self.scorer.pattern_score(pattern_index, len(patterns), slots), positions))

        # Few free slots left: try exactly those.
        if not candidates and len(free) == pod.size:
            positions = self._ordered(state, pod, free)
            if self.is_valid_combination(state, pod, positions):
                slots = [state.slots[p] for p in positions]
                candidates.append((self.scorer.pattern_score(0, len(patterns), slots), positions))

        # Last resort: any legal combination, scored as the lowest priority pattern.
        if not candidates and len(free) > pod.size:
            for combo in islice(combinations(free, pod.size), self.max_enumeration):
                positions = self._ordered(state, pod, combo)
                if not self.is_valid_combination(state, pod, positions):
                    continue
                slots = [state.slots[p] for p in positions]
                candidates.append((self.scorer.pattern_score(len(patterns) - 1, len(patterns), slots), positions))

        candidates.sort(key=lambda c: (-c[0], c[1]))
        return candidates[:self.max_candidates]

    def order_pods(self, pods: List[Pod], restricted: Dict) -> List[Pod]:
        """4-team pods first, then the pods with the most blacked out slots, then by group id."""
        return sorted(pods, key=lambda pod: (-pod.size, -len(restricted[pod.group_id]), str(pod.group_id)))

    def schedule(self, state: ScheduleState, pods: List[Pod]):
        restricted = {pod.group_id: self.restricted_positions(state, pod) for pod in pods}
        ordered = self.order_pods(pods, restricted)
        self._log(f"Beam search over {len(ordered)} pod(s), {len(state.slots)} slots, "
                  f"beam width {self.beam_width}")

        beam = [_BeamState(set(state.used), {}, 0.0)]
        for pod_number, pod in enumerate(ordered, start=1):
            expanded = []
            for beam_state in beam:
                candidates = self.generate_candidates(state, pod, beam_state.used, restricted[pod.group_id])
                if not candidates:
                    logger.debug("Group %s: no candidates with %d slots used",
                                 pod.group_id, len(beam_state.used))
                    continue
                for candidate_score, positions in candidates:
                    assignments = dict(beam_state.assignments)
                    assignments[pod.group_id] = positions
                    expanded.append(_BeamState(beam_state.used | set(positions), assignments,
                                               beam_state.score + candidate_score))

            if not expanded:
                raise NoLegalCandidateError(
                    f"Could not assign slots for group {pod.group_id} (pod {pod_number}/{len(ordered)})",
                    subject=pod.group_id,
                )
            expanded.sort(key=lambda s: -s.score)
            beam = expanded[:self.beam_width]
            self._log(f"Group {pod.group_id} placed ({pod_number}/{len(ordered)}), best score {beam[0].score:.0f}")

        best = beam[0]
        for pod in ordered:
            for match_idx, position in zip(pod.match_indexes, best.assignments[pod.group_id]):
                state.assign(match_idx, position)
        return state.placements
