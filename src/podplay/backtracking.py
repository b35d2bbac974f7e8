"""
Beam-limited backtracking over the same legality and scoring as the greedy
pass.

Each match tries its `beam_width` best slots. Falling back to a second or
later candidate counts as one trial point; once `max_depth` trial points are
spent the search stops and the best complete assignment found so far wins.

In relaxed mode the pod order rule is no longer a hard filter: breaking it
costs the scorer's order penalties instead.
"""
import logging
from typing import List, Optional

from podplay.constraints import ScheduleState, Scorer, rank_candidates
from podplay.errors import NoLegalCandidateError
from podplay.greedy import order_matches

logger = logging.getLogger(__name__)


class _Frame:
    __slots__ = ("candidates", "next", "placed_score")

    def __init__(self, candidates):
        self.candidates = candidates
        self.next = 0
        self.placed_score = None


class BoundedBacktrackingScheduler:
    def __init__(self, beam_width: int = 3, max_depth: int = 200, relaxed: bool = False,
                 scorer: Optional[Scorer] = None):
        if beam_width < 1:
            raise ValueError(f"beam_width must be at least 1, got {beam_width}")
        self.beam_width = beam_width
        self.max_depth = max_depth
        self.relaxed = relaxed
        self.scorer = scorer or Scorer()
        self.trials = 0

    @property
    def name(self) -> str:
        return "relaxed backtracking" if self.relaxed else "strict backtracking"

    def _candidates(self, state: ScheduleState, match_idx: int):
        ranked = rank_candidates(state, match_idx, self.scorer, relaxed=self.relaxed)
        return ranked[:self.beam_width]

    def schedule(self, state: ScheduleState, order: Optional[List[int]] = None):
        order = order if order is not None else order_matches(state.matches)
        self.trials = 0
        if not order:
            return state.placements

        best_placements = None
        best_score = None
        deepest = 0
        score = 0.0

        first = self._candidates(state, order[0])
        frames = [_Frame(first)] if first else []

        # Iterative depth-first search; frames[d] holds the candidates of order[d].
        while frames:
            depth = len(frames) - 1
            frame = frames[-1]
            match_idx = order[depth]

            if frame.placed_score is not None:
                state.unassign(match_idx)
                score -= frame.placed_score
                frame.placed_score = None

            if frame.next >= len(frame.candidates):
                frames.pop()
                continue
            if frame.next > 0:
                if self.trials >= self.max_depth:
                    frames.pop()
                    continue
                self.trials += 1

            candidate_score, position = frame.candidates[frame.next]
            frame.next += 1
            state.assign(match_idx, position)
            frame.placed_score = candidate_score
            score += candidate_score
            deepest = max(deepest, depth + 1)

            if depth + 1 == len(order):
                if best_score is None or score > best_score:
                    best_score = score
                    best_placements = dict(state.placements)
                    logger.debug("%s found a complete assignment scoring %.0f", self.name, score)
                continue

            candidates = self._candidates(state, order[depth + 1])
            if candidates:
                frames.append(_Frame(candidates))

        if best_placements is None:
            stuck = state.matches[order[min(deepest, len(order) - 1)]]
            raise NoLegalCandidateError(
                f"{self.name.capitalize()} found no complete assignment within {self.trials} trial points "
                f"(beam {self.beam_width}); placed at most {deepest} of {len(order)} matches, "
                f"stuck on {stuck.describe()}",
                subject=order[min(deepest, len(order) - 1)],
            )

        state.load(best_placements)
        logger.info("%s scheduled %d matches (score %.0f, %d trial points)",
                    self.name.capitalize(), len(order), best_score, self.trials)
        return state.placements
