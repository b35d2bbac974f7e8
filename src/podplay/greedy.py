"""
Single pass slot assignment: each match, in a fixed order, takes the best
scoring legal slot. Fails on the first match with no legal slot.
"""
import logging
from typing import List, Optional

from podplay.constraints import ScheduleState, Scorer, rank_candidates
from podplay.errors import NoLegalCandidateError
from podplay.models import Match
from podplay.pods import count_team_matches

logger = logging.getLogger(__name__)


def order_matches(matches: List[Match]) -> List[int]:
    """
    First-round pod matches (order 1/2), then second round (order 3/4), then
    round robin matches with the busiest teams first.
    """
    first_round = [idx for idx, m in enumerate(matches) if m.match_order in (1, 2)]
    second_round = [idx for idx, m in enumerate(matches) if m.match_order in (3, 4)]
    round_robin = [idx for idx, m in enumerate(matches) if m.match_order is None]

    first_round.sort(key=lambda idx: matches[idx].match_order)
    second_round.sort(key=lambda idx: matches[idx].match_order)

    counts = count_team_matches(matches)
    round_robin.sort(key=lambda idx: -sum(counts[team] for team in matches[idx].known_teams()))
    return first_round + second_round + round_robin


class GreedySequentialScheduler:
    name = "greedy"

    def __init__(self, scorer: Optional[Scorer] = None):
        self.scorer = scorer or Scorer()

    def schedule(self, state: ScheduleState, order: Optional[List[int]] = None):
        """Place every match into `state`; raises NoLegalCandidateError on the first dead end."""
        order = order if order is not None else order_matches(state.matches)
        for match_idx in order:
            candidates = rank_candidates(state, match_idx, self.scorer)
            if not candidates:
                match = state.matches[match_idx]
                raise NoLegalCandidateError(
                    f"No legal slot for {match.describe()} after placing "
                    f"{len(state.placements)} of {len(order)} matches",
                    subject=match_idx,
                )
            score, position = candidates[0]
            state.assign(match_idx, position)
            logger.debug("Greedy placed match %d at %s (score %.0f)", match_idx, state.slots[position], score)
        return state.placements
