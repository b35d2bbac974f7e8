"""
Entry points for scheduling group matches.

`schedule_group_matches` runs the escalation ladder:

1. greedy pass;
2. strict backtracking (modest beam and depth);
3. relaxed backtracking (pod order broken only at a heavy penalty, wider beam);
4. seeded random match orderings, each tried greedily and then relaxed.

The first stage that places every match wins. Every stage works on its own
ScheduleState; the caller's matches are only written once a stage succeeds.
"""
import logging
import random
from typing import Callable, Dict, List, Optional

from podplay.backtracking import BoundedBacktrackingScheduler
from podplay.beam_search import PodBeamSearchScheduler
from podplay.config import merge_settings
from podplay.constraints import ScheduleState, Scorer
from podplay.errors import InfeasibleInputError, NoLegalCandidateError, SchedulingError
from podplay.greedy import GreedySequentialScheduler, order_matches
from podplay.models import Assignment, Match, ScheduleDay, SchedulerResult, TimeWindow
from podplay.pods import collect_pods
from podplay.slots import calculate_end_time, generate_time_slots

logger = logging.getLogger(__name__)


class _Progress:
    def __init__(self, on_log: Optional[Callable[[str], None]] = None):
        self.on_log = on_log

    def __call__(self, message: str):
        logger.info(message)
        if self.on_log:
            self.on_log(message)


def _prepare_state(matches, days, match_duration_minutes, court_ids, availability_windows, team_restrictions):
    if not days or not court_ids:
        raise InfeasibleInputError("Invalid schedule configuration: at least one day and one court are required")
    slots = generate_time_slots(days, match_duration_minutes, len(court_ids), availability_windows)
    if len(slots) < len(matches):
        raise InfeasibleInputError(
            f"Not enough slots: need {len(matches)} but only {len(slots)} available",
            required=len(matches),
            available=len(slots),
        )
    return ScheduleState(matches, slots, match_duration_minutes, team_restrictions)


def _fresh(state: ScheduleState) -> ScheduleState:
    return ScheduleState(state.matches, state.slots, state.match_duration, state.team_restrictions)


def _scorer(settings: Dict) -> Scorer:
    return Scorer(order3_penalty=settings['relaxed_order3_penalty'],
                  order4_penalty=settings['relaxed_order4_penalty'])


def _stages(matches: List[Match], settings: Dict, scorer: Scorer):
    """Yield (label, strategy, match order) in escalation order."""
    greedy = GreedySequentialScheduler(scorer)
    strict = BoundedBacktrackingScheduler(beam_width=settings['strict_beam_width'],
                                          max_depth=settings['strict_max_depth'],
                                          relaxed=False, scorer=scorer)
    relaxed = BoundedBacktrackingScheduler(beam_width=settings['relaxed_beam_width'],
                                           max_depth=settings['relaxed_max_depth'],
                                           relaxed=True, scorer=scorer)
    base_order = order_matches(matches)

    if settings['greedy_enabled']:
        yield "greedy", greedy, base_order
    yield "strict backtracking", strict, base_order
    yield "relaxed backtracking", relaxed, base_order

    for attempt in range(settings['random_retries']):
        shuffled = list(base_order)
        random.Random(settings['random_seed'] + attempt).shuffle(shuffled)
        yield f"randomized greedy #{attempt + 1}", greedy, shuffled
        yield f"randomized relaxed backtracking #{attempt + 1}", relaxed, shuffled


def _apply(state: ScheduleState, court_ids: List, match_duration_minutes: int) -> List[Assignment]:
    assignments = []
    for match_idx in sorted(state.placements):
        slot = state.slot_of(match_idx)
        court_id = court_ids[slot.index % len(court_ids)]
        end_time = calculate_end_time(slot.start_time, match_duration_minutes)
        assignments.append(Assignment(match_idx, slot.date, slot.start_time, end_time, slot.index, court_id))

        match = state.matches[match_idx]
        match.date = slot.date
        match.start_time = slot.start_time
        match.end_time = end_time
        match.court_id = court_id
    return assignments


def run_escalation(state: ScheduleState, settings: Dict, progress: Callable[[str], None]):
    """Try each stage on a fresh copy of `state`; return (label, winning state)."""
    last_error = None
    attempts = 0
    for label, strategy, order in _stages(state.matches, settings, _scorer(settings)):
        attempts += 1
        attempt_state = _fresh(state)
        try:
            strategy.schedule(attempt_state, order)
        except NoLegalCandidateError as exc:
            progress(f"{label} failed: {exc}")
            last_error = exc
            continue
        progress(f"{label} scheduled all {len(state.matches)} matches")
        return label, attempt_state
    raise NoLegalCandidateError(f"All {attempts} scheduling attempts failed; last error: {last_error}",
                                subject=getattr(last_error, 'subject', None))


def schedule_group_matches(matches: List[Match], days: List[ScheduleDay], match_duration_minutes: int,
                           court_ids: List, availability_windows: Optional[List[TimeWindow]] = None,
                           team_restrictions: Optional[Dict] = None, settings: Optional[Dict] = None,
                           on_log: Optional[Callable[[str], None]] = None) -> SchedulerResult:
    """
    Assign a date, start time and court to every match.

    On success the matches are updated in place; on failure they are left
    untouched and the result carries a single error message.
    """
    progress = _Progress(on_log)
    settings = merge_settings(settings)
    if not matches:
        return SchedulerResult(True, [], strategy="none")
    try:
        state = _prepare_state(matches, days, match_duration_minutes, court_ids,
                               availability_windows, team_restrictions)
        progress(f"Scheduling {len(matches)} matches into {len(state.slots)} slots")
        label, final_state = run_escalation(state, settings, progress)
    except SchedulingError as exc:
        logger.warning("Scheduling failed: %s", exc)
        return SchedulerResult(False, error=str(exc))
    return SchedulerResult(True, _apply(final_state, court_ids, match_duration_minutes), strategy=label)


def schedule_group_matches_beam_search(matches: List[Match], days: List[ScheduleDay], match_duration_minutes: int,
                                       court_ids: List, availability_windows: Optional[List[TimeWindow]] = None,
                                       team_restrictions: Optional[Dict] = None,
                                       on_log: Optional[Callable[[str], None]] = None,
                                       settings: Optional[Dict] = None) -> SchedulerResult:
    """Schedule whole pods with the pod beam search; same result contract as schedule_group_matches."""
    progress = _Progress(on_log)
    settings = merge_settings(settings)
    if not matches:
        return SchedulerResult(True, [], strategy="none")
    try:
        pods = collect_pods(matches)
        state = _prepare_state(matches, days, match_duration_minutes, court_ids,
                               availability_windows, team_restrictions)
        progress(f"Found {len(pods)} pod(s); {len(state.slots)} slots generated")
        scheduler = PodBeamSearchScheduler(beam_width=settings['beam_width'],
                                           max_candidates=settings['beam_max_candidates'],
                                           max_enumeration=settings['max_enumeration'],
                                           scorer=_scorer(settings), on_log=on_log)
        scheduler.schedule(state, pods)
    except SchedulingError as exc:
        logger.warning("Beam search scheduling failed: %s", exc)
        return SchedulerResult(False, error=str(exc))
    assignments = _apply(state, court_ids, match_duration_minutes)
    progress(f"{len(assignments)} matches assigned")
    return SchedulerResult(True, assignments, strategy=scheduler.name)
