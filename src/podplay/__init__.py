"""
Match scheduling for 3- and 4-team pods and single elimination playoffs.
"""
from podplay.errors import (DegenerateBracketInputError, InfeasibleInputError, NoLegalCandidateError,
                            SchedulingError)
from podplay.models import (Assignment, Match, MatchStatus, PlayoffMatch, QualifiedTeam, ScheduleDay,
                            SchedulerResult, TimeSlot, TimeWindow)
from podplay.playoffs import generate_playoffs
from podplay.scheduler import schedule_group_matches, schedule_group_matches_beam_search
from podplay.slots import generate_time_slots
from podplay.standings import TeamStanding, compute_standings, qualified_teams

__all__ = [
    'Assignment',
    'DegenerateBracketInputError',
    'InfeasibleInputError',
    'Match',
    'MatchStatus',
    'NoLegalCandidateError',
    'PlayoffMatch',
    'QualifiedTeam',
    'ScheduleDay',
    'SchedulerResult',
    'SchedulingError',
    'TeamStanding',
    'TimeSlot',
    'TimeWindow',
    'compute_standings',
    'generate_playoffs',
    'generate_time_slots',
    'qualified_teams',
    'schedule_group_matches',
    'schedule_group_matches_beam_search',
]
