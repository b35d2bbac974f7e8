"""
Plain data records exchanged between the scheduling engine and its callers.
"""
import datetime

PLACEHOLDER_PREFIX = "Winner "


def is_placeholder(team) -> bool:
    """True when a team reference is a textual "Winner ..." source label."""
    return isinstance(team, str) and team.startswith(PLACEHOLDER_PREFIX)


def is_known_team(team) -> bool:
    return team is not None and not is_placeholder(team)


class MatchStatus:
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"
    CANCELLED = "cancelled"

    ALL = (SCHEDULED, IN_PROGRESS, FINISHED, CANCELLED)


class Match:
    def __init__(self, group_id, team1_id=None, team2_id=None, match_order=None, id=None,
                 date=None, start_time=None, end_time=None, court_id=None,
                 status=MatchStatus.SCHEDULED, team1_sets=None, team2_sets=None, team1_games=None,
                 team2_games=None):
        if match_order is not None and match_order not in (1, 2, 3, 4):
            raise ValueError(f"match_order must be between 1 and 4, got {match_order}")
        if status not in MatchStatus.ALL:
            raise ValueError(f"Unknown match status: {status}")
        self.id = id
        self.group_id = group_id
        self.team1_id = team1_id
        self.team2_id = team2_id
        self.match_order = match_order
        self.date = date
        self.start_time = start_time
        self.end_time = end_time
        self.court_id = court_id
        self.status = status
        self.team1_sets = team1_sets
        self.team2_sets = team2_sets
        self.team1_games = team1_games
        self.team2_games = team2_games

    @property
    def teams(self):
        return (self.team1_id, self.team2_id)

    def known_teams(self):
        """Concrete team ids taking part in this match (byes and placeholders excluded)."""
        return [team for team in self.teams if is_known_team(team)]

    def record_result(self, team1_sets, team2_sets, team1_games=0, team2_games=0):
        """Store the final score and mark the match finished."""
        self.team1_sets = team1_sets
        self.team2_sets = team2_sets
        self.team1_games = team1_games
        self.team2_games = team2_games
        self.status = MatchStatus.FINISHED

    @property
    def is_scheduled(self) -> bool:
        return self.date is not None and self.start_time is not None

    def describe(self) -> str:
        label = f"group {self.group_id}"
        if self.match_order is not None:
            label += f" match {self.match_order}"
        team1 = self.team1_id if self.team1_id is not None else "TBD"
        team2 = self.team2_id if self.team2_id is not None else "TBD"
        return f"{team1} vs {team2} ({label})"

    def __repr__(self):
        return (f"Match(group_id={self.group_id}, teams={self.teams}, match_order={self.match_order}, "
                f"date={self.date}, start_time={self.start_time}, court_id={self.court_id})")


class ScheduleDay:
    """A calendar day open for play between start_time and end_time."""

    def __init__(self, date, start_time, end_time):
        self.date = str(date)
        self.start_time = start_time
        self.end_time = end_time

    def __repr__(self):
        return f"ScheduleDay(date={self.date}, start_time={self.start_time}, end_time={self.end_time})"


class TimeWindow:
    """A dated time range, used both for availability windows and team blackouts."""

    def __init__(self, date, start_time, end_time):
        self.date = str(date)
        self.start_time = start_time
        self.end_time = end_time

    def __repr__(self):
        return f"TimeWindow(date={self.date}, start_time={self.start_time}, end_time={self.end_time})"


class TimeSlot:
    """
    One bookable (date, start, end) instance on one court.

    `index` is the position in the generated slot list; the court of a slot
    is derived from it. Minutes are minutes of the day, with an end of
    midnight stored as 1440.
    """

    __slots__ = ("date", "start_time", "end_time", "start_minutes", "end_minutes", "index")

    def __init__(self, date, start_time, end_time, start_minutes, end_minutes, index):
        self.date = date
        self.start_time = start_time
        self.end_time = end_time
        self.start_minutes = start_minutes
        self.end_minutes = end_minutes
        self.index = index

    @property
    def physical_id(self) -> str:
        return f"{self.start_time}-{self.end_time}"

    @property
    def sort_key(self):
        return (self.date, self.start_minutes, self.index)

    @property
    def absolute_minutes(self) -> int:
        return datetime.date.fromisoformat(self.date).toordinal() * 1440 + self.start_minutes

    def __eq__(self, other):
        if not isinstance(other, TimeSlot):
            return NotImplemented
        return (self.date, self.start_time, self.end_time, self.index) == \
            (other.date, other.start_time, other.end_time, other.index)

    def __hash__(self):
        return hash((self.date, self.start_time, self.end_time, self.index))

    def __repr__(self):
        return f"TimeSlot(date={self.date}, start_time={self.start_time}, end_time={self.end_time}, index={self.index})"


class Assignment:
    def __init__(self, match_index, date, start_time, end_time, slot_index, court_id):
        self.match_index = match_index
        self.date = date
        self.start_time = start_time
        self.end_time = end_time
        self.slot_index = slot_index
        self.court_id = court_id

    def __repr__(self):
        return (f"Assignment(match_index={self.match_index}, date={self.date}, start_time={self.start_time}, "
                f"end_time={self.end_time}, court_id={self.court_id})")


class SchedulerResult:
    def __init__(self, success, assignments=None, error=None, strategy=None):
        self.success = success
        self.assignments = assignments if assignments else []
        self.error = error
        self.strategy = strategy

    def to_dict(self):
        if not self.success:
            return {'success': False, 'error': self.error}
        return {
            'success': True,
            'strategy': self.strategy,
            'assignments': [
                {
                    'match_index': a.match_index,
                    'date': a.date,
                    'start_time': a.start_time,
                    'end_time': a.end_time,
                    'court_id': a.court_id,
                }
                for a in self.assignments
            ],
        }

    def __repr__(self):
        if self.success:
            return f"SchedulerResult(success=True, strategy={self.strategy}, assignments={len(self.assignments)})"
        return f"SchedulerResult(success=False, error={self.error!r})"


class QualifiedTeam:
    """A team that came out of group play at `position` (1st, 2nd or 3rd)."""

    def __init__(self, team_id, group_id, position, group_order=None):
        if position not in (1, 2, 3):
            raise ValueError(f"Finishing position must be 1, 2 or 3, got {position}")
        self.team_id = team_id
        self.group_id = group_id
        self.position = position
        self.group_order = group_order

    def __repr__(self):
        return (f"QualifiedTeam(team_id={self.team_id}, group_id={self.group_id}, "
                f"position={self.position}, group_order={self.group_order})")


class PlayoffMatch:
    def __init__(self, round, bracket_position, team1_id=None, team2_id=None, source_team1=None, source_team2=None):
        self.round = round
        self.bracket_position = bracket_position
        self.team1_id = team1_id
        self.team2_id = team2_id
        self.source_team1 = source_team1
        self.source_team2 = source_team2

    @property
    def is_bye(self) -> bool:
        """A first-round record holding a single team that advances without playing."""
        has_team1 = self.team1_id is not None or self.source_team1 is not None
        has_team2 = self.team2_id is not None or self.source_team2 is not None
        return has_team1 != has_team2

    def slot_label(self, slot: int):
        if slot == 1:
            return self.team1_id if self.team1_id is not None else self.source_team1
        return self.team2_id if self.team2_id is not None else self.source_team2

    def __repr__(self):
        return (f"PlayoffMatch(round={self.round}, bracket_position={self.bracket_position}, "
                f"team1={self.slot_label(1)}, team2={self.slot_label(2)})")
