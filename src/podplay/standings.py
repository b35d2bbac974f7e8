"""
Group standings from finished pod matches, and the teams they send on.

Ranking: wins -> set differential -> game differential. Teams still level
keep their roster order.
"""
import logging
from collections import OrderedDict
from typing import Dict, List, Optional

from podplay.errors import DegenerateBracketInputError
from podplay.models import Match, MatchStatus, QualifiedTeam

logger = logging.getLogger(__name__)

QUALIFIERS_BY_GROUP_SIZE = {4: 3}
DEFAULT_QUALIFIERS = 2


class TeamStanding:
    def __init__(self, team_id, group_id):
        self.team_id = team_id
        self.group_id = group_id
        self.matches_played = 0
        self.wins = 0
        self.losses = 0
        self.sets_won = 0
        self.sets_lost = 0
        self.games_won = 0
        self.games_lost = 0

    @property
    def set_difference(self) -> int:
        return self.sets_won - self.sets_lost

    @property
    def game_difference(self) -> int:
        return self.games_won - self.games_lost

    def record(self, sets_for, sets_against, games_for, games_against):
        self.matches_played += 1
        self.sets_won += sets_for
        self.sets_lost += sets_against
        self.games_won += games_for
        self.games_lost += games_against
        if sets_for > sets_against:
            self.wins += 1
        elif sets_against > sets_for:
            self.losses += 1

    def sort_key(self):
        return (-self.wins, -self.set_difference, -self.game_difference)

    def __repr__(self):
        return (f"TeamStanding(team_id={self.team_id}, wins={self.wins}, losses={self.losses}, "
                f"sets={self.sets_won}-{self.sets_lost}, games={self.games_won}-{self.games_lost})")


def _is_counted(match: Match) -> bool:
    return (match.status == MatchStatus.FINISHED and match.team1_id is not None
            and match.team2_id is not None and match.team1_sets is not None
            and match.team2_sets is not None)


def compute_standings(matches: List[Match], groups: Optional[Dict] = None) -> "OrderedDict":
    """
    Calculate the standings of every group from its finished matches.

    `groups` maps group id -> team ids and fixes both the group order and
    the roster; without it both come from the order teams first appear in
    `matches`. Returns group id -> list of TeamStanding, best first.
    """
    table = OrderedDict()
    if groups is not None:
        for group_id, team_ids in groups.items():
            table[group_id] = OrderedDict((team, TeamStanding(team, group_id)) for team in team_ids)
    else:
        for match in matches:
            roster = table.setdefault(match.group_id, OrderedDict())
            for team in match.known_teams():
                roster.setdefault(team, TeamStanding(team, match.group_id))

    for match in matches:
        if not _is_counted(match):
            continue
        roster = table.get(match.group_id)
        if roster is None or match.team1_id not in roster or match.team2_id not in roster:
            logger.warning("Skipping result of %s: team not in group %s", match.describe(), match.group_id)
            continue
        games1 = match.team1_games or 0
        games2 = match.team2_games or 0
        roster[match.team1_id].record(match.team1_sets, match.team2_sets, games1, games2)
        roster[match.team2_id].record(match.team2_sets, match.team1_sets, games2, games1)

    # sorted() is stable, so level teams keep roster order
    return OrderedDict(
        (group_id, sorted(roster.values(), key=TeamStanding.sort_key))
        for group_id, roster in table.items()
    )


def qualified_teams(standings: Dict) -> List[QualifiedTeam]:
    """Top 3 of each 4-team group, top 2 of any other."""
    qualified = []
    for group_order, (group_id, ranked) in enumerate(standings.items()):
        count = QUALIFIERS_BY_GROUP_SIZE.get(len(ranked), DEFAULT_QUALIFIERS)
        for position, standing in enumerate(ranked[:count], start=1):
            qualified.append(QualifiedTeam(standing.team_id, group_id, position, group_order=group_order))

    if len(qualified) < 2:
        raise DegenerateBracketInputError(
            f"Not enough qualified teams for playoffs: {len(qualified)} (need at least 2)")
    logger.info("%d teams qualified from %d groups", len(qualified), len(standings))
    return qualified
