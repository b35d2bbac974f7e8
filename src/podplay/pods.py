"""
Pods (groups) of 3 or 4 teams and the matches they play.

- 3 teams: round robin, every pair once.
- 4 teams: match 1 is team 1 vs team 4, match 2 is team 2 vs team 3,
  match 3 pits the two winners and match 4 the two losers. Teams of
  matches 3 and 4 stay unknown (None) until the first round is played.
"""
import logging
from collections import OrderedDict
from itertools import combinations
from typing import Dict, List

from podplay.errors import InfeasibleInputError
from podplay.models import Match

logger = logging.getLogger(__name__)

MIN_POD_SIZE = 3


def distribute_teams_to_groups(team_ids: List, group_sizes: List[int]) -> List[List]:
    """
    Deal teams into groups in serpentine order: A, B, C, then C, B, A, ...

    Once every group holds min(3, size) teams, the remaining places of the
    4-team groups are filled in order A, B, C, ... Full groups are skipped.
    Stops when every team is dealt or every group is full.
    """
    groups = [[] for _ in group_sizes]
    if not groups:
        return groups

    def at_min_size():
        return all(len(teams) >= min(MIN_POD_SIZE, size) for teams, size in zip(groups, group_sizes))

    def open_four_groups():
        return [idx for idx, size in enumerate(group_sizes) if size == 4 and len(groups[idx]) < 4]

    team_index = 0
    forward = True
    while team_index < len(team_ids):
        if at_min_size() and open_four_groups():
            for group_idx in open_four_groups():
                if team_index >= len(team_ids):
                    break
                groups[group_idx].append(team_ids[team_index])
                team_index += 1
            continue

        indexes = range(len(groups)) if forward else range(len(groups) - 1, -1, -1)
        assigned = False
        for group_idx in indexes:
            if team_index >= len(team_ids):
                break
            if len(groups[group_idx]) < group_sizes[group_idx]:
                groups[group_idx].append(team_ids[team_index])
                team_index += 1
                assigned = True
        if not assigned:
            break
        forward = not forward

    if team_index < len(team_ids):
        logger.warning("%d team(s) left over after filling all groups", len(team_ids) - team_index)
    return groups


def build_group_matches(group_id, team_ids: List) -> List[Match]:
    if len(team_ids) == 3:
        return [Match(group_id=group_id, team1_id=team1, team2_id=team2)
                for team1, team2 in combinations(team_ids, 2)]
    if len(team_ids) == 4:
        return [
            Match(group_id=group_id, team1_id=team_ids[0], team2_id=team_ids[3], match_order=1),
            Match(group_id=group_id, team1_id=team_ids[1], team2_id=team_ids[2], match_order=2),
            Match(group_id=group_id, match_order=3),
            Match(group_id=group_id, match_order=4),
        ]
    raise ValueError(f"Group {group_id} has {len(team_ids)} teams; pods must have 3 or 4")


def build_all_group_matches(groups: Dict) -> List[Match]:
    matches = []
    for group_id, team_ids in groups.items():
        matches.extend(build_group_matches(group_id, team_ids))
    return matches


def group_matches_by_pod(matches: List[Match]) -> "OrderedDict":
    """Group id -> indexes of its matches, in first-seen order."""
    by_group = OrderedDict()
    for idx, match in enumerate(matches):
        by_group.setdefault(match.group_id, []).append(idx)
    return by_group


def count_team_matches(matches: List[Match]) -> Dict:
    counts = {}
    for match in matches:
        for team in match.known_teams():
            counts[team] = counts.get(team, 0) + 1
    return counts


class Pod:
    def __init__(self, group_id, match_indexes, teams):
        self.group_id = group_id
        self.match_indexes = match_indexes
        self.teams = teams

    @property
    def size(self) -> int:
        return len(self.match_indexes)

    def __repr__(self):
        return f"Pod(group_id={self.group_id}, size={self.size}, teams={self.teams})"


def _pod_problem(matches: List[Match], indexes: List[int]):
    group_matches = [matches[idx] for idx in indexes]
    orders = sorted(m.match_order for m in group_matches if m.match_order is not None)

    if len(group_matches) == 3 and not orders:
        teams = {team for m in group_matches for team in m.known_teams()}
        pairs = {frozenset(m.known_teams()) for m in group_matches}
        if len(teams) != 3:
            return f"has {len(teams)} distinct teams (expected 3)"
        if len(pairs) != 3 or any(len(pair) != 2 for pair in pairs):
            return "does not cover each pair of teams exactly once"
        return None
    if len(group_matches) == 4 and orders == [1, 2, 3, 4]:
        return None
    return f"has {len(group_matches)} matches with orders {orders or 'none'}"


def collect_pods(matches: List[Match]) -> List[Pod]:
    """
    Split matches into pods, raising InfeasibleInputError for any group that
    is neither a 3-team round robin nor a complete 4-team pod.
    """
    pods = []
    for group_id, indexes in group_matches_by_pod(matches).items():
        if group_id is None:
            raise InfeasibleInputError(f"{len(indexes)} match(es) do not belong to any group")
        problem = _pod_problem(matches, indexes)
        if problem:
            raise InfeasibleInputError(f"Group {group_id} {problem}; expected a 3-team or 4-team pod")
        if len(indexes) == 4:
            indexes = sorted(indexes, key=lambda idx: matches[idx].match_order)
        teams = []
        for idx in indexes:
            for team in matches[idx].known_teams():
                if team not in teams:
                    teams.append(team)
        pods.append(Pod(group_id, indexes, teams))
    return pods
