"""
Single elimination playoff bracket generation from group results.

Ranking is fixed: all group winners (A, B, C, ...), then all runners-up in
reverse group order (..., C, B, A), then all third places (A, B, C, ...).
The best ranked teams receive byes when the field is not a power of two.
"""
import logging
import math
from collections import OrderedDict
from typing import Dict, List, Optional

from podplay.errors import DegenerateBracketInputError
from podplay.models import PLACEHOLDER_PREFIX, PlayoffMatch, QualifiedTeam

logger = logging.getLogger(__name__)

# Seed orders above this size fall back to sequential order.
MAX_SEED_ORDER_SIZE = 1024
UNKNOWN_GROUP_ORDER = 999


def get_round_name(teams_in_round: int) -> str:
    """Get the name of a round based on number of teams."""
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round == 4:
        return "Semifinal"
    elif teams_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {teams_in_round}"


def winner_of(round_name: str, position: int) -> str:
    return f"{PLACEHOLDER_PREFIX}{round_name} {position}"


def is_power_of_two(value: int) -> bool:
    return value >= 1 and value & (value - 1) == 0


def _team_id(team):
    return team.team_id if isinstance(team, QualifiedTeam) else team


def build_global_ranking(qualified_teams: List[QualifiedTeam]) -> List[QualifiedTeam]:
    """
    Order qualified teams into the single seed list used by the bracket.

    1st places ascend by group order, 2nd places descend, 3rd places ascend.
    """
    firsts = sorted((t for t in qualified_teams if t.position == 1), key=lambda t: t.group_order)
    seconds = sorted((t for t in qualified_teams if t.position == 2), key=lambda t: t.group_order, reverse=True)
    thirds = sorted((t for t in qualified_teams if t.position == 3), key=lambda t: t.group_order)
    return firsts + seconds + thirds


def calculate_first_round(total_teams: int) -> Dict:
    """
    Work out how many teams play the first round and how many skip it.

    The round after the first has `next_round_size` teams, the smallest
    power of two holding at least half the field. Each first round match
    removes one team, so `2 * (total_teams - next_round_size)` teams play.
    """
    if total_teams <= 2:
        return {
            'first_round_name': get_round_name(2),
            'teams_playing': total_teams,
            'teams_with_bye': 0,
            'next_round_size': 2,
        }

    next_round_size = 2 ** math.ceil(math.log2(math.ceil(total_teams / 2)))
    teams_playing = 2 * (total_teams - next_round_size)
    teams_with_bye = total_teams - teams_playing

    first_round_name = get_round_name(2 * next_round_size)
    return {
        'first_round_name': first_round_name,
        'teams_playing': teams_playing,
        'teams_with_bye': teams_with_bye,
        'next_round_size': next_round_size,
    }


def get_standard_seed_order(size: int) -> List[int]:
    """
    Generate the standard tournament bracket order.
    This ensures that if all higher seeds win, they meet in the proper rounds.

    For 8 teams: [1, 8, 4, 5, 2, 7, 3, 6]
    Sizes that are not a power of two, or above MAX_SEED_ORDER_SIZE, get
    sequential order.
    """
    if size < 1:
        return []
    if size == 1:
        return [1]
    if size == 2:
        return [1, 2]
    if not is_power_of_two(size) or size > MAX_SEED_ORDER_SIZE:
        return list(range(1, size + 1))

    upper_half = get_standard_seed_order(size // 2)
    result = []
    for seed in upper_half:
        result.extend([seed, size + 1 - seed])
    return result


def seed_teams(teams: List, num_positions: int) -> List:
    """Place teams (best first) on bracket lines by standard seed order; empty lines are None."""
    placed = [None] * num_positions
    for line, seed in enumerate(get_standard_seed_order(num_positions)):
        if seed - 1 < len(teams):
            placed[line] = teams[seed - 1]
    return placed


def pair_best_vs_worst(seeded: List) -> List:
    """Pair (seed, team) entries best vs worst, second best vs second worst, ..."""
    return [(seeded[i], seeded[len(seeded) - 1 - i]) for i in range(len(seeded) // 2)]


def generate_next_round_with_byes(bye_teams: List, first_round_pairs: List, next_round_size: int,
                                  first_round_name: str, next_round_name: str):
    """
    Seat bye teams and first round winners in the round that absorbs the byes.

    `bye_teams` and both sides of `first_round_pairs` are (seed, team)
    entries. The weakest real match (largest best seed) is sent against the
    strongest bye team, and so on. Returns (first_round, next_round).
    """
    lines = seed_teams(bye_teams, next_round_size)
    open_lines = [line for line, entry in enumerate(lines) if entry is None]
    if len(open_lines) != len(first_round_pairs):
        raise ValueError(f"{len(first_round_pairs)} first round matches cannot fill {len(open_lines)} open lines")

    def opposing_bye_seed(line):
        partner = lines[line ^ 1]
        return partner[0] if partner is not None else next_round_size + 1

    open_lines.sort(key=lambda line: (opposing_bye_seed(line), line))
    weakest_first = sorted(first_round_pairs, key=lambda pair: -min(pair[0][0], pair[1][0]))
    line_to_pair = dict(zip(open_lines, weakest_first))

    first_round = []
    for line in range(next_round_size):
        entry = lines[line]
        if entry is not None:
            first_round.append(PlayoffMatch(first_round_name, line + 1, team1_id=_team_id(entry[1])))
        else:
            better, worse = sorted(line_to_pair[line], key=lambda e: e[0])
            first_round.append(PlayoffMatch(first_round_name, line + 1,
                                            team1_id=_team_id(better[1]), team2_id=_team_id(worse[1])))

    next_round = []
    for i in range(next_round_size // 2):
        match = PlayoffMatch(next_round_name, i + 1)
        for side, line in ((1, 2 * i), (2, 2 * i + 1)):
            entry = lines[line]
            team_id = _team_id(entry[1]) if entry is not None else None
            source = winner_of(first_round_name, line + 1) if entry is None else None
            if side == 1:
                match.team1_id, match.source_team1 = team_id, source
            else:
                match.team2_id, match.source_team2 = team_id, source
        next_round.append(match)
    return first_round, next_round


def generate_remaining_rounds(matches_in_round: int, round_name: str) -> List[PlayoffMatch]:
    """
    Placeholder rounds down to the final. Match i of each round takes the
    winners of positions i and (size - i + 1) of the previous round.
    """
    matches = []
    while matches_in_round > 1:
        next_count = matches_in_round // 2
        next_name = get_round_name(matches_in_round)
        for i in range(next_count):
            matches.append(PlayoffMatch(
                next_name, i + 1,
                source_team1=winner_of(round_name, i + 1),
                source_team2=winner_of(round_name, matches_in_round - i),
            ))
        matches_in_round = next_count
        round_name = next_name
    return matches


def _pairs_from_lines(lines: List, round_name: str) -> List[PlayoffMatch]:
    matches = []
    for i in range(len(lines) // 2):
        team1, team2 = lines[2 * i], lines[2 * i + 1]
        matches.append(PlayoffMatch(round_name, i + 1,
                                    team1_id=_team_id(team1[1]) if team1 else None,
                                    team2_id=_team_id(team2[1]) if team2 else None))
    return matches


def generate_playoff_bracket(ranked_teams: List) -> List[PlayoffMatch]:
    """
    Build every round of the bracket from globally ranked teams (best first).

    Teams may be QualifiedTeam records or bare team ids.
    """
    n = len(ranked_teams)
    if n < 2:
        raise DegenerateBracketInputError(f"At least 2 teams required to generate playoffs, got {n}")

    layout = calculate_first_round(n)
    first_round_name = layout['first_round_name']
    next_round_size = layout['next_round_size']
    teams_with_bye = layout['teams_with_bye']
    teams_playing = layout['teams_playing']

    seeded = list(enumerate(ranked_teams, start=1))

    if n <= 2:
        return [PlayoffMatch(first_round_name, 1, team1_id=_team_id(ranked_teams[0]),
                             team2_id=_team_id(ranked_teams[1]))]

    if teams_with_bye == 0:
        first_round = _pairs_from_lines(seed_teams(seeded, teams_playing), first_round_name)
        logger.info("Bracket of %d teams without byes, first round: %s", n, first_round_name)
        return first_round + generate_remaining_rounds(len(first_round), first_round_name)

    bye_teams = seeded[:teams_with_bye]
    first_round_pairs = pair_best_vs_worst(seeded[teams_with_bye:])
    next_round_name = get_round_name(next_round_size)
    first_round, next_round = generate_next_round_with_byes(
        bye_teams, first_round_pairs, next_round_size, first_round_name, next_round_name)
    logger.info("Bracket of %d teams: %d bye(s), %d first round match(es)",
                n, teams_with_bye, len(first_round_pairs))
    return first_round + next_round + generate_remaining_rounds(len(next_round), next_round_name)


def generate_playoffs(qualified_teams: List[QualifiedTeam], group_order_map: Dict) -> List[PlayoffMatch]:
    """
    Rank qualified teams and generate the bracket.

    Groups missing from `group_order_map` rank after every known group.
    """
    with_order = [
        QualifiedTeam(t.team_id, t.group_id, t.position,
                      group_order=group_order_map.get(t.group_id, UNKNOWN_GROUP_ORDER))
        for t in qualified_teams
    ]
    return generate_playoff_bracket(build_global_ranking(with_order))


def describe_bracket(matches: List[PlayoffMatch]) -> Dict:
    """Get bracket data grouped by round with summary statistics."""
    rounds = OrderedDict()
    for match in matches:
        rounds.setdefault(match.round, []).append(match)

    teams = set()
    for match in matches:
        for team in (match.team1_id, match.team2_id):
            if team is not None:
                teams.add(team)

    matches_per_round = OrderedDict(
        (name, sum(1 for m in round_matches if not m.is_bye)) for name, round_matches in rounds.items()
    )
    return {
        'rounds': rounds,
        'total_rounds': len(rounds),
        'total_teams': len(teams),
        'byes': sum(1 for m in matches if m.is_bye),
        'matches_per_round': matches_per_round,
    }


def find_match(matches: List[PlayoffMatch], round_name: str, position: int) -> Optional[PlayoffMatch]:
    for match in matches:
        if match.round == round_name and match.bracket_position == position:
            return match
    return None
