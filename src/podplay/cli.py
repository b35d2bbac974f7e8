"""
Command line front end.

    podplay schedule tournament.yaml [--settings settings.yaml] [--beam] [-v]
    podplay bracket qualified.yaml
    podplay bracket --results results.yaml

A tournament file names the courts, the playing days and either explicit
groups or a team list dealt into groups of the given sizes:

    courts: [Court 1, Court 2]
    days:
      - {date: 2026-05-01, start_time: "09:00", end_time: "18:00"}
    groups:
      A: [Ants, Bees, Cats]
      B: [Dogs, Eels, Foxes, Gnus]
    team_restrictions:
      Ants:
        - {date: 2026-05-01, start_time: "09:00", end_time: "12:00"}

A qualified file maps each group, in group order, to its qualified teams in
finishing order:

    A: [Ants, Bees]
    B: [Dogs, Eels]

A results file lists the groups and the finished group matches; the
standings decide who qualifies:

    groups:
      A: [Ants, Bees, Cats]
    matches:
      - {group: A, team1: Ants, team2: Bees, sets: [2, 1], games: [16, 14]}
"""
import argparse
import logging
import string
import sys
from collections import OrderedDict

import yaml

from podplay.config import load_settings
from podplay.errors import SchedulingError
from podplay.models import Match, QualifiedTeam, ScheduleDay, TimeWindow
from podplay.playoffs import describe_bracket, generate_playoffs
from podplay.pods import build_all_group_matches, distribute_teams_to_groups
from podplay.scheduler import schedule_group_matches, schedule_group_matches_beam_search
from podplay.slots import minutes_to_time
from podplay.standings import compute_standings, qualified_teams


def _time_value(value):
    # Unquoted times such as 21:00 load as base-60 integers (1260).
    if isinstance(value, int):
        return minutes_to_time(value)
    return str(value)


def _window(entry, kind=TimeWindow):
    return kind(entry['date'], _time_value(entry['start_time']), _time_value(entry['end_time']))


def load_yaml(file_path):
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file)
    if not isinstance(data, dict):
        raise ValueError(f"{file_path} must contain a mapping")
    return data


def group_names(count):
    """A, B, ..., Z, then AA, AB, ..."""
    names = []
    for idx in range(count):
        name = ''
        idx += 1
        while idx:
            idx, rem = divmod(idx - 1, 26)
            name = string.ascii_uppercase[rem] + name
        names.append(name)
    return names


def load_groups(data):
    if 'groups' in data:
        return OrderedDict((str(group_id), list(teams)) for group_id, teams in data['groups'].items())
    if 'teams' in data and 'group_sizes' in data:
        sizes = list(data['group_sizes'])
        dealt = distribute_teams_to_groups(list(data['teams']), sizes)
        return OrderedDict(zip(group_names(len(sizes)), dealt))
    raise ValueError("Tournament file needs either 'groups' or 'teams' with 'group_sizes'")


def load_tournament(file_path):
    data = load_yaml(file_path)
    days = [_window(day, ScheduleDay) for day in data.get('days') or []]
    windows = [_window(w) for w in data.get('availability_windows') or []] or None
    restrictions = {
        team: [_window(w) for w in team_windows]
        for team, team_windows in (data.get('team_restrictions') or {}).items()
    }
    return {
        'groups': load_groups(data),
        'courts': [str(court) for court in data.get('courts') or []],
        'days': days,
        'availability_windows': windows,
        'team_restrictions': restrictions,
        'match_duration_minutes': data.get('match_duration_minutes'),
    }


def load_qualified(file_path):
    """Return (qualified teams, group order map) from a qualified file."""
    data = load_yaml(file_path)
    qualified = []
    group_order = {}
    for order, (group_id, teams) in enumerate(data.items()):
        group_order[group_id] = order
        for position, team in enumerate(teams or [], start=1):
            qualified.append(QualifiedTeam(team, group_id, position))
    return qualified, group_order


def load_results(file_path):
    """Return (finished group matches, groups) from a results file."""
    data = load_yaml(file_path)
    groups = OrderedDict((str(group_id), list(teams)) for group_id, teams in (data.get('groups') or {}).items())
    matches = []
    for entry in data.get('matches') or []:
        match = Match(str(entry['group']), entry['team1'], entry['team2'])
        sets = entry['sets']
        games = entry.get('games') or [0, 0]
        match.record_result(sets[0], sets[1], games[0], games[1])
        matches.append(match)
    return matches, groups or None


def print_schedule(matches):
    print("\n--- Final Schedule ---")
    by_day = OrderedDict()
    for match in sorted(matches, key=lambda m: (m.date, m.start_time, str(m.court_id))):
        by_day.setdefault(match.date, OrderedDict()).setdefault(match.court_id, []).append(match)
    for date, courts in by_day.items():
        print(f"\n{date}")
        for court_id, court_matches in courts.items():
            print(f"  Court: {court_id}")
            for match in court_matches:
                print(f"    {match.start_time} - {match.end_time}: {match.describe()}")


def print_standings(standings):
    print("\n--- Group Standings ---")
    for group_id, ranked in standings.items():
        print(f"\nGroup {group_id}")
        for position, standing in enumerate(ranked, start=1):
            print(f"  {position}. {standing.team_id}: {standing.wins}W {standing.losses}L, "
                  f"sets {standing.set_difference:+d}, games {standing.game_difference:+d}")


def print_bracket(matches):
    summary = describe_bracket(matches)
    print(f"\n--- Playoff Bracket ({summary['total_teams']} teams, {summary['byes']} byes) ---")
    for round_name, round_matches in summary['rounds'].items():
        print(f"\n{round_name}")
        for match in round_matches:
            if match.is_bye:
                print(f"  {match.bracket_position}: {match.slot_label(1) or match.slot_label(2)} (bye)")
            else:
                print(f"  {match.bracket_position}: {match.slot_label(1)} vs {match.slot_label(2)}")


def run_schedule(args):
    settings = load_settings(args.settings)
    tournament = load_tournament(args.tournament)
    duration = tournament['match_duration_minutes'] or settings['match_duration_minutes']

    matches = build_all_group_matches(tournament['groups'])
    if args.beam:
        result = schedule_group_matches_beam_search(
            matches, tournament['days'], duration, tournament['courts'],
            tournament['availability_windows'], tournament['team_restrictions'], settings=settings)
    else:
        result = schedule_group_matches(
            matches, tournament['days'], duration, tournament['courts'],
            tournament['availability_windows'], tournament['team_restrictions'], settings=settings)

    if not result.success:
        print(f"Scheduling failed: {result.error}", file=sys.stderr)
        return 1
    print(f"Scheduled {len(matches)} matches using {result.strategy}")
    print_schedule(matches)
    return 0


def run_bracket(args):
    if bool(args.qualified) == bool(args.results):
        raise ValueError("Give exactly one of a qualified teams file or --results")
    if args.results:
        matches, groups = load_results(args.results)
        standings = compute_standings(matches, groups)
        print_standings(standings)
        qualified = qualified_teams(standings)
        group_order = {group_id: order for order, group_id in enumerate(standings)}
    else:
        qualified, group_order = load_qualified(args.qualified)
    matches = generate_playoffs(qualified, group_order)
    print_bracket(matches)
    return 0


def build_parser():
    parser = argparse.ArgumentParser(prog='podplay', description='Schedule pod matches and playoff brackets')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log scheduling detail')
    subparsers = parser.add_subparsers(dest='command', required=True)

    schedule = subparsers.add_parser('schedule', help='Schedule group matches')
    schedule.add_argument('tournament', help='Tournament YAML file')
    schedule.add_argument('--settings', help='Scheduler settings YAML file')
    schedule.add_argument('--beam', action='store_true', help='Use the pod beam search')
    schedule.set_defaults(func=run_schedule)

    bracket = subparsers.add_parser('bracket', help='Generate a playoff bracket')
    bracket.add_argument('qualified', nargs='?', help='Qualified teams YAML file')
    bracket.add_argument('--results', help='Group results YAML file; qualifiers come from the standings')
    bracket.set_defaults(func=run_bracket)
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    logging.getLogger().setLevel(logging.DEBUG if args.verbose else logging.WARNING)
    try:
        return args.func(args)
    except SchedulingError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except (OSError, ValueError, KeyError, yaml.YAMLError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == '__main__':
    sys.exit(main())
