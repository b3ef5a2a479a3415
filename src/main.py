# Entry point for playing a bracket in the terminal

import argparse
import random
import sys

import yaml

from bracket.builder import ALLOWED_BRACKET_SIZES, get_available_bracket_sizes
from bracket.errors import BracketError
from bracket.game import GameStateMachine
from bracket.progress import ROUND_NAMES, get_current_match, get_final_ranking, get_progress_summary

PROMPT = '[1/2] pick, [u]ndo, [r]estart, [q]uit > '


def load_items(file_path):
    """Load items from a YAML list of titles or of {id, title, media} mappings."""
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or []
    if isinstance(data, dict):
        data = data.get('items', [])
    if not isinstance(data, list):
        raise ValueError(f'{file_path} must contain a list of items')
    return data


def describe_match(machine, language):
    summary = get_progress_summary(machine.tournament, language)
    match = get_current_match(machine.tournament)
    return (f"{summary['round_name']} ({summary['match_position']}/{summary['matches_in_round']}, "
            f"{summary['percentage']}% done)\n"
            f"  1) {match.item_a.title}\n"
            f"  2) {match.item_b.title}")


def play(machine, language='en', read=None, write=None):
    """Run the prompt loop until the tournament ends or the player quits."""
    read = read or input
    write = write or print
    while not machine.is_completed:
        write(describe_match(machine, language))
        answer = read(PROMPT).strip().lower()
        match = get_current_match(machine.tournament)
        if answer in ('1', '2'):
            winner = match.item_a if answer == '1' else match.item_b
            machine.apply_choice(match.id, winner.id)
        elif answer == 'u':
            if not machine.undo():
                write('Nothing to undo.')
        elif answer == 'r':
            machine.restart()
            write('Restarted.')
        elif answer == 'q':
            return None
        else:
            write(f'Unknown command: {answer}')

    tournament = machine.tournament
    write(f'\nWinner: {tournament.winner.title}')
    for entry in get_final_ranking(tournament, language):
        write(f"  {entry['rank']:>4}. {entry['item'].title} ({entry['round_reached']})")
    return tournament.winner


def main(argv=None):
    parser = argparse.ArgumentParser(description='Play a single elimination bracket in the terminal.')
    parser.add_argument('items_file', help='YAML file with the items to rank')
    parser.add_argument('--size', type=int, help='Bracket size (defaults to the largest available)')
    parser.add_argument('--title', default='Tournament')
    parser.add_argument('--language', default='en', choices=sorted(ROUND_NAMES), help='Round name language')
    parser.add_argument('--shuffle', action='store_true', help='Shuffle items before seeding')
    args = parser.parse_args(argv)

    try:
        items = load_items(args.items_file)
    except (OSError, yaml.YAMLError, ValueError) as e:
        print(f'Error: could not load items: {e}', file=sys.stderr)
        return 1

    if args.shuffle:
        random.shuffle(items)

    bracket_size = args.size
    if bracket_size is None:
        sizes = get_available_bracket_sizes(len(items))
        if not sizes:
            print('Error: at least 2 items are required', file=sys.stderr)
            return 1
        bracket_size = sizes[0]['size']
    elif bracket_size not in ALLOWED_BRACKET_SIZES:
        allowed = ', '.join(str(size) for size in ALLOWED_BRACKET_SIZES)
        print(f'Error: bracket size must be one of {allowed}', file=sys.stderr)
        return 1

    try:
        machine = GameStateMachine.new(items, bracket_size, title=args.title)
    except (BracketError, ValueError) as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1

    try:
        play(machine, language=args.language)
    except (EOFError, KeyboardInterrupt):
        print()
    return 0


if __name__ == '__main__':
    sys.exit(main())
