"""
Single elimination bracket construction.
"""
import math
import uuid
from typing import Dict, List, Optional

from bracket.errors import DuplicateItemId, InsufficientItems, InvalidBracketSize
from bracket.models import Item, Match, Tournament
from bracket.rounds import settle

ALLOWED_BRACKET_SIZES = (4, 8, 16, 32, 64, 128, 256, 512, 1024)
MIN_BRACKET_SIZE = ALLOWED_BRACKET_SIZES[0]


def next_power_of_two(num_items: int) -> int:
    """Calculate the bracket size that fits all items (next power of 2)."""
    if num_items <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_items))


def is_valid_bracket_size(bracket_size) -> bool:
    if isinstance(bracket_size, bool) or not isinstance(bracket_size, int):
        return False
    return bracket_size >= 2 and bracket_size & (bracket_size - 1) == 0


def calculate_byes(num_items: int, bracket_size: int) -> int:
    """Number of bye placeholders needed to fill the bracket."""
    return max(bracket_size - num_items, 0)


def total_match_count(bracket_size: int) -> int:
    """Every slot but the champion's loses exactly once."""
    return bracket_size - 1


def get_available_bracket_sizes(item_count: int) -> List[Dict]:
    """
    List the bracket sizes a selection screen can offer for ``item_count`` items.

    Sizes go up to the next power of two of the item count (never below the
    smallest allowed size), largest first. Each entry reports how many byes
    the size needs and how many items it leaves out.
    """
    if item_count < 2:
        return []
    max_size = max(next_power_of_two(item_count), MIN_BRACKET_SIZE)
    sizes = []
    for size in ALLOWED_BRACKET_SIZES:
        if size > max_size:
            break
        sizes.append({
            'size': size,
            'byes': calculate_byes(item_count, size),
            'excluded': max(item_count - size, 0),
        })
    sizes.reverse()
    return sizes


def normalize_items(items) -> List[Item]:
    """Coerce raw items and reject duplicate ids."""
    normalized = [Item.coerce(item) for item in items]
    seen = set()
    for item in normalized:
        if item.id in seen:
            raise DuplicateItemId(f'Item id "{item.id}" appears more than once')
        seen.add(item.id)
    return normalized


def seed_items(items: List[Item], bracket_size: int) -> List[Item]:
    """
    Fit the items to the bracket slots, keeping their order.

    Extra items past ``bracket_size`` are dropped. Missing slots are filled
    with byes placed at the back of the bracket, one per match, so that each
    bye faces a real item. The opening match is always between two real
    items; when too few items are left to go around, byes meet each other.

    For 5 items in 8 slots: [A, B, C, bye, D, bye, E, bye]
    For 3 items in 8 slots: [A, B, C, bye, bye, bye, bye, bye]
    """
    items = list(items[:bracket_size])
    num_matches = bracket_size // 2
    num_byes = calculate_byes(len(items), bracket_size)
    full_matches = max(num_matches - num_byes, 1)

    entrants = items[:2 * full_matches]
    remaining = iter(items[2 * full_matches:])
    while len(entrants) < bracket_size:
        entrant = next(remaining, None)
        entrants.append(entrant if entrant is not None else Item.bye(len(entrants)))
        entrants.append(Item.bye(len(entrants)))
    return entrants


def create_first_round(entrants: List[Item]) -> List[Match]:
    """
    Pair entrants in order: (1st, 2nd), (3rd, 4th), ...

    Matches against a bye come back already decided.
    """
    matches = []
    for i in range(0, len(entrants), 2):
        matches.append(Match.pair(1, i // 2 + 1, entrants[i], entrants[i + 1]))
    return matches


def build_tournament(items, bracket_size: int, title: str = 'Tournament',
                     tournament_id: Optional[str] = None) -> Tournament:
    """
    Build the opening state of a single elimination tournament.

    Args:
        items: Items, item dicts or plain titles, in seed order.
        bracket_size: Number of slots, a power of two.
        title: Display title of the tournament.
        tournament_id: Reuse an existing id (restart); a new one is made otherwise.

    Raises:
        InsufficientItems: fewer than two items.
        InvalidBracketSize: size is not a power of two of at least 2.
        DuplicateItemId: two items share an id.
    """
    items = list(items)
    if len(items) < 2:
        raise InsufficientItems(f'At least 2 items are required, got {len(items)}')
    if not is_valid_bracket_size(bracket_size):
        raise InvalidBracketSize(f'Bracket size must be a power of two of at least 2, got {bracket_size!r}')

    entrants = seed_items(normalize_items(items), bracket_size)
    tournament = Tournament(
        id=tournament_id or f'tournament-{uuid.uuid4().hex[:12]}',
        title=title,
        items=entrants,
        bracket_size=bracket_size,
        total_rounds=int(math.log2(bracket_size)),
        current_round=1,
        current_match_index=1,
        matches=create_first_round(entrants),
    )
    return settle(tournament)
