"""
Value objects for the bracket engine.

Item and Match attributes are plain fields, but nothing in the engine assigns
to them after construction; deciding a match builds a new one. Tournament
copies share these objects, so undo snapshots stay cheap and independent of
the live tournament as long as callers treat them as read-only too.
"""
from datetime import datetime
from typing import Dict, List, Optional

BYE_TITLE = 'BYE'


class Item:
    def __init__(self, id, title=None, media=None, is_bye=False):
        self.id = str(id)
        self.title = title if title is not None else str(id)
        self.media = media
        self.is_bye = bool(is_bye)

    @classmethod
    def bye(cls, position: int) -> 'Item':
        """Create the placeholder that pads slot ``position`` of a bracket."""
        return cls(id=f'bye-{position}', title=BYE_TITLE, is_bye=True)

    @classmethod
    def coerce(cls, value) -> 'Item':
        """Accept an Item, a mapping with at least an ``id``, or a plain string."""
        if isinstance(value, Item):
            return value
        if isinstance(value, dict):
            if value.get('id') in (None, ''):
                raise ValueError(f'Item is missing an id: {value!r}')
            return cls.from_dict(value)
        if isinstance(value, str) and value.strip():
            return cls(id=value.strip(), title=value.strip())
        raise ValueError(f'Cannot interpret {value!r} as an item')

    def to_dict(self) -> Dict:
        return {'id': self.id, 'title': self.title, 'media': self.media, 'is_bye': self.is_bye}

    @classmethod
    def from_dict(cls, data: Dict) -> 'Item':
        return cls(
            id=data['id'],
            title=data.get('title'),
            media=data.get('media'),
            is_bye=data.get('is_bye', False),
        )

    def __eq__(self, other):
        if not isinstance(other, Item):
            return NotImplemented
        return (self.id, self.title, self.media, self.is_bye) == (other.id, other.title, other.media, other.is_bye)

    def __hash__(self):
        return hash((self.id, self.is_bye))

    def __repr__(self):
        return f"Item(id={self.id}, title={self.title}, is_bye={self.is_bye})"


def match_id_for(round: int, match_number: int) -> str:
    return f'match-{round}-{match_number}'


class Match:
    def __init__(self, id, round, match_number, item_a, item_b, winner=None, is_completed=False):
        if is_completed and winner is None:
            raise ValueError(f'Completed match {id} has no winner')
        if winner is not None and winner not in (item_a, item_b):
            raise ValueError(f'Winner {winner.id} did not play in match {id}')
        self.id = id
        self.round = round
        self.match_number = match_number
        self.item_a = item_a
        self.item_b = item_b
        self.winner = winner
        self.is_completed = is_completed

    @classmethod
    def pair(cls, round: int, match_number: int, item_a: Item, item_b: Item) -> 'Match':
        """
        Create a match between two entrants.

        A match involving a bye is decided on the spot: the real item wins,
        and when both sides are byes the first bye moves on so padding keeps
        flowing into the next round.
        """
        match = cls(match_id_for(round, match_number), round, match_number, item_a, item_b)
        if item_b.is_bye:
            return match.decide(item_a)
        if item_a.is_bye:
            return match.decide(item_b)
        return match

    @property
    def is_bye(self) -> bool:
        return self.item_a.is_bye or self.item_b.is_bye

    @property
    def loser(self) -> Optional[Item]:
        if not self.is_completed:
            return None
        return self.item_b if self.winner == self.item_a else self.item_a

    def item_by_id(self, item_id) -> Optional[Item]:
        item_id = str(item_id)
        for item in (self.item_a, self.item_b):
            if item.id == item_id:
                return item
        return None

    def decide(self, winner: Item) -> 'Match':
        """Return a completed copy of this match won by ``winner``."""
        return Match(self.id, self.round, self.match_number, self.item_a, self.item_b,
                     winner=winner, is_completed=True)

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'round': self.round,
            'match_number': self.match_number,
            'item_a': self.item_a.to_dict(),
            'item_b': self.item_b.to_dict(),
            'winner': self.winner.id if self.winner is not None else None,
            'is_completed': self.is_completed,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Match':
        item_a = Item.from_dict(data['item_a'])
        item_b = Item.from_dict(data['item_b'])
        winner = None
        if data.get('winner') is not None:
            winner_id = str(data['winner'])
            if winner_id == item_a.id:
                winner = item_a
            elif winner_id == item_b.id:
                winner = item_b
            else:
                raise ValueError(f"Winner {winner_id} did not play in match {data['id']}")
        return cls(
            id=data['id'],
            round=data['round'],
            match_number=data['match_number'],
            item_a=item_a,
            item_b=item_b,
            winner=winner,
            is_completed=data.get('is_completed', False),
        )

    def __eq__(self, other):
        if not isinstance(other, Match):
            return NotImplemented
        return (self.id == other.id and self.round == other.round
                and self.match_number == other.match_number
                and self.item_a == other.item_a and self.item_b == other.item_b
                and self.winner == other.winner and self.is_completed == other.is_completed)

    __hash__ = None

    def __repr__(self):
        winner = self.winner.id if self.winner is not None else None
        return (f"Match(id={self.id}, items=({self.item_a.id}, {self.item_b.id}), "
                f"winner={winner}, is_completed={self.is_completed})")


class Tournament:
    def __init__(self, id, title, items, bracket_size, total_rounds, current_round=1,
                 current_match_index=1, matches=None, is_completed=False, winner=None):
        self.id = id
        self.title = title
        self.items = list(items)
        self.bracket_size = bracket_size
        self.total_rounds = total_rounds
        self.current_round = current_round
        self.current_match_index = current_match_index
        self.matches = list(matches) if matches else []
        self.is_completed = is_completed
        self.winner = winner

    def copy(self) -> 'Tournament':
        """Copy with fresh lists; the items and matches inside are shared."""
        return Tournament(
            id=self.id,
            title=self.title,
            items=self.items,
            bracket_size=self.bracket_size,
            total_rounds=self.total_rounds,
            current_round=self.current_round,
            current_match_index=self.current_match_index,
            matches=self.matches,
            is_completed=self.is_completed,
            winner=self.winner,
        )

    def matches_in_round(self, round: int) -> List[Match]:
        return sorted((m for m in self.matches if m.round == round), key=lambda m: m.match_number)

    def find_match(self, match_id) -> Optional[Match]:
        for match in self.matches:
            if match.id == match_id:
                return match
        return None

    def replace_match(self, match: Match):
        self.matches = [match if m.id == match.id else m for m in self.matches]

    @property
    def completed_match_count(self) -> int:
        return sum(1 for m in self.matches if m.is_completed)

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'title': self.title,
            'items': [item.to_dict() for item in self.items],
            'bracket_size': self.bracket_size,
            'total_rounds': self.total_rounds,
            'current_round': self.current_round,
            'current_match_index': self.current_match_index,
            'matches': [m.to_dict() for m in self.matches],
            'is_completed': self.is_completed,
            'winner': self.winner.to_dict() if self.winner is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Tournament':
        winner = data.get('winner')
        return cls(
            id=data['id'],
            title=data.get('title', ''),
            items=[Item.from_dict(i) for i in data.get('items', [])],
            bracket_size=data['bracket_size'],
            total_rounds=data['total_rounds'],
            current_round=data.get('current_round', 1),
            current_match_index=data.get('current_match_index', 1),
            matches=[Match.from_dict(m) for m in data.get('matches', [])],
            is_completed=data.get('is_completed', False),
            winner=Item.from_dict(winner) if winner else None,
        )

    def __eq__(self, other):
        if not isinstance(other, Tournament):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None

    def __repr__(self):
        return (f"Tournament(id={self.id}, bracket_size={self.bracket_size}, "
                f"round={self.current_round}/{self.total_rounds}, "
                f"match={self.current_match_index}, is_completed={self.is_completed})")


class GameState:
    """
    One play-through: the live tournament plus the snapshots needed to undo.

    ``source_items`` and ``bracket_size`` are what the game was built from,
    so a restart reproduces the same opening bracket.
    """

    def __init__(self, tournament, history=(), source_items=(), bracket_size=None,
                 start_time=None, end_time=None):
        self.tournament = tournament
        self.history = tuple(history)
        self.source_items = tuple(source_items)
        self.bracket_size = bracket_size if bracket_size is not None else tournament.bracket_size
        self.start_time = start_time if start_time is not None else datetime.now()
        self.end_time = end_time

    @property
    def can_undo(self) -> bool:
        return len(self.history) > 0

    def to_dict(self) -> Dict:
        return {
            'tournament': self.tournament.to_dict(),
            'history': [t.to_dict() for t in self.history],
            'source_items': [item.to_dict() for item in self.source_items],
            'bracket_size': self.bracket_size,
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat() if self.end_time else None,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'GameState':
        end_time = data.get('end_time')
        return cls(
            tournament=Tournament.from_dict(data['tournament']),
            history=[Tournament.from_dict(t) for t in data.get('history', [])],
            source_items=[Item.from_dict(i) for i in data.get('source_items', [])],
            bracket_size=data.get('bracket_size'),
            start_time=datetime.fromisoformat(data['start_time']) if data.get('start_time') else None,
            end_time=datetime.fromisoformat(end_time) if end_time else None,
        )

    def __eq__(self, other):
        if not isinstance(other, GameState):
            return NotImplemented
        return (self.tournament == other.tournament
                and self.history == other.history
                and self.source_items == other.source_items
                and self.bracket_size == other.bracket_size)

    __hash__ = None

    def __repr__(self):
        return f"GameState(tournament={self.tournament!r}, history={len(self.history)}, can_undo={self.can_undo})"
