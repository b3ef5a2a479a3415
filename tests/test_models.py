"""
Unit tests for the data models (Item, Match, Tournament, GameState).
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket.models import GameState, Item, Match, Tournament


class TestItem:
    """Tests for the Item model."""

    def test_item_title_defaults_to_id(self):
        """Test creating an item with just an id."""
        item = Item(id=7)
        assert item.id == '7'
        assert item.title == '7'
        assert item.is_bye is False

    def test_bye_item(self):
        """Test bye placeholders."""
        bye = Item.bye(3)
        assert bye.id == 'bye-3'
        assert bye.title == 'BYE'
        assert bye.is_bye is True

    def test_coerce_string(self):
        """Test plain strings become items with matching id and title."""
        item = Item.coerce('  Cats ')
        assert item.id == 'Cats'
        assert item.title == 'Cats'

    def test_coerce_dict(self):
        """Test mappings become items."""
        item = Item.coerce({'id': 'x1', 'title': 'Dogs', 'media': 'dogs.png'})
        assert item == Item(id='x1', title='Dogs', media='dogs.png')

    def test_coerce_rejects_missing_id(self):
        """Test a mapping without id is rejected."""
        with pytest.raises(ValueError):
            Item.coerce({'title': 'No id'})

    def test_coerce_rejects_blank(self):
        """Test empty strings and other types are rejected."""
        with pytest.raises(ValueError):
            Item.coerce('  ')
        with pytest.raises(ValueError):
            Item.coerce(None)

    def test_item_repr(self):
        """Test item string representation."""
        assert 'Cats' in repr(Item(id='c', title='Cats'))


class TestMatch:
    """Tests for the Match model."""

    def test_pair_between_real_items_is_open(self):
        """Test a normal match waits for a decision."""
        match = Match.pair(1, 2, Item('A'), Item('B'))
        assert match.id == 'match-1-2'
        assert match.is_completed is False
        assert match.winner is None
        assert match.is_bye is False

    def test_pair_with_bye_completes(self):
        """Test a match against a bye is decided for the real item."""
        match = Match.pair(1, 1, Item.bye(0), Item('B'))
        assert match.is_completed is True
        assert match.winner == Item('B')
        assert match.is_bye is True

    def test_pair_of_byes_advances_a_bye(self):
        """Test two byes produce a bye winner."""
        match = Match.pair(1, 4, Item.bye(6), Item.bye(7))
        assert match.is_completed is True
        assert match.winner.is_bye is True

    def test_decide_returns_new_match(self):
        """Test deciding leaves the original match untouched."""
        match = Match.pair(1, 1, Item('A'), Item('B'))
        decided = match.decide(Item('B'))
        assert decided.winner == Item('B')
        assert decided.loser == Item('A')
        assert match.is_completed is False

    def test_completed_without_winner_rejected(self):
        """Test the completed-implies-winner invariant."""
        with pytest.raises(ValueError):
            Match('m', 1, 1, Item('A'), Item('B'), is_completed=True)

    def test_winner_must_have_played(self):
        """Test winners must be one of the two items."""
        with pytest.raises(ValueError):
            Match('m', 1, 1, Item('A'), Item('B'), winner=Item('C'), is_completed=True)

    def test_from_dict_rejects_unknown_winner(self):
        """Test a stored winner must be one of the two items."""
        data = Match.pair(1, 1, Item('A'), Item('B')).decide(Item('A')).to_dict()
        data['winner'] = 'Z'
        with pytest.raises(ValueError):
            Match.from_dict(data)

    def test_from_dict_keeps_second_item_winner(self):
        """Test a winner on the second side is restored as that item."""
        match = Match.pair(1, 1, Item('A'), Item('B')).decide(Item('B'))
        assert Match.from_dict(match.to_dict()).winner == Item('B')

    def test_item_by_id(self):
        """Test looking up a side by id."""
        match = Match.pair(1, 1, Item('A'), Item('B'))
        assert match.item_by_id('B') == Item('B')
        assert match.item_by_id('Z') is None


class TestTournament:
    """Tests for the Tournament model."""

    def _tournament(self):
        items = [Item('A'), Item('B'), Item('C'), Item('D')]
        matches = [Match.pair(1, 2, items[2], items[3]), Match.pair(1, 1, items[0], items[1])]
        return Tournament('t-1', 'Letters', items, 4, 2, matches=matches)

    def test_matches_in_round_sorted(self):
        """Test round matches come back in match number order."""
        tournament = self._tournament()
        assert [m.match_number for m in tournament.matches_in_round(1)] == [1, 2]
        assert tournament.matches_in_round(2) == []

    def test_copy_does_not_share_lists(self):
        """Test copies can be changed without touching the original."""
        tournament = self._tournament()
        copy = tournament.copy()
        copy.replace_match(copy.find_match('match-1-1').decide(Item('A')))
        copy.current_match_index = 2
        assert tournament.find_match('match-1-1').is_completed is False
        assert tournament.current_match_index == 1
        assert copy != tournament

    def test_copy_shares_untouched_matches(self):
        """Test a copy reuses match objects and replaces only the decided one."""
        tournament = self._tournament()
        copy = tournament.copy()
        copy.replace_match(copy.find_match('match-1-1').decide(Item('A')))
        assert copy.find_match('match-1-2') is tournament.find_match('match-1-2')
        assert copy.find_match('match-1-1') is not tournament.find_match('match-1-1')
        assert tournament.find_match('match-1-1').winner is None

    def test_dict_round_trip(self):
        """Test serialization keeps all fields."""
        tournament = self._tournament()
        tournament.replace_match(tournament.find_match('match-1-1').decide(Item('B')))
        restored = Tournament.from_dict(tournament.to_dict())
        assert restored == tournament
        assert restored.find_match('match-1-1').winner == Item('B')


class TestGameState:
    """Tests for the GameState model."""

    def test_can_undo_follows_history(self):
        """Test can_undo reflects history."""
        tournament = Tournament('t', 'T', [Item('A'), Item('B')], 2, 1,
                                matches=[Match.pair(1, 1, Item('A'), Item('B'))])
        assert GameState(tournament).can_undo is False
        assert GameState(tournament, history=[tournament.copy()]).can_undo is True

    def test_equality_ignores_timestamps(self):
        """Test states differing only in timestamps are equal."""
        from datetime import datetime, timedelta
        tournament = Tournament('t', 'T', [Item('A'), Item('B')], 2, 1,
                                matches=[Match.pair(1, 1, Item('A'), Item('B'))])
        first = GameState(tournament, start_time=datetime(2026, 1, 1))
        second = GameState(tournament.copy(), start_time=datetime(2026, 1, 1) + timedelta(hours=1))
        assert first == second
