"""
Shared pytest fixtures for bracket engine tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket.game import apply_choice, build
from bracket.models import Item
from bracket.progress import get_current_match


def _play_out(state, pick='a'):
    """Decide every remaining match, always picking the same side."""
    choices = 0
    while not state.tournament.is_completed:
        match = get_current_match(state.tournament)
        winner = match.item_a if pick == 'a' else match.item_b
        state = apply_choice(state, match.id, winner.id)
        choices += 1
    return state, choices


@pytest.fixture
def play_out():
    """Helper that plays a game to the end; returns (final state, choices made)."""
    return _play_out


@pytest.fixture
def four_items():
    """Four named items, ids equal to titles."""
    return ['A', 'B', 'C', 'D']


@pytest.fixture
def eight_items():
    """Eight items with media references."""
    return [Item(id=f'item-{i}', title=f'Item {i}', media=f'https://img.example/{i}.png') for i in range(1, 9)]


@pytest.fixture
def four_game(four_items):
    """Fresh game over A, B, C, D in a bracket of 4."""
    return build(four_items, 4, title='Letters')


@pytest.fixture
def client(tmp_path, monkeypatch):
    """Create a test client storing games in a temporary directory."""
    import app as app_module
    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path / 'data'))
    app_module.app.config['TESTING'] = True
    with app_module.app.test_client() as client:
        yield client
