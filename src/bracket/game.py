"""
Game state machine: play a tournament one choice at a time, with undo.

The module level functions are pure: each takes a GameState and returns a
new one, leaving its input untouched. GameStateMachine holds the current
state for one interactive session and notifies listeners after each change.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional

from bracket.builder import build_tournament, normalize_items
from bracket.errors import InvalidChoice, NothingToUndo, TournamentAlreadyCompleted
from bracket.models import GameState
from bracket.rounds import settle

logger = logging.getLogger(__name__)


def build(items, bracket_size: int, title: str = 'Tournament') -> GameState:
    """Build a new game from the item list and the chosen bracket size."""
    source_items = normalize_items(items)
    tournament = build_tournament(source_items, bracket_size, title=title)
    return GameState(tournament=tournament, source_items=source_items, bracket_size=bracket_size)


def apply_choice(state: GameState, match_id: str, winner_id: str) -> GameState:
    """
    Decide the current match in favour of ``winner_id``.

    Matches are decided strictly in order: only the match at the current
    round and match index is accepted.

    Raises:
        TournamentAlreadyCompleted: the tournament already has a winner.
        InvalidChoice: the match is unknown, out of turn, already decided,
            or ``winner_id`` did not play in it.
    """
    tournament = state.tournament
    if tournament.is_completed:
        raise TournamentAlreadyCompleted(f'Tournament {tournament.id} is already completed')

    match = tournament.find_match(match_id)
    if match is None:
        raise InvalidChoice(f'Unknown match "{match_id}"')
    if match.round != tournament.current_round:
        raise InvalidChoice(
            f'Match {match_id} belongs to round {match.round}, current round is {tournament.current_round}')
    if match.is_completed:
        raise InvalidChoice(f'Match {match_id} is already completed')
    if match.match_number != tournament.current_match_index:
        raise InvalidChoice(
            f'Match {match_id} is out of order, expected match {tournament.current_match_index}')
    winner = match.item_by_id(winner_id)
    if winner is None:
        raise InvalidChoice(f'Item "{winner_id}" is not playing in match {match_id}')

    updated = tournament.copy()
    updated.replace_match(match.decide(winner))
    updated = settle(updated)

    end_time = state.end_time
    if updated.is_completed:
        end_time = datetime.now()
        logger.info(f'Tournament {updated.id} won by {updated.winner.id}')

    return GameState(
        tournament=updated,
        history=state.history + (tournament,),
        source_items=state.source_items,
        bracket_size=state.bracket_size,
        start_time=state.start_time,
        end_time=end_time,
    )


def undo(state: GameState, strict: bool = False) -> GameState:
    """
    Restore the tournament as it was before the most recent choice.

    With an empty history the same state object is returned unchanged,
    unless ``strict`` is set, in which case NothingToUndo is raised.
    """
    if not state.history:
        if strict:
            raise NothingToUndo('There is no choice to undo')
        return state
    return GameState(
        tournament=state.history[-1],
        history=state.history[:-1],
        source_items=state.source_items,
        bracket_size=state.bracket_size,
        start_time=state.start_time,
        end_time=None,
    )


def restart(state: GameState) -> GameState:
    """Start over from the original items and bracket size, dropping history."""
    tournament = build_tournament(
        state.source_items,
        state.bracket_size,
        title=state.tournament.title,
        tournament_id=state.tournament.id,
    )
    return GameState(tournament=tournament, source_items=state.source_items, bracket_size=state.bracket_size)


class GameStateMachine:
    """
    Owns the game state of a single play session.

    Listeners are called with the new state after every committed change.
    They run after the change is in place; an exception raised by a listener
    is logged and does not affect the game.
    """

    def __init__(self, state: GameState, listeners: Optional[List[Callable[[GameState], None]]] = None):
        self._state = state
        self._listeners = list(listeners) if listeners else []

    @classmethod
    def new(cls, items, bracket_size: int, title: str = 'Tournament', listeners=None) -> 'GameStateMachine':
        return cls(build(items, bracket_size, title=title), listeners=listeners)

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def tournament(self):
        return self._state.tournament

    @property
    def can_undo(self) -> bool:
        return self._state.can_undo

    @property
    def is_completed(self) -> bool:
        return self._state.tournament.is_completed

    def add_listener(self, listener: Callable[[GameState], None]):
        self._listeners.append(listener)

    def apply_choice(self, match_id: str, winner_id: str) -> GameState:
        return self._commit(apply_choice(self._state, match_id, winner_id))

    def undo(self) -> bool:
        """Undo the last choice. Returns False when there was nothing to undo."""
        previous = self._state
        state = undo(previous)
        if state is previous:
            return False
        self._commit(state)
        return True

    def restart(self) -> GameState:
        return self._commit(restart(self._state))

    def _commit(self, state: GameState) -> GameState:
        self._state = state
        for listener in self._listeners:
            try:
                listener(state)
            except Exception as e:
                logger.warning(f'Game listener {listener!r} failed: {e}')
        return state
