"""
Round advancement for a single elimination tournament.
"""
import logging
from typing import Optional

from bracket.models import Match, Tournament

logger = logging.getLogger(__name__)


def next_pending_match(tournament: Tournament) -> Optional[Match]:
    """First undetermined match of the current round, in match number order."""
    for match in tournament.matches_in_round(tournament.current_round):
        if not match.is_completed:
            return match
    return None


def advance_round(tournament: Tournament) -> Tournament:
    """
    Materialize the next round from the winners of the current one.

    Winners are taken in match number order and paired the same way the
    first round is seeded: winner of M1 vs winner of M2, M3 vs M4, etc.
    """
    round_matches = tournament.matches_in_round(tournament.current_round)
    if not round_matches or any(not m.is_completed for m in round_matches):
        raise ValueError(f'Round {tournament.current_round} of {tournament.id} is not finished')

    winners = [m.winner for m in round_matches]
    next_round = tournament.current_round + 1
    new_matches = [
        Match.pair(next_round, i // 2 + 1, winners[i], winners[i + 1])
        for i in range(0, len(winners), 2)
    ]

    advanced = tournament.copy()
    advanced.matches.extend(new_matches)
    advanced.current_round = next_round
    advanced.current_match_index = 1
    logger.debug(f'Tournament {tournament.id} advanced to round {next_round} with {len(new_matches)} matches')
    return advanced


def settle(tournament: Tournament) -> Tournament:
    """
    Move the tournament to its next decision point.

    Points ``current_match_index`` at the next undetermined match. When the
    round is finished the next round is built, and rounds made up entirely of
    bye matches are passed through. Finishing the last round completes the
    tournament with the final's winner.
    """
    settled = tournament.copy()
    while not settled.is_completed:
        pending = next_pending_match(settled)
        if pending is not None:
            settled.current_match_index = pending.match_number
            break
        if settled.current_round >= settled.total_rounds:
            final = settled.matches_in_round(settled.total_rounds)[0]
            settled.is_completed = True
            settled.winner = final.winner
            settled.current_round = settled.total_rounds + 1
            settled.current_match_index = 0
            logger.debug(f'Tournament {settled.id} completed, winner {final.winner.id}')
        else:
            settled = advance_round(settled)
    return settled
