"""
Read-only progress queries over a tournament.
"""
from typing import Dict, List, Optional

from bracket.builder import total_match_count
from bracket.models import Item, Match, Tournament

# Round labels keyed by how many rounds remain after the current one.
# Rounds without a dedicated label fall back to the "round of" template.
ROUND_NAMES = {
    'en': {
        'labels': {0: 'Final', 1: 'Semifinal', 2: 'Quarterfinal'},
        'round_of': 'Round of {participants}',
        'champion': 'Champion',
    },
    'ko': {
        'labels': {0: '결승', 1: '준결승', 2: '8강'},
        'round_of': '{participants}강',
        'champion': '우승',
    },
}
DEFAULT_LANGUAGE = 'en'


def _round_table(language: str) -> Dict:
    try:
        return ROUND_NAMES[language]
    except KeyError:
        raise ValueError(f'No round names for language "{language}"') from None


def get_round_name(current_round: int, total_rounds: int, language: str = DEFAULT_LANGUAGE) -> str:
    """Get the name of a round from how far it is from the final."""
    table = _round_table(language)
    remaining = total_rounds - current_round
    if remaining < 0:
        return table['champion']
    label = table['labels'].get(remaining)
    if label is not None:
        return label
    return table['round_of'].format(participants=2 ** (remaining + 1))


def get_current_match(tournament: Tournament) -> Optional[Match]:
    """The match waiting for a decision, or None once the tournament is over."""
    if tournament.is_completed:
        return None
    for match in tournament.matches_in_round(tournament.current_round):
        if match.match_number == tournament.current_match_index:
            return match
    return None


def get_tournament_progress(tournament: Tournament) -> float:
    """Fraction of all bracket matches decided so far, byes included."""
    if tournament.is_completed:
        return 1.0
    return tournament.completed_match_count / total_match_count(tournament.bracket_size)


def get_progress_summary(tournament: Tournament, language: str = DEFAULT_LANGUAGE) -> Dict:
    """
    Progress payload for a play screen.

    ``match_position`` and ``matches_in_round`` only count matches that need
    a decision, so a round padded with byes reads "1 of 3" rather than
    "1 of 4".
    """
    current = get_current_match(tournament)
    playable = [m for m in tournament.matches_in_round(tournament.current_round) if not m.is_bye]
    position = 0
    if current is not None:
        position = next(i for i, m in enumerate(playable, start=1) if m.id == current.id)
    progress = get_tournament_progress(tournament)
    return {
        'round': min(tournament.current_round, tournament.total_rounds),
        'total_rounds': tournament.total_rounds,
        'round_name': get_round_name(tournament.current_round, tournament.total_rounds, language),
        'match_number': tournament.current_match_index,
        'match_position': position,
        'matches_in_round': len(playable),
        'completed_matches': tournament.completed_match_count,
        'total_matches': total_match_count(tournament.bracket_size),
        'percentage': round(progress * 100),
    }


def get_bracket_overview(tournament: Tournament, language: str = DEFAULT_LANGUAGE) -> List[Dict]:
    """
    Describe every round of the bracket, including rounds not played yet.

    Future rounds report their slot count with no matches: their pairings
    are not determined until the previous round is finished.
    """
    overview = []
    for round_number in range(1, tournament.total_rounds + 1):
        slots = tournament.bracket_size // 2 ** round_number
        matches = tournament.matches_in_round(round_number)
        overview.append({
            'round': round_number,
            'name': get_round_name(round_number, tournament.total_rounds, language),
            'slots': slots,
            'matches': matches,
            'is_determined': len(matches) == slots,
        })
    return overview


def find_runner_up(tournament: Tournament) -> Optional[Item]:
    """The real item that lost the final, if there was one."""
    if not tournament.is_completed:
        return None
    final = tournament.matches_in_round(tournament.total_rounds)[0]
    loser = final.loser
    if loser is None or loser.is_bye:
        return None
    return loser


def get_final_ranking(tournament: Tournament, language: str = DEFAULT_LANGUAGE) -> List[Dict]:
    """
    Rank every real item of a finished tournament by the round it went out in.

    The champion is 1st, the final's loser 2nd, semifinal losers share 3rd,
    quarterfinal losers share 5th, and so on.
    """
    if not tournament.is_completed:
        return []

    ranking = [{
        'rank': 1,
        'item': tournament.winner,
        'round_reached': get_round_name(tournament.total_rounds + 1, tournament.total_rounds, language),
    }]
    for round_number in range(tournament.total_rounds, 0, -1):
        rank = tournament.bracket_size // 2 ** round_number + 1
        name = get_round_name(round_number, tournament.total_rounds, language)
        for match in tournament.matches_in_round(round_number):
            loser = match.loser
            if loser is None or loser.is_bye:
                continue
            ranking.append({'rank': rank, 'item': loser, 'round_reached': name})
    return ranking
