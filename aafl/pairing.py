"""
aafl/pairing.py - Round pairings

Quarterfinals are a fair random draw of the eight registered teams. Later
rounds pair winners in the order their matches were created:
winner(1) vs winner(2), winner(3) vs winner(4).
"""

import random

from .errors import InsufficientTeams, RoundIncomplete
from .models import BRACKET_SIZE, Match, Pairing, Round, Team


def quarterfinal_pairings(teams: list[Team], rng: random.Random | None = None) -> list[Pairing]:
    """Draw the quarterfinals from exactly eight distinct teams.

    Raises:
        InsufficientTeams: not exactly eight distinct teams.
    """
    distinct = {t.id for t in teams}
    if len(teams) != BRACKET_SIZE or len(distinct) != BRACKET_SIZE:
        raise InsufficientTeams(
            f"Quarterfinals need {BRACKET_SIZE} distinct teams, got {len(distinct)}"
        )

    rng = rng or random.Random()
    drawn = list(teams)
    rng.shuffle(drawn)  # Fisher-Yates

    return [Pairing(drawn[i], drawn[i + 1]) for i in range(0, BRACKET_SIZE, 2)]


def semifinal_pairings(qf_matches: list[Match]) -> list[Pairing]:
    """Pair quarterfinal winners. Matches must be in creation order."""
    winners = _round_winners(qf_matches, Round.QUARTERFINAL)
    return [Pairing(winners[0], winners[1]), Pairing(winners[2], winners[3])]


def final_pairing(sf_matches: list[Match]) -> Pairing:
    """Pair the two semifinal winners. Matches must be in creation order."""
    winners = _round_winners(sf_matches, Round.SEMIFINAL)
    return Pairing(winners[0], winners[1])


def round_pairings(
    round: Round,
    teams: list[Team],
    matches_by_round: dict[Round, list[Match]],
    rng: random.Random | None = None,
) -> list[Pairing]:
    """Pairings for any round, as a list (the Final yields one pairing)."""
    if round is Round.QUARTERFINAL:
        return quarterfinal_pairings(teams, rng)
    if round is Round.SEMIFINAL:
        return semifinal_pairings(matches_by_round.get(Round.QUARTERFINAL, []))
    return [final_pairing(matches_by_round.get(Round.SEMIFINAL, []))]


def _round_winners(matches: list[Match], round: Round) -> list[Team]:
    expected = round.expected_matches
    if len(matches) != expected:
        raise RoundIncomplete(
            f"All {expected} {round.value.lower()} matches must be played first "
            f"({len(matches)} recorded)"
        )
    if any(m.winner is None for m in matches):
        raise RoundIncomplete(f"Every {round.value.lower()} match needs a winner")
    return [m.winner for m in matches]
