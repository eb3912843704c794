"""
portal/play.py - Play and record matches against a LeagueDB.

Shared by the HTTP server and the CLI. Imports nothing from the web stack,
so the CLI can play a tournament without FastAPI installed.
"""

import logging
import random

from aafl.bracket import check_round_entry, require_round_open, require_scheduled_pairing
from aafl.commentary import Commentator
from aafl.models import Match, Pairing, Round
from aafl.resolver import resolve_match, simulate_friendly

from .db import LeagueDB, new_match_id

logger = logging.getLogger(__name__)


def play_bracket_match(
    db: LeagueDB,
    pairing: Pairing,
    round: Round,
    rng: random.Random,
    commentator: Commentator | None = None,
) -> Match:
    """Check the round rules, resolve the match and record it.

    Goals are credited to the registered squads when the teams have them.
    Nothing is stored unless every check and the resolution succeed.

    Raises:
        TournamentError: any rule violation, see require_round_open,
            require_scheduled_pairing and check_round_entry.
    """
    by_round = db.matches_by_round()
    require_round_open(round, db.team_count(), by_round)
    require_scheduled_pairing(round, pairing, by_round)
    check_round_entry(round, pairing, by_round)

    result = resolve_match(
        pairing.team_a,
        pairing.team_b,
        rng,
        commentator=commentator,
        players=_squads(db, pairing),
    )
    match = db.create_match(
        Match.from_result(new_match_id(), pairing.team_a, pairing.team_b, result, round=round)
    )
    logger.info(
        f"{round.value}: {pairing.team_a.name} {match.score_a}-{match.score_b} "
        f"{pairing.team_b.name} ({match.result_type.value}, winner {match.winner.name}) "
        f"-> {match.id}"
    )
    return match


def play_friendly(db: LeagueDB, pairing: Pairing, rng: random.Random) -> Match:
    """Resolve a league friendly and record it. Level scores stay a draw."""
    result = simulate_friendly(pairing.team_a, pairing.team_b, rng, players=_squads(db, pairing))
    match = db.create_match(
        Match.from_result(new_match_id(), pairing.team_a, pairing.team_b, result)
    )
    logger.info(
        f"Friendly: {pairing.team_a.name} {match.score_a}-{match.score_b} {pairing.team_b.name}"
    )
    return match


def _squads(db: LeagueDB, pairing: Pairing):
    return db.squad_for_team(pairing.team_a.id), db.squad_for_team(pairing.team_b.id)
