"""
aafl/resolver.py - Match outcome resolution

Two entry points that share one statistical procedure:

    resolve_match      bracket play, a tie always goes to penalties
    simulate_friendly  league play, a tie stays a draw

Both are pure apart from the injected random.Random. Persisting the result
is the caller's job.
"""

import logging
import random
from .commentary import Commentator
from .errors import ExternalGenerationFailure, InvalidTeamReference
from .federation import Player, scorer_names
from .models import Goal, MatchResult, ResultType, Side, Team

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================

MAX_GOALS = 4  # Per side, inclusive
MATCH_MINUTES = 90

SCORER_POOL = (
    "M. Dlamini",
    "K. Okocha",
    "S. Mensah",
    "A. Salah",
    "P. Mahrez",
    "Y. Touré",
    "D. Drogba",
    "S. Eto'o",
    "J. Mane",
    "W. Ndidi",
)


# ============================================================================
# Public API
# ============================================================================


def resolve_match(
    team_a: Team,
    team_b: Team,
    rng: random.Random | None = None,
    *,
    commentator: Commentator | None = None,
    players: tuple[list[Player], list[Player]] | None = None,
) -> MatchResult:
    """Play a bracket match. The result always has a winner.

    Args:
        team_a: Home side (Side.A).
        team_b: Away side (Side.B).
        rng: Entropy source. Seed it for reproducible results.
        commentator: If given, narrate the decided result. Failures leave
            commentary as None and never change the outcome.
        players: Squads of team_a and team_b. Goals are credited to their
            outfield players. A side with no squad uses SCORER_POOL.

    Raises:
        InvalidTeamReference: both sides are the same team.
    """
    _check_distinct(team_a, team_b)
    rng = rng or random.Random()

    score_a, score_b, goals = _play_ninety(rng, players)

    if score_a != score_b:
        winner = Side.A if score_a > score_b else Side.B
        result_type = ResultType.REGULATION
    else:
        # Level after 90: a coin flip stands in for the shootout
        winner = rng.choice((Side.A, Side.B))
        result_type = ResultType.PENALTIES

    result = MatchResult(
        score_a=score_a,
        score_b=score_b,
        goals=goals,
        result_type=result_type,
        winner=winner,
    )

    if commentator is not None:
        result.commentary = _narrate(commentator, team_a, team_b, result)

    return result


def simulate_friendly(
    team_a: Team,
    team_b: Team,
    rng: random.Random | None = None,
    *,
    players: tuple[list[Player], list[Player]] | None = None,
) -> MatchResult:
    """Quick league simulation. Level scores are a true draw (winner None)."""
    _check_distinct(team_a, team_b)
    rng = rng or random.Random()

    score_a, score_b, goals = _play_ninety(rng, players)

    if score_a > score_b:
        winner = Side.A
    elif score_b > score_a:
        winner = Side.B
    else:
        winner = None

    return MatchResult(
        score_a=score_a,
        score_b=score_b,
        goals=goals,
        result_type=ResultType.REGULATION,
        winner=winner,
    )


# ============================================================================
# Internal
# ============================================================================


def _check_distinct(team_a: Team, team_b: Team) -> None:
    if team_a.id == team_b.id:
        raise InvalidTeamReference(f"{team_a.name} cannot play itself")


def _play_ninety(
    rng: random.Random, players: tuple[list[Player], list[Player]] | None = None
) -> tuple[int, int, list[Goal]]:
    """Draw both scores and a goal log sorted by minute."""
    pool_a, pool_b = _scorer_pools(players)
    score_a = rng.randint(0, MAX_GOALS)
    score_b = rng.randint(0, MAX_GOALS)

    goals = [_random_goal(rng, Side.A, pool_a) for _ in range(score_a)]
    goals += [_random_goal(rng, Side.B, pool_b) for _ in range(score_b)]
    goals.sort(key=lambda g: g.minute)

    return score_a, score_b, goals


def _scorer_pools(
    players: tuple[list[Player], list[Player]] | None,
) -> tuple[tuple[str, ...], tuple[str, ...]]:
    if players is None:
        return SCORER_POOL, SCORER_POOL
    squad_a, squad_b = players
    return scorer_names(squad_a) or SCORER_POOL, scorer_names(squad_b) or SCORER_POOL


def _random_goal(rng: random.Random, side: Side, pool: tuple[str, ...]) -> Goal:
    return Goal(
        scorer=rng.choice(pool),
        side=side,
        minute=rng.randint(1, MATCH_MINUTES),
    )


def _narrate(
    commentator: Commentator, team_a: Team, team_b: Team, result: MatchResult
) -> str | None:
    try:
        return commentator.narrate(team_a, team_b, result)
    except ExternalGenerationFailure as e:
        logger.warning(f"Commentary unavailable for {team_a.name} vs {team_b.name}: {e}")
        return None
    except Exception as e:
        logger.warning(
            f"Commentator {type(commentator).__name__} failed for "
            f"{team_a.name} vs {team_b.name}: {e}"
        )
        return None
