"""
aafl/models.py - Tournament data types

Teams, goals, resolver output and persisted match records. Nothing in here
touches storage or randomness; these are the values the engine folds over.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from .errors import InvalidTeamReference


# ============================================================================
# Enums
# ============================================================================


class Side(str, Enum):
    """Which half of a fixture a goal or winner belongs to."""

    A = "A"
    B = "B"


class ResultType(str, Enum):
    """How a match was decided."""

    REGULATION = "90min"
    EXTRA_TIME = "ExtraTime"
    PENALTIES = "Penalties"


class Round(str, Enum):
    """Single-elimination rounds, in playing order."""

    QUARTERFINAL = "Quarterfinal"
    SEMIFINAL = "Semifinal"
    FINAL = "Final"

    @property
    def expected_matches(self) -> int:
        return _EXPECTED_MATCHES[self]

    @property
    def previous(self) -> "Round | None":
        order = list(Round)
        idx = order.index(self)
        return order[idx - 1] if idx > 0 else None

    @property
    def next(self) -> "Round | None":
        order = list(Round)
        idx = order.index(self)
        return order[idx + 1] if idx + 1 < len(order) else None


_EXPECTED_MATCHES = {
    Round.QUARTERFINAL: 4,
    Round.SEMIFINAL: 2,
    Round.FINAL: 1,
}

# Teams needed to fill the quarterfinals
BRACKET_SIZE = 8


# ============================================================================
# Data Types
# ============================================================================


@dataclass(frozen=True)
class Team:
    """A registered club. Identity is the opaque id, not the name."""

    id: str
    name: str
    federation: str = ""  # Country label, e.g. "Egypt"


@dataclass(frozen=True)
class Goal:
    """One goal event. Minute is 1..90."""

    scorer: str
    side: Side
    minute: int

    def to_dict(self) -> dict:
        return {"scorer": self.scorer, "team": self.side.value, "minute": self.minute}

    @classmethod
    def from_dict(cls, data: dict) -> "Goal":
        return cls(
            scorer=data["scorer"],
            side=Side(data["team"]),
            minute=int(data["minute"]),
        )


@dataclass(frozen=True)
class Pairing:
    """Two teams drawn to meet in a round."""

    team_a: Team
    team_b: Team

    @property
    def teams(self) -> tuple[Team, Team]:
        return (self.team_a, self.team_b)


@dataclass
class MatchResult:
    """Output of the resolver, before anything is persisted.

    winner is a Side, or None only for a drawn friendly.
    """

    score_a: int
    score_b: int
    goals: list[Goal] = field(default_factory=list)
    result_type: ResultType = ResultType.REGULATION
    winner: Side | None = None
    commentary: str | None = None

    def winner_team(self, team_a: Team, team_b: Team) -> Team | None:
        if self.winner is Side.A:
            return team_a
        if self.winner is Side.B:
            return team_b
        return None


@dataclass
class Match:
    """A persisted match. Append-only once created.

    round is None for friendlies, which never feed the bracket.
    """

    id: str
    team_a: Team
    team_b: Team
    score_a: int
    score_b: int
    goals: list[Goal] = field(default_factory=list)
    result_type: ResultType = ResultType.REGULATION
    round: Round | None = None
    winner: Team | None = None
    commentary: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if self.score_a < 0 or self.score_b < 0:
            raise ValueError(f"Scores must be non-negative, got {self.score_a}-{self.score_b}")
        if self.winner is not None and self.winner.id not in (self.team_a.id, self.team_b.id):
            raise InvalidTeamReference(
                f"Winner {self.winner.name!r} did not play in "
                f"{self.team_a.name} vs {self.team_b.name}"
            )

    @property
    def is_friendly(self) -> bool:
        return self.round is None

    @property
    def total_goals(self) -> int:
        return self.score_a + self.score_b

    def team_for(self, side: Side) -> Team:
        return self.team_a if side is Side.A else self.team_b

    @classmethod
    def from_result(
        cls,
        match_id: str,
        team_a: Team,
        team_b: Team,
        result: MatchResult,
        round: Round | None = None,
    ) -> "Match":
        """Build the record the store will persist for a resolver result."""
        return cls(
            id=match_id,
            team_a=team_a,
            team_b=team_b,
            score_a=result.score_a,
            score_b=result.score_b,
            goals=list(result.goals),
            result_type=result.result_type,
            round=round,
            winner=result.winner_team(team_a, team_b),
            commentary=result.commentary,
        )
