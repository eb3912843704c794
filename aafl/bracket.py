"""
aafl/bracket.py - Bracket state machine

The stage is never stored. It is re-derived from the match log on every
call, so it cannot drift from what was actually played:

    waiting -> ready -> quarterfinals_in_progress -> semifinals_ready
            -> semifinals_in_progress -> final_ready -> completed

Restarting the tournament is just deleting the matches.
"""

from dataclasses import dataclass, field
from enum import Enum

from .errors import (
    DuplicateRoundEntry,
    InsufficientTeams,
    InvalidTeamReference,
    RoundIncomplete,
)
from .models import BRACKET_SIZE, Match, Pairing, Round, Team
from .pairing import round_pairings


class Stage(str, Enum):
    WAITING = "waiting"
    READY = "ready"
    QUARTERFINALS_IN_PROGRESS = "quarterfinals_in_progress"
    SEMIFINALS_READY = "semifinals_ready"
    SEMIFINALS_IN_PROGRESS = "semifinals_in_progress"
    FINAL_READY = "final_ready"
    COMPLETED = "completed"

    @property
    def phase(self) -> str:
        """Coarse label shown on the public bracket."""
        return _PHASES[self]


_PHASES = {
    Stage.WAITING: "waiting",
    Stage.READY: "ready",
    Stage.QUARTERFINALS_IN_PROGRESS: "quarterfinals",
    Stage.SEMIFINALS_READY: "semifinals",
    Stage.SEMIFINALS_IN_PROGRESS: "semifinals",
    Stage.FINAL_READY: "semifinals",
    Stage.COMPLETED: "completed",
}


@dataclass
class BracketStatus:
    """Snapshot of tournament progress."""

    stage: Stage
    team_count: int
    played: dict[Round, int] = field(default_factory=dict)
    champion: Team | None = None
    next_round: Round | None = None
    message: str = ""

    @property
    def can_start(self) -> bool:
        """True when the next round is open for play."""
        return self.next_round is not None and self.stage is not Stage.WAITING


# ============================================================================
# Public API
# ============================================================================


def group_by_round(matches: list[Match]) -> dict[Round, list[Match]]:
    """Bucket bracket matches by round, keeping input order. Friendlies are dropped."""
    grouped: dict[Round, list[Match]] = {r: [] for r in Round}
    for m in matches:
        if m.round is not None:
            grouped[m.round].append(m)
    return grouped


def compute_bracket_status(
    team_count: int, matches_by_round: dict[Round, list[Match]]
) -> BracketStatus:
    """Derive the current stage and champion from the match log."""
    qf = matches_by_round.get(Round.QUARTERFINAL, [])
    sf = matches_by_round.get(Round.SEMIFINAL, [])
    final = matches_by_round.get(Round.FINAL, [])
    played = {Round.QUARTERFINAL: len(qf), Round.SEMIFINAL: len(sf), Round.FINAL: len(final)}

    if final:
        champion = final[0].winner
        return BracketStatus(
            stage=Stage.COMPLETED,
            team_count=team_count,
            played=played,
            champion=champion,
            message=(
                f"🏆 Tournament Complete! Champion: {champion.name}"
                if champion else "Tournament Complete!"
            ),
        )

    if _round_decided(sf, Round.SEMIFINAL):
        stage, next_round = Stage.FINAL_READY, Round.FINAL
        message = "Semifinals completed. Ready for the Final!"
    elif sf:
        stage, next_round = Stage.SEMIFINALS_IN_PROGRESS, Round.SEMIFINAL
        message = f"Semifinals in progress ({len(sf)}/{Round.SEMIFINAL.expected_matches} played)."
    elif _round_decided(qf, Round.QUARTERFINAL):
        stage, next_round = Stage.SEMIFINALS_READY, Round.SEMIFINAL
        message = "Quarterfinals completed. Ready for Semifinals!"
    elif qf:
        stage, next_round = Stage.QUARTERFINALS_IN_PROGRESS, Round.QUARTERFINAL
        message = (
            f"Quarterfinals in progress ({len(qf)}/{Round.QUARTERFINAL.expected_matches} played)."
        )
    elif team_count == BRACKET_SIZE:
        stage, next_round = Stage.READY, Round.QUARTERFINAL
        message = f"🎉 All {BRACKET_SIZE} teams registered. Tournament ready to begin!"
    elif team_count > BRACKET_SIZE:
        stage, next_round = Stage.WAITING, None
        message = (
            f"{team_count} teams registered but the bracket takes exactly {BRACKET_SIZE}. "
            f"Remove {team_count - BRACKET_SIZE} team(s) to start the tournament."
        )
    else:
        stage, next_round = Stage.WAITING, None
        missing = BRACKET_SIZE - team_count
        message = (
            f"{team_count}/{BRACKET_SIZE} teams registered. "
            f"Waiting for {missing} more team(s) to start the tournament."
        )

    return BracketStatus(
        stage=stage,
        team_count=team_count,
        played=played,
        next_round=next_round,
        message=message,
    )


def champion(matches_by_round: dict[Round, list[Match]]) -> Team | None:
    """Winner of the Final, once it has been played."""
    final = matches_by_round.get(Round.FINAL, [])
    return final[0].winner if final else None


def require_round_open(
    round: Round, team_count: int, matches_by_round: dict[Round, list[Match]]
) -> None:
    """Raise unless a new match may be played in this round.

    Raises:
        InsufficientTeams: quarterfinals requested without exactly eight teams.
        RoundIncomplete: the previous round is not fully decided.
        DuplicateRoundEntry: the round already holds all its matches.
    """
    if round is Round.QUARTERFINAL and team_count != BRACKET_SIZE:
        raise InsufficientTeams(
            f"{team_count}/{BRACKET_SIZE} teams registered, quarterfinals need exactly "
            f"{BRACKET_SIZE}"
        )

    prev = round.previous
    if prev is not None and not _round_decided(matches_by_round.get(prev, []), prev):
        raise RoundIncomplete(
            f"All {prev.value.lower()} matches must be completed before the "
            f"{round.value.lower()}"
        )

    if round.next is not None and matches_by_round.get(round.next):
        raise DuplicateRoundEntry(f"The {round.next.value.lower()} has already started")

    if len(matches_by_round.get(round, [])) >= round.expected_matches:
        raise DuplicateRoundEntry(
            f"All {round.expected_matches} {round.value.lower()} match(es) already played"
        )


def check_round_entry(
    round: Round, pairing: Pairing, matches_by_round: dict[Round, list[Match]]
) -> None:
    """Raise DuplicateRoundEntry if either team already played this round."""
    wanted = {t.id for t in pairing.teams}
    for m in matches_by_round.get(round, []):
        taken = wanted & {m.team_a.id, m.team_b.id}
        if taken:
            names = [t.name for t in pairing.teams if t.id in taken]
            raise DuplicateRoundEntry(
                f"{', '.join(names)} already played in the {round.value.lower()}"
            )


def require_scheduled_pairing(
    round: Round, pairing: Pairing, matches_by_round: dict[Round, list[Match]]
) -> None:
    """Semifinals and the Final may only be contested by the drawn winners.

    Quarterfinal draws are not stored, so any two registered teams may meet.

    Raises:
        RoundIncomplete: the previous round is not fully decided.
        InvalidTeamReference: the teams are not a scheduled pairing.
    """
    if round is Round.QUARTERFINAL:
        return

    scheduled = round_pairings(round, [], matches_by_round)
    wanted = {pairing.team_a.id, pairing.team_b.id}
    if not any(wanted == {p.team_a.id, p.team_b.id} for p in scheduled):
        raise InvalidTeamReference(
            f"{pairing.team_a.name} vs {pairing.team_b.name} is not a scheduled "
            f"{round.value.lower()} pairing"
        )


def _round_decided(matches: list[Match], round: Round) -> bool:
    return len(matches) == round.expected_matches and all(m.winner for m in matches)
