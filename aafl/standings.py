"""
aafl/standings.py - League table, scorers and team analytics

Every view is a fresh fold over the full match list. Nothing is cached or
shared between views, so they always agree on the same log and recomputing
twice gives identical output.

The league table scores by goals (a penalties-decided tie is a draw there);
analytics count wins and losses from the recorded winner.
"""

from dataclasses import dataclass, field

from .models import Match, ResultType, Round, Team

# Points per result
WIN_POINTS = 3
DRAW_POINTS = 1


# ============================================================================
# Data Types
# ============================================================================


@dataclass
class StandingsRow:
    """One line of the league table."""

    team: Team
    played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against


@dataclass
class ScorerRow:
    player: str
    goals: int = 0
    team: str = "Unknown"
    federation: str = ""


@dataclass
class TeamStatsRow:
    """Per-team analytics. wins/losses follow the recorded winner."""

    team: Team
    played: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0  # Level after 90 minutes, however it was settled
    goals_for: int = 0
    goals_against: int = 0

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against


@dataclass
class FederationWins:
    federation: str
    wins: int


@dataclass
class AnalyticsOverview:
    matches: int = 0
    average_goals_per_match: float = 0.0
    federation_with_most_wins: FederationWins | None = None


@dataclass
class TeamAnalytics:
    teams: list[TeamStatsRow] = field(default_factory=list)
    overview: AnalyticsOverview = field(default_factory=AnalyticsOverview)


@dataclass
class FinalRecord:
    """One past Final, for the public history page."""

    date: str
    finalist_a: str
    finalist_b: str
    federation_a: str
    federation_b: str
    scoreline: str
    winner: str | None


# ============================================================================
# Aggregations
# ============================================================================


def compute_league_table(matches: list[Match]) -> list[StandingsRow]:
    """Points table over every match, bracket and friendly alike."""
    table: dict[str, StandingsRow] = {}

    def row(team: Team) -> StandingsRow:
        if team.id not in table:
            table[team.id] = StandingsRow(team=team)
        return table[team.id]

    for m in matches:
        a = row(m.team_a)
        b = row(m.team_b)
        a.played += 1
        b.played += 1
        a.goals_for += m.score_a
        a.goals_against += m.score_b
        b.goals_for += m.score_b
        b.goals_against += m.score_a

        if m.score_a == m.score_b:
            a.draws += 1
            b.draws += 1
            a.points += DRAW_POINTS
            b.points += DRAW_POINTS
        elif m.score_a > m.score_b:
            a.wins += 1
            b.losses += 1
            a.points += WIN_POINTS
        else:
            b.wins += 1
            a.losses += 1
            b.points += WIN_POINTS

    # sorted() is stable, so ties keep discovery order
    return sorted(table.values(), key=lambda r: (-r.points, -r.goal_difference))


def compute_scorer_leaderboard(matches: list[Match]) -> list[ScorerRow]:
    """Goals per scorer name, most first. Team is the last one the name scored for."""
    scorers: dict[str, ScorerRow] = {}

    for m in matches:
        for goal in m.goals:
            name = goal.scorer.strip()
            if not name:
                continue
            team = m.team_for(goal.side)
            entry = scorers.setdefault(name, ScorerRow(player=name))
            entry.goals += 1
            entry.team = team.name or entry.team
            entry.federation = team.federation or entry.federation

    return sorted(scorers.values(), key=lambda s: -s.goals)


def compute_team_analytics(matches: list[Match]) -> TeamAnalytics:
    """Win/loss splits per team plus a tournament-wide overview."""
    stats: dict[str, TeamStatsRow] = {}
    federation_wins: dict[str, int] = {}
    total_goals = 0

    def row(team: Team) -> TeamStatsRow:
        if team.id not in stats:
            stats[team.id] = TeamStatsRow(team=team)
        return stats[team.id]

    for m in matches:
        a = row(m.team_a)
        b = row(m.team_b)
        a.played += 1
        b.played += 1
        a.goals_for += m.score_a
        a.goals_against += m.score_b
        b.goals_for += m.score_b
        b.goals_against += m.score_a

        if m.score_a == m.score_b:
            a.draws += 1
            b.draws += 1

        if m.winner is not None:
            if m.winner.id == m.team_a.id:
                a.wins += 1
                b.losses += 1
            else:
                b.wins += 1
                a.losses += 1
            fed = m.winner.federation or "Unknown"
            federation_wins[fed] = federation_wins.get(fed, 0) + 1

        total_goals += m.total_goals

    teams = sorted(stats.values(), key=lambda r: (-r.wins, -r.goal_difference))

    top = None
    if federation_wins:
        # max() returns the first maximal entry, i.e. first seen on ties
        fed, wins = max(federation_wins.items(), key=lambda kv: kv[1])
        top = FederationWins(federation=fed, wins=wins)

    count = len(matches)
    overview = AnalyticsOverview(
        matches=count,
        average_goals_per_match=total_goals / count if count else 0.0,
        federation_with_most_wins=top,
    )
    return TeamAnalytics(teams=teams, overview=overview)


def compute_final_history(matches: list[Match]) -> list[FinalRecord]:
    """Every Final played, newest first."""
    finals = [m for m in matches if m.round is Round.FINAL]
    finals.sort(key=lambda m: m.created_at, reverse=True)

    history = []
    for f in finals:
        scoreline = f"{f.score_a} - {f.score_b}"
        if f.result_type is not ResultType.REGULATION:
            scoreline += f" ({f.result_type.value})"
        history.append(
            FinalRecord(
                date=f.created_at.isoformat(),
                finalist_a=f.team_a.name,
                finalist_b=f.team_b.name,
                federation_a=f.team_a.federation,
                federation_b=f.team_b.federation,
                scoreline=scoreline,
                winner=f.winner.name if f.winner else None,
            )
        )
    return history
