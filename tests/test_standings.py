"""Tests for aafl.standings - league table, scorers, analytics, history."""

from datetime import datetime, timedelta, timezone

from aafl.models import Goal, Match, ResultType, Round, Side, Team
from aafl.standings import (
    compute_final_history,
    compute_league_table,
    compute_scorer_leaderboard,
    compute_team_analytics,
)

A = Team(id="a", name="Al Ahly", federation="Egypt")
B = Team(id="b", name="Esperance", federation="Tunisia")
C = Team(id="c", name="TP Mazembe", federation="Congo")

T0 = datetime(2025, 3, 1, tzinfo=timezone.utc)


def _match(match_id, a, b, score_a, score_b, winner=None, round=None, goals=None,
           result_type=ResultType.REGULATION, minutes=0):
    return Match(
        id=match_id,
        team_a=a,
        team_b=b,
        score_a=score_a,
        score_b=score_b,
        goals=goals or [],
        result_type=result_type,
        round=round,
        winner=winner,
        created_at=T0 + timedelta(minutes=minutes),
    )


class TestLeagueTable:
    def test_empty(self):
        assert compute_league_table([]) == []

    def test_win_and_draw(self):
        rows = compute_league_table([
            _match("m1", A, B, 2, 1, winner=A),
            _match("m2", B, A, 3, 3),
        ])
        by_id = {r.team.id: r for r in rows}

        a = by_id["a"]
        assert (a.played, a.wins, a.draws, a.losses, a.points) == (2, 1, 1, 0, 4)
        assert (a.goals_for, a.goals_against, a.goal_difference) == (5, 4, 1)

        b = by_id["b"]
        assert (b.played, b.wins, b.draws, b.losses, b.points) == (2, 0, 1, 1, 1)

        assert [r.team.id for r in rows] == ["a", "b"]

    def test_sorted_by_points_then_goal_difference(self):
        rows = compute_league_table([
            _match("m1", A, B, 1, 0, winner=A),
            _match("m2", C, B, 4, 0, winner=C),
        ])
        # A and C both on 3 points; C has the better goal difference
        assert [r.team.id for r in rows] == ["c", "a", "b"]

    def test_ties_keep_discovery_order(self):
        rows = compute_league_table([_match("m1", B, C, 0, 0)])
        assert [r.team.id for r in rows] == ["b", "c"]

    def test_penalty_decided_tie_counts_as_draw(self):
        rows = compute_league_table([
            _match("qf", A, B, 2, 2, winner=B, round=Round.QUARTERFINAL,
                   result_type=ResultType.PENALTIES),
        ])
        assert all(r.draws == 1 and r.points == 1 for r in rows)

    def test_recomputation_is_identical(self):
        matches = [_match("m1", A, B, 2, 1, winner=A), _match("m2", B, C, 0, 0)]
        assert compute_league_table(matches) == compute_league_table(matches)


class TestScorerLeaderboard:
    def test_ranks_by_goals(self):
        x = _match("m1", A, B, 2, 0, winner=A, goals=[
            Goal("A. Salah", Side.A, 10),
            Goal("A. Salah", Side.A, 80),
        ])
        y = _match("m2", B, C, 0, 1, winner=C, goals=[Goal("P. Mahrez", Side.B, 45)])

        rows = compute_scorer_leaderboard([x, y])
        assert [(r.player, r.goals) for r in rows] == [("A. Salah", 2), ("P. Mahrez", 1)]
        assert rows[0].team == "Al Ahly"
        assert rows[0].federation == "Egypt"
        assert rows[1].team == "TP Mazembe"

    def test_names_trimmed_blank_skipped(self):
        m = _match("m1", A, B, 3, 0, winner=A, goals=[
            Goal(" D. Drogba ", Side.A, 5),
            Goal("D. Drogba", Side.A, 6),
            Goal("   ", Side.A, 7),
        ])
        rows = compute_scorer_leaderboard([m])
        assert [(r.player, r.goals) for r in rows] == [("D. Drogba", 2)]

    def test_names_are_case_sensitive(self):
        m = _match("m1", A, B, 2, 0, winner=A, goals=[
            Goal("J. Mane", Side.A, 5),
            Goal("j. mane", Side.A, 6),
        ])
        assert len(compute_scorer_leaderboard([m])) == 2

    def test_team_is_last_one_scored_for(self):
        m1 = _match("m1", A, B, 1, 0, winner=A, goals=[Goal("Y. Touré", Side.A, 5)])
        m2 = _match("m2", B, C, 0, 1, winner=C, goals=[Goal("Y. Touré", Side.B, 9)])
        (row,) = compute_scorer_leaderboard([m1, m2])
        assert row.goals == 2
        assert row.team == "TP Mazembe"

    def test_empty(self):
        assert compute_scorer_leaderboard([]) == []

    def test_recomputation_is_identical(self):
        matches = [
            _match("m1", A, B, 2, 1, winner=A, goals=[
                Goal("A. Salah", Side.A, 10),
                Goal("W. Ndidi", Side.B, 30),
                Goal("A. Salah", Side.A, 70),
            ]),
            _match("m2", B, C, 1, 1, goals=[
                Goal("W. Ndidi", Side.A, 12),
                Goal("J. Mane", Side.B, 88),
            ]),
        ]
        first = compute_scorer_leaderboard(matches)
        assert first == compute_scorer_leaderboard(matches)
        assert [(r.player, r.goals) for r in first] == [
            ("A. Salah", 2), ("W. Ndidi", 2), ("J. Mane", 1),
        ]


class TestTeamAnalytics:
    def test_empty_overview(self):
        result = compute_team_analytics([])
        assert result.teams == []
        assert result.overview.matches == 0
        assert result.overview.average_goals_per_match == 0.0
        assert result.overview.federation_with_most_wins is None

    def test_wins_follow_recorded_winner(self):
        result = compute_team_analytics([
            _match("qf", A, B, 2, 2, winner=B, round=Round.QUARTERFINAL,
                   result_type=ResultType.PENALTIES),
        ])
        by_id = {r.team.id: r for r in result.teams}
        assert (by_id["b"].wins, by_id["b"].losses, by_id["b"].draws) == (1, 0, 1)
        assert (by_id["a"].wins, by_id["a"].losses, by_id["a"].draws) == (0, 1, 1)
        assert [r.team.id for r in result.teams] == ["b", "a"]

    def test_drawn_friendly_has_no_winner(self):
        result = compute_team_analytics([_match("fr", A, C, 1, 1)])
        assert all(r.wins == 0 and r.losses == 0 and r.draws == 1 for r in result.teams)
        assert result.overview.federation_with_most_wins is None

    def test_overview(self):
        result = compute_team_analytics([
            _match("m1", A, B, 3, 1, winner=A),
            _match("m2", C, B, 2, 0, winner=C),
            _match("m3", A, C, 0, 0),
        ])
        assert result.overview.matches == 3
        assert result.overview.average_goals_per_match == 2.0
        # Egypt and Congo tie on one win; Egypt was seen first
        top = result.overview.federation_with_most_wins
        assert (top.federation, top.wins) == ("Egypt", 1)

    def test_blank_federation_counted_as_unknown(self):
        nobody = Team(id="n", name="Nameless")
        result = compute_team_analytics([_match("m1", nobody, A, 1, 0, winner=nobody)])
        assert result.overview.federation_with_most_wins.federation == "Unknown"

    def test_recomputation_is_identical(self):
        matches = [_match("m1", A, B, 3, 1, winner=A), _match("m2", B, C, 1, 1)]
        assert compute_team_analytics(matches) == compute_team_analytics(matches)


class TestFinalHistory:
    def test_only_finals_newest_first(self):
        old = _match("f1", A, B, 2, 0, winner=A, round=Round.FINAL, minutes=0)
        semi = _match("s1", A, C, 1, 0, winner=A, round=Round.SEMIFINAL, minutes=5)
        new = _match("f2", B, C, 1, 1, winner=C, round=Round.FINAL,
                     result_type=ResultType.PENALTIES, minutes=10)

        history = compute_final_history([old, semi, new])
        assert [h.winner for h in history] == ["TP Mazembe", "Al Ahly"]
        assert history[0].scoreline == "1 - 1 (Penalties)"
        assert history[1].scoreline == "2 - 0"
        assert (history[0].federation_a, history[0].federation_b) == ("Tunisia", "Congo")

    def test_no_finals(self):
        assert compute_final_history([_match("m1", A, B, 1, 0, winner=A)]) == []
