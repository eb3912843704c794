"""Tests for aafl.cli - seed and play a tournament from the command line."""

import sys

import pytest

from aafl.bracket import Stage, compute_bracket_status
from aafl.cli import SEED_CLUBS, main
from aafl.models import Round
from portal.db import LeagueDB


@pytest.fixture
def run(tmp_path, monkeypatch):
    """Invoke the CLI against a temp DB and an absent config file."""
    db_path = str(tmp_path / "league.db")
    config_path = str(tmp_path / "missing.toml")

    def _run(*argv):
        monkeypatch.setattr(
            sys, "argv",
            ["aafl", "--db", db_path, "--config", config_path, "--seed", "7", *argv],
        )
        with pytest.raises(SystemExit) as exc:
            main()
        return exc.value.code

    _run.db_path = db_path
    return _run


class TestSeed:
    def test_registers_eight_clubs(self, run):
        assert run("seed") == 0
        db = LeagueDB(run.db_path)
        assert sorted(t.name for t in db.list_teams()) == sorted(n for n, _ in SEED_CLUBS)

    def test_reseeding_skips_existing(self, run):
        run("seed")
        assert run("seed") == 0
        assert LeagueDB(run.db_path).team_count() == 8

    def test_seed_stops_when_full(self, run):
        db = LeagueDB(run.db_path)
        db.register_team("Enyimba", "Nigeria")
        assert run("seed") == 0
        names = {t.name for t in LeagueDB(run.db_path).list_teams()}
        assert len(names) == 8
        assert "Enyimba" in names


class TestRegister:
    def test_registers_federation(self, run):
        assert run("register", "ghana", "Black Stars", "--representative", "Ama", "--manager", "Otto") == 0
        (federation,) = LeagueDB(run.db_path).list_federations()
        assert federation.country == "Ghana"
        assert len(federation.players) == 23

    def test_unknown_country(self, run):
        assert run("register", "Atlantis", "X", "--representative", "A", "--manager", "B") == 1
        assert LeagueDB(run.db_path).team_count() == 0

    def test_duplicate_country(self, run):
        run("register", "Ghana", "Black Stars", "--representative", "A", "--manager", "B")
        assert run("register", "Ghana", "Ghana B", "--representative", "A", "--manager", "B") == 1


class TestPlay:
    def test_without_teams_fails(self, run):
        assert run("play", "--no-commentary") == 1

    def test_plays_one_match(self, run):
        run("seed")
        assert run("play", "--no-commentary") == 0
        db = LeagueDB(run.db_path)
        assert len(db.matches_by_round()[Round.QUARTERFINAL]) == 1

    def test_all_plays_to_champion(self, run):
        run("seed")
        assert run("play", "--all", "--no-commentary") == 0

        db = LeagueDB(run.db_path)
        by_round = db.matches_by_round()
        assert [len(by_round[r]) for r in Round] == [4, 2, 1]
        status = compute_bracket_status(db.team_count(), by_round)
        assert status.stage is Stage.COMPLETED
        assert status.champion is not None

        # Nothing left to play
        assert run("play", "--no-commentary") == 0

    def test_restart(self, run):
        run("seed")
        run("play", "--all", "--no-commentary")
        assert run("restart") == 0
        assert LeagueDB(run.db_path).match_count() == 0


class TestViews:
    def test_friendly_and_tables(self, run):
        run("seed")
        assert run("friendly", "Al Ahly", "esperance") == 0
        assert LeagueDB(run.db_path).match_count() == 1
        for command in ("status", "table", "scorers", "analytics"):
            assert run(command) == 0

    def test_friendly_unknown_team(self, run):
        run("seed")
        assert run("friendly", "Al Ahly", "Enyimba") == 1
