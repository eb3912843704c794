"""Tests for portal.play - playing and recording matches without the web stack."""

import random
import subprocess
import sys
from pathlib import Path

import pytest

from aafl.errors import InsufficientTeams, RoundIncomplete
from aafl.federation import Federation, generate_squad, scorer_names
from aafl.models import Pairing, Round
from portal.db import LeagueDB, new_federation_id
from portal.play import play_bracket_match, play_friendly


@pytest.fixture
def db():
    return LeagueDB(":memory:")


@pytest.fixture
def teams(db):
    return [db.register_team(f"Club {i}", f"Nation {i}") for i in range(8)]


class TestPlayBracketMatch:
    def test_records_match(self, db, teams):
        match = play_bracket_match(db, Pairing(teams[0], teams[1]), Round.QUARTERFINAL, random.Random(1))
        assert db.get_match(match.id) == match
        assert match.winner in (teams[0], teams[1])

    def test_rule_violation_stores_nothing(self, db, teams):
        with pytest.raises(RoundIncomplete):
            play_bracket_match(db, Pairing(teams[0], teams[1]), Round.SEMIFINAL, random.Random(1))
        assert db.match_count() == 0

    def test_needs_full_bracket(self, db):
        a = db.register_team("Al Ahly")
        b = db.register_team("Esperance")
        with pytest.raises(InsufficientTeams):
            play_bracket_match(db, Pairing(a, b), Round.QUARTERFINAL, random.Random(1))

    def test_bracket_goals_credited_to_squads(self, db):
        countries = ("Egypt", "Ghana", "Mali", "Kenya", "Togo", "Chad", "Benin", "Niger")
        outfield = {}
        for i, country in enumerate(countries):
            federation, team = db.register_federation(
                Federation(
                    id=new_federation_id(), country=country, representative="R",
                    manager="M", team_name=f"{country} XI", players=generate_squad(random.Random(i)),
                )
            )
            outfield[team.id] = set(scorer_names(federation.players))
        teams = db.list_teams()

        rng = random.Random(3)
        for a, b in ((teams[0], teams[1]), (teams[2], teams[3]), (teams[4], teams[5])):
            match = play_bracket_match(db, Pairing(a, b), Round.QUARTERFINAL, rng)
            for goal in match.goals:
                assert goal.scorer in outfield[match.team_for(goal.side).id]


class TestPlayFriendly:
    def test_friendly_has_no_round(self, db, teams):
        match = play_friendly(db, Pairing(teams[2], teams[3]), random.Random(4))
        assert match.round is None
        assert db.matches_by_round()[Round.QUARTERFINAL] == []

    def test_goals_come_from_registered_squads(self, db):
        squads = {}
        for country, name in (("Senegal", "Lions"), ("Cameroon", "Indomitable Lions")):
            federation, team = db.register_federation(
                Federation(
                    id=new_federation_id(), country=country, representative="R",
                    manager="M", team_name=name, players=generate_squad(random.Random(len(squads))),
                )
            )
            squads[team.id] = set(scorer_names(federation.players))
        a, b = (db.get_team(tid) for tid in squads)

        for seed in range(10):
            match = play_friendly(db, Pairing(a, b), random.Random(seed))
            for goal in match.goals:
                assert goal.scorer in squads[match.team_for(goal.side).id]


def test_cli_play_path_does_not_import_fastapi():
    code = (
        "import sys\n"
        "import aafl.cli, portal.play\n"
        "assert 'fastapi' not in sys.modules, 'fastapi was imported'\n"
    )
    result = subprocess.run(
        [sys.executable, "-c", code],
        capture_output=True,
        text=True,
        cwd=Path(__file__).resolve().parent.parent,
    )
    assert result.returncode == 0, result.stderr
