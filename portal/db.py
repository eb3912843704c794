"""
portal/db.py - SQLite storage for the tournament portal.

All queries go through LeagueDB. One instance per server lifetime,
backed by a single SQLite file (or :memory: for tests).

Matches are append-only: created once, never updated, removed only by a
tournament restart or by deleting one of their teams.
"""

import json
import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from typing import Any

from aafl.bracket import check_round_entry, group_by_round
from aafl.errors import DuplicateFederation, DuplicateRoundEntry, TournamentFull
from aafl.federation import Federation, Player
from aafl.models import BRACKET_SIZE, Goal, Match, Pairing, ResultType, Round, Team


class LeagueDB:
    """Thin wrapper around SQLite for team, federation and match storage."""

    def __init__(self, path: str = "aafl.db"):
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        # Serialises every check-then-insert (team cap, round entries)
        self._write_lock = threading.Lock()
        self._create_tables()

    def _create_tables(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS teams (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL UNIQUE,
                federation TEXT DEFAULT '',
                created_at TEXT
            );

            CREATE TABLE IF NOT EXISTS federations (
                id TEXT PRIMARY KEY,
                country TEXT NOT NULL UNIQUE,
                representative TEXT NOT NULL,
                manager TEXT NOT NULL,
                team_id TEXT NOT NULL UNIQUE,
                squad TEXT DEFAULT '[]',
                registered_at TEXT
            );

            CREATE TABLE IF NOT EXISTS matches (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                team_a_id TEXT NOT NULL,
                team_b_id TEXT NOT NULL,
                pair_key TEXT,
                score_a INTEGER NOT NULL,
                score_b INTEGER NOT NULL,
                goals TEXT DEFAULT '[]',
                commentary TEXT,
                result_type TEXT DEFAULT '90min',
                round TEXT,
                winner_id TEXT,
                created_at TEXT
            );

            -- One match per pairing per round. Friendlies have round NULL and
            -- are never constrained (NULLs are distinct in a UNIQUE index).
            CREATE UNIQUE INDEX IF NOT EXISTS idx_matches_round_pair
                ON matches(round, pair_key);
            """
        )

    # ------------------------------------------------------------------
    # Teams
    # ------------------------------------------------------------------

    def register_team(self, name: str, federation: str = "") -> Team:
        """Register a team.

        Raises:
            TournamentFull: all BRACKET_SIZE slots are taken.
            ValueError: a team with this name already exists.
        """
        with self._write_lock:
            team = self._insert_team(name, federation)
            self._conn.commit()
        return team

    def get_team(self, team_id: str) -> Team | None:
        row = self._conn.execute("SELECT * FROM teams WHERE id = ?", (team_id,)).fetchone()
        return _row_to_team(row) if row else None

    def list_teams(self) -> list[Team]:
        """All teams, alphabetical."""
        rows = self._conn.execute("SELECT * FROM teams ORDER BY name ASC").fetchall()
        return [_row_to_team(r) for r in rows]

    def team_count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM teams").fetchone()[0]

    def delete_team_and_its_matches(self, team_id: str) -> int | None:
        """Delete a team and every match it played. Returns matches removed, or None."""
        with self._write_lock:
            if self.get_team(team_id) is None:
                return None
            cursor = self._conn.execute(
                "DELETE FROM matches WHERE team_a_id = ? OR team_b_id = ?",
                (team_id, team_id),
            )
            removed = cursor.rowcount
            self._conn.execute("DELETE FROM federations WHERE team_id = ?", (team_id,))
            self._conn.execute("DELETE FROM teams WHERE id = ?", (team_id,))
            self._conn.commit()
        return removed

    # ------------------------------------------------------------------
    # Federations
    # ------------------------------------------------------------------

    def register_federation(self, federation: Federation) -> tuple[Federation, Team]:
        """Store a federation together with the team it enters.

        The team and the federation are written in one transaction, so a
        rejected registration leaves nothing behind.

        Raises:
            DuplicateFederation: the country already has a federation.
            TournamentFull: all BRACKET_SIZE slots are taken.
            ValueError: a team with this name already exists.
        """
        with self._write_lock:
            taken = self._conn.execute(
                "SELECT 1 FROM federations WHERE country = ?", (federation.country,)
            ).fetchone()
            if taken:
                raise DuplicateFederation(
                    f"Federation for {federation.country} is already registered"
                )

            team = self._insert_team(federation.team_name, federation.country)
            stored = Federation(
                id=federation.id,
                country=federation.country,
                representative=federation.representative.strip(),
                manager=federation.manager.strip(),
                team_name=team.name,
                players=list(federation.players),
                team_id=team.id,
                registered_at=federation.registered_at,
            )
            try:
                self._conn.execute(
                    "INSERT INTO federations (id, country, representative, manager, team_id, "
                    "squad, registered_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        stored.id,
                        stored.country,
                        stored.representative,
                        stored.manager,
                        stored.team_id,
                        json.dumps([p.to_dict() for p in stored.players]),
                        stored.registered_at.isoformat(),
                    ),
                )
                self._conn.commit()
            except sqlite3.IntegrityError as e:
                self._conn.rollback()
                raise DuplicateFederation(
                    f"Federation for {federation.country} is already registered"
                ) from e
        return stored, team

    def get_federation(self, federation_id: str) -> Federation | None:
        row = self._conn.execute(
            _FEDERATION_QUERY + " WHERE f.id = ?", (federation_id,)
        ).fetchone()
        return _row_to_federation(row) if row else None

    def get_federation_for_team(self, team_id: str) -> Federation | None:
        row = self._conn.execute(
            _FEDERATION_QUERY + " WHERE f.team_id = ?", (team_id,)
        ).fetchone()
        return _row_to_federation(row) if row else None

    def list_federations(self) -> list[Federation]:
        """All federations, by country."""
        rows = self._conn.execute(_FEDERATION_QUERY + " ORDER BY f.country ASC").fetchall()
        return [_row_to_federation(r) for r in rows]

    def squad_for_team(self, team_id: str) -> list[Player]:
        """The team's registered squad, or [] for a club without a federation."""
        federation = self.get_federation_for_team(team_id)
        return federation.players if federation else []

    def replace_squad(self, federation_id: str, players: list[Player]) -> Federation | None:
        """Swap in a new squad. Returns the updated federation, or None."""
        with self._write_lock:
            cursor = self._conn.execute(
                "UPDATE federations SET squad = ? WHERE id = ?",
                (json.dumps([p.to_dict() for p in players]), federation_id),
            )
            self._conn.commit()
        if cursor.rowcount == 0:
            return None
        return self.get_federation(federation_id)

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    def create_match(self, match: Match) -> Match:
        """Persist a resolved match.

        Bracket matches are checked and inserted under one lock: the round
        must have a free slot and neither team may already have played in it.

        Raises:
            DuplicateRoundEntry: the slot or pairing is already taken.
        """
        pair_key = None
        if match.round is not None:
            pair_key = ":".join(sorted((match.team_a.id, match.team_b.id)))

        with self._write_lock:
            if match.round is not None:
                existing = self.list_matches(round=match.round)
                if len(existing) >= match.round.expected_matches:
                    raise DuplicateRoundEntry(
                        f"All {match.round.expected_matches} "
                        f"{match.round.value.lower()} match(es) already recorded"
                    )
                check_round_entry(
                    match.round,
                    Pairing(match.team_a, match.team_b),
                    {match.round: existing},
                )

            try:
                self._conn.execute(
                    "INSERT INTO matches (id, team_a_id, team_b_id, pair_key, score_a, score_b, "
                    "goals, commentary, result_type, round, winner_id, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        match.id,
                        match.team_a.id,
                        match.team_b.id,
                        pair_key,
                        match.score_a,
                        match.score_b,
                        json.dumps([g.to_dict() for g in match.goals]),
                        match.commentary,
                        match.result_type.value,
                        match.round.value if match.round else None,
                        match.winner.id if match.winner else None,
                        match.created_at.isoformat(),
                    ),
                )
                self._conn.commit()
            except sqlite3.IntegrityError as e:
                self._conn.rollback()
                raise DuplicateRoundEntry(
                    f"{match.team_a.name} vs {match.team_b.name} is already recorded"
                ) from e
        return match

    def get_match(self, match_id: str) -> Match | None:
        row = self._conn.execute("SELECT * FROM matches WHERE id = ?", (match_id,)).fetchone()
        if row is None:
            return None
        return _row_to_match(row, self._teams_by_id())

    def list_matches(
        self,
        round: Round | None = None,
        newest_first: bool = False,
        friendlies: bool = True,
    ) -> list[Match]:
        """Matches in creation order (or newest first for display).

        round filters to one bracket round; friendlies=False drops league-only matches.
        """
        query = "SELECT * FROM matches"
        params: tuple[Any, ...] = ()
        if round is not None:
            query += " WHERE round = ?"
            params = (round.value,)
        elif not friendlies:
            query += " WHERE round IS NOT NULL"
        query += " ORDER BY seq " + ("DESC" if newest_first else "ASC")

        rows = self._conn.execute(query, params).fetchall()
        teams = self._teams_by_id()
        return [_row_to_match(r, teams) for r in rows]

    def matches_by_round(self) -> dict[Round, list[Match]]:
        """Bracket matches bucketed by round, each in creation order."""
        return group_by_round(self.list_matches(friendlies=False))

    def match_count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM matches").fetchone()[0]

    def delete_all_matches(self) -> int:
        """Wipe the match log (tournament restart). Teams are untouched."""
        with self._write_lock:
            cursor = self._conn.execute("DELETE FROM matches")
            self._conn.commit()
        return cursor.rowcount

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _teams_by_id(self) -> dict[str, Team]:
        return {t.id: t for t in self.list_teams()}

    def _insert_team(self, name: str, federation: str) -> Team:
        """Insert without committing. Caller holds _write_lock."""
        if self.team_count() >= BRACKET_SIZE:
            raise TournamentFull(f"Tournament is full ({BRACKET_SIZE} teams registered)")
        team = Team(id=str(uuid.uuid4()), name=name.strip(), federation=federation.strip())
        try:
            self._conn.execute(
                "INSERT INTO teams (id, name, federation, created_at) VALUES (?, ?, ?, ?)",
                (team.id, team.name, team.federation, _now()),
            )
        except sqlite3.IntegrityError as e:
            self._conn.rollback()
            raise ValueError(f"A team named {team.name!r} is already registered") from e
        return team


_FEDERATION_QUERY = (
    "SELECT f.*, t.name AS team_name FROM federations f JOIN teams t ON t.id = f.team_id"
)


def new_match_id() -> str:
    return str(uuid.uuid4())


def new_federation_id() -> str:
    return str(uuid.uuid4())


def _row_to_team(row: sqlite3.Row) -> Team:
    return Team(id=row["id"], name=row["name"], federation=row["federation"] or "")


def _row_to_federation(row: sqlite3.Row) -> Federation:
    return Federation(
        id=row["id"],
        country=row["country"],
        representative=row["representative"],
        manager=row["manager"],
        team_name=row["team_name"],
        players=[Player.from_dict(p) for p in json.loads(row["squad"] or "[]")],
        team_id=row["team_id"],
        registered_at=datetime.fromisoformat(row["registered_at"]),
    )


def _row_to_match(row: sqlite3.Row, teams: dict[str, Team]) -> Match:
    team_a = teams.get(row["team_a_id"]) or Team(id=row["team_a_id"], name="Unknown")
    team_b = teams.get(row["team_b_id"]) or Team(id=row["team_b_id"], name="Unknown")
    winner = None
    if row["winner_id"] is not None:
        winner = team_a if row["winner_id"] == team_a.id else team_b
    return Match(
        id=row["id"],
        team_a=team_a,
        team_b=team_b,
        score_a=row["score_a"],
        score_b=row["score_b"],
        goals=[Goal.from_dict(g) for g in json.loads(row["goals"] or "[]")],
        result_type=ResultType(row["result_type"]),
        round=Round(row["round"]) if row["round"] else None,
        winner=winner,
        commentary=row["commentary"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _now() -> str:
    """ISO timestamp in UTC."""
    return datetime.now(timezone.utc).isoformat()
