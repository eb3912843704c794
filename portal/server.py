"""
portal/server.py - FastAPI tournament portal for AAFL.

Endpoints:
    GET    /health                        Server health check
    GET    /teams                         Registered teams
    POST   /teams                         Register a team
    DELETE /teams/{id}                    Delete a team and its matches

Federations:
    GET    /federations                   Registered federations
    GET    /federations/countries         Countries that may register
    POST   /federations/register          Register a federation, its team and squad
    GET    /federations/{id}              One federation with its squad
    POST   /federations/{id}/regenerate-squad  Draw a fresh squad

Admin:
    GET    /admin/dashboard               Counts + current stage

Tournament (admin):
    GET    /tournament/status             Stage, counts, champion
    GET    /tournament/pairings/{round}   Pairings for a round
    POST   /tournament/play-match         Resolve + record a bracket match
    POST   /tournament/restart            Delete every match
    GET    /tournament/matches/{round}    Matches of a round, creation order
    POST   /league/simulate-match         Quick friendly, draws allowed

Public:
    GET    /matches                       All matches, newest first
    GET    /bracket                       Full bracket view
    GET    /leaderboard                   League table
    GET    /top-scorers                   Scorer leaderboard
    GET    /analytics                     Team analytics + overview
    GET    /history                       Past finals
"""

import logging
import random
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from aafl.bracket import compute_bracket_status
from aafl.commentary import Commentator, build_commentator
from aafl.config import load_config
from aafl.errors import (
    DuplicateFederation,
    DuplicateRoundEntry,
    InsufficientTeams,
    InvalidFederation,
    InvalidTeamReference,
    RoundIncomplete,
    TournamentError,
    TournamentFull,
)
from aafl.federation import (
    AFRICAN_COUNTRIES,
    Federation,
    Player,
    Position,
    generate_squad,
    validate_country,
    validate_squad,
)
from aafl.models import Match, Pairing, Round, Team
from aafl.pairing import round_pairings
from aafl.standings import (
    compute_final_history,
    compute_league_table,
    compute_scorer_leaderboard,
    compute_team_analytics,
)

from .db import LeagueDB, new_federation_id
from .play import play_bracket_match, play_friendly

logger = logging.getLogger(__name__)

# HTTP status for each rule violation
_ERROR_STATUS = {
    InsufficientTeams: 400,
    RoundIncomplete: 409,
    DuplicateRoundEntry: 409,
    InvalidTeamReference: 404,
    TournamentFull: 409,
    InvalidFederation: 400,
    DuplicateFederation: 409,
}


# Globals: set during lifespan, swapped out by tests
_db: LeagueDB | None = None
_rng: random.Random = random.Random()
_commentator: Commentator | None = None
# Draws for display only (upcoming pairings), kept off the seeded match stream
_display_rng: random.Random = random.Random()


def get_db() -> LeagueDB:
    assert _db is not None, "DB not initialized"
    return _db


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _db, _rng, _display_rng, _commentator
    config = load_config()
    db_path = getattr(app.state, "db_path", config.portal.db_path)
    _db = LeagueDB(db_path)
    _rng = random.Random(config.tournament.seed)
    _display_rng = random.Random(config.tournament.seed)
    _commentator = build_commentator(config.commentary)
    logger.info(f"Portal DB initialized: {db_path}")
    logger.info(
        f"Commentary: {type(_commentator).__name__ if _commentator else 'disabled'} | "
        f"seed: {config.tournament.seed if config.tournament.seed is not None else 'random'}"
    )

    yield
    _db = None


app = FastAPI(title="AAFL Tournament Portal", lifespan=lifespan)

# Allow the website (and other frontends) to call portal endpoints
from starlette.middleware.cors import CORSMiddleware

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ======================================================================
# Request/Response Models
# ======================================================================


class RegisterTeamRequest(BaseModel):
    name: str = Field(min_length=1)
    federation: str = ""


class TeamResponse(BaseModel):
    id: str
    name: str
    federation: str = ""


class PlayerModel(BaseModel):
    name: str = Field(min_length=1)
    natural_position: Position
    ratings: dict[Position, int]
    is_captain: bool = False


class RegisterFederationRequest(BaseModel):
    country: str = Field(min_length=1)
    representative: str = Field(min_length=1)
    manager: str = Field(min_length=1)
    team_name: str = Field(min_length=1)
    players: list[PlayerModel] | None = None  # Generated when omitted


class FederationResponse(BaseModel):
    id: str
    country: str
    representative: str
    manager: str
    team_name: str
    team_id: str | None = None
    country_rating: float
    captain: str | None = None
    players: list[PlayerModel] = []
    registered_at: str


class PlayMatchRequest(BaseModel):
    team_a_id: str
    team_b_id: str
    round: Round = Round.QUARTERFINAL
    commentary: bool = True


class FriendlyRequest(BaseModel):
    team_a_id: str
    team_b_id: str


class GoalResponse(BaseModel):
    scorer: str
    team: str  # "A" or "B"
    minute: int


class MatchResponse(BaseModel):
    id: str
    team_a: TeamResponse
    team_b: TeamResponse
    score_a: int
    score_b: int
    goals: list[GoalResponse] = []
    commentary: str | None = None
    result_type: str
    round: str | None = None
    winner: TeamResponse | None = None
    created_at: str


class StatusResponse(BaseModel):
    stage: str
    status: str  # Coarse phase label
    team_count: int
    can_start: bool
    next_round: str | None = None
    quarterfinals_played: int
    semifinals_played: int
    final_played: int
    champion: TeamResponse | None = None
    message: str


class HealthResponse(BaseModel):
    status: str
    team_count: int
    match_count: int
    stage: str


# ======================================================================
# Helpers
# ======================================================================


def _team_dict(team: Team | None) -> dict[str, Any] | None:
    if team is None:
        return None
    return {"id": team.id, "name": team.name, "federation": team.federation}


def _match_dict(m: Match) -> dict[str, Any]:
    return {
        "id": m.id,
        "team_a": _team_dict(m.team_a),
        "team_b": _team_dict(m.team_b),
        "score_a": m.score_a,
        "score_b": m.score_b,
        "goals": [g.to_dict() for g in m.goals],
        "commentary": m.commentary,
        "result_type": m.result_type.value,
        "round": m.round.value if m.round else None,
        "winner": _team_dict(m.winner),
        "created_at": m.created_at.isoformat(),
    }


def _pairing_dict(p: Pairing) -> dict[str, Any]:
    return {"team_a": _team_dict(p.team_a), "team_b": _team_dict(p.team_b)}


def _federation_dict(f: Federation) -> dict[str, Any]:
    captain = f.captain
    return {
        "id": f.id,
        "country": f.country,
        "representative": f.representative,
        "manager": f.manager,
        "team_name": f.team_name,
        "team_id": f.team_id,
        "country_rating": f.country_rating,
        "captain": captain.name if captain else None,
        "players": [p.to_dict() for p in f.players],
        "registered_at": f.registered_at.isoformat(),
    }


def _reject(e: TournamentError) -> HTTPException:
    """Map a rule violation onto an HTTP error with a readable reason."""
    for exc_type, status in _ERROR_STATUS.items():
        if isinstance(e, exc_type):
            return HTTPException(status_code=status, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def _lookup_pair(db: LeagueDB, team_a_id: str, team_b_id: str) -> tuple[Team, Team]:
    if team_a_id == team_b_id:
        raise InvalidTeamReference("Choose two different teams")
    team_a = db.get_team(team_a_id)
    team_b = db.get_team(team_b_id)
    missing = [tid for tid, t in ((team_a_id, team_a), (team_b_id, team_b)) if t is None]
    if missing:
        raise InvalidTeamReference(f"Team(s) not found: {', '.join(missing)}")
    return team_a, team_b


def _status_dict(db: LeagueDB) -> dict[str, Any]:
    status = compute_bracket_status(db.team_count(), db.matches_by_round())
    return {
        "stage": status.stage.value,
        "status": status.stage.phase,
        "team_count": status.team_count,
        "can_start": status.can_start,
        "next_round": status.next_round.value if status.next_round else None,
        "quarterfinals_played": status.played[Round.QUARTERFINAL],
        "semifinals_played": status.played[Round.SEMIFINAL],
        "final_played": status.played[Round.FINAL],
        "champion": _team_dict(status.champion),
        "message": status.message,
    }


# ======================================================================
# Endpoints
# ======================================================================


@app.get("/health", response_model=HealthResponse)
def health() -> dict[str, Any]:
    """Server health check."""
    db = get_db()
    status = compute_bracket_status(db.team_count(), db.matches_by_round())
    return {
        "status": "ok",
        "team_count": status.team_count,
        "match_count": db.match_count(),
        "stage": status.stage.value,
    }


@app.get("/teams", response_model=list[TeamResponse])
def list_teams() -> list[dict[str, Any]]:
    """Registered teams, alphabetical."""
    return [_team_dict(t) for t in get_db().list_teams()]


@app.post("/teams", response_model=TeamResponse, status_code=201)
def register_team(req: RegisterTeamRequest) -> dict[str, Any]:
    """Register a club for the tournament."""
    db = get_db()
    try:
        team = db.register_team(req.name, req.federation)
    except TournamentError as e:
        raise _reject(e)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    logger.info(f"Registered team {team.name} ({team.federation or 'no federation'}) -> {team.id}")
    return _team_dict(team)


@app.delete("/teams/{team_id}")
def delete_team(team_id: str) -> dict[str, Any]:
    """Delete a team and cascade to every match it played."""
    db = get_db()
    team = db.get_team(team_id)
    removed = db.delete_team_and_its_matches(team_id)
    if team is None or removed is None:
        raise HTTPException(status_code=404, detail="Team not found")
    logger.info(f"Deleted team {team.name} and {removed} match(es)")
    return {
        "message": (
            f'Team "{team.name}" and {removed} associated match(es) '
            "have been deleted successfully"
        ),
        "deleted_team": team.name,
        "deleted_matches": removed,
    }


# ======================================================================
# Federations
# ======================================================================


@app.get("/federations/countries")
def federation_countries() -> list[str]:
    """Countries a federation may register for."""
    return list(AFRICAN_COUNTRIES)


@app.get("/federations", response_model=list[FederationResponse])
def list_federations() -> list[dict[str, Any]]:
    """Registered federations, by country."""
    return [_federation_dict(f) for f in get_db().list_federations()]


@app.post("/federations/register", status_code=201)
def register_federation(req: RegisterFederationRequest) -> dict[str, Any]:
    """Register a federation and enter its team, with a supplied or generated squad."""
    db = get_db()
    try:
        country = validate_country(req.country)
        if req.players is None:
            players = generate_squad(_rng)
        else:
            players = validate_squad([
                Player(p.name.strip(), p.natural_position, dict(p.ratings), p.is_captain)
                for p in req.players
            ])
        federation, team = db.register_federation(
            Federation(
                id=new_federation_id(),
                country=country,
                representative=req.representative,
                manager=req.manager,
                team_name=req.team_name,
                players=players,
            )
        )
    except TournamentError as e:
        raise _reject(e)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))

    logger.info(
        f"Registered federation {country} ({team.name}, rating {federation.country_rating}) "
        f"-> {federation.id}"
    )
    return {
        "message": f"Federation Registered Successfully: {country} - Squad Ready for Tournament",
        "federation": _federation_dict(federation),
        "team": _team_dict(team),
    }


@app.get("/federations/{federation_id}", response_model=FederationResponse)
def get_federation(federation_id: str) -> dict[str, Any]:
    """One federation with its full squad."""
    federation = get_db().get_federation(federation_id)
    if federation is None:
        raise HTTPException(status_code=404, detail="Federation not found")
    return _federation_dict(federation)


@app.post("/federations/{federation_id}/regenerate-squad", response_model=FederationResponse)
def regenerate_squad(federation_id: str) -> dict[str, Any]:
    """Replace a federation's squad with a freshly generated one."""
    federation = get_db().replace_squad(federation_id, generate_squad(_rng))
    if federation is None:
        raise HTTPException(status_code=404, detail="Federation not found")
    logger.info(f"Regenerated squad for {federation.country} (rating {federation.country_rating})")
    return _federation_dict(federation)


@app.get("/admin/dashboard")
def dashboard() -> dict[str, Any]:
    """Admin overview counts."""
    db = get_db()
    status = compute_bracket_status(db.team_count(), db.matches_by_round())
    return {
        "team_count": status.team_count,
        "match_count": db.match_count(),
        "stage": status.stage.value,
        "message": status.message,
    }


@app.get("/tournament/status", response_model=StatusResponse)
def tournament_status() -> dict[str, Any]:
    """Where the bracket stands, re-derived from the match log."""
    return _status_dict(get_db())


@app.get("/tournament/pairings/{round}")
def tournament_pairings(round: Round) -> dict[str, Any]:
    """Pairings for a round. Fails unless the previous round is fully decided."""
    db = get_db()
    try:
        pairings = round_pairings(round, db.list_teams(), db.matches_by_round(), _display_rng)
    except TournamentError as e:
        raise _reject(e)
    return {"round": round.value, "pairings": [_pairing_dict(p) for p in pairings]}


@app.post("/tournament/play-match", response_model=MatchResponse)
def play_match(req: PlayMatchRequest) -> dict[str, Any]:
    """Resolve a bracket match and record it. Nothing is stored on failure."""
    db = get_db()

    try:
        team_a, team_b = _lookup_pair(db, req.team_a_id, req.team_b_id)
        match = play_bracket_match(
            db, Pairing(team_a, team_b), req.round, _rng,
            commentator=_commentator if req.commentary else None,
        )
    except TournamentError as e:
        logger.info(f"Rejected {req.round.value} match {req.team_a_id} vs {req.team_b_id}: {e}")
        raise _reject(e)
    return _match_dict(match)


@app.post("/league/simulate-match", response_model=MatchResponse)
def simulate_league_match(req: FriendlyRequest) -> dict[str, Any]:
    """Quick friendly for the league table. Level scores stay a draw."""
    db = get_db()
    try:
        team_a, team_b = _lookup_pair(db, req.team_a_id, req.team_b_id)
        match = play_friendly(db, Pairing(team_a, team_b), _rng)
    except TournamentError as e:
        raise _reject(e)
    return _match_dict(match)


@app.post("/tournament/restart")
def restart_tournament() -> dict[str, Any]:
    """Delete every match. Teams stay registered."""
    db = get_db()
    removed = db.delete_all_matches()
    logger.info(f"Tournament restarted ({removed} match(es) deleted)")
    status = _status_dict(db)
    return {
        "success": True,
        "deleted_matches": removed,
        "stage": status["stage"],
        "message": "Tournament reset to Quarterfinals",
    }


@app.get("/tournament/matches/{round}", response_model=list[MatchResponse])
def round_matches(round: Round) -> list[dict[str, Any]]:
    """Matches of one round in the order they were played."""
    return [_match_dict(m) for m in get_db().list_matches(round=round)]


@app.get("/matches", response_model=list[MatchResponse])
def list_matches() -> list[dict[str, Any]]:
    """Every match, newest first."""
    return [_match_dict(m) for m in get_db().list_matches(newest_first=True)]


@app.get("/bracket")
def bracket() -> dict[str, Any]:
    """Public bracket: stage, champion, and per round the results plus upcoming pairings."""
    db = get_db()
    teams = db.list_teams()
    by_round = db.matches_by_round()
    status = compute_bracket_status(len(teams), by_round)

    rounds = {}
    for r in Round:
        played = by_round[r]
        upcoming: list[Pairing] = []
        if not played and status.next_round is r:
            try:
                upcoming = round_pairings(r, teams, by_round, _display_rng)
            except TournamentError as e:
                logger.debug(f"No {r.value} pairings yet: {e}")
        rounds[r.value] = {
            "matches": [_match_dict(m) for m in played],
            "pairings": [_pairing_dict(p) for p in upcoming],
        }

    return {
        "status": status.stage.phase,
        "stage": status.stage.value,
        "team_count": status.team_count,
        "champion": status.champion.name if status.champion else None,
        "rounds": rounds,
    }


@app.get("/leaderboard")
def leaderboard() -> list[dict[str, Any]]:
    """League table over every recorded match."""
    rows = compute_league_table(get_db().list_matches())
    return [
        {
            "team": _team_dict(r.team),
            "played": r.played,
            "wins": r.wins,
            "draws": r.draws,
            "losses": r.losses,
            "goals_for": r.goals_for,
            "goals_against": r.goals_against,
            "goal_difference": r.goal_difference,
            "points": r.points,
        }
        for r in rows
    ]


@app.get("/top-scorers")
def top_scorers() -> dict[str, Any]:
    """Goals per scorer, most first."""
    scorers = compute_scorer_leaderboard(get_db().list_matches())
    return {
        "top_scorers": [
            {"player": s.player, "goals": s.goals, "team": s.team, "federation": s.federation}
            for s in scorers
        ],
        "count": len(scorers),
    }


@app.get("/analytics")
def analytics() -> dict[str, Any]:
    """Team win/loss splits and tournament overview."""
    result = compute_team_analytics(get_db().list_matches())
    top = result.overview.federation_with_most_wins
    return {
        "overview": {
            "matches": result.overview.matches,
            "average_goals_per_match": result.overview.average_goals_per_match,
            "federation_with_most_wins": (
                {"federation": top.federation, "wins": top.wins} if top else None
            ),
        },
        "teams": [
            {
                "team": _team_dict(r.team),
                "played": r.played,
                "wins": r.wins,
                "losses": r.losses,
                "draws": r.draws,
                "goals_for": r.goals_for,
                "goals_against": r.goals_against,
            }
            for r in result.teams
        ],
    }


@app.get("/history")
def history() -> list[dict[str, Any]]:
    """Every Final played, newest first."""
    return [
        {
            "date": f.date,
            "finalist_a": f.finalist_a,
            "finalist_b": f.finalist_b,
            "federation_a": f.federation_a,
            "federation_b": f.federation_b,
            "scoreline": f.scoreline,
            "winner": f.winner,
        }
        for f in compute_final_history(get_db().list_matches())
    ]
