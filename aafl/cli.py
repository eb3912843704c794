#!/usr/bin/env python3
"""
aafl/cli.py - Command line interface for AAFL

Usage:
    aafl serve [--port 8000]
    aafl seed
    aafl register <country> <team_name> --representative NAME --manager NAME
    aafl status
    aafl play [--all] [--no-commentary]
    aafl friendly <team_a> <team_b>
    aafl table | scorers | analytics
    aafl restart
"""

import argparse
import logging
import random
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .bracket import compute_bracket_status
from .commentary import build_commentator
from .config import AaflConfig, load_config
from .errors import TournamentError, TournamentFull
from .federation import (
    Federation,
    country_rating,
    generate_squad,
    validate_country,
)
from .models import Match, Pairing, ResultType, Round, Team
from .pairing import round_pairings
from .standings import compute_league_table, compute_scorer_leaderboard, compute_team_analytics

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

console = Console()

# The eight clubs of the inaugural edition
SEED_CLUBS = [
    ("Kaizer Chiefs", "South Africa"),
    ("Orlando Pirates", "South Africa"),
    ("Mamelodi Sundowns", "South Africa"),
    ("SuperSport United", "South Africa"),
    ("TP Mazembe", "Congo"),
    ("Al Ahly", "Egypt"),
    ("Wydad Casablanca", "Morocco"),
    ("Esperance", "Tunisia"),
]


# ============================================================================
# Helpers
# ============================================================================


def _load(args) -> AaflConfig:
    return load_config(Path(args.config) if args.config else None)


def _open_db(args, config: AaflConfig):
    from portal.db import LeagueDB

    return LeagueDB(args.db or config.portal.db_path)


def _rng(args, config: AaflConfig) -> random.Random:
    seed = args.seed if args.seed is not None else config.tournament.seed
    return random.Random(seed)


def _find_team(teams: list[Team], name: str) -> Team | None:
    wanted = name.strip().lower()
    for t in teams:
        if t.name.lower() == wanted or t.id == name:
            return t
    return None


def _next_fixture(teams: list[Team], by_round: dict[Round, list[Match]], rng: random.Random):
    """Next unplayed bracket fixture as (round, pairing), or None when nothing is open."""
    status = compute_bracket_status(len(teams), by_round)
    round = status.next_round
    if round is None:
        return None

    played = {tid for m in by_round[round] for tid in (m.team_a.id, m.team_b.id)}

    if round is Round.QUARTERFINAL:
        # Draws are not stored, so draw the next tie from teams still waiting
        waiting = [t for t in teams if t.id not in played]
        if len(waiting) < 2:
            return None
        rng.shuffle(waiting)
        return round, Pairing(waiting[0], waiting[1])

    for pairing in round_pairings(round, teams, by_round, rng):
        if not {t.id for t in pairing.teams} & played:
            return round, pairing
    return None


def _print_match(match: Match) -> None:
    label = match.round.value if match.round else "Friendly"
    line = (
        f"[bold]{label}[/bold]  {match.team_a.name} "
        f"[cyan]{match.score_a} - {match.score_b}[/cyan] {match.team_b.name}"
    )
    if match.result_type is not ResultType.REGULATION:
        line += f" ({match.result_type.value})"
    if match.winner:
        line += f"  [green]→ {match.winner.name}[/green]"
    console.print(line)
    for g in match.goals:
        side = match.team_for(g.side)
        console.print(f"    {g.minute:>2}'  {g.scorer} ({side.name})", style="dim")


# ============================================================================
# Commands
# ============================================================================


def cmd_serve(args):
    """Start the tournament portal."""
    import uvicorn

    from portal.server import app

    config = _load(args)
    db_path = args.db or config.portal.db_path
    port = args.port or config.portal.port

    # Set DB path on app state so lifespan picks it up
    app.state.db_path = db_path
    logger.info(f"Starting portal on {config.portal.host}:{port} (db: {db_path})")
    uvicorn.run(app, host=config.portal.host, port=port, log_level="info")
    return 0


def cmd_seed(args):
    """Register the inaugural clubs, skipping any already present."""
    config = _load(args)
    db = _open_db(args, config)

    added = 0
    for name, federation in SEED_CLUBS:
        try:
            db.register_team(name, federation)
            added += 1
        except TournamentFull:
            logger.warning(f"Tournament is full, {name} not registered")
            break
        except ValueError:
            logger.info(f"{name} already registered, skipping")

    logger.info(f"Seeded {added} team(s); {db.team_count()} registered")
    return 0


def cmd_register(args):
    """Register a national federation with a generated squad."""
    from portal.db import new_federation_id

    config = _load(args)
    db = _open_db(args, config)

    try:
        country = validate_country(args.country)
        federation, team = db.register_federation(
            Federation(
                id=new_federation_id(),
                country=country,
                representative=args.representative,
                manager=args.manager,
                team_name=args.team_name,
                players=generate_squad(_rng(args, config)),
            )
        )
    except (TournamentError, ValueError) as e:
        logger.error(str(e))
        return 1

    table = Table(title=f"{team.name} ({country})", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Player", style="bold", min_width=20)
    table.add_column("Pos")
    table.add_column("Rating", justify="right")
    for i, p in enumerate(federation.players, start=1):
        name = f"{p.name} (C)" if p.is_captain else p.name
        table.add_row(str(i), name, p.natural_position.value, str(p.primary_rating))
    console.print(table)
    console.print(f"Country rating: [bold]{country_rating(federation.players)}[/bold]")

    logger.info(f"Registered federation {country} -> team {team.id}")
    return 0


def cmd_status(args):
    """Show bracket stage and results so far."""
    config = _load(args)
    db = _open_db(args, config)
    by_round = db.matches_by_round()
    status = compute_bracket_status(db.team_count(), by_round)

    console.print()
    console.print(f"[bold]Stage:[/bold] {status.stage.value}")
    console.print(status.message)
    console.print()

    for round in Round:
        if not by_round[round]:
            continue
        console.print(f"[bold underline]{round.value}[/bold underline]")
        for m in by_round[round]:
            _print_match(m)
        console.print()
    return 0


def cmd_play(args):
    """Play the next open bracket match (or every remaining one with --all)."""
    config = _load(args)
    db = _open_db(args, config)
    rng = _rng(args, config)
    commentator = None if args.no_commentary else build_commentator(config.commentary)

    from portal.play import play_bracket_match

    played = 0
    while True:
        teams = db.list_teams()
        fixture = _next_fixture(teams, db.matches_by_round(), rng)
        if fixture is None:
            break
        round, pairing = fixture
        try:
            match = play_bracket_match(db, pairing, round, rng, commentator)
        except TournamentError as e:
            logger.error(f"Cannot play {round.value}: {e}")
            return 1
        _print_match(match)
        if match.commentary:
            console.print(match.commentary, style="italic")
        played += 1
        if not args.all:
            break

    status = compute_bracket_status(db.team_count(), db.matches_by_round())
    if played == 0:
        console.print(status.message)
        return 0 if status.champion else 1
    if status.champion:
        console.print(f"\n🏆 [bold yellow]{status.champion.name}[/bold yellow] are champions!")
    return 0


def cmd_friendly(args):
    """Simulate a league friendly between two teams."""
    from portal.play import play_friendly

    config = _load(args)
    db = _open_db(args, config)
    teams = db.list_teams()

    team_a = _find_team(teams, args.team_a)
    team_b = _find_team(teams, args.team_b)
    for name, team in ((args.team_a, team_a), (args.team_b, team_b)):
        if team is None:
            logger.error(f"Unknown team: {name}")
            return 1

    try:
        match = play_friendly(db, Pairing(team_a, team_b), _rng(args, config))
    except TournamentError as e:
        logger.error(str(e))
        return 1
    _print_match(match)
    return 0


def cmd_table(args):
    """Print the league table."""
    config = _load(args)
    rows = compute_league_table(_open_db(args, config).list_matches())

    table = Table(title="League Table", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Team", style="bold", min_width=18)
    for col in ("P", "W", "D", "L", "GF", "GA", "GD", "Pts"):
        table.add_column(col, justify="right")

    for pos, r in enumerate(rows, start=1):
        table.add_row(
            str(pos), r.team.name, str(r.played), str(r.wins), str(r.draws), str(r.losses),
            str(r.goals_for), str(r.goals_against), f"{r.goal_difference:+d}", str(r.points),
        )
    console.print(table)
    return 0


def cmd_scorers(args):
    """Print the top scorers."""
    config = _load(args)
    scorers = compute_scorer_leaderboard(_open_db(args, config).list_matches())

    table = Table(title="Top Scorers", show_header=True, header_style="bold cyan")
    table.add_column("Player", style="bold", min_width=14)
    table.add_column("Team", min_width=18)
    table.add_column("Federation")
    table.add_column("Goals", justify="right")

    for s in scorers[: args.limit]:
        table.add_row(s.player, s.team, s.federation, str(s.goals))
    console.print(table)
    return 0


def cmd_analytics(args):
    """Print team analytics and the tournament overview."""
    config = _load(args)
    result = compute_team_analytics(_open_db(args, config).list_matches())
    overview = result.overview

    console.print()
    console.print(f"[bold]Matches:[/bold] {overview.matches}")
    console.print(f"[bold]Avg goals/match:[/bold] {overview.average_goals_per_match:.2f}")
    if overview.federation_with_most_wins:
        top = overview.federation_with_most_wins
        console.print(f"[bold]Most wins:[/bold] {top.federation} ({top.wins})")
    console.print()

    table = Table(title="Teams", show_header=True, header_style="bold cyan")
    table.add_column("Team", style="bold", min_width=18)
    for col in ("P", "W", "L", "D", "GF", "GA"):
        table.add_column(col, justify="right")
    for r in result.teams:
        table.add_row(
            r.team.name, str(r.played), str(r.wins), str(r.losses), str(r.draws),
            str(r.goals_for), str(r.goals_against),
        )
    console.print(table)
    return 0


def cmd_restart(args):
    """Delete every match; teams stay registered."""
    config = _load(args)
    removed = _open_db(args, config).delete_all_matches()
    logger.info(f"Tournament restarted ({removed} match(es) deleted)")
    return 0


def main():
    parser = argparse.ArgumentParser(
        prog="aafl",
        description="Aura's African Football League tournament engine",
    )
    parser.add_argument("--db", default=None, help="SQLite database path (default: from config)")
    parser.add_argument("--config", default=None, help="Config file (default: ~/.aafl/config.toml)")
    parser.add_argument("--seed", type=int, default=None, help="Fixed RNG seed for reproducible play")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start the HTTP portal")
    serve_parser.add_argument("--port", "-p", type=int, default=None, help="Server port (default: 8000)")
    serve_parser.set_defaults(func=cmd_serve)

    # seed command
    seed_parser = subparsers.add_parser("seed", help="Register the eight inaugural clubs")
    seed_parser.set_defaults(func=cmd_seed)

    # register command
    register_parser = subparsers.add_parser("register", help="Register a federation with a generated squad")
    register_parser.add_argument("country", help="African country the federation represents")
    register_parser.add_argument("team_name", help="Name of the national team")
    register_parser.add_argument("--representative", required=True, help="Federation representative")
    register_parser.add_argument("--manager", required=True, help="Team manager")
    register_parser.set_defaults(func=cmd_register)

    # status command
    status_parser = subparsers.add_parser("status", help="Show bracket stage and results")
    status_parser.set_defaults(func=cmd_status)

    # play command
    play_parser = subparsers.add_parser("play", help="Play the next bracket match")
    play_parser.add_argument("--all", action="store_true", help="Play through to the champion")
    play_parser.add_argument("--no-commentary", action="store_true", help="Skip match commentary")
    play_parser.set_defaults(func=cmd_play)

    # friendly command
    friendly_parser = subparsers.add_parser("friendly", help="Simulate a league friendly")
    friendly_parser.add_argument("team_a", help="Home team name or id")
    friendly_parser.add_argument("team_b", help="Away team name or id")
    friendly_parser.set_defaults(func=cmd_friendly)

    # table / scorers / analytics
    table_parser = subparsers.add_parser("table", help="Show the league table")
    table_parser.set_defaults(func=cmd_table)

    scorers_parser = subparsers.add_parser("scorers", help="Show the top scorers")
    scorers_parser.add_argument("--limit", "-n", type=int, default=10, help="Rows to show (default: 10)")
    scorers_parser.set_defaults(func=cmd_scorers)

    analytics_parser = subparsers.add_parser("analytics", help="Show team analytics")
    analytics_parser.set_defaults(func=cmd_analytics)

    # restart command
    restart_parser = subparsers.add_parser("restart", help="Delete all matches, keep teams")
    restart_parser.set_defaults(func=cmd_restart)

    args = parser.parse_args()
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
