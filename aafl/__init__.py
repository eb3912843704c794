"""
AAFL - Single-elimination tournament engine for Aura's African Football League

Eight teams, three rounds, one champion. Registers federations and
their squads, resolves matches, draws pairings, tracks bracket progress and
folds the match log into standings.
"""

__version__ = "0.1.0"

from .errors import (
    TournamentError,
    InsufficientTeams,
    RoundIncomplete,
    DuplicateRoundEntry,
    InvalidTeamReference,
    ExternalGenerationFailure,
    TournamentFull,
    InvalidFederation,
    DuplicateFederation,
)

from .models import (
    BRACKET_SIZE,
    Team,
    Goal,
    Side,
    Round,
    ResultType,
    Pairing,
    MatchResult,
    Match,
)

from .federation import (
    Position,
    Player,
    Federation,
    generate_squad,
    country_rating,
)

from .resolver import resolve_match, simulate_friendly

from .commentary import (
    Commentator,
    TemplateCommentator,
    ChatCommentator,
    build_commentator,
)

from .pairing import (
    quarterfinal_pairings,
    semifinal_pairings,
    final_pairing,
    round_pairings,
)

from .bracket import (
    Stage,
    BracketStatus,
    compute_bracket_status,
    group_by_round,
    require_round_open,
)

from .standings import (
    compute_league_table,
    compute_scorer_leaderboard,
    compute_team_analytics,
    compute_final_history,
)

__all__ = [
    # Version
    "__version__",
    # Errors
    "TournamentError",
    "InsufficientTeams",
    "RoundIncomplete",
    "DuplicateRoundEntry",
    "InvalidTeamReference",
    "ExternalGenerationFailure",
    "TournamentFull",
    "InvalidFederation",
    "DuplicateFederation",
    # Data types
    "BRACKET_SIZE",
    "Team",
    "Goal",
    "Side",
    "Round",
    "ResultType",
    "Pairing",
    "MatchResult",
    "Match",
    # Federations
    "Position",
    "Player",
    "Federation",
    "generate_squad",
    "country_rating",
    # Resolver
    "resolve_match",
    "simulate_friendly",
    # Commentary
    "Commentator",
    "TemplateCommentator",
    "ChatCommentator",
    "build_commentator",
    # Pairings
    "quarterfinal_pairings",
    "semifinal_pairings",
    "final_pairing",
    "round_pairings",
    # Bracket
    "Stage",
    "BracketStatus",
    "compute_bracket_status",
    "group_by_round",
    "require_round_open",
    # Standings
    "compute_league_table",
    "compute_scorer_leaderboard",
    "compute_team_analytics",
    "compute_final_history",
]
