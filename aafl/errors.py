"""
aafl/errors.py - Tournament error taxonomy

Every rule the engine enforces fails with one of these. Callers (the portal,
the CLI) decide how to present them; the engine never retries.
"""


class TournamentError(Exception):
    """Base class for all tournament rule violations."""


class InsufficientTeams(TournamentError):
    """Quarterfinal pairings need exactly eight distinct teams."""


class RoundIncomplete(TournamentError):
    """A prerequisite round has not been fully played with winners."""


class DuplicateRoundEntry(TournamentError):
    """A round slot (or a team's place in a round) is already taken."""


class InvalidTeamReference(TournamentError):
    """A team id does not resolve, or a team was asked to play itself."""


class ExternalGenerationFailure(TournamentError):
    """Commentary generation failed. Never fatal to match resolution."""


class TournamentFull(TournamentError):
    """The bracket already has all eight teams registered."""


class InvalidFederation(TournamentError):
    """Unknown country or a malformed squad in a federation registration."""


class DuplicateFederation(TournamentError):
    """A federation for this country is already registered."""
