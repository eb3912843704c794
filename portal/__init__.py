"""
portal - HTTP surface for the AAFL tournament

Admins register teams and federations and play the bracket round by round;
visitors read the bracket, standings and analytics. All rules live in the
aafl package.

The FastAPI app lives in portal.server and is only imported from there, so
the storage and play helpers work without the web stack.
"""

from .db import LeagueDB
from .play import play_bracket_match, play_friendly

__all__ = ["LeagueDB", "play_bracket_match", "play_friendly"]
