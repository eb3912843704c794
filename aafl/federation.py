"""
aafl/federation.py - National federations and their squads

A federation enters one team with a 23-player squad. When no squad is
supplied one is generated from the injected random.Random, so a seeded
tournament always fields the same players.

    squad = generate_squad(random.Random(7))
    country_rating(squad)   # mean primary rating, one decimal
"""

import math
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from .errors import InvalidFederation


# ============================================================================
# Enums
# ============================================================================


class Position(str, Enum):
    """Where a player lines up."""

    GOALKEEPER = "GK"
    DEFENDER = "DF"
    MIDFIELDER = "MD"
    ATTACKER = "AT"


# ============================================================================
# Constants
# ============================================================================

# Positions in squad order. The first player generated is the captain.
SQUAD_LAYOUT = (
    (Position.GOALKEEPER, 3),
    (Position.DEFENDER, 8),
    (Position.MIDFIELDER, 7),
    (Position.ATTACKER, 5),
)
SQUAD_SIZE = sum(n for _, n in SQUAD_LAYOUT)

NATURAL_RATING = (50, 100)  # Inclusive
OFF_POSITION_RATING = (0, 50)
MAX_RATING = 100

AFRICAN_COUNTRIES = (
    "Algeria", "Angola", "Benin", "Botswana", "Burkina Faso", "Burundi",
    "Cameroon", "Cape Verde", "Central African Republic", "Chad", "Comoros",
    "Congo", "Democratic Republic of Congo", "Djibouti", "Egypt",
    "Equatorial Guinea", "Eritrea", "Eswatini", "Ethiopia", "Gabon", "Gambia",
    "Ghana", "Guinea", "Guinea-Bissau", "Ivory Coast", "Kenya", "Lesotho",
    "Liberia", "Libya", "Madagascar", "Malawi", "Mali", "Mauritania",
    "Mauritius", "Morocco", "Mozambique", "Namibia", "Niger", "Nigeria",
    "Rwanda", "Sao Tome and Principe", "Senegal", "Seychelles", "Sierra Leone",
    "Somalia", "South Africa", "South Sudan", "Sudan", "Tanzania", "Togo",
    "Tunisia", "Uganda", "Zambia", "Zimbabwe",
)

FIRST_NAMES = (
    "Kwame", "Kofi", "Yaw", "Ade", "Sekou", "Mamadou", "Ibrahim", "Youssef",
    "Mohamed", "Ahmed", "Omar", "Hassan", "Abdel", "Karim", "Tariq", "Rashid",
    "Chibueze", "Oluwaseun", "Adebayo", "Chukwudi", "Babatunde", "Tunde",
    "Emeka", "Nnamdi", "Mandla", "Thabo", "Sipho", "Bongani", "Themba",
    "Blessing", "Lucky",
)

LAST_NAMES = (
    "Mensah", "Osei", "Diallo", "Keita", "Traoré", "Camara", "Touré", "Kone",
    "Diop", "Ndiaye", "Sy", "Fall", "Sow", "Barry", "Bah", "El-Sayed",
    "Hassan", "Okafor", "Okonkwo", "Adeyemi", "Eze", "Nwosu", "Mbatha",
    "Dlamini", "Khumalo", "Mokoena", "Ndlovu", "Zwane", "Mkhize", "Phiri",
    "Banda",
)


# ============================================================================
# Data Types
# ============================================================================


@dataclass
class Player:
    """A squad member with a 0..100 rating for every position."""

    name: str
    natural_position: Position
    ratings: dict[Position, int]
    is_captain: bool = False

    @property
    def primary_rating(self) -> int:
        return self.ratings[self.natural_position]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "natural_position": self.natural_position.value,
            "ratings": {p.value: r for p, r in self.ratings.items()},
            "is_captain": self.is_captain,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Player":
        return cls(
            name=data["name"],
            natural_position=Position(data["natural_position"]),
            ratings={Position(p): int(r) for p, r in data["ratings"].items()},
            is_captain=bool(data.get("is_captain", False)),
        )


@dataclass
class Federation:
    """A country's entry: who runs it, the team it fields and its squad."""

    id: str
    country: str
    representative: str
    manager: str
    team_name: str
    players: list[Player] = field(default_factory=list)
    team_id: str | None = None
    registered_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def country_rating(self) -> float:
        return country_rating(self.players)

    @property
    def captain(self) -> Player | None:
        return next((p for p in self.players if p.is_captain), None)


# ============================================================================
# Squads
# ============================================================================


def generate_player_ratings(position: Position, rng: random.Random) -> dict[Position, int]:
    """High rating in the natural position, low everywhere else."""
    ratings = {}
    for p in Position:
        low, high = NATURAL_RATING if p is position else OFF_POSITION_RATING
        ratings[p] = rng.randint(low, high)
    return ratings


def generate_squad(rng: random.Random | None = None) -> list[Player]:
    """Build a full squad following SQUAD_LAYOUT. Player 0 is captain."""
    rng = rng or random.Random()
    squad = []
    for position, count in SQUAD_LAYOUT:
        for _ in range(count):
            squad.append(
                Player(
                    name=f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
                    natural_position=position,
                    ratings=generate_player_ratings(position, rng),
                    is_captain=not squad,
                )
            )
    return squad


def country_rating(players: list[Player]) -> float:
    """Mean primary rating to one decimal, half up. 0.0 for an empty squad."""
    if not players:
        return 0.0
    mean = sum(p.primary_rating for p in players) / len(players)
    return math.floor(mean * 10 + 0.5) / 10


def validate_country(country: str) -> str:
    """Return the canonical country name. Raises InvalidFederation if unknown."""
    wanted = country.strip().casefold()
    for name in AFRICAN_COUNTRIES:
        if name.casefold() == wanted:
            return name
    raise InvalidFederation(f"{country!r} is not an African country")


def validate_squad(players: list[Player]) -> list[Player]:
    """Check a supplied squad. The first player is made captain if none is.

    Raises:
        InvalidFederation: wrong size, more than one captain, or a missing
            or out-of-range rating.
    """
    if len(players) != SQUAD_SIZE:
        raise InvalidFederation(f"A squad needs exactly {SQUAD_SIZE} players, got {len(players)}")

    for player in players:
        if not player.name.strip():
            raise InvalidFederation("Every player needs a name")
        missing = [p.value for p in Position if p not in player.ratings]
        if missing:
            raise InvalidFederation(f"{player.name} has no rating for {', '.join(missing)}")
        if any(not 0 <= r <= MAX_RATING for r in player.ratings.values()):
            raise InvalidFederation(f"{player.name} has a rating outside 0..{MAX_RATING}")

    captains = sum(1 for p in players if p.is_captain)
    if captains > 1:
        raise InvalidFederation(f"A squad has one captain, got {captains}")
    if captains == 0:
        players = list(players)
        first = players[0]
        players[0] = Player(first.name, first.natural_position, first.ratings, is_captain=True)
    return players


def scorer_names(players: list[Player]) -> tuple[str, ...]:
    """Outfield players, the ones who can appear on the score sheet."""
    return tuple(p.name for p in players if p.natural_position is not Position.GOALKEEPER)
