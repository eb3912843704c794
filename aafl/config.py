"""
aafl/config.py - Local configuration management

Reads config from a platform-appropriate directory:
  - macOS/Linux: ~/.aafl/config.toml
  - Windows: %APPDATA%\\aafl\\config.toml

Example:
    [portal]
    db = "~/aafl/league.db"
    host = "0.0.0.0"
    port = 8000

    [commentary]
    enabled = true
    model = "gpt-3.5-turbo"
    api_key = "sk-..."   # OPENAI_API_KEY in the environment takes precedence
    timeout = 20

    [tournament]
    seed = 42  # Fixed entropy for reproducible draws and results
"""

import logging
import os
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .commentary import DEFAULT_API_URL, DEFAULT_MODEL

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================


def _get_config_dir() -> Path:
    """Get platform-appropriate config directory."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "aafl"
    return Path.home() / ".aafl"


CONFIG_DIR = _get_config_dir()
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_DB_PATH = "aafl.db"


# ============================================================================
# Data Types
# ============================================================================


@dataclass
class PortalConfig:
    """Where the HTTP portal listens and stores its data."""

    db_path: str = DEFAULT_DB_PATH
    host: str = "0.0.0.0"
    port: int = 8000


@dataclass
class CommentaryConfig:
    """Match narrative generation."""

    enabled: bool = True
    api_url: str = DEFAULT_API_URL
    model: str = DEFAULT_MODEL
    api_key: str | None = None
    timeout: float = 20.0


@dataclass
class TournamentConfig:
    seed: int | None = None  # None = fresh entropy per process


@dataclass
class AaflConfig:
    """Top-level configuration."""

    portal: PortalConfig = field(default_factory=PortalConfig)
    commentary: CommentaryConfig = field(default_factory=CommentaryConfig)
    tournament: TournamentConfig = field(default_factory=TournamentConfig)


# ============================================================================
# Parsing
# ============================================================================


def _expand(path: str | None) -> str | None:
    """Expand ~ in a path string."""
    if path is None:
        return None
    return str(Path(path).expanduser())


def _section(raw: dict, name: str) -> dict:
    data = raw.get(name, {})
    return data if isinstance(data, dict) else {}


def load_config(path: Path | None = None) -> AaflConfig:
    """
    Read config from TOML file.

    Args:
        path: Override config file path (default: ~/.aafl/config.toml)

    Returns:
        AaflConfig. Missing file or bad TOML returns defaults.
    """
    config_path = path or CONFIG_PATH

    if not config_path.exists():
        return AaflConfig()

    try:
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)
    except Exception as e:
        logger.warning(f"Failed to parse {config_path}: {e}")
        return AaflConfig()

    # Parse [portal] section
    portal_data = _section(raw, "portal")
    _portal = PortalConfig()
    portal = PortalConfig(
        db_path=_expand(portal_data.get("db")) or _portal.db_path,
        host=portal_data.get("host", _portal.host),
        port=portal_data.get("port", _portal.port),
    )

    # Parse [commentary] section
    commentary_data = _section(raw, "commentary")
    _commentary = CommentaryConfig()
    commentary = CommentaryConfig(
        enabled=commentary_data.get("enabled", _commentary.enabled),
        api_url=commentary_data.get("api_url", _commentary.api_url),
        model=commentary_data.get("model", _commentary.model),
        api_key=commentary_data.get("api_key"),
        timeout=float(commentary_data.get("timeout", _commentary.timeout)),
    )

    # Parse [tournament] section
    tournament_data = _section(raw, "tournament")
    tournament = TournamentConfig(seed=tournament_data.get("seed"))

    return AaflConfig(portal=portal, commentary=commentary, tournament=tournament)
