"""Tests for aafl.config - local config file management."""

import textwrap
from pathlib import Path

import pytest

from aafl.config import (
    DEFAULT_DB_PATH,
    AaflConfig,
    load_config,
)
from aafl.commentary import DEFAULT_API_URL, DEFAULT_MODEL


@pytest.fixture
def config_dir(tmp_path):
    """Temporary directory for config files."""
    return tmp_path


def _write_config(config_dir: Path, content: str) -> Path:
    """Write a config.toml and return the path."""
    config_path = config_dir / "config.toml"
    config_path.write_text(textwrap.dedent(content))
    return config_path


def _assert_defaults(cfg: AaflConfig) -> None:
    assert cfg.portal.db_path == DEFAULT_DB_PATH
    assert cfg.portal.port == 8000
    assert cfg.commentary.enabled is True
    assert cfg.commentary.api_key is None
    assert cfg.tournament.seed is None


class TestLoadConfig:
    def test_missing_file_returns_defaults(self, config_dir):
        missing = config_dir / "nonexistent.toml"
        cfg = load_config(missing)
        assert isinstance(cfg, AaflConfig)
        _assert_defaults(cfg)

    def test_full_config(self, config_dir):
        path = _write_config(config_dir, """\
            [portal]
            db = "/srv/aafl/league.db"
            host = "127.0.0.1"
            port = 9000

            [commentary]
            enabled = false
            api_url = "http://localhost:11434/v1/chat/completions"
            model = "llama3"
            api_key = "sk-local"
            timeout = 5

            [tournament]
            seed = 42
        """)
        cfg = load_config(path)

        assert cfg.portal.db_path == "/srv/aafl/league.db"
        assert cfg.portal.host == "127.0.0.1"
        assert cfg.portal.port == 9000

        assert cfg.commentary.enabled is False
        assert cfg.commentary.api_url == "http://localhost:11434/v1/chat/completions"
        assert cfg.commentary.model == "llama3"
        assert cfg.commentary.api_key == "sk-local"
        assert cfg.commentary.timeout == 5.0

        assert cfg.tournament.seed == 42

    def test_tilde_expansion(self, config_dir):
        path = _write_config(config_dir, """\
            [portal]
            db = "~/aafl/league.db"
        """)
        cfg = load_config(path)
        assert cfg.portal.db_path.startswith(str(Path.home()))
        # Tilde should be gone
        assert "~" not in cfg.portal.db_path

    def test_partial_config_keeps_defaults(self, config_dir):
        path = _write_config(config_dir, """\
            [commentary]
            model = "gpt-4o-mini"
        """)
        cfg = load_config(path)
        assert cfg.commentary.model == "gpt-4o-mini"
        assert cfg.commentary.api_url == DEFAULT_API_URL
        assert cfg.commentary.enabled is True
        assert cfg.portal.db_path == DEFAULT_DB_PATH
        assert cfg.tournament.seed is None

    def test_default_model(self, config_dir):
        cfg = load_config(config_dir / "nonexistent.toml")
        assert cfg.commentary.model == DEFAULT_MODEL

    def test_corrupt_toml_returns_defaults(self, config_dir):
        path = config_dir / "config.toml"
        path.write_text("this is not [valid toml }{")
        _assert_defaults(load_config(path))

    def test_non_table_section_ignored(self, config_dir):
        path = _write_config(config_dir, """\
            portal = "not a table"
        """)
        _assert_defaults(load_config(path))

    def test_empty_file(self, config_dir):
        path = config_dir / "config.toml"
        path.write_text("")
        _assert_defaults(load_config(path))
