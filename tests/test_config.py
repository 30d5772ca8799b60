"""
Tests for service settings.

Covers:
- Defaults
- pogo.yaml discovery (top level, feed: section, parent directories)
- Precedence: overrides > environment > pogo.yaml > defaults
- Validation of enumerated and bounded fields
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from pogo_feed.config import (
    CONFIG_FILE,
    EPISODES_DIR,
    JSON_OUTPUT,
    RSS_OUTPUT,
    Settings,
    get_settings,
    load_pogo_yaml,
)


def _write_yaml(directory: Path, text: str) -> Path:
    path = directory / "pogo.yaml"
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def site_dir(monkeypatch, temp_dir: Path) -> Path:
    """An empty working directory."""
    monkeypatch.chdir(temp_dir)
    return temp_dir


class TestDefaults:

    def test_default_paths(self, site_dir: Path):
        settings = get_settings()

        assert settings.episodes_dir == EPISODES_DIR
        assert settings.config_file == CONFIG_FILE
        assert settings.rss_output == RSS_OUTPUT
        assert settings.json_output == JSON_OUTPUT

    def test_default_behavior(self, site_dir: Path):
        settings = get_settings()

        assert settings.episode_order == "date"
        assert settings.skip_incomplete_episodes is False
        assert settings.fallback_interval == 0.0
        assert settings.rebuild_on_start is True
        assert settings.log_level == "INFO"


class TestLoadPogoYaml:
    """Tests for load_pogo_yaml()."""

    def test_missing_file(self, site_dir: Path):
        assert load_pogo_yaml() == {}

    def test_top_level_keys(self, site_dir: Path):
        _write_yaml(site_dir, "episodes_dir: /srv/podcasts\n")

        assert load_pogo_yaml() == {"episodes_dir": "/srv/podcasts"}

    def test_feed_section(self, site_dir: Path):
        _write_yaml(site_dir, "feed:\n  fallback_interval: 300\n  episode_order: listing\n")

        assert load_pogo_yaml() == {"fallback_interval": 300, "episode_order": "listing"}

    def test_found_in_parent_directory(self, temp_dir: Path):
        _write_yaml(temp_dir, "feed:\n  log_level: DEBUG\n")
        nested = temp_dir / "a" / "b"
        nested.mkdir(parents=True)

        assert load_pogo_yaml(nested) == {"log_level": "DEBUG"}

    def test_empty_file(self, site_dir: Path):
        _write_yaml(site_dir, "")

        assert load_pogo_yaml() == {}


class TestPrecedence:
    """Tests for the order in which settings sources apply."""

    def test_yaml_over_defaults(self, site_dir: Path):
        _write_yaml(site_dir, "feed:\n  fallback_interval: 300\n")

        assert get_settings().fallback_interval == 300

    def test_environment_over_yaml(self, site_dir: Path, monkeypatch):
        _write_yaml(site_dir, "feed:\n  fallback_interval: 300\n")
        monkeypatch.setenv("POGO_FALLBACK_INTERVAL", "60")

        assert get_settings().fallback_interval == 60

    def test_overrides_over_environment(self, site_dir: Path, monkeypatch):
        monkeypatch.setenv("POGO_EPISODES_DIR", "/from/env")

        settings = get_settings(episodes_dir="/from/cli")

        assert settings.episodes_dir == Path("/from/cli")

    def test_none_overrides_are_ignored(self, site_dir: Path, monkeypatch):
        monkeypatch.setenv("POGO_EPISODES_DIR", "/from/env")

        settings = get_settings(episodes_dir=None)

        assert settings.episodes_dir == Path("/from/env")


class TestValidation:

    def test_unknown_episode_order_is_rejected(self):
        with pytest.raises(ValidationError):
            Settings(episode_order="random")

    def test_negative_fallback_interval_is_rejected(self):
        with pytest.raises(ValidationError):
            Settings(fallback_interval=-1)

    def test_ensure_directories(self, temp_dir: Path):
        settings = Settings(
            rss_output=temp_dir / "web" / "feed.rss",
            json_output=temp_dir / "other" / "feed.json",
        )

        settings.ensure_directories()

        assert (temp_dir / "web").is_dir()
        assert (temp_dir / "other").is_dir()
