"""
Shared test fixtures.

Provides pytest fixtures for common test resources including:
- An isolated site layout (episode directory, configuration, outputs)
- Service settings pointing at that layout
- A helper for dropping episodes and shownotes into the directory
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import pytest

from pogo_feed.config import Settings


SCENARIO_CONFIG: Dict[str, Any] = {
    "Name": "Show",
    "Host": "Alice",
    "Email": "a@x.com",
    "PodcastUrl": "https://x.com",
}


def write_config(path: Path, data: Dict[str, Any]) -> Path:
    """Write a podcast configuration document."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def write_episode(
    directory: Path,
    name: str,
    size: int = 1000,
    shownotes: Optional[str] = "Welcome",
) -> Path:
    """
    Drop an audio file (and, unless shownotes is None, its shownotes) into
    the episode directory.
    """
    audio = directory / name
    audio.write_bytes(b"\xff" * size)
    if shownotes is not None:
        notes = directory / (name[: -len(".mp3")] + "_SHOWNOTES.md")
        notes.write_text(shownotes, encoding="utf-8")
    return audio


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep POGO_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith("POGO_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def temp_dir():
    """
    Create temporary directory for test files.

    Yields:
        Path: Temporary directory path
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings(temp_dir: Path) -> Settings:
    """
    Create service settings for a site laid out under temp_dir.

    The episode directory exists and is empty; the configuration file holds
    the "Show" configuration.
    """
    episodes_dir = temp_dir / "podcasts"
    episodes_dir.mkdir()
    config_file = write_config(temp_dir / "assets" / "config" / "config.json", SCENARIO_CONFIG)
    return Settings(
        episodes_dir=episodes_dir,
        config_file=config_file,
        rss_output=temp_dir / "assets" / "web" / "feed.rss",
        json_output=temp_dir / "assets" / "web" / "feed.json",
    )


@pytest.fixture
def add_episode(settings: Settings) -> Callable[..., Path]:
    """Return a helper that adds an episode to the settings' episode directory."""

    def _add(name: str, size: int = 1000, shownotes: Optional[str] = "Welcome") -> Path:
        return write_episode(settings.episodes_dir, name, size=size, shownotes=shownotes)

    return _add


def write_undecodable_episode(directory: Path) -> None:
    """
    Drop an episode whose filename is not valid UTF-8, with shownotes.

    Skips the calling test on filesystems that refuse such names.
    """
    audio = os.fsencode(directory) + b"/2024-01-16_\xff.mp3"
    try:
        with open(audio, "wb") as f:
            f.write(b"\xff" * 10)
        with open(audio[: -len(b".mp3")] + b"_SHOWNOTES.md", "wb") as f:
            f.write(b"Notes")
    except OSError:
        pytest.skip("filesystem rejects filenames that are not UTF-8")
