"""
Service settings for the feed regeneration pipeline.

Provides centralized settings using pydantic-settings for validation and
environment variable support. Supports pogo.yaml for per-site settings.

These are the settings of the service itself (where to watch, where to
publish). The podcast's own branding lives in the configuration document
read by ``pogo_feed.feed.loader`` on every rebuild.
"""

from pathlib import Path
from typing import Any, Dict, Literal, Optional, Tuple, Type

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


SETTINGS_FILENAME = "pogo.yaml"

# Default paths, relative to the working directory the service runs in
EPISODES_DIR = Path("podcasts")
CONFIG_FILE = Path("assets") / "config" / "config.json"
RSS_OUTPUT = Path("assets") / "web" / "feed.rss"
JSON_OUTPUT = Path("assets") / "web" / "feed.json"


def load_pogo_yaml(search_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load pogo.yaml settings file.

    Searches for pogo.yaml starting from search_dir (or the working
    directory) and walking up to 3 parent directories. Settings may sit at
    the top level or under a ``feed:`` section.

    Args:
        search_dir: Directory to start searching from

    Returns:
        Dictionary with settings values, or empty dict if not found
    """
    start = (search_dir or Path.cwd()).resolve()
    for parent in [start] + list(start.parents)[:3]:
        candidate = parent / SETTINGS_FILENAME
        if candidate.exists():
            with open(candidate, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                return {}
            section = data.get("feed", data)
            return section if isinstance(section, dict) else {}
    return {}


class Settings(BaseSettings):
    """
    Service settings with environment variable support.

    Settings can be provided via:
    1. Environment variables (prefixed with POGO_)
    2. .env file
    3. pogo.yaml
    4. Default values

    Example:
        export POGO_EPISODES_DIR="/srv/pogo/podcasts"
        export POGO_FALLBACK_INTERVAL=300
    """

    model_config = SettingsConfigDict(
        env_prefix="POGO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Watched inputs
    episodes_dir: Path = Field(
        default=EPISODES_DIR,
        description="Directory holding <date>_<title>.mp3 files and their shownotes"
    )
    config_file: Path = Field(
        default=CONFIG_FILE,
        description="Podcast configuration document (JSON)"
    )

    # Published outputs
    rss_output: Path = Field(
        default=RSS_OUTPUT,
        description="Where the RSS document is published"
    )
    json_output: Path = Field(
        default=JSON_OUTPUT,
        description="Where the JSON feed document is published"
    )

    # Rebuild behavior
    episode_order: Literal["date", "listing"] = Field(
        default="date",
        description="'date' sorts newest first; 'listing' keeps directory order"
    )
    skip_incomplete_episodes: bool = Field(
        default=False,
        description="Log and skip episodes with bad names or missing shownotes instead of failing the rebuild"
    )

    # Watch loop
    fallback_interval: float = Field(
        default=0.0,
        ge=0.0,
        description="Seconds without events before a fallback rebuild (0 disables)"
    )
    rebuild_on_start: bool = Field(
        default=True,
        description="Rebuild once when the watch loop starts"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level name"
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # pogo.yaml values arrive as init kwargs; the environment wins over them
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    def ensure_directories(self) -> None:
        """Create the output directories if they don't exist."""
        self.rss_output.parent.mkdir(parents=True, exist_ok=True)
        self.json_output.parent.mkdir(parents=True, exist_ok=True)


def get_settings(search_dir: Optional[Path] = None, **overrides: Any) -> Settings:
    """
    Get the service settings instance.

    Merges settings from environment variables, .env file and pogo.yaml
    (if present), then applies explicit overrides such as CLI flags.

    Args:
        search_dir: Directory to start the pogo.yaml search from
        **overrides: Values that take precedence over every other source

    Returns:
        Settings: Service settings
    """
    settings = Settings(**load_pogo_yaml(search_dir))
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        settings = Settings.model_validate({**settings.model_dump(), **overrides})
    return settings
