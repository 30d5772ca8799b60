"""
Podcast configuration loader.

Reads the configuration document written by the setup form. It is loaded
fresh on every rebuild and never cached, since the setup form may rewrite
it at any time.
"""

import json
import logging
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from pogo_feed.errors import ConfigMalformed, ConfigUnreadable
from pogo_feed.models.entities import PodcastConfig

logger = logging.getLogger(__name__)


def load_podcast_config(path: Union[str, Path]) -> PodcastConfig:
    """
    Read and decode the podcast configuration document.

    There is no fallback to defaults: a feed published without its title,
    host or base URL is worse than the previously published one.

    Args:
        path: Path to the JSON configuration document

    Returns:
        Decoded PodcastConfig

    Raises:
        ConfigUnreadable: If the file cannot be read
        ConfigMalformed: If the bytes are not a JSON object of strings

    Example:
        >>> config = load_podcast_config("assets/config/config.json")
        >>> print(config.name, config.podcast_url)
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ConfigUnreadable(
            f"Cannot read configuration file {path}: {e.strerror or e}", path=path
        ) from e

    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigMalformed(f"Configuration file {path} is not valid JSON: {e}", path=path) from e

    if not isinstance(data, dict):
        raise ConfigMalformed(
            f"Configuration file {path} must hold a JSON object, got {type(data).__name__}",
            path=path,
        )

    try:
        config = PodcastConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigMalformed(f"Invalid configuration in {path}: {e}", path=path) from e

    logger.debug("Loaded configuration for '%s' from %s", config.name, path)
    return config
