"""
The full feed rebuild: Load -> Extract -> Build -> Encode -> Publish.

``rebuild()`` raises on the first failure. ``run_rebuild()`` is the single
top-level handler used by the CLI and the watch loop: it turns any
``FeedError`` into a logged, failed ``RebuildResult`` so the caller can
carry on. Nothing is published unless every step succeeded.

Example:
    >>> from pogo_feed.config import get_settings
    >>> result = run_rebuild(get_settings())
    >>> print(result.to_json())
"""

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List

from pogo_feed.config import Settings
from pogo_feed.errors import ConfigUnreadable, FeedError
from pogo_feed.feed.builder import build_feed, feed_timestamp
from pogo_feed.feed.encoder import encode_json, encode_rss
from pogo_feed.feed.extractor import extract_episodes
from pogo_feed.feed.loader import load_podcast_config
from pogo_feed.feed.publisher import publish

logger = logging.getLogger(__name__)


@dataclass
class RebuildResult:
    """
    Result of a single rebuild.

    Attributes:
        success: True if both documents were published
        feed_title: Title of the rebuilt feed, if the configuration loaded
        episode_count: Number of episodes in the published feed
        rss_path: Where the RSS document was published
        json_path: Where the JSON document was published
        errors: Error messages; empty on success
        error_type: Class name of the error that aborted the rebuild
        started_at: ISO-8601 timestamp of when the rebuild started
        duration_seconds: Wall time spent on the rebuild
    """

    success: bool = False
    feed_title: str = ""
    episode_count: int = 0
    rss_path: str = ""
    json_path: str = ""
    errors: List[str] = field(default_factory=list)
    error_type: str = ""
    started_at: str = ""
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


def _config_mtime(settings: Settings) -> datetime:
    try:
        mtime = settings.config_file.stat().st_mtime
    except OSError as e:
        raise ConfigUnreadable(
            f"Cannot stat configuration file {settings.config_file}: {e.strerror or e}",
            path=settings.config_file,
        ) from e
    return datetime.fromtimestamp(mtime, tz=timezone.utc)


def rebuild(settings: Settings) -> RebuildResult:
    """
    Regenerate and publish both feed documents.

    Args:
        settings: Service settings naming the inputs and outputs

    Returns:
        RebuildResult describing the published feed

    Raises:
        FeedError: Any loader, extractor, encoder or publisher failure
    """
    result = RebuildResult(started_at=datetime.now(timezone.utc).isoformat())
    start = time.monotonic()

    config = load_podcast_config(settings.config_file)
    result.feed_title = config.name

    episodes = extract_episodes(
        settings.episodes_dir,
        config.podcast_url,
        skip_incomplete=settings.skip_incomplete_episodes,
        order=settings.episode_order,
    )
    # The configuration file's mtime only dates an empty feed
    fallback = _config_mtime(settings) if not episodes else datetime.fromtimestamp(0, tz=timezone.utc)
    feed = build_feed(config, episodes, feed_timestamp(episodes, fallback))

    # Encode both before writing either
    rss = encode_rss(feed)
    document = encode_json(feed)
    publish([(settings.rss_output, rss), (settings.json_output, document)])

    result.success = True
    result.episode_count = len(feed.episodes)
    result.rss_path = str(settings.rss_output)
    result.json_path = str(settings.json_output)
    result.duration_seconds = round(time.monotonic() - start, 3)

    logger.info(
        "Rebuilt feed '%s' with %d episode(s) in %.3fs",
        feed.title,
        result.episode_count,
        result.duration_seconds,
    )
    return result


def run_rebuild(settings: Settings) -> RebuildResult:
    """
    Run a rebuild, logging and reporting failures instead of raising.

    Args:
        settings: Service settings

    Returns:
        RebuildResult; ``success`` is False and ``errors`` is filled if the
        rebuild aborted. Previously published files are left untouched.
    """
    started_at = datetime.now(timezone.utc).isoformat()
    try:
        return rebuild(settings)
    except FeedError as e:
        logger.error("Rebuild aborted (%s): %s", type(e).__name__, e)
        return RebuildResult(
            success=False,
            errors=[str(e)],
            error_type=type(e).__name__,
            started_at=started_at,
        )
