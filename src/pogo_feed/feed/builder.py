"""
Feed model assembly.

Pure functions: everything fallible already happened in the loader and the
extractor.
"""

from datetime import datetime, timezone
from typing import Sequence

from pogo_feed.models.entities import Episode, Feed, PodcastConfig


def feed_timestamp(episodes: Sequence[Episode], fallback: datetime) -> datetime:
    """
    Pick the feed creation timestamp.

    Uses the newest episode's publish date so that rebuilding an unchanged
    directory gives byte-identical output. With no episodes, ``fallback``
    (normalized to UTC) is used.
    """
    if episodes:
        return max(ep.published for ep in episodes)
    if fallback.tzinfo is None:
        fallback = fallback.replace(tzinfo=timezone.utc)
    return fallback.astimezone(timezone.utc).replace(microsecond=0)


def build_feed(config: PodcastConfig, episodes: Sequence[Episode], created: datetime) -> Feed:
    """
    Assemble the feed model from configuration and episodes.

    Args:
        config: Podcast configuration for this rebuild
        episodes: Episode records, already in publishing order
        created: Feed creation timestamp

    Returns:
        Feed model
    """
    return Feed(
        title=config.name,
        link=config.podcast_url,
        description=config.description,
        author_name=config.host,
        author_email=config.email,
        created=created,
        image=config.image,
        episodes=tuple(episodes),
    )
