"""
Data models for the podcast configuration, episode records and the feed.
"""

from pogo_feed.models.entities import AUDIO_MIME_TYPE, Episode, Feed, PodcastConfig

__all__ = [
    "AUDIO_MIME_TYPE",
    "Episode",
    "Feed",
    "PodcastConfig",
]
