"""
Feed regeneration pipeline.

Loads the podcast configuration, extracts episodes from the episode
directory, builds the feed model, encodes it as RSS and JSON Feed and
publishes both documents atomically.
"""

from pogo_feed.feed.builder import build_feed, feed_timestamp
from pogo_feed.feed.encoder import decode_json_feed, encode_json, encode_rss, render_shownotes
from pogo_feed.feed.extractor import extract_episodes, parse_episode_filename, shownotes_name
from pogo_feed.feed.loader import load_podcast_config
from pogo_feed.feed.pipeline import RebuildResult, rebuild, run_rebuild
from pogo_feed.feed.publisher import publish

__all__ = [
    "build_feed",
    "feed_timestamp",
    "decode_json_feed",
    "encode_json",
    "encode_rss",
    "render_shownotes",
    "extract_episodes",
    "parse_episode_filename",
    "shownotes_name",
    "load_podcast_config",
    "RebuildResult",
    "rebuild",
    "run_rebuild",
    "publish",
]
