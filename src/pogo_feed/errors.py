"""
Error taxonomy for the feed regeneration pipeline.

Every failure a rebuild can hit is a ``FeedError`` subclass, so the
top-level handler in ``pogo_feed.feed.pipeline`` can log it and keep the
watch loop alive. ``WatchSetupFailed`` is the only error that should stop
the process.
"""

from pathlib import Path
from typing import Optional, Union


class FeedError(Exception):
    """Base error for feed rebuild failures."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class ConfigUnreadable(FeedError):
    """The podcast configuration file could not be read."""

    pass


class ConfigMalformed(FeedError):
    """The podcast configuration file is not a valid configuration document."""

    pass


class DirectoryUnreadable(FeedError):
    """The episode directory could not be listed."""

    pass


class EpisodeMetadataInvalid(FeedError):
    """An audio file breaks the filename contract or lacks readable shownotes."""

    pass


class EncodingFailed(FeedError):
    """The feed model could not be serialized."""

    pass


class PublishFailed(FeedError):
    """An output file could not be written and swapped into place."""

    pass


class WatchSetupFailed(FeedError):
    """The filesystem watcher could not attach to a watched path."""

    pass


class WatcherClosed(Exception):
    """Raised by ``FeedWatcher.next_event`` after the watcher is closed."""

    pass
