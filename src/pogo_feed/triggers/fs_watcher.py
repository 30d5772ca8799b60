"""
Filesystem watcher that rebuilds the feed when its inputs change.

Watches the episode directory (non-recursively) and the podcast
configuration file with watchdog. Every content-modified event on a watched
path triggers one full, synchronous rebuild; there is no debouncing, so two
quick writes give two rebuilds and the second one sees the final state.

This module is designed to be used in two ways:

1. **CLI** -- ``pogo-feed watch`` runs the loop in the foreground.
2. **Embedded** -- a web server calls ``watch_in_background()`` at startup
   and keeps serving the published files while the loop runs.

Example:
    >>> from functools import partial
    >>> from pogo_feed.feed.pipeline import run_rebuild
    >>> with FeedWatcher(settings.episodes_dir, settings.config_file) as watcher:
    ...     run_watch(watcher, partial(run_rebuild, settings))
"""

import logging
import os
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from pogo_feed.errors import WatcherClosed, WatchSetupFailed
from pogo_feed.feed.pipeline import RebuildResult
from pogo_feed.triggers import TriggerState

logger = logging.getLogger(__name__)


_CLOSED = object()


@dataclass(frozen=True)
class WatchEvent:
    """
    A qualifying change to a watched path.

    Attributes:
        path: Absolute path of the modified file
        kind: Event kind; always "modified" for filesystem events
    """

    path: Path
    kind: str = "modified"


class WriteEventHandler(FileSystemEventHandler):
    """
    Forwards content-modified events on watched paths to a sink.

    Only files directly inside the episode directory and the configuration
    file itself qualify. Creations, moves, deletions and directory events
    are ignored.
    """

    def __init__(
        self,
        episodes_dir: Path,
        config_file: Path,
        sink: Callable[[WatchEvent], None],
    ) -> None:
        self.episodes_dir = episodes_dir
        self.config_file = config_file
        self._sink = sink

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = Path(os.fsdecode(event.src_path))
        if path == self.config_file or path.parent == self.episodes_dir:
            self._sink(WatchEvent(path=path))


class FeedWatcher:
    """
    Owned watch resource: a watchdog observer plus an event queue.

    Build one at startup, call ``start()`` (or use it as a context manager),
    then pull events with ``next_event()``. Closing the watcher makes
    ``next_event()`` raise ``WatcherClosed`` once the queued events are
    drained.
    """

    def __init__(
        self,
        episodes_dir: Union[str, Path],
        config_file: Union[str, Path],
        observer_factory: Callable[[], BaseObserver] = Observer,
    ) -> None:
        self.episodes_dir = Path(episodes_dir)
        self.config_file = Path(config_file)
        self._observer_factory = observer_factory
        self._observer: Optional[BaseObserver] = None
        self._events: "queue.Queue[object]" = queue.Queue()
        self._closed = False

    def start(self) -> None:
        """
        Attach to the episode directory and the configuration file.

        Raises:
            WatchSetupFailed: If either path is missing or cannot be watched
        """
        episodes_dir = self.episodes_dir.resolve()
        config_file = self.config_file.resolve()

        if not episodes_dir.is_dir():
            raise WatchSetupFailed(f"Episode directory {episodes_dir} does not exist", path=episodes_dir)
        if not config_file.is_file():
            raise WatchSetupFailed(f"Configuration file {config_file} does not exist", path=config_file)

        handler = WriteEventHandler(episodes_dir, config_file, self._events.put)
        observer = self._observer_factory()
        try:
            observer.schedule(handler, str(episodes_dir), recursive=False)
            # watchdog watches directories; the handler filters for the file
            if config_file.parent != episodes_dir:
                observer.schedule(handler, str(config_file.parent), recursive=False)
            observer.start()
        except OSError as e:
            raise WatchSetupFailed(f"Cannot watch {episodes_dir} and {config_file}: {e}") from e

        self._observer = observer
        logger.info("Watching %s and %s for changes", episodes_dir, config_file)

    def next_event(self, timeout: Optional[float] = None) -> Optional[WatchEvent]:
        """
        Block until the next qualifying event.

        Args:
            timeout: Seconds to wait; None waits forever

        Returns:
            The next WatchEvent, or None if the timeout expired

        Raises:
            WatcherClosed: If the watcher has been closed and drained
        """
        try:
            item = self._events.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is _CLOSED:
            # Keep the marker queued so later calls raise as well
            self._events.put(_CLOSED)
            raise WatcherClosed("Watcher is closed")
        return item

    def close(self) -> None:
        """Stop the observer and wake up any waiting ``next_event()``."""
        if self._closed:
            return
        self._closed = True
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None
        self._events.put(_CLOSED)

    def __enter__(self) -> "FeedWatcher":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _trigger(state: TriggerState, rebuild: Callable[[], RebuildResult], reason: str) -> None:
    logger.debug("Rebuilding feed (%s)", reason)
    try:
        result = rebuild()
    except Exception as exc:
        logger.exception("Unexpected error during rebuild (%s)", reason)
        state.record_run(error=f"{type(exc).__name__}: {exc}")
        return
    state.record_run(error="; ".join(result.errors) or None)
    if result.success:
        state.metadata["last_episode_count"] = result.episode_count


def run_watch(
    watcher: FeedWatcher,
    rebuild: Callable[[], RebuildResult],
    fallback_interval: float = 0.0,
    rebuild_on_start: bool = True,
    state: Optional[TriggerState] = None,
) -> TriggerState:
    """
    Run the watch loop until the watcher is closed.

    Each event triggers one synchronous rebuild before the next event is
    read, so rebuilds never overlap and events are handled in delivery
    order. A failed rebuild is logged and recorded; the loop keeps going.

    Args:
        watcher: A started FeedWatcher
        rebuild: Zero-argument callable performing one full rebuild
        fallback_interval: If > 0, rebuild after this many idle seconds
        rebuild_on_start: Rebuild once before waiting for events
        state: TriggerState to update (a new one is created if None)

    Returns:
        The TriggerState after the watcher was closed
    """
    if state is None:
        state = TriggerState(name="feed_watch")
    timeout = fallback_interval if fallback_interval > 0 else None

    if rebuild_on_start:
        _trigger(state, rebuild, "startup")

    while True:
        try:
            event = watcher.next_event(timeout=timeout)
        except WatcherClosed:
            logger.info(
                "Watcher closed after %d rebuild(s), %d failed",
                state.run_count,
                state.failure_count,
            )
            return state

        if event is None:
            _trigger(state, rebuild, f"no events for {fallback_interval:g}s")
        else:
            _trigger(state, rebuild, f"{event.kind} {event.path}")


def watch_in_background(
    watcher: FeedWatcher,
    rebuild: Callable[[], RebuildResult],
    fallback_interval: float = 0.0,
    rebuild_on_start: bool = True,
) -> threading.Thread:
    """
    Start the watcher and run the watch loop on a daemon thread.

    Setup happens on the calling thread, so a ``WatchSetupFailed`` reaches
    the caller before anything is served.

    Raises:
        WatchSetupFailed: If the watcher cannot attach to its paths
    """
    watcher.start()
    thread = threading.Thread(
        target=run_watch,
        args=(watcher, rebuild, fallback_interval, rebuild_on_start),
        name="pogo-feed-watch",
        daemon=True,
    )
    thread.start()
    return thread
