"""
Episode metadata extraction from the episode directory.

An episode is an audio file named ``<YYYY-MM-DD>_<title>.mp3`` with a
companion ``<YYYY-MM-DD>_<title>_SHOWNOTES.md`` beside it. The date prefix
becomes the publish date, the title comes from the filename, the shownotes
become the episode description and the file size goes into the enclosure.

Example:
    >>> episodes = extract_episodes("podcasts", "https://example.com")
    >>> for ep in episodes:
    ...     print(ep.pub_date, ep.title, ep.link)
"""

import logging
import os
import re
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional, Union
from urllib.parse import quote

from pogo_feed.errors import DirectoryUnreadable, EpisodeMetadataInvalid
from pogo_feed.models.entities import Episode

logger = logging.getLogger(__name__)


AUDIO_SUFFIX = ".mp3"
SHOWNOTES_SUFFIX = "_SHOWNOTES.md"
DOWNLOAD_SEGMENT = "download"

_DATE_PREFIX = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)


@dataclass(frozen=True)
class EpisodeName:
    """
    The parts of an episode filename.

    Attributes:
        filename: The full audio filename
        pub_date: Date parsed from the ``YYYY-MM-DD`` prefix
        title: Text between the first underscore and the first dot after it
    """

    filename: str
    pub_date: date
    title: str


def parse_episode_filename(name: str) -> Optional[EpisodeName]:
    """
    Match a filename against the episode naming contract.

    Names that do not end in ``.mp3`` are not episodes and yield ``None``.
    For audio files the name is split on the first underscore: the left side
    must be a ``YYYY-MM-DD`` date, and the title is the right side up to its
    first dot. Anything after a second dot in the title part is dropped, so
    ``2024-01-15_v1.2.mp3`` is titled ``v1``.

    Args:
        name: Bare filename (no directory)

    Returns:
        EpisodeName, or None if the file is not an audio file

    Raises:
        EpisodeMetadataInvalid: If an audio filename breaks the contract or
            is not valid UTF-8

    Example:
        >>> parse_episode_filename("2024-01-15_Pilot.mp3")
        EpisodeName(filename='2024-01-15_Pilot.mp3', pub_date=datetime.date(2024, 1, 15), title='Pilot')
        >>> parse_episode_filename("2024-01-15_Pilot_SHOWNOTES.md") is None
        True
    """
    if not name.endswith(AUDIO_SUFFIX):
        return None

    # Undecodable bytes come back from the OS as lone surrogates
    try:
        name.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EpisodeMetadataInvalid(
            f"{name!r} is not a valid UTF-8 filename", path=name
        ) from e

    prefix, sep, remainder = name.partition("_")
    if not sep:
        raise EpisodeMetadataInvalid(
            f"'{name}' is not named <YYYY-MM-DD>_<title>{AUDIO_SUFFIX}", path=name
        )

    title = remainder.split(".", 1)[0]
    if not title:
        raise EpisodeMetadataInvalid(f"'{name}' has an empty title", path=name)

    if not _DATE_PREFIX.fullmatch(prefix):
        raise EpisodeMetadataInvalid(
            f"'{name}' does not start with a YYYY-MM-DD date", path=name
        )
    try:
        pub_date = datetime.strptime(prefix, "%Y-%m-%d").date()
    except ValueError as e:
        raise EpisodeMetadataInvalid(f"'{name}' has an invalid date: {e}", path=name) from e

    return EpisodeName(filename=name, pub_date=pub_date, title=title)


def shownotes_name(audio_name: str) -> str:
    """Return the shownotes filename that belongs to an audio filename."""
    return audio_name[: -len(AUDIO_SUFFIX)] + SHOWNOTES_SUFFIX


def download_link(podcast_url: str, filename: str) -> str:
    """Build the public download URL for an audio file."""
    return f"{podcast_url.rstrip('/')}/{DOWNLOAD_SEGMENT}/{quote(filename)}"


def read_shownotes(path: Path) -> str:
    """
    Read an episode's shownotes as UTF-8 text.

    Raises:
        EpisodeMetadataInvalid: If the file is missing, unreadable or not UTF-8
    """
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise EpisodeMetadataInvalid(f"Missing shownotes file {path}", path=path) from e
    except OSError as e:
        raise EpisodeMetadataInvalid(
            f"Cannot read shownotes file {path}: {e.strerror or e}", path=path
        ) from e
    except UnicodeDecodeError as e:
        raise EpisodeMetadataInvalid(f"Shownotes file {path} is not UTF-8: {e}", path=path) from e


def _episode_from_entry(entry: os.DirEntry, directory: Path, podcast_url: str) -> Optional[Episode]:
    if not entry.name.endswith(AUDIO_SUFFIX):
        return None
    if not entry.is_file():
        logger.debug("Ignoring non-file entry %s", entry.name)
        return None

    parsed = parse_episode_filename(entry.name)
    if parsed is None:
        return None

    description = read_shownotes(directory / shownotes_name(entry.name))

    try:
        size = entry.stat().st_size
    except OSError as e:
        raise EpisodeMetadataInvalid(
            f"Cannot stat {entry.path}: {e.strerror or e}", path=entry.path
        ) from e

    return Episode(
        filename=parsed.filename,
        title=parsed.title,
        pub_date=parsed.pub_date,
        size=size,
        description=description,
        link=download_link(podcast_url, parsed.filename),
    )


def extract_episodes(
    directory: Union[str, Path],
    podcast_url: str,
    skip_incomplete: bool = False,
    order: str = "date",
) -> List[Episode]:
    """
    Scan the episode directory and build one Episode per audio file.

    The scan is non-recursive. By default the first invalid episode aborts
    the scan, so a rebuild never publishes a feed with a silently missing
    episode.

    Args:
        directory: Episode directory
        podcast_url: Base URL the download links are built on
        skip_incomplete: Log and skip invalid episodes instead of raising
        order: "date" for newest first (ties by filename), or "listing"
               to keep the directory listing order

    Returns:
        List of Episode records

    Raises:
        DirectoryUnreadable: If the directory cannot be listed
        EpisodeMetadataInvalid: If an episode is invalid and skip_incomplete is False
    """
    if order not in ("date", "listing"):
        raise ValueError(f"Unknown episode order: {order!r}")

    directory = Path(directory)
    try:
        with os.scandir(directory) as it:
            entries = list(it)
    except OSError as e:
        raise DirectoryUnreadable(
            f"Cannot list episode directory {directory}: {e.strerror or e}", path=directory
        ) from e

    episodes: List[Episode] = []
    for entry in entries:
        try:
            episode = _episode_from_entry(entry, directory, podcast_url)
        except EpisodeMetadataInvalid as e:
            if not skip_incomplete:
                raise
            logger.warning("Skipping episode %r: %s", entry.name, e)
            continue
        if episode is not None:
            episodes.append(episode)

    if order == "date":
        episodes.sort(key=lambda ep: ep.filename)
        episodes.sort(key=lambda ep: ep.pub_date, reverse=True)

    logger.debug("Extracted %d episode(s) from %s", len(episodes), directory)
    return episodes
