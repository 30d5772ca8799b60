"""
Feed serialization to RSS 2.0 and JSON Feed.

RSS is produced with feedgen (with the iTunes podcast extension) for podcast
apps; the JSON Feed document is for the web frontend. Both encoders are
deterministic: the same Feed always produces the same bytes, because every
timestamp comes from the model rather than the clock.

Example:
    >>> rss = encode_rss(feed)
    >>> doc = encode_json(feed)
    >>> decode_json_feed(doc).title == feed.title
    True
"""

import json
import logging
from typing import Any, Dict, List
from urllib.parse import unquote, urlsplit

import markdown
from dateutil import parser as date_parser
from feedgen.feed import FeedGenerator

from pogo_feed.errors import EncodingFailed
from pogo_feed.models.entities import AUDIO_MIME_TYPE, Episode, Feed

logger = logging.getLogger(__name__)


JSON_FEED_VERSION = "https://jsonfeed.org/version/1.1"
EXTENSION_KEY = "_pogo"
ITUNES_IMAGE_SUFFIXES = (".jpg", ".png")


def render_shownotes(text: str) -> str:
    """
    Render Markdown shownotes to HTML.

    Args:
        text: Shownotes as Markdown or plain text

    Returns:
        HTML fragment (empty string for empty input)
    """
    if not text.strip():
        return ""
    return markdown.markdown(text, extensions=["extra", "sane_lists"], output_format="html").strip()


def _author(name: str, email: str) -> Dict[str, str]:
    author = {"name": name or email}
    if email:
        author["email"] = email
    return author


# ---------------------------------------------------------------------------
#  RSS
# ---------------------------------------------------------------------------

def _feed_generator(feed: Feed) -> FeedGenerator:
    fg = FeedGenerator()
    fg.load_extension("podcast")

    fg.title(feed.title)
    if feed.link:
        fg.link(href=feed.link, rel="alternate")
    # RSS refuses a channel without a description
    fg.description(feed.description or feed.title)
    if feed.author_name or feed.author_email:
        fg.author(_author(feed.author_name, feed.author_email))
    if feed.image:
        fg.image(url=feed.image)
    fg.pubDate(feed.created)
    fg.lastBuildDate(feed.created)

    if feed.author_name:
        fg.podcast.itunes_author(feed.author_name)
    if feed.author_name and feed.author_email:
        fg.podcast.itunes_owner(name=feed.author_name, email=feed.author_email)
    if feed.description:
        fg.podcast.itunes_summary(feed.description)
    if feed.image.lower().endswith(ITUNES_IMAGE_SUFFIXES):
        fg.podcast.itunes_image(feed.image)

    for episode in feed.episodes:
        fe = fg.add_entry(order="append")
        fe.title(episode.title)
        fe.guid(episode.link, permalink=True)
        fe.link(href=episode.link)
        if episode.description:
            fe.description(episode.description)
            fe.content(render_shownotes(episode.description), type="CDATA")
        fe.enclosure(episode.link, str(episode.size), episode.mime_type)
        fe.published(episode.published)
        if feed.author_name or feed.author_email:
            fe.author(_author(feed.author_name, feed.author_email))

    return fg


def encode_rss(feed: Feed) -> bytes:
    """
    Serialize the feed as an RSS 2.0 document.

    Args:
        feed: Feed model

    Returns:
        UTF-8 encoded RSS document

    Raises:
        EncodingFailed: If a value cannot be represented in XML or a
            mandatory channel field (title, link) is empty
    """
    try:
        data = _feed_generator(feed).rss_str(pretty=True)
    except ValueError as e:
        raise EncodingFailed(f"Cannot encode RSS feed '{feed.title}': {e}") from e
    logger.debug("Encoded RSS feed with %d item(s), %d bytes", len(feed.episodes), len(data))
    return data


# ---------------------------------------------------------------------------
#  JSON Feed
# ---------------------------------------------------------------------------

def _json_authors(feed: Feed) -> List[Dict[str, str]]:
    if not (feed.author_name or feed.author_email):
        return []
    author = {"name": feed.author_name or feed.author_email}
    if feed.author_email:
        author["url"] = f"mailto:{feed.author_email}"
    return [author]


def _json_item(episode: Episode, authors: List[Dict[str, str]]) -> Dict[str, Any]:
    item: Dict[str, Any] = {
        "id": episode.link,
        "url": episode.link,
        "title": episode.title,
        "content_text": episode.description,
    }
    html = render_shownotes(episode.description)
    if html:
        item["content_html"] = html
    item["date_published"] = episode.published.isoformat()
    if authors:
        item["authors"] = authors
    item["attachments"] = [
        {
            "url": episode.link,
            "mime_type": episode.mime_type,
            "size_in_bytes": episode.size,
        }
    ]
    item[EXTENSION_KEY] = {"filename": episode.filename}
    return item


def _json_document(feed: Feed) -> Dict[str, Any]:
    authors = _json_authors(feed)
    document: Dict[str, Any] = {
        "version": JSON_FEED_VERSION,
        "title": feed.title,
        "home_page_url": feed.link,
        "description": feed.description,
    }
    if feed.image:
        document["icon"] = feed.image
    if authors:
        document["authors"] = authors
        # JSON Feed 1.0 readers only know the singular form
        document["author"] = authors[0]
    document["items"] = [_json_item(ep, authors) for ep in feed.episodes]
    document[EXTENSION_KEY] = {
        "created": feed.created.isoformat(),
        "author_email": feed.author_email,
    }
    return document


def encode_json(feed: Feed) -> bytes:
    """
    Serialize the feed as a JSON Feed 1.1 document.

    Show-level values JSON Feed has no slot for (author email, creation
    time) and each item's filename go into ``_pogo`` extension objects so
    ``decode_json_feed`` can rebuild the model.

    Args:
        feed: Feed model

    Returns:
        UTF-8 encoded JSON document, newline terminated

    Raises:
        EncodingFailed: If a value cannot be encoded as UTF-8 JSON
    """
    try:
        text = json.dumps(_json_document(feed), indent=2, ensure_ascii=False)
        return (text + "\n").encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingFailed(f"Cannot encode JSON feed '{feed.title}': {e}") from e


def _decode_item(item: Dict[str, Any]) -> Episode:
    attachment = item["attachments"][0]
    extension = item.get(EXTENSION_KEY) or {}
    filename = extension.get("filename") or unquote(urlsplit(item["url"]).path.rsplit("/", 1)[-1])
    return Episode(
        filename=filename,
        title=item["title"],
        pub_date=date_parser.isoparse(item["date_published"]).date(),
        size=attachment.get("size_in_bytes", 0),
        description=item.get("content_text", ""),
        link=item["url"],
        mime_type=attachment.get("mime_type", AUDIO_MIME_TYPE),
    )


def decode_json_feed(data: bytes) -> Feed:
    """
    Rebuild a Feed model from a document produced by ``encode_json``.

    Args:
        data: JSON Feed bytes

    Returns:
        Feed model

    Raises:
        EncodingFailed: If the document is not a JSON Feed from this encoder
    """
    try:
        document = json.loads(data.decode("utf-8"))
        extension = document.get(EXTENSION_KEY) or {}
        authors = document.get("authors") or []
        return Feed(
            title=document["title"],
            link=document.get("home_page_url", ""),
            description=document.get("description", ""),
            author_name=authors[0]["name"] if authors else "",
            author_email=extension.get("author_email", ""),
            created=date_parser.isoparse(extension["created"]),
            image=document.get("icon", ""),
            episodes=tuple(_decode_item(item) for item in document.get("items", [])),
        )
    except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
        raise EncodingFailed(f"Cannot decode JSON feed: {e}") from e
