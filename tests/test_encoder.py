"""
Tests for RSS and JSON Feed encoding.

The RSS output is read back with feedparser, the way a podcast app would
read it; the JSON output is read back with decode_json_feed().

Covers:
- RSS channel and item fields, enclosure, item order
- JSON Feed structure and round trip
- Determinism (byte-identical output for the same model)
- EncodingFailed for values that cannot be serialized
"""

import json
from datetime import date, datetime, timezone
from typing import List

import feedparser
import pytest

from pogo_feed.errors import EncodingFailed
from pogo_feed.feed.encoder import (
    JSON_FEED_VERSION,
    decode_json_feed,
    encode_json,
    encode_rss,
    render_shownotes,
)
from pogo_feed.models.entities import Episode, Feed


# ---------------------------------------------------------------------------
#  Helpers
# ---------------------------------------------------------------------------

def _make_episode(
    title: str = "Pilot",
    pub_date: date = date(2024, 1, 15),
    size: int = 1000,
    description: str = "Welcome",
) -> Episode:
    filename = f"{pub_date.isoformat()}_{title}.mp3"
    return Episode(
        filename=filename,
        title=title,
        pub_date=pub_date,
        size=size,
        description=description,
        link=f"https://x.com/download/{filename}",
    )


def _make_feed(episodes: List[Episode] = None, **overrides) -> Feed:
    if episodes is None:
        episodes = [_make_episode()]
    values = dict(
        title="Show",
        link="https://x.com",
        description="A show about things",
        author_name="Alice",
        author_email="a@x.com",
        created=datetime(2024, 1, 15, tzinfo=timezone.utc),
        image="https://x.com/cover.png",
        episodes=tuple(episodes),
    )
    values.update(overrides)
    return Feed(**values)


# ===================================================================
# Shownotes rendering
# ===================================================================

class TestRenderShownotes:
    """Tests for render_shownotes()."""

    def test_renders_markdown(self):
        assert render_shownotes("**Hi**") == "<p><strong>Hi</strong></p>"

    def test_plain_text_becomes_paragraph(self):
        assert render_shownotes("Welcome") == "<p>Welcome</p>"

    def test_empty_text(self):
        assert render_shownotes("  \n") == ""


# ===================================================================
# RSS
# ===================================================================

class TestEncodeRss:
    """Tests for encode_rss()."""

    def test_channel_fields(self):
        parsed = feedparser.parse(encode_rss(_make_feed()))

        assert not parsed.bozo
        assert parsed.version == "rss20"
        assert parsed.feed.title == "Show"
        assert parsed.feed.link == "https://x.com"
        assert parsed.feed.image.href == "https://x.com/cover.png"

    def test_item_fields(self):
        parsed = feedparser.parse(encode_rss(_make_feed()))

        assert len(parsed.entries) == 1
        entry = parsed.entries[0]
        assert entry.title == "Pilot"
        assert entry.link == "https://x.com/download/2024-01-15_Pilot.mp3"
        assert entry.id == "https://x.com/download/2024-01-15_Pilot.mp3"
        assert entry.summary == "Welcome"
        assert entry.published_parsed[:3] == (2024, 1, 15)

    def test_enclosure(self):
        parsed = feedparser.parse(encode_rss(_make_feed()))

        enclosure = parsed.entries[0].enclosures[0]
        assert enclosure.href == "https://x.com/download/2024-01-15_Pilot.mp3"
        assert enclosure.length == "1000"
        assert enclosure.type == "audio/mpeg"

    def test_rendered_shownotes_in_content(self):
        feed = _make_feed([_make_episode(description="See **this**")])

        parsed = feedparser.parse(encode_rss(feed))

        assert "<strong>this</strong>" in parsed.entries[0].content[0].value

    def test_items_keep_feed_order(self):
        episodes = [
            _make_episode("Second", date(2024, 2, 1)),
            _make_episode("First", date(2024, 1, 1)),
            _make_episode("Third", date(2024, 3, 1)),
        ]

        parsed = feedparser.parse(encode_rss(_make_feed(episodes)))

        assert [e.title for e in parsed.entries] == ["Second", "First", "Third"]

    def test_empty_feed(self):
        parsed = feedparser.parse(encode_rss(_make_feed([])))

        assert parsed.feed.title == "Show"
        assert parsed.entries == []

    def test_empty_description_falls_back_to_title(self):
        parsed = feedparser.parse(encode_rss(_make_feed(description="")))

        assert parsed.feed.subtitle == "Show"

    def test_is_deterministic(self):
        feed = _make_feed([_make_episode("A"), _make_episode("B", date(2024, 1, 8))])

        assert encode_rss(feed) == encode_rss(feed)

    def test_invalid_xml_characters_fail(self):
        feed = _make_feed([_make_episode(description="bad \x00 byte")])

        with pytest.raises(EncodingFailed):
            encode_rss(feed)

    def test_missing_link_fails(self):
        with pytest.raises(EncodingFailed):
            encode_rss(_make_feed(link=""))


# ===================================================================
# JSON Feed
# ===================================================================

class TestEncodeJson:
    """Tests for encode_json() and decode_json_feed()."""

    def test_document_structure(self):
        document = json.loads(encode_json(_make_feed()))

        assert document["version"] == JSON_FEED_VERSION
        assert document["title"] == "Show"
        assert document["home_page_url"] == "https://x.com"
        assert document["icon"] == "https://x.com/cover.png"
        assert document["authors"] == [{"name": "Alice", "url": "mailto:a@x.com"}]

        item = document["items"][0]
        assert item["id"] == "https://x.com/download/2024-01-15_Pilot.mp3"
        assert item["title"] == "Pilot"
        assert item["content_text"] == "Welcome"
        assert item["content_html"] == "<p>Welcome</p>"
        assert item["date_published"] == "2024-01-15T00:00:00+00:00"
        assert item["attachments"] == [{
            "url": "https://x.com/download/2024-01-15_Pilot.mp3",
            "mime_type": "audio/mpeg",
            "size_in_bytes": 1000,
        }]

    def test_round_trip(self):
        """Decoding recovers title, link, author and every episode."""
        feed = _make_feed([
            _make_episode("Third", date(2024, 3, 1), size=3, description="# Three"),
            _make_episode("Second", date(2024, 2, 1), size=2, description=""),
            _make_episode("Pilot", date(2024, 1, 15), size=1),
        ])

        decoded = decode_json_feed(encode_json(feed))

        assert decoded.title == feed.title
        assert decoded.link == feed.link
        assert decoded.author_name == feed.author_name
        assert decoded.author_email == feed.author_email
        assert len(decoded.episodes) == len(feed.episodes)
        assert decoded == feed

    def test_non_ascii_is_kept_readable(self):
        feed = _make_feed([_make_episode("Café", description="Ünïcødé")])

        data = encode_json(feed)

        assert "Ünïcødé".encode("utf-8") in data
        assert decode_json_feed(data).episodes[0].title == "Café"

    def test_is_deterministic(self):
        feed = _make_feed([_make_episode("A"), _make_episode("B", date(2024, 1, 8))])

        assert encode_json(feed) == encode_json(feed)

    def test_unencodable_text_fails(self):
        feed = _make_feed([_make_episode(description="lone \ud800 surrogate")])

        with pytest.raises(EncodingFailed):
            encode_json(feed)

    def test_decode_rejects_other_documents(self):
        with pytest.raises(EncodingFailed):
            decode_json_feed(b'{"version": "https://jsonfeed.org/version/1.1"}')

    def test_decode_rejects_garbage(self):
        with pytest.raises(EncodingFailed):
            decode_json_feed(b"not json")
