"""Shared fixtures for the news aggregation tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from typing import Callable, Iterable, Tuple

import pytest

from app.models.news_sources import clear_news_sources_cache
from services.feed_fetcher import get_shared_cache


SAMPLE_RSS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:media="http://search.yahoo.com/mrss/"
     xmlns:content="http://purl.org/rss/1.0/modules/content/"
     xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <title>Test Feed</title>
    <link>https://example.com</link>
    <description>A test RSS feed</description>
    <item>
      <title>First Article</title>
      <link>https://example.com/article-1</link>
      <guid>article-1</guid>
      <description><![CDATA[<p>Description of the <b>first</b> article</p>]]></description>
      <dc:creator>Jane Reporter</dc:creator>
      <media:thumbnail url="https://cdn.example.com/thumb-1.jpg" />
      <category>City Hall</category>
      <pubDate>Thu, 13 Feb 2026 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Second Article</title>
      <link>https://example.com/article-2</link>
      <guid>article-2</guid>
      <content:encoded><![CDATA[<p><img src="https://cdn.example.com/inline-2.jpg" /> Body of the second article</p>]]></content:encoded>
      <enclosure url="https://cdn.example.com/enclosure-2.jpg" type="image/jpeg" length="1000" />
      <pubDate>Thu, 13 Feb 2026 09:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>"""

SAMPLE_ATOM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Test Atom Feed</title>
  <link href="https://example.com"/>
  <entry>
    <title>Atom Entry 1</title>
    <link href="https://example.com/entry-1"/>
    <id>urn:uuid:entry-1</id>
    <author><name>Atom Author</name></author>
    <summary>Summary of entry 1</summary>
    <updated>2026-02-13T10:00:00Z</updated>
  </entry>
</feed>"""

SAMPLE_MALFORMED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Malformed Feed</title>
    <link>https://example.com</link>
    <item>
      <title>Good Item</title>
      <link>https://example.com/good-item</link>
    </item>
    <item>
      <title>Bad Item</title>
"""

SAMPLE_NOT_A_FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<html>
  <body>This is not a feed</body>
</html>"""


def build_rss(items: Iterable[Tuple[str, str, datetime]]) -> str:
    """Minimal RSS 2.0 document from (title, link, published) tuples."""
    body = "".join(
        f"""
    <item>
      <title>{title}</title>
      <link>{link}</link>
      <description>About {title}</description>
      <pubDate>{format_datetime(published, usegmt=True)}</pubDate>
    </item>"""
        for title, link, published in items
    )
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Generated</title>
    <link>https://example.com</link>{body}
  </channel>
</rss>"""


@pytest.fixture(autouse=True)
def _reset_caches():
    clear_news_sources_cache()
    get_shared_cache().clear()
    yield
    clear_news_sources_cache()
    get_shared_cache().clear()


@pytest.fixture
def sample_rss_xml() -> str:
    return SAMPLE_RSS_XML


@pytest.fixture
def sample_atom_xml() -> str:
    return SAMPLE_ATOM_XML


@pytest.fixture
def sample_malformed_xml() -> str:
    return SAMPLE_MALFORMED_XML


@pytest.fixture
def sample_not_a_feed_xml() -> str:
    return SAMPLE_NOT_A_FEED_XML


@pytest.fixture
def recent_rss() -> Callable[[int], str]:
    """RSS with `count` items published 1, 2, 3... hours ago (newest first)."""

    def _build(count: int, prefix: str = "story") -> str:
        now = datetime.now(timezone.utc).replace(microsecond=0)
        return build_rss(
            (
                f"{prefix} {idx}",
                f"https://example.com/{prefix}-{idx}",
                now - timedelta(hours=idx),
            )
            for idx in range(1, count + 1)
        )

    return _build
