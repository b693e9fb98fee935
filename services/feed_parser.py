"""Tolerant RSS/Atom parsing using feedparser."""

from __future__ import annotations

import calendar
import io
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import feedparser

from app.models.news_raw import RawEntry
from services.feed_text import strip_html

# Body is always handed over as UTF-8 bytes, whatever the prolog claims
_UTF8_HEADERS = {"content-type": "application/xml; charset=utf-8"}


class FeedParseError(Exception):
    """Raised when a document cannot be read as a feed at all."""


def parse(sanitized_xml: str) -> List[RawEntry]:
    """
    Parse sanitized feed XML into RawEntry records.

    feedparser recovers from most markup damage on its own (bozo feeds);
    a document only fails when it is empty or nothing feed-like survives.

    Raises:
        FeedParseError: empty document, or no recognisable RSS/Atom structure.
    """
    if not sanitized_xml or not sanitized_xml.strip():
        raise FeedParseError("empty document")

    # A file-like object keeps feedparser from treating the text as a URL or path
    try:
        parsed = feedparser.parse(
            io.BytesIO(sanitized_xml.encode("utf-8")),
            response_headers=_UTF8_HEADERS,
        )
    except Exception as exc:
        raise FeedParseError(f"feedparser crashed: {exc}") from exc

    entries = parsed.get("entries") or []
    if not parsed.get("version") and not entries:
        reason = parsed.get("bozo_exception") if parsed.get("bozo") else None
        raise FeedParseError(
            f"not a valid RSS or Atom feed: {reason}" if reason else "not a valid RSS or Atom feed"
        )

    is_atom = str(parsed.get("version") or "").startswith("atom")
    return [_to_raw_entry(entry, is_atom=is_atom) for entry in entries]


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        value = value.strip()
        if value:
            return value
    return None


def _first_content_value(entry: Dict[str, Any]) -> Optional[str]:
    content = entry.get("content")
    if isinstance(content, list):
        for block in content:
            if isinstance(block, dict):
                value = _text(block.get("value"))
                if value:
                    return value
    return None


def _media_urls(entry: Dict[str, Any], key: str) -> List[str]:
    urls: List[str] = []
    media = entry.get(key)
    if isinstance(media, list):
        for block in media:
            if isinstance(block, dict):
                url = _text(block.get("url"))
                if url:
                    urls.append(url)
    return urls


def _enclosure_url(entry: Dict[str, Any]) -> Optional[str]:
    enclosures = entry.get("enclosures")
    if isinstance(enclosures, list):
        for enclosure in enclosures:
            if isinstance(enclosure, dict):
                href = _text(enclosure.get("href")) or _text(enclosure.get("url"))
                if href:
                    return href
    return None


def _struct_time_to_iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    try:
        timestamp = calendar.timegm(value)
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def _categories(entry: Dict[str, Any]) -> Tuple[str, ...]:
    tags = entry.get("tags")
    if not isinstance(tags, list):
        return ()
    terms = []
    for tag in tags:
        if isinstance(tag, dict):
            term = _text(tag.get("term"))
            if term:
                terms.append(term)
    return tuple(terms)


def _to_raw_entry(entry: Dict[str, Any], *, is_atom: bool) -> RawEntry:
    description = _text(entry.get("summary")) or _text(entry.get("description"))
    body = _first_content_value(entry)
    # feedparser files <content:encoded> and Atom <content> under the same key
    content_encoded = None if is_atom else body
    content = body if is_atom else None

    snippet_source = body or description
    content_snippet = strip_html(snippet_source) or None

    author_detail = entry.get("author_detail")
    creator = _text(author_detail.get("name")) if isinstance(author_detail, dict) else None

    # feedparser flattens <media:group> children into media_content
    media_contents = _media_urls(entry, "media_content")
    media_thumbnails = _media_urls(entry, "media_thumbnail")

    return RawEntry(
        title=_text(entry.get("title")),
        link=_text(entry.get("link")),
        guid=_text(entry.get("id")) or _text(entry.get("guid")),
        description=description,
        content_snippet=content_snippet,
        content_encoded=content_encoded,
        content=content,
        creator=creator,
        author=_text(entry.get("author")),
        # undeclared dc: prefix lands here instead of under author
        dc_creator=_text(entry.get("dc_creator")),
        media_content=media_contents[0] if media_contents else None,
        media_thumbnail=media_thumbnails[0] if media_thumbnails else None,
        media_group=tuple(media_contents[1:]),
        enclosure_url=_enclosure_url(entry),
        pub_date=_text(entry.get("published")) or _text(entry.get("updated")),
        iso_date=_struct_time_to_iso(entry.get("published_parsed"))
        or _struct_time_to_iso(entry.get("updated_parsed")),
        categories=_categories(entry),
    )
