from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional
from urllib.parse import urlparse

from dateutil import parser as date_parser
from dateutil import tz

from app.models.news_public import NewsItem
from app.models.news_raw import RawEntry
from app.models.news_sources import NewsSource
from services.feed_text import first_img_src, strip_html

DESCRIPTION_MAX_LENGTH = 200
UNKNOWN_AUTHOR = "Unknown"

# dateutil leaves these naive (with a warning) unless told what they mean
_TZ_ABBREVIATIONS = {
    "UT": tz.UTC,
    "UTC": tz.UTC,
    "GMT": tz.UTC,
    "Z": tz.UTC,
    "EST": tz.tzoffset("EST", -5 * 3600),
    "EDT": tz.tzoffset("EDT", -4 * 3600),
    "CST": tz.tzoffset("CST", -6 * 3600),
    "CDT": tz.tzoffset("CDT", -5 * 3600),
    "MST": tz.tzoffset("MST", -7 * 3600),
    "MDT": tz.tzoffset("MDT", -6 * 3600),
    "PST": tz.tzoffset("PST", -8 * 3600),
    "PDT": tz.tzoffset("PDT", -7 * 3600),
}


def format_iso(value: datetime) -> str:
    """UTC, millisecond precision, trailing Z: 2024-01-05T10:00:00.000Z"""
    utc = value.astimezone(timezone.utc)
    return f"{utc:%Y-%m-%dT%H:%M:%S}.{utc.microsecond // 1000:03d}Z"


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Lenient date parsing into UTC; naive results are taken as UTC.
    None when unparseable or when the instant falls outside datetime's range in UTC.
    """
    if not value or not value.strip():
        return None
    try:
        parsed = date_parser.parse(value.strip(), tzinfos=_TZ_ABBREVIATIONS)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError, TypeError):
        return None


def is_valid_url(value: Optional[str]) -> bool:
    if not value:
        return False
    try:
        result = urlparse(value)
    except ValueError:
        return False
    return result.scheme in ("http", "https") and bool(result.netloc)


def _first_non_empty(values: Iterable[Optional[str]]) -> str:
    for value in values:
        if value and value.strip():
            return value.strip()
    return ""


def _truncate(value: str, max_length: int = DESCRIPTION_MAX_LENGTH) -> str:
    if len(value) <= max_length:
        return value
    return value[:max_length] + "..."


def extract_description(entry: RawEntry) -> str:
    text = _first_non_empty(
        (
            entry.content_snippet,
            strip_html(entry.description),
            strip_html(entry.content_encoded),
            strip_html(entry.content),
        )
    )
    return _truncate(text)


def extract_author(entry: RawEntry) -> str:
    return _first_non_empty((entry.creator, entry.author, entry.dc_creator)) or UNKNOWN_AUTHOR


def extract_image_url(entry: RawEntry) -> str:
    candidates = (
        entry.media_content,
        entry.media_thumbnail,
        entry.media_group[0] if entry.media_group else None,
        entry.enclosure_url,
        first_img_src(entry.content),
        first_img_src(entry.content_encoded),
    )
    for candidate in candidates:
        if candidate and is_valid_url(candidate.strip()):
            return candidate.strip()
    return ""


def extract_published_at(entry: RawEntry, *, now: Optional[datetime] = None) -> datetime:
    return (
        parse_datetime(entry.iso_date)
        or parse_datetime(entry.pub_date)
        or now
        or datetime.now(timezone.utc)
    )


def normalize(
    entry: RawEntry,
    source: NewsSource,
    *,
    now: Optional[datetime] = None,
) -> NewsItem | None:
    """
    Map a RawEntry onto the canonical NewsItem.

    Returns None when the entry has no title or has neither link nor guid.
    Entries without a usable date are stamped with `now` (default: current time).
    """
    title = (entry.title or "").strip()
    link = _first_non_empty((entry.link, entry.guid))
    if not title or not link:
        return None

    return NewsItem(
        id=link,
        title=title,
        link=link,
        description=extract_description(entry),
        pub_date=format_iso(extract_published_at(entry, now=now)),
        source=source.name,
        source_icon=source.icon,
        category=source.category,
        author=extract_author(entry),
        image_url=extract_image_url(entry),
    )
