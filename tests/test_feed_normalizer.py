from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.models.news_raw import RawEntry
from app.models.news_sources import NewsSource
from services.feed_normalizer import (
    extract_author,
    extract_description,
    extract_image_url,
    format_iso,
    normalize,
    parse_datetime,
)
from services.feed_parser import parse
from services.feed_sanitizer import sanitize

NOW = datetime(2026, 2, 14, 12, 0, 0, tzinfo=timezone.utc)


def _make_source(**overrides) -> NewsSource:
    values = {
        "key": "phillyvoice",
        "name": "PhillyVoice",
        "url": "https://www.phillyvoice.com/feed/",
        "category": "general",
        "icon": "https://phillyvoice.com/logo.png",
    }
    values.update(overrides)
    return NewsSource(**values)


def _entry(**fields) -> RawEntry:
    base = {"title": "Headline", "link": "https://example.com/story"}
    base.update(fields)
    return RawEntry(**base)


def test_happy_path_maps_every_field():
    entry = _entry(
        description="<p>City council <b>votes</b></p>",
        creator="Jane",
        media_content="https://cdn.example.com/full.jpg",
        pub_date="2024-01-05T10:00:00Z",
    )

    item = normalize(entry, _make_source(), now=NOW)

    assert item.id == "https://example.com/story"
    assert item.link == "https://example.com/story"
    assert item.title == "Headline"
    assert item.description == "City council votes"
    assert item.author == "Jane"
    assert item.image_url == "https://cdn.example.com/full.jpg"
    assert item.source == "PhillyVoice"
    assert item.source_icon == "https://phillyvoice.com/logo.png"
    assert item.category == "general"


def test_iso_round_trip_of_pub_date():
    item = normalize(_entry(pub_date="2024-01-05T10:00:00Z"), _make_source(), now=NOW)

    assert item.pub_date == "2024-01-05T10:00:00.000Z"


def test_iso_date_wins_over_pub_date():
    entry = _entry(
        iso_date="2024-01-06T08:30:00+00:00",
        pub_date="Fri, 05 Jan 2024 10:00:00 GMT",
    )

    assert normalize(entry, _make_source(), now=NOW).pub_date == "2024-01-06T08:30:00.000Z"


def test_rfc822_date_with_us_timezone_abbreviation():
    entry = _entry(pub_date="Fri, 05 Jan 2024 10:00:00 EST")

    assert normalize(entry, _make_source(), now=NOW).pub_date == "2024-01-05T15:00:00.000Z"


@pytest.mark.parametrize("raw_date", [None, "", "not a date", "yesterday-ish"])
def test_missing_or_unparseable_date_falls_back_to_now(raw_date):
    item = normalize(_entry(pub_date=raw_date), _make_source(), now=NOW)

    assert item.pub_date == "2026-02-14T12:00:00.000Z"


def test_guid_used_when_link_missing():
    item = normalize(_entry(link=None, guid="https://example.com/guid-1"), _make_source(), now=NOW)

    assert item.id == "https://example.com/guid-1"
    assert item.link == "https://example.com/guid-1"


@pytest.mark.parametrize(
    "fields",
    [
        {"title": None},
        {"title": "   "},
        {"link": None, "guid": None},
        {"title": None, "link": None, "guid": None},
    ],
)
def test_entries_without_title_or_identifier_are_rejected(fields):
    assert normalize(_entry(**fields), _make_source(), now=NOW) is None


def test_title_is_trimmed():
    item = normalize(_entry(title="  Spaced out  "), _make_source(), now=NOW)

    assert item.title == "Spaced out"


def test_description_prefers_content_snippet():
    entry = _entry(
        content_snippet="Plain snippet",
        description="<p>HTML description</p>",
        content_encoded="<p>Encoded</p>",
    )

    assert extract_description(entry) == "Plain snippet"


def test_description_falls_back_through_encoded_then_content():
    assert extract_description(_entry(content_encoded="<div>Encoded <i>body</i></div>")) == "Encoded body"
    assert extract_description(_entry(content="<span>Atom body</span>")) == "Atom body"
    assert extract_description(_entry()) == ""


def test_description_skips_html_that_strips_to_nothing():
    entry = _entry(description="<img src='https://x.example/a.png' />", content_encoded="<p>Real text</p>")

    assert extract_description(entry) == "Real text"


def test_description_truncated_to_200_chars_with_ellipsis():
    entry = _entry(content_snippet="x" * 250)

    description = extract_description(entry)

    assert description == "x" * 200 + "..."


def test_description_of_exactly_200_chars_is_untouched():
    assert extract_description(_entry(content_snippet="y" * 200)) == "y" * 200


@pytest.mark.parametrize(
    "fields, expected",
    [
        ({"creator": "Creator", "author": "Author", "dc_creator": "DC"}, "Creator"),
        ({"author": "Author", "dc_creator": "DC"}, "Author"),
        ({"dc_creator": "DC"}, "DC"),
        ({"creator": "  ", "author": ""}, "Unknown"),
        ({}, "Unknown"),
    ],
)
def test_author_fallback_chain(fields, expected):
    assert extract_author(_entry(**fields)) == expected


def test_image_from_media_thumbnail_only():
    entry = _entry(media_thumbnail="https://cdn.example.com/thumb.jpg")

    assert extract_image_url(entry) == "https://cdn.example.com/thumb.jpg"


def test_image_priority_order():
    entry = _entry(
        media_content="https://cdn.example.com/content.jpg",
        media_thumbnail="https://cdn.example.com/thumb.jpg",
        enclosure_url="https://cdn.example.com/enclosure.jpg",
        content_encoded='<img src="https://cdn.example.com/inline.jpg">',
    )

    assert extract_image_url(entry) == "https://cdn.example.com/content.jpg"


def test_image_skips_invalid_urls():
    entry = _entry(
        media_content="not a url",
        media_thumbnail="/relative/thumb.jpg",
        media_group=("https://cdn.example.com/group.jpg",),
        enclosure_url="https://cdn.example.com/enclosure.jpg",
    )

    assert extract_image_url(entry) == "https://cdn.example.com/group.jpg"


def test_image_from_enclosure_then_inline_img():
    assert extract_image_url(_entry(enclosure_url="https://cdn.example.com/e.jpg")) == "https://cdn.example.com/e.jpg"
    assert (
        extract_image_url(_entry(content='<p><img class="hero" src="https://cdn.example.com/c.jpg"></p>'))
        == "https://cdn.example.com/c.jpg"
    )
    assert (
        extract_image_url(_entry(content_encoded="<img src='https://cdn.example.com/ce.jpg' />"))
        == "https://cdn.example.com/ce.jpg"
    )


def test_image_defaults_to_empty_string():
    assert extract_image_url(_entry(content="<p>No pictures here</p>")) == ""


def test_normalize_is_idempotent():
    entry = _entry(
        description="<p>Same</p>",
        pub_date="2024-01-05T10:00:00Z",
        media_thumbnail="https://cdn.example.com/t.jpg",
    )
    source = _make_source()

    assert normalize(entry, source) == normalize(entry, source)


def test_parsed_feed_thumbnail_becomes_image(sample_rss_xml):
    entries = parse(sanitize(sample_rss_xml))
    source = _make_source()

    first = normalize(entries[0], source, now=NOW)
    second = normalize(entries[1], source, now=NOW)

    assert first.image_url == "https://cdn.example.com/thumb-1.jpg"
    assert first.author == "Jane Reporter"
    assert first.pub_date == "2026-02-13T10:00:00.000Z"
    assert second.image_url == "https://cdn.example.com/enclosure-2.jpg"
    assert second.author == "Unknown"


def test_format_iso_converts_to_utc_milliseconds():
    value = parse_datetime("2024-07-04T12:30:45.678-04:00")

    assert format_iso(value) == "2024-07-04T16:30:45.678Z"


@pytest.mark.parametrize(
    "raw_date",
    ["0001-01-01T00:00:00+05:00", "9999-12-31T23:00:00-05:00"],
)
def test_date_outside_utc_range_falls_back_to_now(raw_date):
    assert parse_datetime(raw_date) is None

    item = normalize(_entry(pub_date=raw_date), _make_source(), now=NOW)

    assert item.pub_date == "2026-02-14T12:00:00.000Z"
