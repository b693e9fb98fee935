from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from app.models.news_public import NewsItem, NewsPageResponse, PaginationMeta
from services.feed_normalizer import format_iso

FALLBACK_SOURCE = "Philly News"
FALLBACK_LINK = "/news"

_FALLBACK_ITEMS = (
    (
        "fallback-latest",
        "Philadelphia headlines are on their way",
        "Our news sources are taking a moment to respond. Fresh stories from "
        "around the city will appear here shortly.",
        "general",
    ),
    (
        "fallback-categories",
        "Browse news by category",
        "Try another category (general, business, education, lifestyle or sports) "
        "to see what is happening in Philadelphia.",
        "general",
    ),
    (
        "fallback-community",
        "Stay connected with your community",
        "While the feeds refresh, check out local events and community channels.",
        "general",
    ),
)


def paginate(items: Sequence[NewsItem], page: int, items_per_page: int) -> NewsPageResponse:
    """
    Slice one page out of the merged, sorted list.

    page < 1 is treated as 1; a page past the end yields an empty slice while
    still reporting the requested page number.
    """
    current_page = max(1, page)
    per_page = max(1, items_per_page)
    total_items = len(items)
    total_pages = math.ceil(total_items / per_page)
    start = (current_page - 1) * per_page
    return NewsPageResponse(
        items=list(items[start:start + per_page]),
        pagination=PaginationMeta(
            current_page=current_page,
            total_pages=total_pages,
            total_items=total_items,
            items_per_page=per_page,
            has_next_page=current_page < total_pages,
            has_previous_page=current_page > 1,
        ),
    )


def fallback_items(*, now: Optional[datetime] = None) -> List[NewsItem]:
    published = format_iso(now or datetime.now(timezone.utc))
    return [
        NewsItem(
            id=item_id,
            title=title,
            link=f"{FALLBACK_LINK}#{item_id}",
            description=description,
            pub_date=published,
            source=FALLBACK_SOURCE,
            category=category,
            author=FALLBACK_SOURCE,
            image_url="",
        )
        for item_id, title, description, category in _FALLBACK_ITEMS
    ]


def fallback(*, items_per_page: Optional[int] = None, now: Optional[datetime] = None) -> NewsPageResponse:
    """
    Canned single-page payload used when aggregation produced nothing,
    so the front end never has to render an error state for "no news".
    """
    items = fallback_items(now=now)
    return NewsPageResponse(
        items=items,
        pagination=PaginationMeta(
            current_page=1,
            total_pages=1,
            total_items=len(items),
            items_per_page=items_per_page or len(items),
            has_next_page=False,
            has_previous_page=False,
        ),
    )
