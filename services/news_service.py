from __future__ import annotations

from typing import List, Optional

from app.config import clamp_items_per_page
from app.core.logging import get_logger
from app.models.news_public import NewsPageResponse, NewsSourceRecord
from app.models.news_sources import list_sources
from services.feed_fetcher import FeedFetcher
from services.news_aggregator import aggregate
from services.news_pagination import fallback, paginate

logger = get_logger().bind(module="news_service")


async def get_news_page(
    *,
    category: Optional[str] = None,
    page: int = 1,
    items_per_page: Optional[int] = None,
    limit: Optional[int] = None,
    fetcher: Optional[FeedFetcher] = None,
) -> NewsPageResponse:
    """
    Resolve one /news request: registry → aggregate → optional limit → page.

    An empty merged list (no sources, all failed, or nothing recent) is
    answered with the fallback payload instead.
    """
    per_page = clamp_items_per_page(items_per_page)
    sources = list_sources(category)

    items = await aggregate(sources, fetcher=fetcher) if sources else []
    if limit is not None:
        items = items[: max(0, limit)]

    if not items:
        logger.info(
            "news_fallback_used",
            category=category,
            sources=len(sources),
        )
        return fallback(items_per_page=per_page)

    return paginate(items, page, per_page)


def list_news_sources(category: Optional[str] = None) -> List[NewsSourceRecord]:
    return [
        NewsSourceRecord(
            key=source.key,
            name=source.name,
            url=source.url,
            icon=source.icon,
            category=source.category,
        )
        for source in list_sources(category)
    ]
