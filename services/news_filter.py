from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from app.config import settings
from app.models.news_public import NewsItem
from services.feed_normalizer import parse_datetime


def filter_recent(
    items: Sequence[NewsItem],
    retention_days: int = settings.NEWS_RETENTION_DAYS,
    *,
    now: Optional[datetime] = None,
) -> List[NewsItem]:
    """
    Keep items published strictly after now - retention_days.

    An item exactly on the boundary is dropped. Normalized items always carry
    a parseable pub_date; anything else is treated as current and kept.
    """
    reference = now or datetime.now(timezone.utc)
    cutoff = reference - timedelta(days=retention_days)
    kept: List[NewsItem] = []
    for item in items:
        published = parse_datetime(item.pub_date)
        if published is None or published > cutoff:
            kept.append(item)
    return kept
