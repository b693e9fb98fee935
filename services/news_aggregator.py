from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from app.config import settings
from app.core.logging import get_logger
from app.models.news_public import NewsItem
from app.models.news_sources import NewsSource
from services.feed_fetcher import (
    FeedFetcher,
    FetchHttpError,
    FetchNetworkError,
    FetchOk,
    FetchTimeout,
)
from services.feed_normalizer import normalize, parse_datetime
from services.feed_parser import FeedParseError, parse
from services.feed_sanitizer import sanitize
from services.news_filter import filter_recent

logger = get_logger().bind(module="news_aggregator")


@dataclass(frozen=True)
class SourceOutcome:
    """What one source contributed to a request. error is set when it contributed nothing."""

    source: NewsSource
    items: List[NewsItem] = field(default_factory=list)
    error: Optional[str] = None
    rejected: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def _published_ts(item: NewsItem) -> float:
    published = parse_datetime(item.pub_date)
    return published.timestamp() if published else 0.0


def sort_newest_first(items: Sequence[NewsItem]) -> List[NewsItem]:
    """Descending by publish timestamp; ties keep their merge order."""
    return sorted(items, key=_published_ts, reverse=True)


def _describe_failure(result: object) -> str:
    if isinstance(result, FetchTimeout):
        return f"timeout after {result.timeout_ms}ms"
    if isinstance(result, FetchHttpError):
        return f"HTTP {result.status_code}"
    if isinstance(result, FetchNetworkError):
        return f"network error: {result.reason}"
    return f"unexpected fetch result: {result!r}"


class NewsAggregator:
    def __init__(
        self,
        fetcher: FeedFetcher,
        *,
        timeout_ms: int = settings.NEWS_FETCH_TIMEOUT_MS,
        retention_days: int = settings.NEWS_RETENTION_DAYS,
    ) -> None:
        self.fetcher = fetcher
        self.timeout_ms = timeout_ms
        self.retention_days = retention_days

    async def run_source(self, source: NewsSource, *, now: Optional[datetime] = None) -> SourceOutcome:
        """fetch → sanitize → parse → normalize → filter for one source."""
        reference = now or datetime.now(timezone.utc)

        result = await self.fetcher.fetch(source, self.timeout_ms)
        if not isinstance(result, FetchOk):
            return SourceOutcome(source=source, error=_describe_failure(result))

        try:
            entries = parse(sanitize(result.text))
        except FeedParseError as exc:
            logger.warning(
                "news_parse_failed",
                source=source.name,
                url=source.url,
                error=str(exc),
            )
            return SourceOutcome(source=source, error=f"parse failure: {exc}")

        normalized: List[NewsItem] = []
        rejected = 0
        for entry in entries:
            item = normalize(entry, source, now=reference)
            if item is None:
                rejected += 1
                continue
            normalized.append(item)

        recent = filter_recent(normalized, self.retention_days, now=reference)
        logger.info(
            "news_source_completed",
            source=source.name,
            entries=len(entries),
            rejected=rejected,
            stale=len(normalized) - len(recent),
            items=len(recent),
        )
        return SourceOutcome(source=source, items=recent, rejected=rejected)

    async def collect(self, sources: Sequence[NewsSource]) -> List[SourceOutcome]:
        """Run every source pipeline concurrently and wait for all of them."""
        now = datetime.now(timezone.utc)
        results = await asyncio.gather(
            *(self.run_source(source, now=now) for source in sources),
            return_exceptions=True,
        )
        outcomes: List[SourceOutcome] = []
        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error(
                    "news_source_unexpected_error",
                    source=source.name,
                    url=source.url,
                    error=str(result) or result.__class__.__name__,
                )
                outcomes.append(SourceOutcome(source=source, error=str(result)))
            else:
                outcomes.append(result)
        return outcomes

    async def aggregate(self, sources: Sequence[NewsSource]) -> List[NewsItem]:
        """Merged, newest-first items from all sources. Failed sources add nothing."""
        outcomes = await self.collect(sources)
        merged = [item for outcome in outcomes for item in outcome.items]
        failed = [outcome.source.name for outcome in outcomes if not outcome.ok]
        logger.info(
            "news_aggregate_completed",
            sources=len(outcomes),
            failed=len(failed),
            failed_sources=failed,
            items=len(merged),
        )
        return sort_newest_first(merged)


async def aggregate(sources: Sequence[NewsSource], *, fetcher: Optional[FeedFetcher] = None) -> List[NewsItem]:
    """
    Convenience wrapper: aggregate with a fetcher scoped to this call unless
    one is passed in (already entered).
    """
    if fetcher is not None:
        return await NewsAggregator(fetcher).aggregate(sources)
    async with FeedFetcher() as scoped:
        return await NewsAggregator(scoped).aggregate(sources)
