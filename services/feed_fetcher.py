"""
HTTP retrieval of a single feed.

fetch() never raises for transport problems: every outcome comes back as one
of the FetchResult values so the aggregator can keep going with the other
sources. Successful bodies are cached per URL for NEWS_FETCH_CACHE_TTL_S.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, Union

import httpx

from app.config import settings
from app.core.logging import get_logger
from app.models.news_sources import NewsSource

logger = get_logger().bind(module="feed_fetcher")

ACCEPT_HEADER = "application/rss+xml, application/xml, text/xml, application/atom+xml"


@dataclass(frozen=True)
class FetchOk:
    text: str


@dataclass(frozen=True)
class FetchTimeout:
    timeout_ms: int


@dataclass(frozen=True)
class FetchHttpError:
    status_code: int


@dataclass(frozen=True)
class FetchNetworkError:
    reason: str


FetchResult = Union[FetchOk, FetchTimeout, FetchHttpError, FetchNetworkError]


class FeedResponseCache:
    """
    Per-URL cache of successful feed bodies. Only touched from the event loop
    thread, so no locking.
    """

    def __init__(self, ttl_s: int, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_s = ttl_s
        self._clock = clock
        self._entries: Dict[str, Tuple[float, str]] = {}

    def get(self, url: str) -> Optional[str]:
        if self.ttl_s <= 0:
            return None
        hit = self._entries.get(url)
        if hit is None:
            return None
        expires_at, text = hit
        if self._clock() >= expires_at:
            del self._entries[url]
            return None
        return text

    def put(self, url: str, text: str) -> None:
        if self.ttl_s <= 0:
            return
        self._entries[url] = (self._clock() + self.ttl_s, text)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


_shared_cache = FeedResponseCache(settings.NEWS_FETCH_CACHE_TTL_S)


def get_shared_cache() -> FeedResponseCache:
    return _shared_cache


class FeedFetcher:
    def __init__(
        self,
        *,
        timeout_ms: int = settings.NEWS_FETCH_TIMEOUT_MS,
        max_concurrency: int = settings.NEWS_MAX_CONCURRENCY,
        user_agent: str = settings.NEWS_USER_AGENT,
        cache: Optional[FeedResponseCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout_ms = timeout_ms
        self.user_agent = user_agent
        self.cache = cache if cache is not None else _shared_cache
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._sem = asyncio.Semaphore(max(1, max_concurrency))

    async def __aenter__(self) -> "FeedFetcher":
        self._client = httpx.AsyncClient(
            headers={
                "Accept": ACCEPT_HEADER,
                "User-Agent": self.user_agent,
            },
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get(self, url: str, timeout_s: float) -> httpx.Response:
        if not self._client:
            raise RuntimeError("FeedFetcher client not initialized")
        # httpx timeouts are per phase; wait_for turns them into one deadline
        return await asyncio.wait_for(
            self._client.get(url, timeout=timeout_s),
            timeout=timeout_s,
        )

    async def fetch(self, source: NewsSource, timeout_ms: Optional[int] = None) -> FetchResult:
        deadline_ms = timeout_ms if timeout_ms is not None else self.timeout_ms

        cached = self.cache.get(source.url)
        if cached is not None:
            logger.debug("news_fetch_cache_hit", source=source.name, url=source.url)
            return FetchOk(cached)

        try:
            async with self._sem:
                response = await self._get(source.url, deadline_ms / 1000)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning(
                "news_fetch_timeout",
                source=source.name,
                url=source.url,
                timeout_ms=deadline_ms,
            )
            return FetchTimeout(deadline_ms)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            reason = str(exc) or exc.__class__.__name__
            logger.warning(
                "news_fetch_network_error",
                source=source.name,
                url=source.url,
                error=reason,
            )
            return FetchNetworkError(reason)

        if not response.is_success:
            logger.warning(
                "news_fetch_http_error",
                source=source.name,
                url=source.url,
                status_code=response.status_code,
            )
            return FetchHttpError(response.status_code)

        text = response.text
        self.cache.put(source.url, text)
        return FetchOk(text)
