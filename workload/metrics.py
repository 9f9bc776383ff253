from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from redis import Redis

from .events import ErrorEvent, EventSink, Visit


@dataclass
class UrlStats:
    visits: int
    errors: int


class MetricsStore:
    """Aggregate traffic counters in Redis.

    - Global: metrics:global (hash: visits, errors)
    - Per status code: metrics:status (hash)
    - Per URL: metrics:url:{url} (hash: visits, errors)
    - Most visited URLs: metrics:top_urls (sorted set)

    Only counters are kept, never individual requests.
    """

    GLOBAL_KEY = "metrics:global"
    STATUS_KEY = "metrics:status"
    TOP_URLS_ZSET = "metrics:top_urls"

    def __init__(self, r: Redis):
        self.r = r

    def _url_key(self, url: str) -> str:
        return f"metrics:url:{url}"

    def record_visit(self, url: str, status_code: int) -> None:
        pipe = self.r.pipeline()
        pipe.hincrby(self.GLOBAL_KEY, "visits", 1)
        pipe.hincrby(self.STATUS_KEY, str(status_code), 1)
        pipe.hincrby(self._url_key(url), "visits", 1)
        pipe.zincrby(self.TOP_URLS_ZSET, 1, url)
        pipe.execute()

    def record_error(self, url: str) -> None:
        pipe = self.r.pipeline()
        pipe.hincrby(self.GLOBAL_KEY, "errors", 1)
        pipe.hincrby(self._url_key(url), "errors", 1)
        pipe.execute()

    def global_stats(self) -> dict[str, int]:
        data: dict[str, Any] = self.r.hgetall(self.GLOBAL_KEY) or {}
        return {
            "visits": int(data.get("visits", 0)),
            "errors": int(data.get("errors", 0)),
        }

    def status_stats(self) -> dict[str, int]:
        data = self.r.hgetall(self.STATUS_KEY) or {}
        return {str(code): int(n) for code, n in sorted(data.items())}

    def top_urls(self, n: int = 10) -> list[dict[str, Any]]:
        raw = self.r.zrevrange(self.TOP_URLS_ZSET, 0, max(0, n - 1), withscores=True)
        return [{"url": url, "visits": int(score)} for url, score in raw]

    def url_stats(self, url: str) -> UrlStats:
        data = self.r.hgetall(self._url_key(url)) or {}
        return UrlStats(
            visits=int(data.get("visits", 0)),
            errors=int(data.get("errors", 0)),
        )

    def reset(self) -> None:
        # Per-URL hashes are left alone; there may be many of them.
        self.r.delete(self.GLOBAL_KEY, self.STATUS_KEY, self.TOP_URLS_ZSET)


def _strip_query(url: str) -> str:
    parts = urlsplit(url)
    return parts._replace(query="", fragment="").geturl()


class MetricsSink(EventSink):
    """Feeds dispatch results into a MetricsStore.

    Redis calls are blocking, so they run in a worker thread and a slow Redis
    only delays the tick being recorded.
    """

    def __init__(self, store: MetricsStore):
        self.store = store

    async def on_visit(self, visit: Visit) -> None:
        url = _strip_query(visit.request.url)
        await asyncio.to_thread(self.store.record_visit, url, visit.response.status_code)

    async def on_error(self, event: ErrorEvent) -> None:
        url = event.request.url if event.request is not None else "unknown"
        await asyncio.to_thread(self.store.record_error, _strip_query(url))
