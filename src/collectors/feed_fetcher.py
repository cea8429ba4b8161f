"""Async RSS/Atom fetcher: one source in, its items or a FetchFailure out."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional, Tuple, Union

import feedparser
import httpx

from config.settings import INGESTION_CONFIG
from src.collectors.base_collector import BaseCollector
from src.errors import FetchFailure, FetchFailureReason
from src.ingestion.registry import Source
from src.utils.datetime_utils import parse_to_utc, utcnow
from src.utils.logger import EventLogger
from src.utils.text_cleaner import clean_title

FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml;q=0.9, */*;q=0.5"

# feedparser flags these as bozo even though the entries are intact
ACCEPTABLE_BOZO_EXCEPTIONS = (
    "CharacterEncodingOverride",
    "NonXMLContentType",
    "UndeclaredNamespace",
)


@dataclass(frozen=True)
class FeedItem:
    """One parsed feed entry."""

    title: str
    link: str
    published_at: datetime
    raw_summary: str = ""
    image_url: Optional[str] = None


@dataclass(frozen=True)
class FeedBatch:
    """Successful fetch: the source's items in feed order."""

    source_id: str
    items: Tuple[FeedItem, ...] = field(default_factory=tuple)
    latency: float = 0.0

    def __len__(self) -> int:
        return len(self.items)


FetchResult = Union[FeedBatch, FetchFailure]


class FeedFetcher(BaseCollector):
    """
    Fetches and parses a single feed under an independent timeout.

    Network problems, timeouts and HTTP errors become
    ``FetchFailure(network_error)``; unreadable payloads become
    ``FetchFailure(parse_error)``. Items are returned untouched and in feed
    order: no filtering, no deduplication.
    """

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        event_logger: Optional[EventLogger] = None,
    ) -> None:
        super().__init__(event_logger)
        self.timeout = float(timeout or INGESTION_CONFIG["request_timeout"])
        self.user_agent = user_agent or INGESTION_CONFIG["user_agent"]

    def open_client(self) -> httpx.AsyncClient:
        headers = {
            "User-Agent": self.user_agent,
            "Accept": FEED_ACCEPT,
            "Accept-Language": "es-ES,es;q=0.9,en;q=0.5",
        }
        return httpx.AsyncClient(headers=headers, follow_redirects=True, timeout=self.timeout)

    async def fetch(
        self, source: Source, client: Optional[httpx.AsyncClient] = None
    ) -> FetchResult:
        if client is None:
            async with self.open_client() as own_client:
                return await self.fetch(source, own_client)

        self.stats["fetches"] += 1
        started = time.perf_counter()
        try:
            response = await asyncio.wait_for(client.get(source.feed_url), timeout=self.timeout)
            response.raise_for_status()
        except asyncio.TimeoutError:
            return self._network_failure(source, f"timed out after {self.timeout:g}s", started)
        except httpx.HTTPStatusError as exc:
            return self._network_failure(source, f"HTTP {exc.response.status_code}", started)
        except httpx.HTTPError as exc:
            return self._network_failure(source, f"{exc.__class__.__name__}: {exc}", started)

        fetched_at = utcnow()
        try:
            result = self.parse_feed(source, response.content, fetched_at=fetched_at)
        except Exception as exc:  # an entry feedparser accepted but we cannot read
            result = FetchFailure(
                source.id, FetchFailureReason.PARSE_ERROR, f"{exc.__class__.__name__}: {exc}"
            )
        latency = time.perf_counter() - started
        if isinstance(result, FetchFailure):
            self.stats["parse_errors"] += 1
            self._emit_log(
                "warning",
                "collector.feed.parse_failed",
                source_id=source.id,
                category=source.category,
                latency=latency,
                details={"url": source.feed_url, "error": result.detail},
            )
            return result

        self.stats["items_found"] += len(result.items)
        self._emit_log(
            "debug",
            "collector.feed.fetched",
            source_id=source.id,
            category=source.category,
            latency=latency,
            details={"items": len(result.items)},
        )
        return FeedBatch(source_id=source.id, items=result.items, latency=latency)

    def parse_feed(
        self,
        source: Source,
        content: Union[bytes, str],
        *,
        fetched_at: Optional[datetime] = None,
    ) -> FetchResult:
        fetched_at = fetched_at or utcnow()
        if isinstance(content, str):
            # feedparser treats str input as a possible URL or file path
            content = content.encode("utf-8")
        parsed = feedparser.parse(content)
        entries = list(parsed.get("entries", []))

        if parsed.get("bozo") and not entries and not self._is_acceptable_bozo(parsed):
            error = parsed.get("bozo_exception")
            detail = f"{error.__class__.__name__}: {error}" if error else "malformed feed"
            return FetchFailure(source.id, FetchFailureReason.PARSE_ERROR, detail)
        if not entries and not parsed.get("version"):
            return FetchFailure(
                source.id, FetchFailureReason.PARSE_ERROR, "payload is not an RSS/Atom feed"
            )

        items = tuple(
            item
            for item in (self._extract_item(entry, fetched_at) for entry in entries)
            if item is not None
        )
        return FeedBatch(source_id=source.id, items=items)

    @staticmethod
    def _is_acceptable_bozo(parsed: Any) -> bool:
        exception = parsed.get("bozo_exception")
        return exception is not None and exception.__class__.__name__ in ACCEPTABLE_BOZO_EXCEPTIONS

    def _extract_item(self, entry: Any, fetched_at: datetime) -> Optional[FeedItem]:
        link = (entry.get("link") or "").strip()
        if not link:
            return None
        return FeedItem(
            title=clean_title(entry.get("title", "")),
            link=link,
            published_at=self._extract_published(entry, fetched_at),
            raw_summary=self._extract_summary(entry),
            image_url=self._extract_image(entry),
        )

    @staticmethod
    def _extract_published(entry: Any, fallback: datetime) -> datetime:
        for field_name in ("published_parsed", "updated_parsed", "published", "updated"):
            value = entry.get(field_name)
            if value:
                return parse_to_utc(value, fallback=fallback)
        return fallback

    @staticmethod
    def _extract_summary(entry: Any) -> str:
        for field_name in ("summary", "description"):
            value = entry.get(field_name)
            if value:
                return str(value)
        content = entry.get("content")
        if content:
            first = content[0]
            return str(first.get("value", "")) if hasattr(first, "get") else str(first)
        return ""

    @staticmethod
    def _extract_image(entry: Any) -> Optional[str]:
        for enclosure in entry.get("enclosures", []) or []:
            if str(enclosure.get("type", "")).startswith("image/") and enclosure.get("href"):
                return enclosure["href"]
        for field_name in ("media_content", "media_thumbnail"):
            for media in _as_list(entry.get(field_name)):
                url = media.get("url")
                if url:
                    return url
        return None

    def _network_failure(self, source: Source, detail: str, started: float) -> FetchFailure:
        self.stats["network_errors"] += 1
        self._emit_log(
            "warning",
            "collector.feed.network_error",
            source_id=source.id,
            category=source.category,
            latency=time.perf_counter() - started,
            details={"url": source.feed_url, "error": detail},
        )
        return FetchFailure(source.id, FetchFailureReason.NETWORK_ERROR, detail)


def _as_list(value: Any) -> Iterable[Any]:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return value
    return [value]
