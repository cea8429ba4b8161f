"""Fetched feed items tagged with their origin, as they move through a cycle."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from src.collectors.feed_fetcher import FeedItem
from src.ingestion.registry import Source


@dataclass(frozen=True)
class CandidateArticle:
    """A feed item plus the source and category it was fetched for.

    ``url`` is the dedup key (canonicalized link); ``position`` is the item's
    index in the merged batch and fixes fetch order.
    """

    item: FeedItem
    source: Source
    category: str
    url: str
    position: int

    @property
    def title(self) -> str:
        return self.item.title

    @property
    def published_at(self) -> datetime:
        return self.item.published_at

    @property
    def image_url(self) -> Optional[str]:
        return self.item.image_url
