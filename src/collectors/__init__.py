"""
Paquete de colectores del pipeline de ingesta.
"""

from .base_collector import BaseCollector
from .feed_fetcher import FeedBatch, FeedFetcher, FeedItem, FetchResult

__all__ = [
    "BaseCollector",
    "FeedBatch",
    "FeedFetcher",
    "FeedItem",
    "FetchResult",
]
