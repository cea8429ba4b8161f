"""Lazy, per-article landing-page enrichment."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from config.settings import ENRICHMENT_CONFIG
from src.enrichment.metadata_extractor import MetadataExtractor
from src.errors import ArticleNotFoundError
from src.utils.datetime_utils import utcnow
from src.utils.inflight import InFlightRegistry
from src.utils.logger import EventLogger
from src.utils.text_cleaner import clean_summary

STATUS_ENRICHED = "enriched"
STATUS_NO_METADATA = "no_metadata"
STATUS_IN_FLIGHT = "in_flight"
STATUS_NOT_FOUND = "not_found"
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class EnrichmentOutcome:
    article_id: int
    status: str
    image_url: Optional[str] = None
    summary_filled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "article_id": self.article_id,
            "status": self.status,
            "image_url": self.image_url,
            "summary_filled": self.summary_filled,
        }


class EnrichmentService:
    """Fill missing preview image and summary from the article's landing page.

    Existing values are never overwritten, so running it again on the same
    article is harmless. Only one worker may enrich a given article at a time.
    """

    def __init__(
        self,
        store: Any,
        extractor: Optional[MetadataExtractor] = None,
        *,
        inflight: Optional[InFlightRegistry] = None,
        config: Mapping[str, Any] | None = None,
        event_logger: Optional[EventLogger] = None,
    ) -> None:
        self._config = dict(config or ENRICHMENT_CONFIG)
        self.store = store
        self.extractor = extractor or MetadataExtractor()
        self.inflight = inflight or InFlightRegistry()
        self.max_workers = int(self._config.get("max_workers", 4))
        self.summary_max_length = int(self._config.get("summary_max_length", 300))
        self.events = event_logger or EventLogger("enrichment.pipeline", "EnrichmentService")

    def enrich_article(self, article_id: int) -> EnrichmentOutcome:
        with self.inflight.claim(article_id) as acquired:
            if not acquired:
                self.events.emit(
                    "info", "enrichment.article.in_flight", details={"article_id": article_id}
                )
                return EnrichmentOutcome(article_id, STATUS_IN_FLIGHT)
            return self._enrich(article_id)

    def enrich_articles(self, article_ids: Iterable[int]) -> List[EnrichmentOutcome]:
        ids = list(article_ids)
        if not ids:
            return []
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(ids))) as pool:
            return list(pool.map(self._enrich_isolated, ids))

    def _enrich_isolated(self, article_id: int) -> EnrichmentOutcome:
        # One broken page must not cost the rest of the batch.
        try:
            return self.enrich_article(article_id)
        except Exception as exc:
            self.events.emit(
                "error",
                "enrichment.article.failed",
                details={"article_id": article_id, "error": f"{exc.__class__.__name__}: {exc}"},
            )
            return EnrichmentOutcome(article_id, STATUS_FAILED)

    def _enrich(self, article_id: int) -> EnrichmentOutcome:
        article = self.store.get_article(article_id)
        if article is None:
            return EnrichmentOutcome(article_id, STATUS_NOT_FOUND)

        started = time.perf_counter()
        metadata = self.extractor.extract_metadata(article.url)
        image_url = self.extractor.get_best_image_url(metadata)
        summary = clean_summary(metadata.description or "", self.summary_max_length) or None

        if metadata.is_empty():
            status = STATUS_NO_METADATA
        else:
            status = STATUS_ENRICHED

        try:
            updated = self.store.update_article_metadata(
                article_id,
                url_to_image=image_url,
                summary=summary,
                enriched_at=utcnow(),
            )
        except ArticleNotFoundError:
            return EnrichmentOutcome(article_id, STATUS_NOT_FOUND)

        outcome = EnrichmentOutcome(
            article_id,
            status,
            image_url=updated.url_to_image,
            summary_filled=bool(summary) and not article.summary,
        )
        self.events.emit(
            "info",
            "enrichment.article.completed",
            latency=round(time.perf_counter() - started, 3),
            details=outcome.to_dict(),
        )
        return outcome
