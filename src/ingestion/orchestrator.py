# src/ingestion/orchestrator.py
# Orquestador de ciclos de ingesta
# ================================

"""
Un ciclo de ingesta para una categoría (o para todas):

1. Resuelve las fuentes de la categoría y calcula la cuota por fuente.
2. Lanza todos los fetch a la vez y espera a que terminen todos (éxitos y
   fallos); un fallo de fuente es un valor, nunca aborta el ciclo.
3. Recorta cada fuente a su cuota, de más reciente a más antiguo.
4. Une todo en un lote etiquetado con fuente y categoría.
5. Deduplica, valida categoría y persiste lo aceptado. Un conflicto de URL al
   insertar cuenta como duplicado.
6. Registra un IngestRun por fuente: success, partial (por debajo de la cuota)
   o failed.

Una categoría es `failed` solo si fallan todas sus fuentes, `partial` si falla
alguna y `success` si no falla ninguna.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx

from config.settings import DEDUP_CONFIG, INGESTION_CONFIG
from src.collectors.feed_fetcher import FeedBatch, FeedFetcher, FeedItem
from src.contracts import ArticleCreateModel
from src.errors import ConflictError, FetchFailure, FetchFailureReason, IngestRequestError
from src.ingestion.candidate import CandidateArticle
from src.ingestion.category_validator import CategoryValidator
from src.ingestion.deduplicator import Deduplicator
from src.ingestion.quota import CategoryCapacity, plan_category
from src.ingestion.registry import ALL_CATEGORIES, Source, SourceRegistry
from src.storage.recorder import IngestRunRecorder
from src.utils.datetime_utils import utcnow
from src.utils.logger import EventLogger
from src.utils.metrics import MetricsReporter, get_metrics_reporter
from src.utils.text_cleaner import clean_summary
from src.utils.url_canonicalizer import canonicalize_url

STATUS_SUCCESS = "success"
STATUS_PARTIAL = "partial"
STATUS_FAILED = "failed"


@dataclass
class SourceResult:
    """Outcome of one source within one cycle."""

    source_id: str
    source_name: str
    quota: int
    status: str = STATUS_SUCCESS
    fetched: int = 0
    kept: int = 0
    new_articles: int = 0
    duplicates: int = 0
    rejected: int = 0
    invalid: int = 0
    error: Optional[str] = None
    latency: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_id": self.source_id,
            "source_name": self.source_name,
            "status": self.status,
            "quota": self.quota,
            "fetched": self.fetched,
            "kept": self.kept,
            "new_articles": self.new_articles,
            "duplicates": self.duplicates,
            "rejected": self.rejected,
            "invalid": self.invalid,
            "error": self.error,
            "latency": round(self.latency, 3),
        }


@dataclass
class CategoryReport:
    category: str
    capacity: CategoryCapacity
    sources: List[SourceResult] = field(default_factory=list)
    total_fetched: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def new_articles(self) -> int:
        return sum(result.new_articles for result in self.sources)

    @property
    def duplicates(self) -> int:
        return sum(result.duplicates for result in self.sources)

    @property
    def rejected(self) -> int:
        return sum(result.rejected for result in self.sources)

    @property
    def failed_sources(self) -> List[str]:
        return [result.source_id for result in self.sources if result.status == STATUS_FAILED]

    @property
    def status(self) -> str:
        failed = len(self.failed_sources)
        if self.sources and failed == len(self.sources):
            return STATUS_FAILED
        return STATUS_PARTIAL if failed else STATUS_SUCCESS

    @property
    def low_diversity(self) -> bool:
        return self.capacity.low_diversity or self.capacity.falls_short(self.total_fetched)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "status": self.status,
            "total_fetched": self.total_fetched,
            "new_articles": self.new_articles,
            "duplicates": self.duplicates,
            "rejected": self.rejected,
            "low_diversity": self.low_diversity,
            "capacity": self.capacity.to_dict(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "per_source_results": [result.to_dict() for result in self.sources],
        }


@dataclass
class IngestReport:
    """Answer of the ``ingest`` trigger."""

    requested: str
    target_page_size: int
    trace_id: str
    categories: List[CategoryReport] = field(default_factory=list)

    @property
    def total_fetched(self) -> int:
        return sum(report.total_fetched for report in self.categories)

    @property
    def new_articles(self) -> int:
        return sum(report.new_articles for report in self.categories)

    @property
    def duplicates(self) -> int:
        return sum(report.duplicates for report in self.categories)

    @property
    def rejected(self) -> int:
        return sum(report.rejected for report in self.categories)

    @property
    def per_source_results(self) -> List[SourceResult]:
        return [result for report in self.categories for result in report.sources]

    @property
    def status(self) -> str:
        statuses = {report.status for report in self.categories}
        if statuses == {STATUS_SUCCESS}:
            return STATUS_SUCCESS
        if statuses == {STATUS_FAILED}:
            return STATUS_FAILED
        return STATUS_PARTIAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.requested,
            "target_page_size": self.target_page_size,
            "trace_id": self.trace_id,
            "status": self.status,
            "total_fetched": self.total_fetched,
            "new_articles": self.new_articles,
            "duplicates": self.duplicates,
            "rejected": self.rejected,
            "per_source_results": [result.to_dict() for result in self.per_source_results],
            "categories": [report.to_dict() for report in self.categories],
        }


class IngestionOrchestrator:
    """
    Runs ingestion cycles over an injected, immutable source registry.

    ``store`` must offer ``find_by_url`` and ``insert_article`` (raising
    ``ConflictError`` on duplicate URLs); ``DatabaseManager`` does.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        store: Any,
        *,
        fetcher: Optional[FeedFetcher] = None,
        deduplicator: Optional[Deduplicator] = None,
        validator: Optional[CategoryValidator] = None,
        recorder: Optional[IngestRunRecorder] = None,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
        metrics: Optional[MetricsReporter] = None,
        settings: Optional[Dict[str, Any]] = None,
        event_logger: Optional[EventLogger] = None,
    ) -> None:
        self.registry = registry
        self.store = store
        self.settings = dict(INGESTION_CONFIG if settings is None else settings)
        self.fetcher = fetcher or FeedFetcher(
            timeout=self.settings.get("request_timeout_seconds"),
            user_agent=self.settings.get("user_agent"),
        )
        self.deduplicator = deduplicator or Deduplicator(
            fuzzy_titles=DEDUP_CONFIG["fuzzy_titles_enabled"],
            title_similarity_threshold=DEDUP_CONFIG["title_similarity_threshold"],
        )
        self.canonicalize = DEDUP_CONFIG["canonicalize_urls"]
        self.validator = validator or CategoryValidator(registry)
        self.recorder = recorder or IngestRunRecorder(store)
        self.client_factory = client_factory or self.fetcher.open_client
        self.metrics = metrics or get_metrics_reporter()
        self.events = event_logger or EventLogger("ingestion.orchestrator", "IngestionOrchestrator")

    # ------------------------------------------------------------------
    # Trigger
    # ------------------------------------------------------------------
    async def ingest(self, category: str, target_page_size: Optional[int] = None) -> IngestReport:
        """Run one cycle for ``category`` (or ``"all"``) and report the outcome."""
        resolved = self.registry.resolve_category(category)
        page_size = self._validate_page_size(target_page_size)
        categories = (
            list(self.registry.categories) if resolved == ALL_CATEGORIES else [resolved]
        )
        # Plans are computed up front so a misconfigured category fails before any fetch.
        plans = {name: self._plan(name, page_size) for name in categories}

        report = IngestReport(requested=resolved, target_page_size=page_size, trace_id=uuid.uuid4().hex)
        self.events.emit(
            "info",
            "ingestion.cycle.start",
            trace_id=report.trace_id,
            category=resolved,
            details={"categories": categories, "target_page_size": page_size},
        )
        started = time.perf_counter()

        semaphore = asyncio.Semaphore(self.settings.get("max_concurrent_categories", 3))
        async with self.client_factory() as client:

            async def run_one(name: str) -> CategoryReport:
                async with semaphore:
                    return await self._ingest_category(name, plans[name], client, report.trace_id)

            report.categories = list(await asyncio.gather(*(run_one(name) for name in categories)))

        self.events.emit(
            "info" if report.status != STATUS_FAILED else "error",
            "ingestion.cycle.completed",
            trace_id=report.trace_id,
            category=resolved,
            latency=round(time.perf_counter() - started, 3),
            details={
                "status": report.status,
                "total_fetched": report.total_fetched,
                "new_articles": report.new_articles,
                "duplicates": report.duplicates,
                "rejected": report.rejected,
            },
        )
        return report

    def _validate_page_size(self, target_page_size: Optional[int]) -> int:
        if target_page_size is None:
            return int(self.settings.get("target_page_size", 20))
        maximum = int(self.settings.get("max_target_page_size", 100))
        if (
            isinstance(target_page_size, bool)
            or not isinstance(target_page_size, int)
            or not 1 <= target_page_size <= maximum
        ):
            raise IngestRequestError(
                f"target_page_size must be an integer between 1 and {maximum}, "
                f"got {target_page_size!r}"
            )
        return target_page_size

    def _plan(self, category: str, page_size: int) -> CategoryCapacity:
        sources = self.registry.sources_for(category)
        return plan_category(
            category,
            len(sources),
            page_size,
            minimum=self.settings.get("min_per_source_quota", 2),
            low_diversity_ratio=self.settings.get("low_diversity_ratio", 0.8),
        )

    # ------------------------------------------------------------------
    # One category
    # ------------------------------------------------------------------
    async def _ingest_category(
        self,
        category: str,
        capacity: CategoryCapacity,
        client: httpx.AsyncClient,
        trace_id: str,
    ) -> CategoryReport:
        sources = self.registry.sources_for(category)
        quota = capacity.per_source_quota
        report = CategoryReport(category=category, capacity=capacity, started_at=utcnow())
        if capacity.low_diversity:
            self.events.emit(
                "warning",
                "ingestion.category.low_diversity",
                trace_id=trace_id,
                category=category,
                details=capacity.to_dict(),
            )

        raw_outcomes = await asyncio.gather(
            *(self.fetcher.fetch(source, client) for source in sources), return_exceptions=True
        )
        outcomes = [
            self._unexpected_failure(source, outcome) if isinstance(outcome, Exception) else outcome
            for source, outcome in zip(sources, raw_outcomes)
        ]
        fetched_at = utcnow()

        results: Dict[str, SourceResult] = {}
        candidates: List[CandidateArticle] = []
        for source, outcome in zip(sources, outcomes):
            result = SourceResult(source_id=source.id, source_name=source.name, quota=quota)
            results[source.id] = result
            if isinstance(outcome, FetchFailure):
                result.status = STATUS_FAILED
                result.error = outcome.describe()
                self.metrics.record_fetch_failure(
                    source_id=source.id,
                    category=category,
                    reason=outcome.reason.value,
                    trace_id=trace_id,
                )
                self.events.emit(
                    "warning",
                    "ingestion.source.failed",
                    trace_id=trace_id,
                    category=category,
                    source_id=source.id,
                    details={"reason": outcome.reason.value, "error": outcome.detail},
                )
                continue

            kept = self._truncate(outcome, quota)
            result.fetched = len(outcome.items)
            result.kept = len(kept)
            result.latency = outcome.latency
            result.status = STATUS_SUCCESS if result.fetched >= quota else STATUS_PARTIAL
            self.metrics.record_fetch(
                source_id=source.id,
                category=category,
                item_count=result.fetched,
                latency=outcome.latency,
                trace_id=trace_id,
            )
            for item in kept:
                candidates.append(self._to_candidate(item, source, category, len(candidates)))

        report.total_fetched = len(candidates)
        self._process_batch(candidates, category, results, fetched_at, trace_id)
        report.sources = [results[source.id] for source in sources]

        for result in report.sources:
            self.recorder.record(
                result.source_id,
                result.status,
                result.new_articles,
                fetched_at,
                error_message=result.error,
            )
        report.finished_at = utcnow()
        self.metrics.record_cycle(
            category=category,
            new_articles=report.new_articles,
            duplicates=report.duplicates,
            rejected=report.rejected,
        )
        self.events.emit(
            "info" if report.status != STATUS_FAILED else "error",
            "ingestion.category.completed",
            trace_id=trace_id,
            category=category,
            details={
                "status": report.status,
                "total_fetched": report.total_fetched,
                "new_articles": report.new_articles,
                "duplicates": report.duplicates,
                "rejected": report.rejected,
                "failed_sources": report.failed_sources,
            },
        )
        return report

    @staticmethod
    def _unexpected_failure(source: Source, error: Exception) -> FetchFailure:
        """A fetch that raised instead of returning still counts as a failed source."""
        return FetchFailure(
            source.id, FetchFailureReason.NETWORK_ERROR, f"{error.__class__.__name__}: {error}"
        )

    @staticmethod
    def _truncate(batch: FeedBatch, quota: int) -> Sequence[FeedItem]:
        newest_first = sorted(batch.items, key=lambda item: item.published_at, reverse=True)
        return newest_first[:quota]

    def _to_candidate(
        self, item: FeedItem, source: Source, category: str, position: int
    ) -> CandidateArticle:
        url = canonicalize_url(item.link) if self.canonicalize else item.link.strip()
        return CandidateArticle(
            item=item, source=source, category=category, url=url, position=position
        )

    def _process_batch(
        self,
        candidates: List[CandidateArticle],
        category: str,
        results: Dict[str, SourceResult],
        fetched_at: datetime,
        trace_id: str,
    ) -> None:
        dedup = self.deduplicator.dedupe(candidates, self.store)
        for duplicate in dedup.duplicates:
            results[duplicate.candidate.source.id].duplicates += 1

        summary_max = self.settings.get("summary_max_length", 300)
        for candidate in dedup.accepted:
            result = results[candidate.source.id]
            outcome = self.validator.validate(candidate, category)
            if not outcome.accepted:
                result.rejected += 1
                self.events.emit(
                    "warning",
                    "ingestion.article.rejected",
                    trace_id=trace_id,
                    category=category,
                    source_id=candidate.source.id,
                    details={"reason": outcome.reason, "detail": outcome.detail, "url": candidate.url},
                )
                continue
            try:
                self.store.insert_article(
                    self._to_article(candidate, fetched_at, summary_max)
                )
            except ConflictError:
                result.duplicates += 1
            except ValueError as exc:
                result.invalid += 1
                self.events.emit(
                    "warning",
                    "ingestion.article.invalid",
                    trace_id=trace_id,
                    category=category,
                    source_id=candidate.source.id,
                    details={"url": candidate.url, "error": str(exc)},
                )
            else:
                result.new_articles += 1

    @staticmethod
    def _to_article(
        candidate: CandidateArticle, fetched_at: datetime, summary_max: int
    ) -> ArticleCreateModel:
        summary = clean_summary(candidate.item.raw_summary, summary_max) or None
        image = candidate.image_url
        if image and not image.startswith(("http://", "https://")):
            image = None
        return ArticleCreateModel(
            url=candidate.url,
            title=candidate.title[:500],
            summary=summary,
            source_id=candidate.source.id,
            source_name=candidate.source.name,
            category=candidate.category,
            published_at=candidate.published_at,
            fetched_at=fetched_at,
            url_to_image=image,
        )
