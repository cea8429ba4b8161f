"""Applies reliability verdicts to stored articles."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from src.contracts import AnalysisModel
from src.errors import ArticleBusyError, ArticleNotFoundError, ScoreRangeError
from src.scoring.reliability_engine import ReliabilityEngine, ReliabilityInputs, ReliabilityVerdict
from src.utils.datetime_utils import utcnow
from src.utils.inflight import InFlightRegistry
from src.utils.logger import EventLogger

AnalysisInput = Union[ReliabilityInputs, AnalysisModel, Mapping[str, Any]]


class ReliabilityAnnotator:
    """
    Runs the engine for one article and writes the result.

    Invalid analysis payloads raise ``ScoreRangeError`` before anything is
    written, so the article stays unscored. Scoring the same article from two
    workers at once raises ``ArticleBusyError``.
    """

    def __init__(
        self,
        store: Any,
        engine: Optional[ReliabilityEngine] = None,
        *,
        inflight: Optional[InFlightRegistry] = None,
        event_logger: Optional[EventLogger] = None,
    ) -> None:
        self.store = store
        self.engine = engine or ReliabilityEngine()
        self.inflight = inflight or InFlightRegistry()
        self.events = event_logger or EventLogger("scoring.service", "ReliabilityAnnotator")

    def score_article(self, article_id: int, analysis: AnalysisInput) -> ReliabilityVerdict:
        with self.inflight.claim(article_id) as acquired:
            if not acquired:
                raise ArticleBusyError(f"Article {article_id} is already being scored")

            try:
                verdict = self.engine.assess(analysis)
            except ScoreRangeError as exc:
                self.events.emit(
                    "warning",
                    "scoring.article.rejected",
                    details={"article_id": article_id, "field": exc.field, "value": repr(exc.value)},
                )
                raise

            fields = verdict.storage_fields()
            fields["analyzed_at"] = utcnow()
            try:
                self.store.update_article_reliability(article_id, fields)
            except ArticleNotFoundError:
                self.events.emit(
                    "warning", "scoring.article.not_found", details={"article_id": article_id}
                )
                raise

            self.events.emit(
                "info",
                "scoring.article.completed",
                details={"article_id": article_id, **verdict.to_dict()},
            )
            return verdict
