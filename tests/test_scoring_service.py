import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from feed_fixtures import BASE_TIME
from src.contracts import ArticleCreateModel
from src.errors import ArticleBusyError, ArticleNotFoundError, ScoreRangeError
from src.scoring import ReliabilityAnnotator, ReliabilityEngine, ReliabilityLabel, ReliabilityThresholds
from src.storage.database import DatabaseManager
from src.utils.inflight import InFlightRegistry

ANALYSIS = {
    "score": 82,
    "biasScore": 30,
    "traceabilityScore": 75,
    "clickbaitScore": 12,
    "factualityStatus": "verified",
    "shouldEscalate": False,
}


@pytest.fixture()
def db(tmp_path: Path) -> DatabaseManager:
    return DatabaseManager({"type": "sqlite", "path": tmp_path / "scoring.db"})


@pytest.fixture()
def article_id(db: DatabaseManager) -> int:
    article = db.insert_article(
        ArticleCreateModel(
            url="https://news.example.com/analizada",
            title="Nota analizada",
            source_id="ciencia-1",
            source_name="Ciencia Hoy",
            category="ciencia",
            published_at=BASE_TIME,
            fetched_at=BASE_TIME,
        )
    )
    return article.id


def _annotator(db, **kwargs) -> ReliabilityAnnotator:
    return ReliabilityAnnotator(db, ReliabilityEngine(ReliabilityThresholds()), **kwargs)


def test_verdict_is_persisted(db: DatabaseManager, article_id: int) -> None:
    verdict = _annotator(db).score_article(article_id, ANALYSIS)

    assert verdict.label is ReliabilityLabel.CORROBORATED
    stored = db.get_article(article_id)
    assert stored.reliability_label == "corroborated"
    assert stored.reliability_rule == "score_corroborated"
    assert stored.reliability_score == 82
    assert stored.bias_score == 30
    assert stored.factuality_status == "verified"
    assert stored.should_escalate is False
    assert stored.analyzed_at is not None
    assert stored.to_dict()["reliability"]["label"] == "corroborated"


def test_rescoring_replaces_previous_verdict(db: DatabaseManager, article_id: int) -> None:
    annotator = _annotator(db)
    annotator.score_article(article_id, ANALYSIS)

    annotator.score_article(article_id, dict(ANALYSIS, factualityStatus="no_determinable"))

    stored = db.get_article(article_id)
    assert stored.reliability_label == "not_verifiable"
    assert stored.reliability_rule == "factuality_not_determinable"


def test_out_of_range_analysis_leaves_article_unscored(db: DatabaseManager, article_id: int) -> None:
    with pytest.raises(ScoreRangeError):
        _annotator(db).score_article(article_id, dict(ANALYSIS, clickbaitScore=140))

    stored = db.get_article(article_id)
    assert stored.reliability_label is None
    assert stored.analyzed_at is None


def test_busy_article_is_refused(db: DatabaseManager, article_id: int) -> None:
    inflight = InFlightRegistry()
    annotator = _annotator(db, inflight=inflight)

    with inflight.claim(article_id):
        with pytest.raises(ArticleBusyError):
            annotator.score_article(article_id, ANALYSIS)

    assert db.get_article(article_id).reliability_label is None
    annotator.score_article(article_id, ANALYSIS)
    assert db.get_article(article_id).reliability_label == "corroborated"


def test_unknown_article_raises(db: DatabaseManager) -> None:
    with pytest.raises(ArticleNotFoundError):
        _annotator(db).score_article(404, ANALYSIS)
