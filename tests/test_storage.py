import sys
from datetime import timedelta
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from feed_fixtures import BASE_TIME
from src.contracts import ArticleCreateModel
from src.errors import ArticleNotFoundError, ConflictError
from src.storage.database import DatabaseManager
from src.storage.recorder import IngestRunRecorder


@pytest.fixture()
def db(tmp_path: Path) -> DatabaseManager:
    return DatabaseManager({"type": "sqlite", "path": tmp_path / "storage.db"})


def _payload(url: str = "https://news.example.com/1", **overrides):
    payload = dict(
        url=url,
        title="Titular",
        source_id="economia-1",
        source_name="Diario Económico",
        category="economia",
        published_at=BASE_TIME,
        fetched_at=BASE_TIME,
    )
    payload.update(overrides)
    return payload


def test_insert_and_lookup_by_url(db: DatabaseManager) -> None:
    article = db.insert_article(ArticleCreateModel(**_payload()))

    found = db.find_by_url("https://news.example.com/1")
    assert found is not None
    assert found.id == article.id
    assert db.find_by_url("https://news.example.com/otra") is None


def test_url_is_unique_across_corpus(db: DatabaseManager) -> None:
    db.insert_article(_payload())

    with pytest.raises(ConflictError) as excinfo:
        db.insert_article(_payload(title="Otro titular", category="nacional"))
    assert excinfo.value.url == "https://news.example.com/1"
    assert db.get_health_status()["total_articles"] == 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"url": "ftp://news.example.com/1"},
        {"title": ""},
        {"url_to_image": "data:image/png;base64,AAAA"},
        {"unexpected": True},
    ],
)
def test_invalid_payload_raises_value_error(db: DatabaseManager, overrides) -> None:
    with pytest.raises(ValueError):
        db.insert_article(_payload(**overrides))


def test_metadata_update_only_fills_gaps(db: DatabaseManager) -> None:
    article = db.insert_article(_payload(summary="Resumen original"))

    updated = db.update_article_metadata(
        article.id, url_to_image="https://cdn.example.com/1.jpg", summary="Resumen nuevo"
    )

    assert updated.url_to_image == "https://cdn.example.com/1.jpg"
    assert updated.summary == "Resumen original"
    assert updated.enriched_at is not None


def test_metadata_update_unknown_article(db: DatabaseManager) -> None:
    with pytest.raises(ArticleNotFoundError):
        db.update_article_metadata(12345, summary="x")


def test_reliability_update_rejects_unknown_columns(db: DatabaseManager) -> None:
    article = db.insert_article(_payload())

    with pytest.raises(ValueError):
        db.update_article_reliability(article.id, {"title": "sobrescrito"})
    assert db.get_article(article.id).title == "Titular"


def test_articles_by_category_newest_first(db: DatabaseManager) -> None:
    for index in range(3):
        db.insert_article(
            _payload(
                url=f"https://news.example.com/{index}",
                published_at=BASE_TIME + timedelta(hours=index),
            )
        )
    db.insert_article(_payload(url="https://news.example.com/x", category="deportes"))

    urls = [article.url for article in db.get_articles_by_category("economia", limit=2)]
    assert urls == ["https://news.example.com/2", "https://news.example.com/1"]


def test_ingest_run_status_is_validated(db: DatabaseManager) -> None:
    with pytest.raises(ValueError):
        db.record_ingest_run("economia-1", "ok", 3)


def test_recorder_keeps_history_and_reports_last_run(db: DatabaseManager) -> None:
    recorder = IngestRunRecorder(db)
    recorder.record("economia-1", "success", 4, BASE_TIME)
    recorder.record(
        "economia-1", "failed", 0, BASE_TIME + timedelta(hours=1), error_message="network_error: HTTP 503"
    )
    recorder.record("economia-2", "partial", 1, BASE_TIME)

    last = recorder.last_run("economia-1")
    assert last.status == "failed"
    assert last.articles_count == 0
    assert last.error_message == "network_error: HTTP 503"
    assert last.last_fetch == BASE_TIME + timedelta(hours=1)
    assert len(db.ingest_runs("economia-1")) == 2
    assert recorder.last_run("economia-9") is None


def test_latest_runs_and_health(db: DatabaseManager) -> None:
    recorder = IngestRunRecorder(db)
    recorder.record("economia-1", "failed", 0, BASE_TIME, error_message="parse_error")
    recorder.record("economia-1", "success", 2, BASE_TIME + timedelta(hours=1))
    recorder.record("economia-2", "failed", 0, BASE_TIME, error_message="network_error")
    db.insert_article(_payload())

    latest = {run.source: run.status for run in db.latest_ingest_runs()}
    assert latest == {"economia-1": "success", "economia-2": "failed"}

    health = db.get_health_status()
    assert health["total_articles"] == 1
    assert health["unscored_articles"] == 1
    assert health["sources_tracked"] == 2
    assert health["failed_sources"] == ["economia-2"]
    assert health["status"] == "warning"
