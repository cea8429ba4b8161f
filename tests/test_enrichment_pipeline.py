import sys
from pathlib import Path
from typing import Dict, List

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from feed_fixtures import BASE_TIME
from src.contracts import ArticleCreateModel, PageMetadataModel
from src.enrichment import EnrichmentService, MetadataExtractor
from src.storage.database import DatabaseManager
from src.utils.inflight import InFlightRegistry


class StubExtractor:
    """Returns canned metadata per URL and records every lookup."""

    get_best_image_url = staticmethod(MetadataExtractor.get_best_image_url)

    def __init__(self, pages: Dict[str, PageMetadataModel]) -> None:
        self.pages = pages
        self.calls: List[str] = []

    def extract_metadata(self, url: str) -> PageMetadataModel:
        self.calls.append(url)
        return self.pages.get(url, PageMetadataModel.empty())


@pytest.fixture()
def db(tmp_path: Path) -> DatabaseManager:
    return DatabaseManager({"type": "sqlite", "path": tmp_path / "enrich.db"})


def _store_article(db: DatabaseManager, url: str, **overrides) -> int:
    payload = dict(
        url=url,
        title="Nota de prueba",
        source_id="nacional-1",
        source_name="Diario Uno",
        category="nacional",
        published_at=BASE_TIME,
        fetched_at=BASE_TIME,
    )
    payload.update(overrides)
    return db.insert_article(ArticleCreateModel(**payload)).id


def _service(db, pages, **kwargs) -> EnrichmentService:
    return EnrichmentService(db, StubExtractor(pages), config={"max_workers": 2, "summary_max_length": 40}, **kwargs)


def test_missing_image_and_summary_are_filled(db: DatabaseManager) -> None:
    url = "https://news.example.com/a"
    article_id = _store_article(db, url)
    pages = {
        url: PageMetadataModel(
            og_image="https://cdn.example.com/a.jpg",
            description="<p>Descripción de la página</p>",
        )
    }

    outcome = _service(db, pages).enrich_article(article_id)

    assert outcome.status == "enriched"
    assert outcome.image_url == "https://cdn.example.com/a.jpg"
    assert outcome.summary_filled is True
    stored = db.get_article(article_id)
    assert stored.url_to_image == "https://cdn.example.com/a.jpg"
    assert stored.summary == "Descripción de la página"
    assert stored.enriched_at is not None


def test_existing_values_are_not_overwritten(db: DatabaseManager) -> None:
    url = "https://news.example.com/b"
    article_id = _store_article(
        db, url, url_to_image="https://feed.example.com/b.jpg", summary="Resumen del feed"
    )
    pages = {
        url: PageMetadataModel(
            og_image="https://cdn.example.com/b.jpg", description="Otra descripción"
        )
    }

    outcome = _service(db, pages).enrich_article(article_id)

    assert outcome.image_url == "https://feed.example.com/b.jpg"
    assert outcome.summary_filled is False
    stored = db.get_article(article_id)
    assert stored.url_to_image == "https://feed.example.com/b.jpg"
    assert stored.summary == "Resumen del feed"


def test_long_description_is_truncated(db: DatabaseManager) -> None:
    url = "https://news.example.com/c"
    article_id = _store_article(db, url)
    pages = {url: PageMetadataModel(description="palabra " * 20)}

    _service(db, pages).enrich_article(article_id)

    summary = db.get_article(article_id).summary
    assert len(summary) <= 40
    assert summary.endswith("...")


def test_page_without_metadata_is_marked_checked(db: DatabaseManager) -> None:
    article_id = _store_article(db, "https://news.example.com/d")

    outcome = _service(db, {}).enrich_article(article_id)

    assert outcome.status == "no_metadata"
    assert outcome.image_url is None
    stored = db.get_article(article_id)
    assert stored.url_to_image is None
    assert stored.enriched_at is not None


def test_unknown_article_is_reported(db: DatabaseManager) -> None:
    service = _service(db, {})

    outcome = service.enrich_article(999)

    assert outcome.status == "not_found"
    assert service.extractor.calls == []


def test_concurrent_claim_skips_article(db: DatabaseManager) -> None:
    url = "https://news.example.com/e"
    article_id = _store_article(db, url)
    inflight = InFlightRegistry()
    service = _service(db, {url: PageMetadataModel(og_image="https://cdn.example.com/e.jpg")}, inflight=inflight)

    with inflight.claim(article_id) as acquired:
        assert acquired
        outcome = service.enrich_article(article_id)

    assert outcome.status == "in_flight"
    assert service.extractor.calls == []
    assert db.get_article(article_id).url_to_image is None
    assert len(inflight) == 0
    assert service.enrich_article(article_id).status == "enriched"


def test_batch_enrichment_runs_every_article(db: DatabaseManager) -> None:
    pages = {}
    ids = []
    for index in range(5):
        url = f"https://news.example.com/batch/{index}"
        ids.append(_store_article(db, url))
        pages[url] = PageMetadataModel(twitter_image=f"https://cdn.example.com/{index}.jpg")

    outcomes = _service(db, pages).enrich_articles(ids)

    assert [outcome.article_id for outcome in outcomes] == ids
    assert all(outcome.status == "enriched" for outcome in outcomes)
    assert db.get_article(ids[3]).url_to_image == "https://cdn.example.com/3.jpg"


def test_empty_batch(db: DatabaseManager) -> None:
    assert _service(db, {}).enrich_articles([]) == []


def test_rerun_is_idempotent(db: DatabaseManager) -> None:
    url = "https://news.example.com/f"
    article_id = _store_article(db, url)
    service = _service(db, {url: PageMetadataModel(og_image="https://cdn.example.com/f.jpg", description="Texto")})

    first = service.enrich_article(article_id)
    second = service.enrich_article(article_id)

    assert first.summary_filled is True
    assert second.summary_filled is False
    assert second.image_url == first.image_url
    assert db.get_article(article_id).summary == "Texto"


def test_batch_survives_an_article_that_raises(db: DatabaseManager) -> None:
    bad_url = "https://news.example.com/rota"
    good_url = "https://news.example.com/sana"
    bad_id = _store_article(db, bad_url)
    good_id = _store_article(db, good_url)

    class BrittleExtractor(StubExtractor):
        def extract_metadata(self, url: str) -> PageMetadataModel:
            if url == bad_url:
                raise ValueError("Invalid IPv6 URL")
            return super().extract_metadata(url)

    pages = {good_url: PageMetadataModel(og_image="https://cdn.example.com/sana.jpg")}
    service = EnrichmentService(db, BrittleExtractor(pages), config={"max_workers": 2})

    outcomes = service.enrich_articles([bad_id, good_id])

    assert [(outcome.article_id, outcome.status) for outcome in outcomes] == [
        (bad_id, "failed"),
        (good_id, "enriched"),
    ]
    assert db.get_article(good_id).url_to_image == "https://cdn.example.com/sana.jpg"
    assert db.get_article(bad_id).enriched_at is None
