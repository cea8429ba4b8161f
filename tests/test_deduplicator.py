import sys
from datetime import timedelta
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from feed_fixtures import BASE_TIME, MemoryCorpus, candidates_from, make_candidate
from src.ingestion.deduplicator import (
    REASON_IN_BATCH,
    REASON_IN_CORPUS,
    REASON_SIMILAR_TITLE,
    Deduplicator,
)

URLS = [f"https://news.example.com/articulo/{index}" for index in range(6)]


def test_second_run_against_persisted_batch_finds_nothing_new() -> None:
    deduplicator = Deduplicator()
    corpus = MemoryCorpus()
    batch = candidates_from(URLS)

    first = deduplicator.dedupe(batch, corpus)
    assert first.new_articles == len(URLS)
    corpus.urls.update(candidate.url for candidate in first.accepted)

    second = deduplicator.dedupe(batch, corpus)
    assert second.new_articles == 0
    assert second.duplicate_count == len(URLS)
    assert {duplicate.reason for duplicate in second.duplicates} == {REASON_IN_CORPUS}


def test_counts_report_fetched_new_and_duplicates() -> None:
    corpus = MemoryCorpus([URLS[0]])
    result = Deduplicator().dedupe(candidates_from(URLS[:3]), corpus)

    assert result.counts() == {"total_fetched": 3, "new_articles": 2, "duplicates": 1}


def test_first_occurrence_in_batch_wins() -> None:
    batch = [
        make_candidate(URLS[0], title="Primera versión del titular", position=0),
        make_candidate(URLS[1], title="Otra noticia distinta", position=1),
        make_candidate(URLS[0], title="Segunda versión del titular", position=2),
    ]
    result = Deduplicator().dedupe(batch, MemoryCorpus())

    assert [candidate.position for candidate in result.accepted] == [0, 1]
    assert len(result.duplicates) == 1
    duplicate = result.duplicates[0]
    assert duplicate.candidate.position == 2
    assert duplicate.reason == REASON_IN_BATCH


def test_batch_duplicates_do_not_hit_the_corpus_twice() -> None:
    corpus = MemoryCorpus()
    Deduplicator().dedupe(candidates_from([URLS[0], URLS[0], URLS[1]]), corpus)

    assert corpus.lookups == [URLS[0], URLS[1]]


def test_similar_titles_keep_earliest_published() -> None:
    newer = make_candidate(
        URLS[0],
        title="Última hora: el Gobierno aprueba la reforma de las pensiones",
        published=BASE_TIME,
        position=0,
    )
    older = make_candidate(
        URLS[1],
        title="ÚLTIMA HORA. El Gobierno aprueba la reforma de las pensiones",
        published=BASE_TIME - timedelta(hours=1),
        position=1,
    )
    result = Deduplicator().dedupe([newer, older], MemoryCorpus())

    assert [candidate.url for candidate in result.accepted] == [URLS[1]]
    assert result.duplicates[0].reason == REASON_SIMILAR_TITLE
    assert result.duplicates[0].duplicate_of == URLS[1]


def test_similar_titles_with_same_timestamp_keep_fetch_order() -> None:
    first = make_candidate(URLS[0], title="El Real Madrid gana la Liga", position=0)
    second = make_candidate(URLS[1], title="el real madrid gana la liga", position=1)
    result = Deduplicator().dedupe([first, second], MemoryCorpus())

    assert [candidate.position for candidate in result.accepted] == [0]


def test_fuzzy_titles_can_be_disabled() -> None:
    batch = [
        make_candidate(URLS[0], title="El Real Madrid gana la Liga", position=0),
        make_candidate(URLS[1], title="El Real Madrid gana la Liga", position=1),
    ]
    result = Deduplicator(fuzzy_titles=False).dedupe(batch, MemoryCorpus())

    assert result.new_articles == 2


def test_different_titles_survive_fuzzy_pass() -> None:
    batch = [
        make_candidate(URLS[0], title="El Real Madrid gana la Liga", position=0),
        make_candidate(URLS[1], title="El Barcelona pierde en casa ante el Getafe", position=1),
        make_candidate(URLS[2], title="Sube el precio de la luz en marzo", position=2),
    ]
    result = Deduplicator().dedupe(batch, MemoryCorpus())

    assert [candidate.position for candidate in result.accepted] == [0, 1, 2]


def test_accepted_keep_fetch_order_after_fuzzy_sort() -> None:
    batch = [
        make_candidate(URLS[index], title=f"Titular único número {index}",
                       published=BASE_TIME - timedelta(minutes=index), position=index)
        for index in range(4)
    ]
    result = Deduplicator().dedupe(batch, MemoryCorpus())

    assert [candidate.position for candidate in result.accepted] == [0, 1, 2, 3]


@pytest.mark.parametrize("threshold", [0.0, -0.5, 1.5])
def test_invalid_similarity_threshold(threshold: float) -> None:
    with pytest.raises(ValueError):
        Deduplicator(title_similarity_threshold=threshold)
