# src/ingestion/deduplicator.py
# Deduplicación de candidatos
# ===========================

"""
Filtra un lote recién recogido contra el corpus existente y contra sí mismo.

Reglas, en orden:
1. URL ya presente en el corpus → duplicado.
2. URL repetida dentro del lote → se queda la primera vista (orden de fetch).
3. (Opcional) títulos casi idénticos dentro del lote → duplicado. Se recorren
   los candidatos por `published_at` ascendente y, a igualdad, por orden de
   fetch; sobrevive el primero, es decir, el publicado antes. La similitud es
   Jaccard sobre tokens de título normalizado.

La salida aceptada conserva el orden de fetch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Protocol, Sequence, Tuple

from src.ingestion.candidate import CandidateArticle
from src.utils.dedupe import jaccard_similarity, title_tokens

REASON_IN_CORPUS = "url_in_corpus"
REASON_IN_BATCH = "url_in_batch"
REASON_SIMILAR_TITLE = "similar_title"


class CorpusLookup(Protocol):
    def find_by_url(self, url: str) -> Optional[Any]: ...


@dataclass(frozen=True)
class DuplicateCandidate:
    candidate: CandidateArticle
    reason: str
    duplicate_of: Optional[str] = None


@dataclass
class DedupResult:
    accepted: List[CandidateArticle] = field(default_factory=list)
    duplicates: List[DuplicateCandidate] = field(default_factory=list)

    @property
    def total_fetched(self) -> int:
        return len(self.accepted) + len(self.duplicates)

    @property
    def new_articles(self) -> int:
        return len(self.accepted)

    @property
    def duplicate_count(self) -> int:
        return len(self.duplicates)

    def counts(self) -> Dict[str, int]:
        return {
            "total_fetched": self.total_fetched,
            "new_articles": self.new_articles,
            "duplicates": self.duplicate_count,
        }


class Deduplicator:
    """URL dedup against corpus and batch, plus optional fuzzy title dedup."""

    def __init__(
        self,
        *,
        fuzzy_titles: bool = True,
        title_similarity_threshold: float = 0.9,
    ) -> None:
        if not 0.0 < title_similarity_threshold <= 1.0:
            raise ValueError("title_similarity_threshold must be in (0, 1]")
        self.fuzzy_titles = fuzzy_titles
        self.title_similarity_threshold = title_similarity_threshold

    def dedupe(
        self, candidates: Sequence[CandidateArticle], corpus: CorpusLookup
    ) -> DedupResult:
        result = DedupResult()
        seen_urls = set()
        survivors: List[CandidateArticle] = []

        for candidate in candidates:
            if candidate.url in seen_urls:
                result.duplicates.append(DuplicateCandidate(candidate, REASON_IN_BATCH, candidate.url))
                continue
            seen_urls.add(candidate.url)
            if corpus.find_by_url(candidate.url) is not None:
                result.duplicates.append(DuplicateCandidate(candidate, REASON_IN_CORPUS, candidate.url))
                continue
            survivors.append(candidate)

        if self.fuzzy_titles:
            survivors = self._drop_similar_titles(survivors, result)

        result.accepted = sorted(survivors, key=lambda candidate: candidate.position)
        return result

    def _drop_similar_titles(
        self, candidates: List[CandidateArticle], result: DedupResult
    ) -> List[CandidateArticle]:
        kept: List[Tuple[CandidateArticle, FrozenSet[str]]] = []
        ordered = sorted(candidates, key=lambda c: (c.published_at, c.position))
        for candidate in ordered:
            tokens = title_tokens(candidate.title)
            match = None
            if tokens:
                match = next(
                    (
                        other
                        for other, other_tokens in kept
                        if jaccard_similarity(tokens, other_tokens) >= self.title_similarity_threshold
                    ),
                    None,
                )
            if match is not None:
                result.duplicates.append(
                    DuplicateCandidate(candidate, REASON_SIMILAR_TITLE, match.url)
                )
            else:
                kept.append((candidate, tokens))
        return [candidate for candidate, _ in kept]
