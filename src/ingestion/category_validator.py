"""Guards against persisting an article under a category its source does not own."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from src.ingestion.candidate import CandidateArticle
from src.ingestion.registry import SourceRegistry

CATEGORY_MISMATCH = "category_mismatch"


@dataclass(frozen=True)
class ValidationOutcome:
    accepted: bool
    reason: Optional[str] = None
    detail: Optional[str] = None


ACCEPT = ValidationOutcome(accepted=True)


class CategoryValidator:
    """
    Accepts a candidate only when its category, the category it was fetched
    for and the registry owner of its source all agree. Mismatches are
    rejected, never recategorized.
    """

    def __init__(self, registry: SourceRegistry) -> None:
        self.registry = registry

    def validate(self, article: CandidateArticle, expected_category: str) -> ValidationOutcome:
        owner = self.registry.category_of(article.source.id)
        if owner is None:
            return ValidationOutcome(
                False, CATEGORY_MISMATCH, f"source {article.source.id!r} is not registered"
            )
        if article.category != owner or expected_category != owner:
            return ValidationOutcome(
                False,
                CATEGORY_MISMATCH,
                f"source {article.source.id!r} belongs to {owner!r}, "
                f"article tagged {article.category!r}, expected {expected_category!r}",
            )
        return ACCEPT
