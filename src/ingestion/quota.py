# src/ingestion/quota.py
# Reparto de cuotas por fuente
# ============================

"""
Decide cuántos artículos pedir a cada fuente de una categoría para que, incluso
las categorías con pocas fuentes, lleguen al tamaño de página objetivo.

La cuota por fuente no se recorta al objetivo: si una fuente entrega menos, las
demás pueden compensar. El recorte (`realized_total`) solo se usa para
diagnosticar la capacidad de la categoría.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from src.errors import ConfigurationError

MIN_PER_SOURCE_QUOTA = 2
LOW_DIVERSITY_RATIO = 0.8


def allocate(
    source_count: int,
    target_page_size: int,
    *,
    minimum: int = MIN_PER_SOURCE_QUOTA,
) -> int:
    """Per-source quota: ``max(minimum, ceil(target / sources))``."""
    if source_count <= 0:
        raise ConfigurationError("Cannot allocate quotas for a category without sources")
    return max(minimum, math.ceil(target_page_size / source_count))


@dataclass(frozen=True)
class CategoryCapacity:
    """Quota plan and capacity diagnosis for one category."""

    category: str
    source_count: int
    target_page_size: int
    per_source_quota: int
    realized_total: int
    low_diversity: bool
    low_diversity_ratio: float = LOW_DIVERSITY_RATIO

    def falls_short(self, delivered: int) -> bool:
        """True when ``delivered`` articles miss the diversity floor."""
        return delivered < self.low_diversity_ratio * self.target_page_size

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "source_count": self.source_count,
            "target_page_size": self.target_page_size,
            "per_source_quota": self.per_source_quota,
            "realized_total": self.realized_total,
            "low_diversity": self.low_diversity,
        }


def plan_category(
    category: str,
    source_count: int,
    target_page_size: int,
    *,
    minimum: int = MIN_PER_SOURCE_QUOTA,
    low_diversity_ratio: float = LOW_DIVERSITY_RATIO,
) -> CategoryCapacity:
    quota = allocate(source_count, target_page_size, minimum=minimum)
    realized = min(quota * source_count, target_page_size)
    return CategoryCapacity(
        category=category,
        source_count=source_count,
        target_page_size=target_page_size,
        per_source_quota=quota,
        realized_total=realized,
        low_diversity=realized < low_diversity_ratio * target_page_size,
        low_diversity_ratio=low_diversity_ratio,
    )
