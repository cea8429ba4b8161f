"""
Ingesta por categoría: registro de fuentes, cuotas, deduplicación y
validación de categoría.

El orquestador vive en `src.ingestion.orchestrator`.
"""

from .quota import CategoryCapacity, allocate, plan_category
from .registry import ALL_CATEGORIES, Source, SourceRegistry, build_default_registry

__all__ = [
    "ALL_CATEGORIES",
    "CategoryCapacity",
    "Source",
    "SourceRegistry",
    "allocate",
    "build_default_registry",
    "plan_category",
]
