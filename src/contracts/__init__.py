"""Shared contracts for validated pipeline payloads."""

from .collector import ArticleCreateModel, ArticlePayload
from .enrichment import PageMetadata, PageMetadataModel
from .scoring import AnalysisModel, AnalysisPayload, FactualityStatus

__all__ = [
    "AnalysisModel",
    "AnalysisPayload",
    "ArticleCreateModel",
    "ArticlePayload",
    "FactualityStatus",
    "PageMetadata",
    "PageMetadataModel",
]
