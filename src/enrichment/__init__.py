"""Landing-page metadata enrichment."""

from .metadata_extractor import MetadataExtractor
from .pipeline import EnrichmentOutcome, EnrichmentService

__all__ = ["EnrichmentOutcome", "EnrichmentService", "MetadataExtractor"]
