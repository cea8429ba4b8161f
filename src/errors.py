"""Error taxonomy shared across the ingestion, enrichment and scoring layers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from verity.config_manager import ConfigError


class ConfigurationError(ConfigError):
    """Static setup is unusable (empty category, duplicated source, ...)."""


class IngestRequestError(ValueError):
    """The ingestion trigger received arguments it cannot serve."""


class ConflictError(Exception):
    """An article with the same URL is already stored."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Article already stored for URL: {url}")
        self.url = url


class ScoreRangeError(ValueError):
    """A reliability sub-score is missing or outside 0-100."""

    def __init__(self, field: str, value: object) -> None:
        super().__init__(f"{field} must be an integer between 0 and 100, got {value!r}")
        self.field = field
        self.value = value


class ArticleNotFoundError(LookupError):
    """No stored article matches the requested id."""


class ArticleBusyError(RuntimeError):
    """Another worker is already processing the same article."""


class FetchFailureReason(str, Enum):
    NETWORK_ERROR = "network_error"
    PARSE_ERROR = "parse_error"


@dataclass(frozen=True)
class FetchFailure:
    """Outcome of a feed fetch that produced no items.

    Returned as a value so that one broken source never aborts its siblings.
    """

    source_id: str
    reason: FetchFailureReason
    detail: Optional[str] = None

    def describe(self) -> str:
        if self.detail:
            return f"{self.reason.value}: {self.detail}"
        return self.reason.value


__all__ = [
    "ArticleBusyError",
    "ArticleNotFoundError",
    "ConfigurationError",
    "ConflictError",
    "FetchFailure",
    "FetchFailureReason",
    "IngestRequestError",
    "ScoreRangeError",
]
