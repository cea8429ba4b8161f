"""Immutable view over the RSS source catalogue, keyed by category."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from src.errors import ConfigurationError, IngestRequestError

ALL_CATEGORIES = "all"


@dataclass(frozen=True)
class Source:
    """One RSS feed owned by exactly one category."""

    id: str
    name: str
    feed_url: str
    category: str
    language: str = "es"


class SourceRegistry:
    """Category → sources mapping built once at startup.

    The registry is validated on construction and never mutated afterwards;
    the orchestrator receives it as a constructor argument.
    """

    def __init__(
        self,
        sources: Mapping[str, Mapping[str, Any]],
        *,
        aliases: Optional[Mapping[str, str]] = None,
    ) -> None:
        by_category: Dict[str, List[Source]] = {}
        by_id: Dict[str, Source] = {}
        feed_owner: Dict[str, str] = {}

        for source_id, raw in sources.items():
            if source_id in by_id:
                raise ConfigurationError(f"Duplicate source id: {source_id}")
            try:
                source = Source(
                    id=source_id,
                    name=raw["name"],
                    feed_url=raw["url"],
                    category=raw["category"],
                    language=raw.get("language", "es"),
                )
            except KeyError as exc:
                raise ConfigurationError(
                    f"Source {source_id} is missing field {exc.args[0]!r}"
                ) from exc

            owner = feed_owner.get(source.feed_url)
            if owner is not None and owner != source.category:
                raise ConfigurationError(
                    f"Feed {source.feed_url} is claimed by categories "
                    f"{owner!r} and {source.category!r}"
                )
            feed_owner[source.feed_url] = source.category
            by_id[source_id] = source
            by_category.setdefault(source.category, []).append(source)

        if not by_category:
            raise ConfigurationError("Source registry is empty")

        self._by_category: Mapping[str, Tuple[Source, ...]] = MappingProxyType(
            {category: tuple(items) for category, items in by_category.items()}
        )
        self._by_id: Mapping[str, Source] = MappingProxyType(by_id)
        self._aliases: Mapping[str, str] = MappingProxyType(
            {key.lower(): value for key, value in (aliases or {}).items()}
        )

    @property
    def categories(self) -> Tuple[str, ...]:
        return tuple(self._by_category)

    def sources_for(self, category: str) -> Tuple[Source, ...]:
        """Return the sources owned by ``category``.

        Raises:
            ConfigurationError: when the category has no sources.
        """
        sources = self._by_category.get(category, ())
        if not sources:
            raise ConfigurationError(f"Category {category!r} has no sources configured")
        return sources

    def get(self, source_id: str) -> Optional[Source]:
        return self._by_id.get(source_id)

    def category_of(self, source_id: str) -> Optional[str]:
        source = self._by_id.get(source_id)
        return source.category if source else None

    def resolve_category(self, name: str) -> str:
        """Map a requested category (canonical tag or alias) to its tag."""
        key = (name or "").strip().lower()
        if key == ALL_CATEGORIES:
            return ALL_CATEGORIES
        key = self._aliases.get(key, key)
        if key not in self._by_category:
            raise IngestRequestError(f"Unknown category: {name!r}")
        return key

    def __iter__(self) -> Iterator[Source]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)


def build_default_registry(
    sources: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> SourceRegistry:
    """Registry over the built-in Spanish press catalogue (or ``sources``)."""
    from config.sources import CATEGORY_ALIASES, RSS_SOURCES, validate_sources

    catalogue = RSS_SOURCES if sources is None else sources
    try:
        validate_sources(catalogue)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
    return SourceRegistry(catalogue, aliases=CATEGORY_ALIASES)
