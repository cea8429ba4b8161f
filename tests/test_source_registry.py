import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from config.sources import CATEGORY_ALIASES, RSS_SOURCES, validate_sources
from src.errors import ConfigurationError, IngestRequestError
from src.ingestion.registry import ALL_CATEGORIES, SourceRegistry, build_default_registry

EXPECTED_CATEGORIES = {
    "general",
    "internacional",
    "deportes",
    "economia",
    "politica",
    "ciencia",
    "tecnologia",
    "cultura",
}


def _source(category: str, url: str, name: str = "Medio") -> dict:
    return {"name": name, "url": url, "category": category}


def test_default_registry_covers_every_category() -> None:
    registry = build_default_registry()

    assert set(registry.categories) == EXPECTED_CATEGORIES
    assert len(registry) == len(RSS_SOURCES)
    for category in registry.categories:
        sources = registry.sources_for(category)
        assert sources
        assert all(source.category == category for source in sources)


def test_default_catalogue_passes_validation() -> None:
    assert validate_sources() == len(RSS_SOURCES)


def test_default_source_ids_follow_outlet_category_pattern() -> None:
    for source in build_default_registry():
        assert source.id.endswith(f"-{source.category}")


@pytest.mark.parametrize("alias, expected", sorted(CATEGORY_ALIASES.items()))
def test_resolve_category_aliases(alias: str, expected: str) -> None:
    registry = build_default_registry()
    assert registry.resolve_category(alias) == expected
    assert registry.resolve_category(alias.upper()) == expected


def test_resolve_category_accepts_canonical_and_all() -> None:
    registry = build_default_registry()
    assert registry.resolve_category(" Deportes ") == "deportes"
    assert registry.resolve_category("ALL") == ALL_CATEGORIES


def test_resolve_unknown_category_raises() -> None:
    registry = build_default_registry()
    with pytest.raises(IngestRequestError):
        registry.resolve_category("astrologia")


def test_sources_for_unknown_category_is_configuration_error() -> None:
    registry = SourceRegistry({"a": _source("general", "https://a.example.com/rss")})
    with pytest.raises(ConfigurationError):
        registry.sources_for("deportes")


def test_empty_registry_rejected() -> None:
    with pytest.raises(ConfigurationError):
        SourceRegistry({})


def test_feed_shared_between_categories_rejected() -> None:
    sources = {
        "a-general": _source("general", "https://a.example.com/rss"),
        "a-deportes": _source("deportes", "https://a.example.com/rss"),
    }
    with pytest.raises(ConfigurationError, match="claimed by categories"):
        SourceRegistry(sources)


def test_missing_field_rejected() -> None:
    with pytest.raises(ConfigurationError, match="url"):
        SourceRegistry({"a": {"name": "A", "category": "general"}})


def test_registry_lookups() -> None:
    registry = SourceRegistry(
        {
            "a-general": _source("general", "https://a.example.com/rss", name="A"),
            "b-ciencia": _source("ciencia", "https://b.example.com/rss", name="B"),
        },
        aliases={"Science": "ciencia"},
    )

    assert registry.get("a-general").name == "A"
    assert registry.get("missing") is None
    assert registry.category_of("b-ciencia") == "ciencia"
    assert registry.category_of("missing") is None
    assert registry.resolve_category("science") == "ciencia"
    assert [source.id for source in registry] == ["a-general", "b-ciencia"]


def test_registry_is_immutable() -> None:
    registry = build_default_registry()
    with pytest.raises(TypeError):
        registry._by_category["general"] = ()  # type: ignore[index]
    source = registry.sources_for("general")[0]
    with pytest.raises(AttributeError):
        source.category = "deportes"  # type: ignore[misc]


@pytest.mark.parametrize(
    "catalogue",
    [
        {"medio-general": _source("general", "ftp://feeds.example.com/general.xml")},
        {"medio-horoscopo": _source("horoscopo", "https://feeds.example.com/h.xml")},
        {"medio-general": {"name": "Medio", "url": "", "category": "general"}},
    ],
)
def test_default_registry_rejects_malformed_catalogue(catalogue) -> None:
    with pytest.raises(ConfigurationError):
        build_default_registry(catalogue)
