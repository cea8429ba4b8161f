"""Configuration package.

Attributes are resolved lazily so that importing ``config`` (for instance from
``setup.py`` to read the version) does not load pydantic or the TOML layers.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Tuple

_EXPORTS: Dict[str, Tuple[str, ...]] = {
    "config.settings": (
        "DATABASE_CONFIG",
        "INGESTION_CONFIG",
        "DEDUP_CONFIG",
        "ENRICHMENT_CONFIG",
        "RELIABILITY_CONFIG",
        "LOGGING_CONFIG",
        "ENVIRONMENT",
        "IS_PRODUCTION",
        "DEBUG",
        "validate_config",
    ),
    "config.sources": (
        "RSS_SOURCES",
        "CATEGORY_ALIASES",
        "CATEGORY_LABELS",
        "validate_sources",
    ),
    "config.version": (
        "MIN_PYTHON_VERSION",
        "PROJECT_VERSION",
        "PYTHON_REQUIRES_SPECIFIER",
        "__version__",
    ),
}

_OWNER = {name: module for module, names in _EXPORTS.items() for name in names}

__all__ = sorted(_OWNER)


def __getattr__(name: str) -> Any:
    owner = _OWNER.get(name)
    if owner is None:
        raise AttributeError(f"module 'config' has no attribute {name!r}")
    module = import_module(owner)
    globals().update({attr: getattr(module, attr) for attr in _EXPORTS[owner]})
    return globals()[name]
