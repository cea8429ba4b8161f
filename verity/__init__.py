"""Configuration tooling for the Verity news ingestion pipeline."""
from __future__ import annotations

from .config_manager import ConfigError, explain, load_config
from .config_schema import DEFAULT_CONFIG, Config, iter_field_docs

__all__ = [
    "load_config",
    "explain",
    "Config",
    "ConfigError",
    "DEFAULT_CONFIG",
    "iter_field_docs",
]
