"""Import-time settings for the ingestion pipeline.

The typed configuration is loaded once through ``verity.config_manager`` and
re-exposed as plain dictionaries, which is what the runtime components accept
(tests build those dictionaries by hand).
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from verity.config_manager import Config, ConfigError, load_config

CONFIG: Config = load_config()

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = CONFIG.paths.data_dir
LOGS_DIR = CONFIG.paths.logs_dir

for directory in (DATA_DIR, LOGS_DIR):
    directory.mkdir(parents=True, exist_ok=True)

ENVIRONMENT = CONFIG.app.environment
DEBUG = CONFIG.app.debug
IS_PRODUCTION = ENVIRONMENT == "production"


def _section(name: str, **aliases: str) -> Dict[str, Any]:
    """Dump one config section, adding ``alias=original`` keys."""
    data = getattr(CONFIG, name).model_dump(mode="python")
    for alias, original in aliases.items():
        data[alias] = data[original]
    return data


# Storage code keys the backend on "type".
DATABASE_CONFIG = _section("database", type="driver")
INGESTION_CONFIG = _section("ingestion", request_timeout="request_timeout_seconds")
DEDUP_CONFIG = _section("dedup")
ENRICHMENT_CONFIG = _section("enrichment")
RELIABILITY_CONFIG = _section("reliability")

# loguru takes rotation and retention as human strings.
LOGGING_CONFIG: Dict[str, Any] = {
    "level": CONFIG.logging.level,
    "format": CONFIG.logging.format,
    "file_path": str(CONFIG.logging.file_path),
    "max_file_size": f"{CONFIG.logging.max_file_size_mb} MB",
    "retention": f"{CONFIG.logging.retention_days} days",
}

_POSTGRES_REQUIRED = ("host", "port", "user", "password")


def validate_config(config: Config | None = None) -> None:
    """Cross-section checks that the pydantic schema cannot express."""
    database = (config or CONFIG).database
    ingestion = (config or CONFIG).ingestion

    problems = []
    if database.driver == "sqlite" and not database.path:
        problems.append("sqlite driver requires database.path")
    if database.driver == "postgresql":
        missing = [name for name in _POSTGRES_REQUIRED if not getattr(database, name)]
        if missing:
            problems.append("postgresql configuration missing: " + ", ".join(missing))
    if ingestion.min_per_source_quota > ingestion.max_target_page_size:
        problems.append(
            "ingestion.min_per_source_quota cannot exceed ingestion.max_target_page_size"
        )
    if problems:
        raise ConfigError("; ".join(problems))


__all__ = [
    "BASE_DIR",
    "CONFIG",
    "DATA_DIR",
    "LOGS_DIR",
    "ENVIRONMENT",
    "DEBUG",
    "IS_PRODUCTION",
    "DATABASE_CONFIG",
    "INGESTION_CONFIG",
    "DEDUP_CONFIG",
    "ENRICHMENT_CONFIG",
    "RELIABILITY_CONFIG",
    "LOGGING_CONFIG",
    "validate_config",
]
