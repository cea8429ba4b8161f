"""Declarative configuration schema for the Verity ingestion pipeline."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveFloat,
    PositiveInt,
    PrivateAttr,
    field_validator,
    model_validator,
)


class StrictModel(BaseModel):
    """Base model enforcing strict validation rules."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        validate_assignment=True,
        str_strip_whitespace=True,
    )


class AppSettings(StrictModel):
    """Top-level runtime metadata."""

    environment: str = Field(
        default="development",
        description="Normalized deployment environment name.",
        examples=["production"],
    )
    debug: bool = Field(
        default=False,
        description="When true, enables verbose console logging.",
    )
    timezone: str = Field(
        default="Europe/Madrid",
        description="Timezone used when rendering timestamps for operators.",
        examples=["UTC"],
    )

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"development", "production", "staging", "test"}:
            raise ValueError(
                "environment must be one of: development, staging, production, test"
            )
        return normalized


class PathsConfig(StrictModel):
    """Filesystem layout settings."""

    data_dir: Path = Field(
        default=Path("data"),
        description="Root directory for persistent runtime artefacts.",
        examples=["/var/lib/verity"],
    )
    logs_dir: Path = Field(
        default=Path("logs"),
        description="Directory where operational logs are written.",
        examples=["/var/log/verity"],
    )

    @model_validator(mode="after")
    def _ensure_child_paths(self) -> "PathsConfig":
        base = self.data_dir if self.data_dir.is_absolute() else self.data_dir.resolve()
        object.__setattr__(self, "data_dir", base)
        if not self.logs_dir.is_absolute():
            object.__setattr__(self, "logs_dir", (base / self.logs_dir).resolve())
        return self


class DatabaseConfig(StrictModel):
    """Database connectivity parameters."""

    driver: str = Field(
        default="sqlite",
        description="Database backend driver to use.",
        examples=["postgresql"],
    )
    path: Optional[Path] = Field(
        default=Path("data/verity.db"),
        description="Filesystem path for SQLite database files.",
    )
    host: Optional[str] = Field(
        default=None,
        description="Hostname for the SQL server when using a network backend.",
        examples=["db.internal"],
    )
    port: Optional[int] = Field(
        default=None,
        description="TCP port for the SQL server backend.",
        examples=[5432],
    )
    name: str = Field(default="verity", description="Database name or schema.")
    user: Optional[str] = Field(
        default=None,
        description="Database username for authenticated connections.",
    )
    password: Optional[str] = Field(
        default=None,
        description="Database password; treated as secret.",
    )
    connect_timeout: PositiveInt = Field(
        default=10, description="Seconds to wait when establishing a connection."
    )
    busy_timeout: PositiveInt = Field(
        default=20, description="Seconds SQLite waits on a locked database."
    )

    @field_validator("driver")
    @classmethod
    def _validate_driver(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in {"sqlite", "postgresql"}:
            raise ValueError("driver must be 'sqlite' or 'postgresql'")
        return normalized


class IngestionConfig(StrictModel):
    """Feed fan-out, quota and fetch behaviour."""

    target_page_size: PositiveInt = Field(
        default=20,
        description="Articles a category should yield per cycle when no size is given.",
    )
    max_target_page_size: PositiveInt = Field(
        default=100,
        description="Upper bound accepted for a requested page size.",
    )
    min_per_source_quota: PositiveInt = Field(
        default=2,
        description="Floor applied to every source's per-cycle quota.",
    )
    low_diversity_ratio: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Categories realizing less than this share of the target are flagged.",
    )
    request_timeout_seconds: PositiveFloat = Field(
        default=10.0,
        description="Independent timeout applied to each feed fetch.",
    )
    max_concurrent_categories: PositiveInt = Field(
        default=3,
        description="How many category cycles run at once when ingesting all.",
    )
    summary_max_length: PositiveInt = Field(
        default=300,
        description="Maximum length of the stored article summary.",
    )
    user_agent: str = Field(
        default="VerityNewsBot/1.0 (+https://verity-news.com/bot)",
        description="User-Agent header sent with feed requests.",
    )

    @model_validator(mode="after")
    def _check_page_bounds(self) -> "IngestionConfig":
        if self.target_page_size > self.max_target_page_size:
            raise ValueError("target_page_size cannot exceed max_target_page_size")
        return self


class DedupConfig(StrictModel):
    """Duplicate detection parameters."""

    canonicalize_urls: bool = Field(
        default=True,
        description="Strip tracking parameters and fragments before URL comparison.",
    )
    fuzzy_titles_enabled: bool = Field(
        default=True,
        description="Drop same-batch candidates whose titles are near identical.",
    )
    title_similarity_threshold: float = Field(
        default=0.9,
        gt=0.0,
        le=1.0,
        description="Token Jaccard similarity at or above which two titles match.",
    )


class EnrichmentConfig(StrictModel):
    """Landing page metadata extraction settings."""

    timeout_seconds: PositiveFloat = Field(
        default=2.0, description="Timeout for landing page requests."
    )
    max_redirects: PositiveInt = Field(
        default=5, description="Redirects followed before giving up on a page."
    )
    max_workers: PositiveInt = Field(
        default=4, description="Thread pool size for batch enrichment."
    )
    max_content_bytes: PositiveInt = Field(
        default=2_000_000,
        description="Pages larger than this are not parsed.",
    )
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; VerityNewsBot/1.0; +https://verity-news.com/bot)",
        description="User-Agent header sent with landing page requests.",
    )


class ReliabilityConfig(StrictModel):
    """Thresholds for the reliability label rules."""

    high_risk_max_traceability: int = Field(
        default=20,
        ge=0,
        le=100,
        description="Traceability at or below this value counts toward high risk.",
    )
    high_risk_min_clickbait: int = Field(
        default=60,
        ge=0,
        le=100,
        description="Clickbait at or above this value counts toward high risk.",
    )
    corroborated_min_score: int = Field(
        default=70,
        ge=0,
        le=100,
        description="Reliability score needed for the corroborated band.",
    )
    weakly_corroborated_min_score: int = Field(
        default=40,
        ge=0,
        le=100,
        description="Reliability score needed for the weakly corroborated band.",
    )

    @model_validator(mode="after")
    def _check_bands(self) -> "ReliabilityConfig":
        if self.weakly_corroborated_min_score >= self.corroborated_min_score:
            raise ValueError(
                "weakly_corroborated_min_score must be below corroborated_min_score"
            )
        return self


class LoggingConfig(StrictModel):
    """Structured logging parameters."""

    level: str = Field(
        default="INFO",
        description="Minimum log level emitted by loguru sinks.",
        examples=["DEBUG"],
    )
    file_path: Path = Field(
        default=Path("logs/verity.log"),
        description="Location of the rotating log file.",
    )
    max_file_size_mb: PositiveInt = Field(
        default=10, description="Log file size that triggers rotation."
    )
    retention_days: PositiveInt = Field(
        default=30, description="Days rotated log files are kept."
    )
    format: str = Field(
        default="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        description="loguru format string used by the file sink.",
    )

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return normalized


class Config(StrictModel):
    """Root configuration object."""

    app: AppSettings = Field(default_factory=AppSettings)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    dedup: DedupConfig = Field(default_factory=DedupConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)
    reliability: ReliabilityConfig = Field(default_factory=ReliabilityConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    _metadata: object = PrivateAttr(default=None)


DEFAULT_CONFIG = Config()


def iter_field_docs(
    model: BaseModel | type[BaseModel],
    prefix: str = "",
    *,
    include_defaults: bool = True,
) -> Iterable[dict[str, object]]:
    """Yield flattened schema documentation entries."""

    instance = DEFAULT_CONFIG if isinstance(model, type) else model
    target_model = type(instance)

    for name, field in target_model.model_fields.items():
        value = getattr(instance, name, field.default)
        key = f"{prefix}.{name}" if prefix else name
        is_nested = isinstance(value, BaseModel)
        yield {
            "name": key,
            "type": getattr(field.annotation, "__name__", str(field.annotation)),
            "description": field.description or "",
            "default": None if (is_nested or not include_defaults) else value,
            "examples": field.examples or [],
            "constraints": _describe_constraints(field),
            "is_nested": is_nested,
        }
        if is_nested:
            yield from iter_field_docs(value, key, include_defaults=include_defaults)


_COMPARATORS = {"ge": ">=", "gt": ">", "le": "<=", "lt": "<"}


def _describe_constraints(field: Any) -> str:
    parts: list[str] = []
    for constraint in field.metadata:
        for attr, comparator in _COMPARATORS.items():
            bound = getattr(constraint, attr, None)
            if bound is not None:
                parts.append(f"{comparator} {bound}")
    return ", ".join(parts)


__all__ = [
    "Config",
    "DEFAULT_CONFIG",
    "iter_field_docs",
]
