"""Contracts for articles produced by the ingestion pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional, TypedDict

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ArticlePayload(TypedDict, total=False):
    """Serialized representation of a new article ready for persistence."""

    url: str
    title: str
    summary: Optional[str]
    source_id: str
    source_name: str
    category: str
    published_at: datetime
    fetched_at: datetime
    url_to_image: Optional[str]


class ArticleCreateModel(BaseModel):
    """Pydantic model validating new articles before persistence."""

    url: str = Field(min_length=8, max_length=1000)
    title: str = Field(min_length=1, max_length=500)
    summary: Optional[str] = None
    source_id: str = Field(min_length=1)
    source_name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    published_at: datetime
    fetched_at: datetime
    url_to_image: Optional[str] = Field(default=None, max_length=1000)

    model_config = ConfigDict(from_attributes=True, extra="forbid")

    @field_validator("url", "url_to_image")
    @classmethod
    def require_http(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.startswith(("http://", "https://")):
            raise ValueError("URL must use http or https")
        return value

    @field_validator("published_at", "fetched_at")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def model_dump_for_storage(self) -> Dict[str, Any]:
        return self.model_dump(mode="python")
