"""Contracts for landing page metadata."""

from __future__ import annotations

from typing import Optional, TypedDict

from pydantic import BaseModel, ConfigDict


class PageMetadata(TypedDict, total=False):
    """Preview metadata extracted from an article's landing page."""

    og_image: Optional[str]
    twitter_image: Optional[str]
    title: Optional[str]
    description: Optional[str]


class PageMetadataModel(BaseModel):
    """Validated preview metadata; every field may be absent."""

    og_image: Optional[str] = None
    twitter_image: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def empty(cls) -> "PageMetadataModel":
        return cls()

    def is_empty(self) -> bool:
        return not any((self.og_image, self.twitter_image, self.title, self.description))
