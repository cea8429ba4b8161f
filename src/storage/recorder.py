"""Per-source ingestion bookkeeping on top of the storage layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from src.storage.models import IngestRun
from src.utils.datetime_utils import ensure_utc, utcnow


class IngestRunStore(Protocol):
    def record_ingest_run(
        self,
        source: str,
        status: str,
        articles_count: int,
        last_fetch: Optional[datetime] = None,
        error_message: Optional[str] = None,
    ) -> IngestRun: ...

    def last_ingest_run(self, source: str) -> Optional[IngestRun]: ...


@dataclass(frozen=True)
class IngestRunRecord:
    source: str
    last_fetch: datetime
    status: str
    articles_count: int
    error_message: Optional[str] = None

    @classmethod
    def from_row(cls, row: IngestRun) -> "IngestRunRecord":
        return cls(
            source=row.source,
            last_fetch=ensure_utc(row.last_fetch),
            status=row.status,
            articles_count=row.articles_count,
            error_message=row.error_message,
        )


class IngestRunRecorder:
    """Appends one IngestRun row per source per cycle and answers ``last_run``."""

    def __init__(self, store: IngestRunStore) -> None:
        self.store = store

    def record(
        self,
        source: str,
        status: str,
        count: int,
        timestamp: Optional[datetime] = None,
        *,
        error_message: Optional[str] = None,
    ) -> IngestRunRecord:
        row = self.store.record_ingest_run(
            source,
            status,
            count,
            last_fetch=timestamp or utcnow(),
            error_message=error_message,
        )
        return IngestRunRecord.from_row(row)

    def last_run(self, source: str) -> Optional[IngestRunRecord]:
        row = self.store.last_ingest_run(source)
        return IngestRunRecord.from_row(row) if row is not None else None
