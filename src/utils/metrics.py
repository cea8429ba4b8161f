"""In-process metrics for ingestion runs.

Events are kept in memory so operators and tests can inspect per-source fetch
counts, latencies and failures without an external metrics backend.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from threading import Lock
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class MetricEvent:
    """Represents a single metric emission."""

    name: str
    value: float
    attributes: Dict[str, Any]


class MetricsReporter:
    """Thread-safe in-memory metrics sink."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._events: List[MetricEvent] = []

    def record_fetch(
        self,
        *,
        source_id: str,
        category: str,
        item_count: int,
        latency: float,
        trace_id: str,
    ) -> None:
        attributes = {"source_id": source_id, "category": category, "trace_id": trace_id}
        self._emit("ingestion.fetch.items", item_count, attributes)
        self._emit("ingestion.fetch.latency", latency, attributes)

    def record_fetch_failure(
        self,
        *,
        source_id: str,
        category: str,
        reason: str,
        trace_id: str,
    ) -> None:
        self._emit(
            "ingestion.fetch.failure",
            1,
            {
                "source_id": source_id,
                "category": category,
                "reason": reason,
                "trace_id": trace_id,
            },
        )

    def record_cycle(self, *, category: str, new_articles: int, duplicates: int, rejected: int) -> None:
        attributes = {"category": category}
        self._emit("ingestion.cycle.new_articles", new_articles, attributes)
        self._emit("ingestion.cycle.duplicates", duplicates, attributes)
        self._emit("ingestion.cycle.rejected", rejected, attributes)

    def snapshot(self) -> List[MetricEvent]:
        """Return a copy of the emitted events for inspection."""
        with self._lock:
            return list(self._events)

    def failure_counts(self) -> Dict[str, int]:
        """Fetch failures per source since process start."""
        counts: Counter = Counter()
        for event in self.snapshot():
            if event.name == "ingestion.fetch.failure":
                counts[event.attributes["source_id"]] += 1
        return dict(counts)

    def _emit(self, name: str, value: float, attributes: Optional[Dict[str, Any]] = None) -> None:
        event = MetricEvent(name=name, value=value, attributes=attributes or {})
        with self._lock:
            self._events.append(event)


_metrics_reporter: Optional[MetricsReporter] = None


def get_metrics_reporter() -> MetricsReporter:
    """Return a process-wide singleton metrics reporter."""
    global _metrics_reporter
    if _metrics_reporter is None:
        _metrics_reporter = MetricsReporter()
    return _metrics_reporter
