# src/storage/models.py
# Modelos de datos del pipeline de ingesta
# ========================================

"""
Estructura de datos persistida por el sistema.

Dos tablas:
- articles: el corpus. La URL es única en todo el corpus y es la clave de
  deduplicación. El orquestador crea las filas; el enriquecedor de metadatos
  y el motor de fiabilidad las completan más tarde.
- ingest_runs: historial append-only con una fila por fuente y ciclo de
  ingesta. La última fila de cada fuente describe su salud.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

INGEST_STATUS_VALUES = ("success", "partial", "failed")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Article(Base):
    """Artículo del corpus."""

    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    url = Column(String(1000), unique=True, nullable=False, index=True)

    # Contenido
    # =========
    title = Column(String(500), nullable=False)
    summary = Column(Text)
    url_to_image = Column(String(1000))

    # Procedencia
    # ===========
    source_id = Column(String(100), nullable=False, index=True)
    source_name = Column(String(200), nullable=False)
    category = Column(String(50), nullable=False, index=True)
    published_at = Column(DateTime(timezone=True), nullable=False)
    fetched_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    enriched_at = Column(DateTime(timezone=True))

    # Fiabilidad
    # ==========
    reliability_score = Column(Integer)
    bias_score = Column(Integer)
    traceability_score = Column(Integer)
    clickbait_score = Column(Integer)
    factuality_status = Column(String(40))
    should_escalate = Column(Boolean)
    reliability_label = Column(String(40))
    reliability_rule = Column(String(60))
    analyzed_at = Column(DateTime(timezone=True))

    __table_args__ = (Index("idx_category_published", "category", "published_at"),)

    def __repr__(self):
        return f"<Article(id={self.id}, source='{self.source_id}', title='{self.title[:40]}')>"

    def to_dict(self) -> Dict[str, Any]:
        def _iso(value):
            return value.isoformat() if value else None

        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "summary": self.summary,
            "url_to_image": self.url_to_image,
            "source_id": self.source_id,
            "source_name": self.source_name,
            "category": self.category,
            "published_at": _iso(self.published_at),
            "fetched_at": _iso(self.fetched_at),
            "enriched_at": _iso(self.enriched_at),
            "reliability": {
                "score": self.reliability_score,
                "bias_score": self.bias_score,
                "traceability_score": self.traceability_score,
                "clickbait_score": self.clickbait_score,
                "factuality_status": self.factuality_status,
                "should_escalate": self.should_escalate,
                "label": self.reliability_label,
                "rule": self.reliability_rule,
                "analyzed_at": _iso(self.analyzed_at),
            },
        }


class IngestRun(Base):
    """Resultado de una fuente en un ciclo de ingesta."""

    __tablename__ = "ingest_runs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source = Column(String(100), nullable=False)
    last_fetch = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    status = Column(String(20), nullable=False)
    articles_count = Column(Integer, nullable=False, default=0)
    error_message = Column(Text)

    __table_args__ = (Index("idx_ingest_source_fetch", "source", "last_fetch"),)

    def __repr__(self):
        return f"<IngestRun(source='{self.source}', status='{self.status}', count={self.articles_count})>"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "last_fetch": self.last_fetch.isoformat() if self.last_fetch else None,
            "status": self.status,
            "articles_count": self.articles_count,
            "error_message": self.error_message,
        }
