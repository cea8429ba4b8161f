# src/storage/database.py
# Manejador de base de datos del pipeline de ingesta
# ==================================================

"""
Capa de persistencia consumida por el orquestador, el enriquecedor y el motor
de fiabilidad.

Interfaz que el resto del sistema necesita:
- find_by_url(url) -> Article | None
- insert_article(article) -> Article, o ConflictError si la URL ya existe
- record_ingest_run(...) / last_ingest_run(source)

La unicidad de la URL la garantiza la propia base de datos (índice único), de
modo que dos ciclos que intenten guardar la misma URL a la vez nunca generan
filas duplicadas: el segundo recibe un ConflictError.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy import create_engine, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from config.settings import DATABASE_CONFIG
from src.contracts import ArticleCreateModel
from src.errors import ArticleNotFoundError, ConflictError
from src.storage.models import INGEST_STATUS_VALUES, Article, Base, IngestRun

# Configurar logging para este módulo
logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Punto único de acceso a la base de datos.

    Cada operación abre su propia sesión corta; las entidades devueltas
    quedan desacopladas de la sesión (expire_on_commit=False) y pueden leerse
    libremente después.
    """

    def __init__(self, database_config: Optional[Dict[str, Any]] = None):
        self.config = database_config or DATABASE_CONFIG
        self.engine = None
        self.SessionLocal = None
        self._setup_database()

    def _setup_database(self):
        try:
            if self.config["type"] == "sqlite":
                db_path = Path(self.config["path"])
                db_path.parent.mkdir(parents=True, exist_ok=True)
                self.engine = create_engine(
                    f"sqlite:///{db_path}",
                    echo=False,
                    connect_args={
                        "check_same_thread": False,  # Necesario para SQLite con threads
                        "timeout": self.config.get("busy_timeout", 20),
                    },
                    pool_pre_ping=True,
                )
            elif self.config["type"] == "postgresql":
                database_url = (
                    f"postgresql://{self.config['user']}:{self.config['password']}"
                    f"@{self.config['host']}:{self.config['port']}/{self.config['name']}"
                )
                self.engine = create_engine(
                    database_url,
                    echo=False,
                    pool_pre_ping=True,
                    connect_args={"connect_timeout": self.config.get("connect_timeout", 10)},
                )
            else:
                raise ValueError(
                    f"Tipo de base de datos no soportado: {self.config['type']}"
                )

            self.SessionLocal = sessionmaker(
                autocommit=False,
                autoflush=False,
                bind=self.engine,
                expire_on_commit=False,
            )
            Base.metadata.create_all(self.engine)
            logger.info(f"✅ Base de datos configurada: {self.config['type']}")

        except Exception as e:
            logger.error(f"❌ Error configurando base de datos: {e}")
            raise

    @contextmanager
    def get_session(self):
        """
        Sesión transaccional: commit al salir, rollback si algo falla.

        Uso:
            with db_manager.get_session() as session:
                article = session.get(Article, 1)
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Error en operación de base de datos: {e}")
            raise
        finally:
            session.close()

    # =====================================
    # OPERACIONES CON ARTÍCULOS
    # =====================================

    def find_by_url(self, url: str) -> Optional[Article]:
        with self.get_session() as session:
            return session.scalars(select(Article).where(Article.url == url)).first()

    def get_article(self, article_id: int) -> Optional[Article]:
        with self.get_session() as session:
            return session.get(Article, article_id)

    def insert_article(self, article_data: ArticleCreateModel | Dict[str, Any]) -> Article:
        """
        Guarda un artículo nuevo.

        Raises:
            ConflictError: ya existe un artículo con la misma URL.
            ValueError: el payload no cumple el contrato.
        """
        if isinstance(article_data, ArticleCreateModel):
            model = article_data
        else:
            try:
                model = ArticleCreateModel.model_validate(article_data)
            except ValidationError as exc:
                raise ValueError(f"Invalid article payload: {exc}") from exc

        payload = model.model_dump_for_storage()
        duplicate = False
        with self.get_session() as session:
            existing = session.scalars(
                select(Article.id).where(Article.url == payload["url"])
            ).first()
            if existing is not None:
                duplicate = True
            else:
                article = Article(**payload)
                session.add(article)
                try:
                    session.flush()
                except IntegrityError:
                    # Otro ciclo guardó la misma URL entre la consulta y el insert
                    session.rollback()
                    duplicate = True

        if duplicate:
            logger.debug(f"URL ya presente en el corpus: {payload['url']}")
            raise ConflictError(payload["url"])
        return article

    def update_article_metadata(
        self,
        article_id: int,
        *,
        url_to_image: Optional[str] = None,
        summary: Optional[str] = None,
        enriched_at: Optional[datetime] = None,
    ) -> Article:
        """Rellena imagen y resumen solo si el artículo aún no los tiene."""
        with self.get_session() as session:
            article = session.get(Article, article_id)
            if article is None:
                raise ArticleNotFoundError(article_id)
            if url_to_image and not article.url_to_image:
                article.url_to_image = url_to_image
            if summary and not article.summary:
                article.summary = summary
            article.enriched_at = enriched_at or datetime.now(timezone.utc)
            return article

    def update_article_reliability(self, article_id: int, fields: Dict[str, Any]) -> Article:
        allowed = {
            "reliability_score",
            "bias_score",
            "traceability_score",
            "clickbait_score",
            "factuality_status",
            "should_escalate",
            "reliability_label",
            "reliability_rule",
            "analyzed_at",
        }
        unknown = set(fields) - allowed
        if unknown:
            raise ValueError(f"Campos de fiabilidad desconocidos: {sorted(unknown)}")
        with self.get_session() as session:
            article = session.get(Article, article_id)
            if article is None:
                raise ArticleNotFoundError(article_id)
            for name, value in fields.items():
                setattr(article, name, value)
            return article

    def get_articles_by_category(self, category: str, limit: int = 50) -> List[Article]:
        with self.get_session() as session:
            stmt = (
                select(Article)
                .where(Article.category == category)
                .order_by(Article.published_at.desc())
                .limit(limit)
            )
            return list(session.scalars(stmt))

    # =====================================
    # HISTORIAL DE INGESTA
    # =====================================

    def record_ingest_run(
        self,
        source: str,
        status: str,
        articles_count: int,
        last_fetch: Optional[datetime] = None,
        error_message: Optional[str] = None,
    ) -> IngestRun:
        if status not in INGEST_STATUS_VALUES:
            raise ValueError(f"Estado de ingesta no válido: {status}")
        with self.get_session() as session:
            run = IngestRun(
                source=source,
                status=status,
                articles_count=articles_count,
                last_fetch=last_fetch or datetime.now(timezone.utc),
                error_message=error_message,
            )
            session.add(run)
            session.flush()
            return run

    def last_ingest_run(self, source: str) -> Optional[IngestRun]:
        with self.get_session() as session:
            stmt = (
                select(IngestRun)
                .where(IngestRun.source == source)
                .order_by(IngestRun.last_fetch.desc(), IngestRun.id.desc())
                .limit(1)
            )
            return session.scalars(stmt).first()

    def ingest_runs(self, source: Optional[str] = None) -> List[IngestRun]:
        with self.get_session() as session:
            stmt = select(IngestRun).order_by(IngestRun.id)
            if source is not None:
                stmt = stmt.where(IngestRun.source == source)
            return list(session.scalars(stmt))

    def latest_ingest_runs(self) -> List[IngestRun]:
        """Última fila de cada fuente."""
        with self.get_session() as session:
            latest_ids = (
                select(func.max(IngestRun.id)).group_by(IngestRun.source).scalar_subquery()
            )
            stmt = select(IngestRun).where(IngestRun.id.in_(latest_ids)).order_by(IngestRun.source)
            return list(session.scalars(stmt))

    def get_health_status(self) -> Dict[str, Any]:
        with self.get_session() as session:
            total_articles = session.scalar(select(func.count(Article.id))) or 0
            unscored = (
                session.scalar(
                    select(func.count(Article.id)).where(Article.reliability_label.is_(None))
                )
                or 0
            )
        latest = self.latest_ingest_runs()
        failed_sources = [run.source for run in latest if run.status == "failed"]
        return {
            "total_articles": total_articles,
            "unscored_articles": unscored,
            "sources_tracked": len(latest),
            "failed_sources": failed_sources,
            "database_type": self.config["type"],
            "status": "healthy" if not failed_sources else "warning",
        }


# Instancia global del manejador de base de datos
# ===============================================

_db_manager = None


def get_database_manager() -> DatabaseManager:
    """Singleton perezoso sobre la configuración de settings.py."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager
