# main.py
# Punto de entrada del pipeline de ingesta de Verity
# ==================================================

"""
Coordina los componentes del sistema y expone la CLI de operación.

- ingest: ciclo de ingesta para una categoría o para todas
- enrich: metadatos de página para artículos ya guardados
- score: etiqueta de fiabilidad a partir de un análisis externo
- sources / health: catálogo de fuentes y salud de la última ingesta
"""

import argparse
import asyncio
import json
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx

from config import INGESTION_CONFIG, __version__, validate_config
from src.enrichment import EnrichmentOutcome, EnrichmentService, MetadataExtractor
from src.errors import ArticleBusyError, ArticleNotFoundError
from src.ingestion.orchestrator import IngestionOrchestrator, IngestReport
from src.ingestion.registry import SourceRegistry, build_default_registry
from src.scoring import ReliabilityAnnotator, ReliabilityVerdict
from src.storage import DatabaseManager, IngestRunRecorder, get_database_manager
from src.utils.inflight import InFlightRegistry
from src.utils.logger import setup_logging
from src.utils.metrics import get_metrics_reporter
from verity.config_manager import ConfigError


class VeritySystem:
    """
    Fachada del sistema: construye los componentes una vez y ofrece las
    operaciones que usan la CLI y cualquier colaborador HTTP.
    """

    def __init__(
        self,
        *,
        registry: Optional[SourceRegistry] = None,
        db_manager: Optional[DatabaseManager] = None,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
        extractor: Optional[MetadataExtractor] = None,
    ):
        self.system_id = str(uuid.uuid4())[:8]
        self.start_time = datetime.now(timezone.utc)

        self.registry = registry
        self.db_manager = db_manager
        self.client_factory = client_factory
        self.extractor = extractor

        self.logger = None
        self.system_logger = None
        self.metrics = None
        self.orchestrator: Optional[IngestionOrchestrator] = None
        self.enricher: Optional[EnrichmentService] = None
        self.annotator: Optional[ReliabilityAnnotator] = None
        self.is_initialized = False

    def initialize(self) -> bool:
        """
        Prepara logging, configuración, base de datos y componentes.

        Returns:
            True si todo quedó listo; False si la configuración es inválida.
        """
        self.logger = setup_logging()
        self.system_logger = self.logger.create_module_logger("system")
        try:
            validate_config()
            if self.registry is None:
                self.registry = build_default_registry()
        except ConfigError as exc:
            self.system_logger.error(
                {"event": "system.configuration.invalid", "details": {"error": str(exc)}}
            )
            return False

        self.db_manager = self.db_manager or get_database_manager()
        self.metrics = get_metrics_reporter()
        self.orchestrator = IngestionOrchestrator(
            self.registry,
            self.db_manager,
            recorder=IngestRunRecorder(self.db_manager),
            client_factory=self.client_factory,
            metrics=self.metrics,
        )
        # Enriquecer y puntuar el mismo artículo a la vez está permitido;
        # lo que se evita es repetir la misma operación en paralelo.
        self.enricher = EnrichmentService(
            self.db_manager, self.extractor, inflight=InFlightRegistry()
        )
        self.annotator = ReliabilityAnnotator(self.db_manager, inflight=InFlightRegistry())

        self.is_initialized = True
        self.logger.log_system_startup(
            version=__version__,
            config_summary={
                "system_id": self.system_id,
                "sources_configured": len(self.registry),
                "categories": len(self.registry.categories),
                "database_type": self.db_manager.config["type"],
                "target_page_size": INGESTION_CONFIG["target_page_size"],
            },
        )
        return True

    # Operaciones
    # ===========

    def run_ingest(self, category: str, target_page_size: Optional[int] = None) -> IngestReport:
        self._require_initialized()
        return asyncio.run(self.orchestrator.ingest(category, target_page_size))

    def enrich(self, article_ids: Sequence[int]) -> List[EnrichmentOutcome]:
        self._require_initialized()
        return self.enricher.enrich_articles(article_ids)

    def score(self, article_id: int, analysis: Dict[str, Any]) -> ReliabilityVerdict:
        self._require_initialized()
        return self.annotator.score_article(article_id, analysis)

    def list_sources(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        self._require_initialized()
        if category:
            sources = self.registry.sources_for(self.registry.resolve_category(category))
        else:
            sources = tuple(self.registry)
        return [
            {
                "id": source.id,
                "name": source.name,
                "category": source.category,
                "feed_url": source.feed_url,
            }
            for source in sources
        ]

    def last_runs(self) -> List[Dict[str, Any]]:
        self._require_initialized()
        return [run.to_dict() for run in self.db_manager.latest_ingest_runs()]

    def get_health(self) -> Dict[str, Any]:
        self._require_initialized()
        health = self.db_manager.get_health_status()
        health["fetch_failures"] = self.metrics.failure_counts()
        health["uptime_seconds"] = round(
            (datetime.now(timezone.utc) - self.start_time).total_seconds(), 1
        )
        return health

    def _require_initialized(self) -> None:
        if not self.is_initialized:
            raise RuntimeError("VeritySystem.initialize() must run first")


# CLI
# ===


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Verity news ingestion pipeline")
    parser.add_argument("--json", action="store_true", help="Imprimir el resultado como JSON")
    commands = parser.add_subparsers(dest="command", required=True)

    ingest = commands.add_parser("ingest", help="Ejecutar un ciclo de ingesta")
    ingest.add_argument("--category", default="all", help="Categoría o 'all'")
    ingest.add_argument("--page-size", type=int, default=None, help="Tamaño de página objetivo")

    enrich = commands.add_parser("enrich", help="Extraer metadatos de página")
    enrich.add_argument("article_ids", nargs="+", type=int)

    score = commands.add_parser("score", help="Etiquetar fiabilidad de un artículo")
    score.add_argument("article_id", type=int)
    score.add_argument("--analysis", required=True, type=Path, help="JSON con las subpuntuaciones")

    sources = commands.add_parser("sources", help="Listar fuentes configuradas")
    sources.add_argument("--category", default=None)

    commands.add_parser("health", help="Salud de la ingesta por fuente")
    return parser


def _print_ingest(report: IngestReport) -> None:
    print(f"\n📈 INGESTA {report.requested} ({report.status})")
    print(f"  • Artículos leídos: {report.total_fetched}")
    print(f"  • Artículos nuevos: {report.new_articles}")
    print(f"  • Duplicados: {report.duplicates}")
    print(f"  • Rechazados: {report.rejected}")
    for category in report.categories:
        flag = " ⚠️  baja diversidad" if category.low_diversity else ""
        print(f"  [{category.category}] {category.status}{flag}")
        for result in category.sources:
            suffix = f" ({result.error})" if result.error else ""
            print(f"     - {result.source_id}: {result.status}, {result.new_articles} nuevos{suffix}")


def _run_command(system: VeritySystem, args: argparse.Namespace) -> Any:
    if args.command == "ingest":
        report = system.run_ingest(args.category, args.page_size)
        if not args.json:
            _print_ingest(report)
        return report.to_dict()

    if args.command == "enrich":
        outcomes = system.enrich(args.article_ids)
        if not args.json:
            for outcome in outcomes:
                print(f"  • {outcome.article_id}: {outcome.status} {outcome.image_url or ''}")
        return [outcome.to_dict() for outcome in outcomes]

    if args.command == "score":
        analysis = json.loads(args.analysis.read_text(encoding="utf-8"))
        verdict = system.score(args.article_id, analysis)
        if not args.json:
            print(f"  • {args.article_id}: {verdict.label.display} ({verdict.rule})")
        return verdict.to_dict()

    if args.command == "sources":
        listing = system.list_sources(args.category)
        if not args.json:
            for source in listing:
                print(f"  • [{source['category']}] {source['id']}: {source['name']}")
        return listing

    health = {"database": system.get_health(), "last_runs": system.last_runs()}
    if not args.json:
        db = health["database"]
        print(f"  • Estado: {db['status']}")
        print(f"  • Artículos: {db['total_articles']} ({db['unscored_articles']} sin puntuar)")
        for run in health["last_runs"]:
            print(f"  • {run['source']}: {run['status']} @ {run['last_fetch']}")
    return health


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    system = VeritySystem()
    if not system.initialize():
        print("❌ Configuración inválida, revisa los logs", file=sys.stderr)
        return 1

    try:
        result = _run_command(system, args)
    except (ValueError, OSError) as exc:
        # IngestRequestError, ScoreRangeError and unreadable --analysis files
        print(f"❌ {exc}", file=sys.stderr)
        return 2
    except (ArticleNotFoundError, ArticleBusyError) as exc:
        print(f"❌ {exc.__class__.__name__}: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n⚠️  Ejecución interrumpida por usuario", file=sys.stderr)
        return 130

    if args.json:
        print(json.dumps(result, ensure_ascii=False, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
