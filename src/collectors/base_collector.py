# src/collectors/base_collector.py
# Clase base para los colectores de feeds
# =======================================

"""
Interfaz común de los colectores: un colector recibe una fuente y devuelve
sus elementos o un fallo como valor. Nunca lanza excepciones por problemas de
red o de formato, de modo que una fuente rota no puede abortar a sus vecinas.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from src.utils.logger import EventLogger


class BaseCollector(ABC):
    """
    Clase base abstracta para todos los colectores.

    Aporta el logging estructurado (`_emit_log`) y estadísticas acumuladas por
    instancia; cada subclase implementa `fetch` para su tipo de fuente.
    """

    def __init__(self, event_logger: Optional[EventLogger] = None) -> None:
        self.collector_type = self.__class__.__name__
        self.events = event_logger or EventLogger(
            f"collectors.{self.collector_type.lower()}", self.collector_type
        )
        self.stats: Dict[str, int] = {
            "fetches": 0,
            "items_found": 0,
            "network_errors": 0,
            "parse_errors": 0,
        }

    @abstractmethod
    async def fetch(self, source: Any, client: Any) -> Any:
        """
        Recupera una fuente.

        Returns:
            Los elementos de la fuente en su orden original, o un FetchFailure.
        """

    def _emit_log(
        self,
        level: str,
        event: str,
        *,
        source_id: Optional[str] = None,
        latency: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None,
        **extra: Any,
    ) -> None:
        """Emite logs estructurados con los campos de correlación recibidos."""
        self.events.emit(
            level,
            event,
            source_id=source_id,
            **extra,
            latency=round(latency, 3) if latency is not None else None,
            details=details or None,
        )

    def get_stats(self) -> Dict[str, int]:
        return dict(self.stats)
