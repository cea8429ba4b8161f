"""
Paquete de storage del pipeline de ingesta.

Gestiona persistencia de artículos y del historial de ingesta por fuente.
"""

from .database import DatabaseManager, get_database_manager
from .models import Article, Base, IngestRun
from .recorder import IngestRunRecorder


def get_database_health():
    """Obtiene estadísticas de salud de la base de datos."""
    return get_database_manager().get_health_status()


__all__ = [
    "get_database_manager",
    "get_database_health",
    "DatabaseManager",
    "IngestRunRecorder",
    "Base",
    "Article",
    "IngestRun",
]
