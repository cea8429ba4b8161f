"""
Paquete principal del pipeline de ingesta de Verity.

Contiene los módulos funcionales: colectores de feeds, orquestación de la
ingesta, enriquecimiento de metadatos, scoring de fiabilidad, almacenamiento
y utilidades.
"""

from config.version import PROJECT_VERSION, PYTHON_REQUIRES_SPECIFIER

__version__ = PROJECT_VERSION
__description__ = (
    "Ingesta de noticias RSS por categoría con deduplicación y etiquetado de fiabilidad"
)

__package_info__ = {
    "name": "verity_news_ingest",
    "version": __version__,
    "description": __description__,
    "python_requires": PYTHON_REQUIRES_SPECIFIER,
}
