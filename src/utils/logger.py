# src/utils/logger.py
# Sistema de logging del pipeline de ingesta
# ==========================================

"""
Configuración central de logging basada en loguru.

Los componentes del pipeline piden un logger de módulo con
`get_logger().create_module_logger("ingestion.orchestrator")` y emiten
payloads estructurados (diccionarios con un campo `event`), de forma que cada
fallo de fuente o de artículo quede registrado sin detener el lote.
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from config.settings import DEBUG, LOGGING_CONFIG


class PipelineLogger:
    """
    Configurador centralizado de logging para todo el sistema.

    Registra un sink de consola y, si hay ruta configurada, un sink de archivo
    con rotación, retención y compresión.
    """

    def __init__(self):
        self.is_configured = False
        self.log_file_path: Optional[Path] = None

    def configure_logging(self, config: Optional[Dict[str, Any]] = None, *, force: bool = False):
        """
        Configura los sinks de loguru.

        Args:
            config: Configuración de logging. Si no se proporciona,
                   usa LOGGING_CONFIG de settings.py
            force: reconfigura aunque ya se haya configurado antes
        """
        if self.is_configured and not force:
            logger.debug("Logger ya configurado, omitiendo reconfiguración")
            return

        config = config or LOGGING_CONFIG

        # Remover configuración por defecto de loguru
        logger.remove()
        self._configure_console_handler(config)
        if config.get("file_path"):
            self._configure_file_handler(config)

        self.is_configured = True
        logger.debug(f"Configuración de logging aplicada: {config}")

    def _configure_console_handler(self, config: Dict[str, Any]):
        if DEBUG:
            console_format = (
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{extra[module]}</cyan> | "
                "<level>{message}</level>"
            )
            console_level = "DEBUG"
        else:
            console_format = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"
            console_level = config.get("level", "INFO")

        logger.configure(extra={"module": "-"})
        logger.add(
            sys.stderr,
            format=console_format,
            level=console_level,
            colorize=True,
            backtrace=DEBUG,
            diagnose=DEBUG,
        )

    def _configure_file_handler(self, config: Dict[str, Any]):
        self.log_file_path = Path(config["file_path"])
        self.log_file_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            str(self.log_file_path),
            format=config.get("format") or "{time} | {level} | {message}",
            level=config.get("level", "INFO"),
            rotation=config.get("max_file_size", "10 MB"),
            retention=config.get("retention", "30 days"),
            compression="gz",
            enqueue=True,  # Seguro entre threads del pool de enriquecimiento
            backtrace=True,
            diagnose=False,
        )

    def create_module_logger(self, module_name: str) -> Any:
        """
        Logger ligado a un módulo (ej: 'ingestion.orchestrator').
        """
        if not self.is_configured:
            self.configure_logging()
        return logger.bind(module=module_name)

    def log_system_startup(self, version: str, config_summary: Optional[Dict[str, Any]] = None):
        logger.info("=" * 60)
        logger.info(f"🚀 VERITY INGEST {version} INICIADO")
        logger.info(f"Modo debug: {DEBUG}")
        for key, value in (config_summary or {}).items():
            logger.info(f"  {key}: {value}")
        if self.log_file_path:
            logger.info(f"Logs guardándose en: {self.log_file_path}")
        logger.info("=" * 60)


# Instancia global del configurador de logging
# ============================================
_logger_instance = None


def get_logger() -> PipelineLogger:
    """Singleton del configurador de logging."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = PipelineLogger()
        _logger_instance.configure_logging()
    return _logger_instance


def setup_logging(config: Optional[Dict[str, Any]] = None) -> PipelineLogger:
    """
    Configura logging al inicio del sistema.

    Args:
        config: Configuración opcional de logging que reemplaza la activa
    """
    logger_instance = get_logger()
    if config:
        logger_instance.configure_logging(config, force=True)
    return logger_instance


# Logs estructurados
# ==================


class EventLogger:
    """
    Emite payloads estructurados con un nombre de evento estable.

    Cada llamada pasa explícitamente sus campos de correlación (`trace_id`,
    `category`, `source_id`...), ya que varios ciclos pueden compartir el mismo
    logger a la vez. Los campos con valor None se descartan.
    """

    def __init__(self, module_name: str, component: str, module_logger: Any = None):
        self.component = component
        self.module_logger = module_logger or get_logger().create_module_logger(module_name)

    def build_payload(self, event: str, **fields: Any) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"event": event, "component": self.component}
        payload.update(fields)
        return {key: value for key, value in payload.items() if value is not None}

    def emit(self, level: str, event: str, **fields: Any) -> Dict[str, Any]:
        payload = self.build_payload(event, **fields)
        getattr(self.module_logger, level)(payload)
        return payload
