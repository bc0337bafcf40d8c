"""
Sistema de logging estructurado del motor de autoevaluación.

Este módulo configura logging usando structlog para proporcionar
logs estructurados en formato JSON o consola legible.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from config.settings import LogLevel, get_settings


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    format: str = "json",
    include_timestamps: bool = True,
    log_file: str | None = None,
) -> None:
    """
    Configura el sistema de logging.

    Args:
        level: Nivel de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        format: Formato de salida ("json" o "console").
        include_timestamps: Si incluir timestamps en los logs.
        log_file: Ruta opcional a archivo de log.
    """
    if isinstance(level, str):
        level = LogLevel(level.upper())

    logging.basicConfig(
        level=getattr(logging, level.value),
        format="%(message)s",
        stream=sys.stdout,
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamps:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        ))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.value)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(getattr(logging, level.value))
        logging.getLogger().addHandler(file_handler)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """
    Obtiene un logger configurado.

    Args:
        name: Nombre del logger (opcional).

    Returns:
        Logger estructurado listo para usar.
    """
    return structlog.get_logger(name)


class LogContext:
    """
    Context manager para añadir contexto temporal a los logs.

    Example:
        ```python
        with LogContext(session_id=str(session.session_id)):
            logger.info("turn_started")
            # Todos los logs dentro tendrán session_id
        ```
    """

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs

    def __enter__(self) -> "LogContext":
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.unbind_contextvars(*self.context.keys())


def log_model_call(
    logger: structlog.BoundLogger,
    model_id: str,
    operation: str,
    **kwargs: Any,
) -> None:
    """
    Log estandarizado para llamadas a modelos.

    Args:
        logger: Logger a usar.
        model_id: Identificador del modelo.
        operation: Tipo de operación (classify, generate, review).
        **kwargs: Datos adicionales.
    """
    logger.info(
        "model_call",
        model_id=model_id,
        operation=operation,
        **kwargs,
    )


def log_safety_verdict(
    logger: structlog.BoundLogger,
    detector: str,
    flagged: bool,
    category: str,
    source: str,
    confidence: float | None = None,
    **kwargs: Any,
) -> None:
    """
    Log estandarizado para veredictos de seguridad.

    Los veredictos marcados se registran como warning.

    Args:
        logger: Logger a usar.
        detector: Nombre del detector.
        flagged: Si el mensaje fue marcado.
        category: Categoría del veredicto.
        source: primary o fallback.
        confidence: Confianza opcional.
        **kwargs: Datos adicionales.
    """
    log_level = "warning" if flagged else "info"
    getattr(logger, log_level)(
        "safety_verdict",
        detector=detector,
        flagged=flagged,
        category=category,
        source=source,
        confidence=confidence,
        **kwargs,
    )


def _init_logging() -> None:
    """Inicializa logging con configuración del sistema."""
    try:
        settings = get_settings()
        configure_logging(
            level=settings.logging.level,
            format=settings.logging.format,
            include_timestamps=settings.logging.include_timestamps,
            log_file=settings.logging.log_file,
        )
    except Exception:
        # Configuración básica si los settings no son válidos
        configure_logging()


_init_logging()


__all__ = [
    "configure_logging",
    "get_logger",
    "LogContext",
    "log_model_call",
    "log_safety_verdict",
]
