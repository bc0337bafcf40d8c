"""
Utilidades transversales: logging estructurado y métricas.
"""

from src.utils.logging import (
    LogContext,
    configure_logging,
    get_logger,
    log_model_call,
    log_safety_verdict,
)
from src.utils.metrics import (
    MetricStats,
    MetricValue,
    MetricsCollector,
    get_metrics,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    "log_model_call",
    "log_safety_verdict",
    # Metrics
    "MetricsCollector",
    "MetricValue",
    "MetricStats",
    "get_metrics",
]
