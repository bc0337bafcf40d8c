"""
Métricas en memoria del motor de autoevaluación.

Cubre latencia de modelos, veredictos de seguridad por fuente,
resultados de turno e incidentes escalados.
"""

from __future__ import annotations

import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from statistics import mean
from threading import Lock
from typing import Any, Generator


@dataclass
class MetricValue:
    """Observación con timestamp."""
    value: float
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class MetricStats:
    """Estadísticas agregadas de un histograma."""
    count: int
    sum: float
    min: float
    max: float
    mean: float
    p95: float


class MetricsCollector:
    """
    Recolector de contadores, gauges e histogramas.

    Es seguro entre hilos; las claves con etiquetas se serializan como
    `nombre{k=v,...}`.

    Example:
        ```python
        metrics = get_metrics()
        metrics.increment("turns_total", labels={"outcome": "safe_continue"})
        with metrics.timer("generator_latency_ms"):
            await generator.generate(...)
        ```
    """

    def __init__(self, max_samples: int = 5000) -> None:
        self.max_samples = max_samples
        self._counters: dict[str, float] = defaultdict(float)
        self._gauges: dict[str, float] = {}
        self._histograms: dict[str, list[MetricValue]] = defaultdict(list)
        self._lock = Lock()

    def increment(
        self,
        name: str,
        value: float = 1.0,
        labels: dict[str, str] | None = None,
    ) -> None:
        key = self._make_key(name, labels)
        with self._lock:
            self._counters[key] += value

    def set_gauge(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        key = self._make_key(name, labels)
        with self._lock:
            self._gauges[key] = value

    def observe(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Registra una observación, conservando las últimas `max_samples`."""
        key = self._make_key(name, labels)
        with self._lock:
            samples = self._histograms[key]
            samples.append(MetricValue(value=value))
            if len(samples) > self.max_samples:
                del samples[: len(samples) - self.max_samples]

    @contextmanager
    def timer(
        self,
        name: str,
        labels: dict[str, str] | None = None,
    ) -> Generator[None, None, None]:
        """Mide en milisegundos el bloque envuelto."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.observe(name, (time.perf_counter() - start) * 1000, labels)

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> float:
        return self._counters.get(self._make_key(name, labels), 0.0)

    def get_gauge(self, name: str, labels: dict[str, str] | None = None) -> float | None:
        return self._gauges.get(self._make_key(name, labels))

    def get_stats(
        self,
        name: str,
        labels: dict[str, str] | None = None,
    ) -> MetricStats | None:
        """
        Estadísticas de un histograma.

        Returns:
            MetricStats o None si no hay observaciones.
        """
        key = self._make_key(name, labels)
        with self._lock:
            values = sorted(v.value for v in self._histograms.get(key, []))
        if not values:
            return None
        return MetricStats(
            count=len(values),
            sum=sum(values),
            min=values[0],
            max=values[-1],
            mean=mean(values),
            p95=self._percentile(values, 95),
        )

    def get_all_metrics(self) -> dict[str, Any]:
        """Vuelca todas las métricas como diccionario serializable."""
        with self._lock:
            histograms = {
                key: [v.value for v in samples]
                for key, samples in self._histograms.items()
                if samples
            }
            result: dict[str, Any] = {
                "counters": dict(self._counters),
                "gauges": dict(self._gauges),
                "histograms": {},
            }
        for key, values in histograms.items():
            ordered = sorted(values)
            result["histograms"][key] = {
                "count": len(ordered),
                "mean": mean(ordered),
                "p95": self._percentile(ordered, 95),
            }
        return result

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._histograms.clear()

    @staticmethod
    def _make_key(name: str, labels: dict[str, str] | None) -> str:
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"

    @staticmethod
    def _percentile(sorted_values: list[float], p: float) -> float:
        n = len(sorted_values)
        k = (n - 1) * (p / 100)
        f = int(k)
        if f + 1 >= n:
            return sorted_values[-1]
        return sorted_values[f] + (k - f) * (sorted_values[f + 1] - sorted_values[f])


# Singleton global
_metrics_collector: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Obtiene el recolector de métricas global."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector


__all__ = [
    "MetricsCollector",
    "MetricValue",
    "MetricStats",
    "get_metrics",
]
