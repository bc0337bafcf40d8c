"""
Tests para el recolector de métricas.
"""

import pytest

from src.utils.metrics import MetricsCollector


class TestMetricsCollector:
    """Tests para MetricsCollector."""

    def test_counters_with_labels(self) -> None:
        metrics = MetricsCollector()

        metrics.increment("turns_processed", labels={"outcome": "safe_continue"})
        metrics.increment("turns_processed", labels={"outcome": "safe_continue"})
        metrics.increment("turns_processed", labels={"outcome": "unsafe_terminate"})

        assert metrics.get_counter("turns_processed", labels={"outcome": "safe_continue"}) == 2
        assert metrics.get_counter("turns_processed") == 0
        assert "turns_processed{outcome=unsafe_terminate}" in metrics.get_all_metrics()["counters"]

    def test_timer_records_histogram(self) -> None:
        metrics = MetricsCollector()

        with metrics.timer("turn_latency_ms"):
            pass

        stats = metrics.get_stats("turn_latency_ms")
        assert stats is not None
        assert stats.count == 1
        assert stats.min >= 0

    def test_stats_percentile(self) -> None:
        metrics = MetricsCollector()
        for value in range(1, 101):
            metrics.observe("latency", float(value))

        stats = metrics.get_stats("latency")

        assert stats.mean == pytest.approx(50.5)
        assert stats.p95 == pytest.approx(95.05)
        assert metrics.get_stats("missing") is None

    def test_max_samples(self) -> None:
        metrics = MetricsCollector(max_samples=3)
        for value in range(10):
            metrics.observe("latency", float(value))

        assert metrics.get_stats("latency").min == 7.0

    def test_reset(self) -> None:
        metrics = MetricsCollector()
        metrics.increment("sessions_started")
        metrics.set_gauge("active_sessions", 4)

        metrics.reset()

        assert metrics.get_counter("sessions_started") == 0
        assert metrics.get_gauge("active_sessions") is None
