"""
Clasificador de seguridad de doble vía.

Punto de entrada que usa la máquina de estados antes de cada respuesta
del tutor. Ejecuta el clasificador primario con timeout y, si falla por
cualquier motivo, recurre al detector heurístico en el mismo proceso.
Si ambos fallan, el veredicto es marcado: nunca se falla en abierto.
"""

from __future__ import annotations

import asyncio
from typing import Sequence

from config.settings import ModelDefaults, SafetyConfig
from src.core.types import ConversationMessage, SafetyVerdict
from src.guardrails.detectors.keyword_fallback import FallbackHeuristicDetector
from src.guardrails.detectors.model_classifier import PrimarySafetyClassifier
from src.models.base import BaseModelAdapter
from src.utils.logging import get_logger
from src.utils.metrics import MetricsCollector, get_metrics


class SafetyClassifier:
    """
    Clasificador de seguridad con respaldo heurístico.

    Attributes:
        primary: Clasificador basado en modelo (None si está deshabilitado).
        fallback: Detector por patrones.
        config: Configuración de seguridad.
    """

    def __init__(
        self,
        config: SafetyConfig,
        primary: PrimarySafetyClassifier | None = None,
        fallback: FallbackHeuristicDetector | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.config = config
        self.primary = primary if config.primary_enabled else None
        self.fallback = fallback or FallbackHeuristicDetector()
        self.metrics = metrics or get_metrics()
        self.logger = get_logger("guardrail.safety_classifier")

    @classmethod
    def with_model(
        cls,
        model: BaseModelAdapter,
        config: SafetyConfig,
        defaults: ModelDefaults | None = None,
        metrics: MetricsCollector | None = None,
    ) -> "SafetyClassifier":
        """Construye el clasificador con un primario sobre `model`."""
        primary = PrimarySafetyClassifier.from_defaults(model, config, defaults or ModelDefaults())
        return cls(config, primary=primary, metrics=metrics)

    async def classify(
        self,
        message: str,
        recent_history: Sequence[ConversationMessage] = (),
    ) -> SafetyVerdict:
        """
        Clasifica un mensaje del estudiante.

        Args:
            message: Texto crudo del estudiante (puede estar vacío).
            recent_history: Mensajes previos de la sesión.

        Returns:
            Veredicto de seguridad. Nunca lanza excepciones.
        """
        verdict: SafetyVerdict | None = None

        if self.primary is not None:
            try:
                verdict = await asyncio.wait_for(
                    self.primary.detect(message, recent_history),
                    timeout=self.config.classifier_timeout,
                )
            except asyncio.TimeoutError:
                self.logger.warning(
                    "primary_classifier_failed",
                    cause="timeout",
                    timeout_seconds=self.config.classifier_timeout,
                )
            except Exception as e:
                self.logger.warning(
                    "primary_classifier_failed",
                    cause=type(e).__name__,
                    error=str(e),
                )

        if verdict is None:
            verdict = self._run_fallback(message)

        self.metrics.increment(
            "safety_verdicts",
            labels={"category": verdict.category.value, "source": verdict.source.value},
        )
        return verdict

    def _run_fallback(self, message: str) -> SafetyVerdict:
        self.metrics.increment("classifier_fallbacks")
        self.logger.info("fallback_detector_used", policy_version=self.fallback.policy_version)
        try:
            return self.fallback.evaluate(message)
        except Exception as e:
            self.logger.error("safety_fail_closed", error=str(e))
            return SafetyVerdict.fail_closed(f"Ambos detectores fallaron: {e}")


__all__ = ["SafetyClassifier"]
