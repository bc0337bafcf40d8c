"""
Clases base para los detectores de seguridad.

Todo detector recibe un mensaje del estudiante y el historial reciente y
devuelve un SafetyVerdict. Los helpers de esta clase crean los veredictos
y los registran con el formato estándar de logging.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from src.core.types import (
    ConversationMessage,
    SafetyCategory,
    SafetyVerdict,
    VerdictSource,
)
from src.utils.logging import get_logger, log_safety_verdict


class BaseSafetyDetector(ABC):
    """
    Clase base abstracta para detectores de seguridad.

    Attributes:
        name: Nombre único del detector.
        source: Fuente que se declara en los veredictos.
        logger: Logger estructurado del detector.
    """

    def __init__(self, name: str, source: VerdictSource) -> None:
        self.name = name
        self.source = source
        self.logger = get_logger(f"guardrail.{name}")

    @abstractmethod
    async def detect(
        self,
        message: str,
        history: Sequence[ConversationMessage] = (),
    ) -> SafetyVerdict:
        """
        Evalúa un mensaje del estudiante.

        Args:
            message: Texto crudo del estudiante.
            history: Mensajes recientes de la sesión, como contexto.

        Returns:
            Veredicto de seguridad.
        """

    def _create_clear_verdict(
        self,
        reason: str = "Sin contenido de riesgo",
        confidence: float = 0.0,
    ) -> SafetyVerdict:
        verdict = SafetyVerdict.clear(self.source, confidence=confidence, reason=reason)
        self._log_verdict(verdict)
        return verdict

    def _create_flagged_verdict(
        self,
        category: SafetyCategory,
        confidence: float,
        reason: str,
        matched_phrases: list[str] | None = None,
    ) -> SafetyVerdict:
        """
        Crea un veredicto marcado.

        Args:
            category: Categoría detectada (nunca NONE).
            confidence: Confianza en [0, 1].
            reason: Razón legible.
            matched_phrases: Fragmentos que dispararon la detección.
        """
        verdict = SafetyVerdict(
            flagged=True,
            category=category,
            confidence=max(0.0, min(1.0, confidence)),
            source=self.source,
            reason=reason,
            matched_phrases=matched_phrases or [],
        )
        self._log_verdict(verdict)
        return verdict

    def _log_verdict(self, verdict: SafetyVerdict) -> None:
        log_safety_verdict(
            logger=self.logger,
            detector=self.name,
            flagged=verdict.flagged,
            category=verdict.category.value,
            source=verdict.source.value,
            confidence=verdict.confidence,
            reason=verdict.reason,
        )


__all__ = ["BaseSafetyDetector"]
