"""
Detector heurístico de respaldo.

Evalúa el mensaje contra la tabla de política versionada. Sólo se usa
cuando el clasificador primario falla, expira o devuelve una salida
inválida, y prioriza recall sobre precisión.
"""

from __future__ import annotations

from typing import Sequence

from src.core.types import ConversationMessage, SafetyCategory, SafetyVerdict, VerdictSource
from src.guardrails.base import BaseSafetyDetector
from src.guardrails.patterns import (
    SAFETY_POLICY,
    SAFETY_POLICY_VERSION,
    find_all_matches,
    normalize_text,
    policy_patterns,
)


class FallbackHeuristicDetector(BaseSafetyDetector):
    """
    Detector por patrones, síncrono y en memoria.

    Las categorías se evalúan en el orden de SAFETY_POLICY (homicida,
    suicida, lenguaje inapropiado); la primera que coincide determina el
    veredicto. El historial no se usa: cada mensaje se evalúa por sí solo.
    """

    def __init__(self) -> None:
        super().__init__(name="fallback_heuristic", source=VerdictSource.FALLBACK)
        self.policy_version = SAFETY_POLICY_VERSION
        # Precompila toda la tabla al construir
        self._patterns = {category: policy_patterns(category) for category in SAFETY_POLICY}

    async def detect(
        self,
        message: str,
        history: Sequence[ConversationMessage] = (),
    ) -> SafetyVerdict:
        return self.evaluate(message)

    def evaluate(self, message: str) -> SafetyVerdict:
        """Versión síncrona de `detect`, usada también por el script de política."""
        text = normalize_text(message)
        if not text:
            return self._create_clear_verdict(reason="Mensaje vacío")

        for category, patterns in self._patterns.items():
            matches = find_all_matches(text, patterns)
            if matches:
                return self._create_flagged_verdict(
                    category=category,
                    confidence=1.0,
                    reason=f"Coincidencia con política {self.policy_version}: {category.value}",
                    matched_phrases=matches,
                )

        return self._create_clear_verdict(
            reason=f"Sin coincidencias en política {self.policy_version}",
        )

    def matches_by_category(self, message: str) -> dict[SafetyCategory, list[str]]:
        """Todas las coincidencias por categoría, sin aplicar prioridad."""
        text = normalize_text(message)
        return {
            category: find_all_matches(text, patterns)
            for category, patterns in self._patterns.items()
        }


__all__ = ["FallbackHeuristicDetector"]
