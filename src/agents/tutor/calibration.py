"""
Política de calibración de la rúbrica.

Un nivel alto sólo se acepta si la evidencia citada lo respalda:

- proficient: situación concreta y (resultado o detalle específico)
- applying: situación concreta, resultado e impacto en otros

Una afirmación sin respaldo se rebaja al mayor nivel que la evidencia
sostiene, nunca por debajo de developing. La política nunca sube un nivel.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.core.types import Evaluation, RubricLevel
from src.guardrails.patterns import (
    IMPACT_MARKERS,
    OUTCOME_MARKERS,
    SITUATION_MARKERS,
    SPECIFIC_DETAIL_MARKERS,
    has_marker,
)
from src.utils.logging import get_logger


@dataclass(frozen=True)
class EvidenceProfile:
    """Marcadores de evidencia presentes en un texto."""
    situation: bool
    outcome: bool
    impact: bool
    specific_detail: bool

    @property
    def supports_proficient(self) -> bool:
        return self.situation and (self.outcome or self.specific_detail)

    @property
    def supports_applying(self) -> bool:
        return self.situation and self.outcome and self.impact


@dataclass(frozen=True)
class CalibrationResult:
    """Evaluación calibrada y explicación para el estudiante si hubo rebaja."""
    evaluation: Evaluation
    demoted: bool
    explanation: str | None = None


class RubricCalibrationPolicy:
    """Reglas de evidencia aplicadas a la evaluación sugerida."""

    def __init__(self) -> None:
        self.logger = get_logger("tutor.calibration")

    def profile(self, text: str) -> EvidenceProfile:
        return EvidenceProfile(
            situation=has_marker(text, SITUATION_MARKERS, "evidence.situation"),
            outcome=has_marker(text, OUTCOME_MARKERS, "evidence.outcome"),
            impact=has_marker(text, IMPACT_MARKERS, "evidence.impact"),
            specific_detail=has_marker(text, SPECIFIC_DETAIL_MARKERS, "evidence.detail"),
        )

    def supported_level(self, text: str) -> RubricLevel:
        """Mayor nivel que sostiene la evidencia del texto (mínimo developing)."""
        profile = self.profile(text)
        if profile.supports_applying:
            return RubricLevel.APPLYING
        if profile.supports_proficient:
            return RubricLevel.PROFICIENT
        return RubricLevel.DEVELOPING

    def calibrate(self, evaluation: Evaluation) -> CalibrationResult:
        """
        Calibra una evaluación sugerida.

        La evidencia considerada es la justificación más la lista de
        evidencias de la propia evaluación.

        Returns:
            CalibrationResult con la evaluación (posiblemente rebajada).
        """
        claimed = evaluation.self_assessed_level
        if claimed is None or claimed.rank <= RubricLevel.DEVELOPING.rank:
            return CalibrationResult(evaluation=evaluation, demoted=False)

        text = " ".join([evaluation.justification or "", *evaluation.evidence])
        profile = self.profile(text)
        supported = self.supported_level(text)

        if supported.rank >= claimed.rank:
            return CalibrationResult(evaluation=evaluation, demoted=False)

        note = self._missing_evidence_note(claimed, profile)
        calibrated = evaluation.model_copy(update={
            "self_assessed_level": supported,
            "calibrated_from": claimed,
            "calibration_note": note,
        })

        self.logger.info(
            "evaluation_calibrated",
            claimed=claimed.value,
            supported=supported.value,
        )

        explanation = (
            f"Based on the evidence shared so far, your work currently fits the "
            f"{supported.value} level rather than {claimed.value}. {note}"
        )
        return CalibrationResult(evaluation=calibrated, demoted=True, explanation=explanation)

    @staticmethod
    def _missing_evidence_note(claimed: RubricLevel, profile: EvidenceProfile) -> str:
        missing = []
        if not profile.situation:
            missing.append("a specific situation where you used this skill")
        if claimed == RubricLevel.APPLYING:
            if not profile.outcome:
                missing.append("the concrete outcome of your actions")
            if not profile.impact:
                missing.append("how your work helped or taught others")
        elif not (profile.outcome or profile.specific_detail):
            missing.append("a concrete outcome or specific detail")

        if not missing:
            return f"To support {claimed.value}, add more specific evidence."
        if len(missing) == 1:
            needed = missing[0]
        else:
            needed = ", ".join(missing[:-1]) + " and " + missing[-1]
        return f"To support {claimed.value}, describe {needed}."


__all__ = [
    "RubricCalibrationPolicy",
    "CalibrationResult",
    "EvidenceProfile",
]
