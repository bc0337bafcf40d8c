"""
Pipeline de seguridad del motor de autoevaluación.

- Clasificador primario basado en modelo con timeout
- Detector heurístico de respaldo sobre una política versionada
- Filtros de entrada del estudiante y de salida del tutor

Uso básico:
    from src.guardrails import SafetyClassifier

    classifier = SafetyClassifier.with_model(model, settings.safety)
    verdict = await classifier.classify("I worked with my team", history)
    if verdict.flagged:
        ...
"""

from src.guardrails.base import BaseSafetyDetector
from src.guardrails.classifier import SafetyClassifier
from src.guardrails.detectors.keyword_fallback import FallbackHeuristicDetector
from src.guardrails.detectors.model_classifier import PrimarySafetyClassifier
from src.guardrails.filters.input_filter import StudentMessageFilter
from src.guardrails.filters.response_filter import TutorResponseFilter
from src.guardrails.patterns import SAFETY_POLICY, SAFETY_POLICY_VERSION


__all__ = [
    "BaseSafetyDetector",
    "SafetyClassifier",
    "PrimarySafetyClassifier",
    "FallbackHeuristicDetector",
    "StudentMessageFilter",
    "TutorResponseFilter",
    "SAFETY_POLICY",
    "SAFETY_POLICY_VERSION",
]
