"""
Detectores de seguridad:
- PrimarySafetyClassifier: modelo con salida JSON
- FallbackHeuristicDetector: tabla de política por patrones
"""

from src.guardrails.detectors.keyword_fallback import FallbackHeuristicDetector
from src.guardrails.detectors.model_classifier import (
    HarmCheckOutput,
    LanguageCheckOutput,
    PrimarySafetyClassifier,
)


__all__ = [
    "PrimarySafetyClassifier",
    "FallbackHeuristicDetector",
    "HarmCheckOutput",
    "LanguageCheckOutput",
]
