"""
Filtros de mensajes:
- StudentMessageFilter: limpia el mensaje del estudiante antes del prompt
- TutorResponseFilter: aplica las reglas de forma a la respuesta del tutor
"""

from src.guardrails.filters.input_filter import StudentMessageFilter
from src.guardrails.filters.response_filter import (
    DEFAULT_CONCLUDING_SUMMARY,
    DEFAULT_ENCOURAGEMENT,
    TutorResponseFilter,
)


__all__ = [
    "StudentMessageFilter",
    "TutorResponseFilter",
    "DEFAULT_ENCOURAGEMENT",
    "DEFAULT_CONCLUDING_SUMMARY",
]
