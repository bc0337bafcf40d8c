"""
Filtro de respuestas del tutor.

Garantiza las reglas de forma de la respuesta independientemente de lo
que haya producido el modelo: nunca vacía, y sin preguntas en el turno
final.
"""

from __future__ import annotations

from src.guardrails.patterns import contains_question, is_question, split_sentences
from src.utils.logging import get_logger


DEFAULT_ENCOURAGEMENT = (
    "I'm here to help you develop this skill! "
    "Can you tell me more about what you're working on?"
)

DEFAULT_CONCLUDING_SUMMARY = (
    "Thank you for reflecting on this skill with me. You shared your "
    "experience and thought about where you are on the rubric. Keep "
    "collecting concrete examples of your work, since specific situations "
    "and results are the strongest evidence of your progress."
)


class TutorResponseFilter:
    """
    Ajusta la respuesta del tutor antes de entregarla.

    En el turno final elimina las oraciones interrogativas; si no queda
    nada, usa un resumen de cierre por defecto.
    """

    def __init__(
        self,
        default_encouragement: str = DEFAULT_ENCOURAGEMENT,
        default_summary: str = DEFAULT_CONCLUDING_SUMMARY,
    ) -> None:
        self.default_encouragement = default_encouragement
        self.default_summary = default_summary
        self.logger = get_logger("guardrail.response_filter")

    def filter(self, response: str, is_final_turn: bool) -> tuple[str, bool]:
        """
        Filtra la respuesta.

        Args:
            response: Texto del tutor.
            is_final_turn: Si es el último turno de la sesión.

        Returns:
            Tupla (respuesta_filtrada, fue_modificada).
        """
        text = (response or "").strip()

        if not is_final_turn:
            if not text:
                return self.default_encouragement, True
            return text, text != response

        if text and not contains_question(text):
            return text, text != response

        sentences = split_sentences(text)
        kept = [s for s in sentences if not is_question(s)]
        filtered = " ".join(kept).strip()

        if not filtered:
            filtered = self.default_summary

        modified = filtered != response
        if len(kept) != len(sentences):
            self.logger.info(
                "final_turn_questions_removed",
                removed=len(sentences) - len(kept),
            )
        return filtered, modified


__all__ = [
    "TutorResponseFilter",
    "DEFAULT_ENCOURAGEMENT",
    "DEFAULT_CONCLUDING_SUMMARY",
]
