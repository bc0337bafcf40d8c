"""
Generador de respuestas del tutor.

Envuelve el modelo del tutor: construye el prompt, aplica el timeout y
valida la salida con TutorOutputParser.
"""

from __future__ import annotations

import asyncio
from typing import Sequence

from config.settings import DialogueConfig, ModelDefaults
from src.agents.tutor.parser import TutorOutputParser
from src.agents.tutor.prompts import build_review_messages, build_tutor_messages
from src.core.exceptions import GeneratorUnavailableError, ModelError
from src.core.types import (
    ComponentSkill,
    ConversationMessage,
    Evaluation,
    MessageRole,
    RubricLevel,
    TutorTurn,
)
from src.guardrails.filters.input_filter import StudentMessageFilter
from src.models.base import BaseModelAdapter, ChatInput
from src.utils.logging import get_logger, log_model_call


class TutorResponseGenerator:
    """
    Generador del tutor.

    Attributes:
        model: Adaptador del modelo del tutor.
        config: Configuración del diálogo (timeout, ventana de historial).
    """

    def __init__(
        self,
        model: BaseModelAdapter,
        config: DialogueConfig,
        defaults: ModelDefaults | None = None,
        parser: TutorOutputParser | None = None,
        input_filter: StudentMessageFilter | None = None,
    ) -> None:
        defaults = defaults or ModelDefaults()
        self.model = model
        self.config = config
        self.temperature = defaults.tutor_temperature
        self.max_tokens = defaults.tutor_max_tokens
        self.parser = parser or TutorOutputParser()
        self.input_filter = input_filter or StudentMessageFilter(config.max_message_length)
        self.logger = get_logger("tutor.generator")

    async def generate(
        self,
        skill: ComponentSkill,
        history: Sequence[ConversationMessage],
        current_evaluation: Evaluation | None,
        is_final_turn: bool,
    ) -> TutorTurn:
        """
        Genera el siguiente turno del tutor.

        Args:
            skill: Habilidad y descripciones de la rúbrica.
            history: Historial completo; termina en el mensaje del estudiante.
            current_evaluation: Evaluación vigente de la sesión.
            is_final_turn: Si el tutor debe cerrar sin preguntar.

        Raises:
            GeneratorUnavailableError: Si el modelo falla o expira.
            MalformedGeneratorOutputError: Si la salida no es válida.
        """
        messages = build_tutor_messages(
            skill,
            self._prompt_history(history),
            current_evaluation,
            is_final_turn,
        )
        content = await self._call_model(messages, operation="generate")
        return self.parser.parse(content)

    async def review(
        self,
        skill: ComponentSkill,
        level: RubricLevel,
        justification: str,
        examples: str,
    ) -> TutorTurn:
        """Feedback para una autoevaluación enviada de una sola vez."""
        messages = build_review_messages(
            skill,
            level,
            self.input_filter.filter(justification),
            self.input_filter.filter(examples),
        )
        content = await self._call_model(messages, operation="review")
        return self.parser.parse(content)

    def _prompt_history(self, history: Sequence[ConversationMessage]) -> list[ConversationMessage]:
        """Ventana de historial con los mensajes del estudiante ya filtrados."""
        window = list(history)[-self.config.history_window:] if self.config.history_window else []
        return [
            m.model_copy(update={"content": self.input_filter.filter(m.content)})
            if m.role == MessageRole.STUDENT
            else m
            for m in window
        ]

    async def _call_model(self, messages: ChatInput, operation: str) -> str:
        log_model_call(self.logger, model_id=self.model.model_id, operation=operation)
        try:
            response = await asyncio.wait_for(
                self.model.generate(
                    messages,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                    json_mode=True,
                ),
                timeout=self.config.generator_timeout,
            )
        except asyncio.TimeoutError as e:
            raise GeneratorUnavailableError(
                f"timeout de {self.config.generator_timeout}s",
                model=self.model.model_id,
            ) from e
        except ModelError as e:
            raise GeneratorUnavailableError(str(e), model=self.model.model_id) from e
        return response.content


__all__ = ["TutorResponseGenerator"]
