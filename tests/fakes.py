"""
Modelos simulados y helpers compartidos por los tests.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Sequence

from src.core.types import ModelResponse, SafetyCategory
from src.models.base import BaseModelAdapter, ChatInput


class ScriptedModel(BaseModelAdapter):
    """
    Modelo simulado que devuelve respuestas guionizadas.

    Cada elemento de `responses` puede ser texto, un dict (se serializa a
    JSON) o una excepción (se lanza). Con `responder` la respuesta se
    calcula a partir de los mensajes normalizados.
    """

    def __init__(
        self,
        responses: Sequence[Any] = (),
        responder: Callable[[list[dict[str, str]]], Any] | None = None,
        model_name: str = "scripted",
    ) -> None:
        super().__init__(model_name=model_name, backend_name="fake")
        self.responses = list(responses)
        self.responder = responder
        self.calls: list[dict[str, Any]] = []

    async def generate(
        self,
        messages: ChatInput,
        *,
        temperature: float = 0.7,
        max_tokens: int = 800,
        stop: list[str] | None = None,
        json_mode: bool = False,
        **kwargs: Any,
    ) -> ModelResponse:
        normalized = self._normalize_messages(messages)
        self.calls.append({
            "messages": normalized,
            "json_mode": json_mode,
            "temperature": temperature,
        })

        if self.responder is not None:
            item = self.responder(normalized)
        elif self.responses:
            item = self.responses.pop(0)
        else:
            item = ""

        if isinstance(item, BaseException):
            raise item
        if isinstance(item, dict):
            item = json.dumps(item)
        return self._create_response(content=item)

    async def health_check(self) -> bool:
        return True

    async def get_model_info(self) -> dict[str, Any]:
        return {"model": self.model_name, "backend": "fake"}


def tutor_json(
    response: str,
    level: str | None = None,
    confidence: float | None = 0.6,
    justification: str | None = None,
    evidence: list[str] | None = None,
    should_terminate: bool = False,
) -> dict[str, Any]:
    """Salida JSON del generador del tutor."""
    evaluation = None
    if level is not None:
        evaluation = {
            "self_assessed_level": level,
            "confidence": confidence,
            "justification": justification,
            "evidence": evidence or [],
        }
    return {
        "response": response,
        "suggested_evaluation": evaluation,
        "should_terminate": should_terminate,
    }


def make_safety_model(
    flag_phrases: dict[str, SafetyCategory] | None = None,
    confidence: float = 0.9,
) -> ScriptedModel:
    """
    Modelo de seguridad simulado.

    Marca la categoría asociada a la primera frase de `flag_phrases`
    contenida en el mensaje del estudiante.
    """
    flag_phrases = flag_phrases or {}

    def responder(messages: list[dict[str, str]]) -> dict[str, Any]:
        system, user = messages[0]["content"], messages[-1]["content"]
        student_text = user.split("STUDENT MESSAGE:", 1)[-1].lower()
        category = next(
            (cat for phrase, cat in flag_phrases.items() if phrase.lower() in student_text),
            None,
        )
        if "inappropriate_language" in system:
            return {
                "inappropriate_language": category == SafetyCategory.INAPPROPRIATE_LANGUAGE,
                "confidence": confidence,
                "reason": "scripted",
            }
        return {
            "homicidal": category == SafetyCategory.HOMICIDAL,
            "suicidal": category == SafetyCategory.SUICIDAL,
            "confidence": confidence,
            "reason": "scripted",
        }

    return ScriptedModel(responder=responder, model_name="scripted-safety")


__all__ = ["ScriptedModel", "tutor_json", "make_safety_model"]
