"""
Parser de la salida del generador del tutor.

Primero intenta un parseo estricto del objeto JSON. Si falla, hace una
única extracción de respaldo (bloque markdown, objeto embebido en texto
o JSON truncado) y valida contra el mismo esquema. Después normaliza los
valores: nivel desconocido descartado y confianza acotada a [0, 1].
"""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from src.core.exceptions import JSONParsingError, MalformedGeneratorOutputError
from src.core.types import Evaluation, RubricLevel, TutorTurn
from src.utils.logging import get_logger


# =============================================================================
# Esquema crudo
# =============================================================================

class RawEvaluation(BaseModel):
    """Evaluación tal como la devuelve el modelo, antes de normalizar."""
    self_assessed_level: Any = Field(
        default=None,
        validation_alias=AliasChoices("self_assessed_level", "level"),
    )
    confidence: Any = None
    justification: str | None = None
    evidence: list[str] = Field(default_factory=list)

    @field_validator("evidence", mode="before")
    @classmethod
    def _coerce_evidence(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        if isinstance(v, list):
            return [str(item) for item in v if item is not None]
        raise ValueError("evidence debe ser lista o texto")


class RawTutorOutput(BaseModel):
    """Esquema JSON del generador."""
    response: str
    suggested_evaluation: RawEvaluation | None = None
    should_terminate: bool = False


class TutorOutputParser:
    """
    Parser de la salida del tutor.

    Example:
        ```python
        parser = TutorOutputParser()
        turn = parser.parse(model_response.content)
        ```
    """

    def __init__(self) -> None:
        self.logger = get_logger("tutor.parser")

    def parse(self, raw_response: str) -> TutorTurn:
        """
        Parsea y normaliza la salida del generador.

        Raises:
            MalformedGeneratorOutputError: Si ni el parseo estricto ni la
                extracción de respaldo producen un objeto válido.
        """
        try:
            raw = self._parse_strict(raw_response)
        except (json.JSONDecodeError, ValidationError) as strict_error:
            self.logger.info("generator_output_reparse", error=str(strict_error)[:200])
            try:
                raw = RawTutorOutput.model_validate(
                    json.loads(self._extract_json(raw_response))
                )
            except (JSONParsingError, json.JSONDecodeError, ValidationError) as e:
                raise MalformedGeneratorOutputError(raw_response, str(e)) from e

        return self._normalize(raw)

    def _parse_strict(self, raw_response: str) -> RawTutorOutput:
        return RawTutorOutput.model_validate(json.loads(raw_response.strip()))

    def _extract_json(self, response: str) -> str:
        """
        Extrae JSON de una respuesta que puede contener texto adicional.

        Maneja:
        - JSON puro con basura al final
        - JSON en bloques de código markdown
        - JSON con texto antes/después
        - JSON truncado (cierra llaves pendientes)
        """
        response = response.strip()

        if response.startswith("{"):
            return self._find_json_object(response)

        code_block_pattern = r"```(?:json)?\s*\n?(.*?)\n?```"
        for match in re.findall(code_block_pattern, response, re.DOTALL):
            if match.strip().startswith("{"):
                return self._find_json_object(match.strip())

        json_pattern = r"\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}"
        matches = re.findall(json_pattern, response, re.DOTALL)
        if matches:
            return max(matches, key=len)

        if "{" in response:
            return self._find_json_object(response[response.index("{"):])

        raise JSONParsingError(response[:200], "No se encontró JSON en la respuesta")

    def _find_json_object(self, text: str) -> str:
        """Objeto JSON completo al inicio del texto; completa llaves si falta."""
        depth = 0
        in_string = False
        escape_next = False

        for i, char in enumerate(text):
            if escape_next:
                escape_next = False
                continue
            if char == "\\":
                escape_next = True
                continue
            if char == '"':
                in_string = not in_string
                continue
            if not in_string:
                if char == "{":
                    depth += 1
                elif char == "}":
                    depth -= 1
                    if depth == 0:
                        return text[: i + 1]

        closing = '"' if in_string else ""
        return text + closing + "}" * depth

    def _normalize(self, raw: RawTutorOutput) -> TutorTurn:
        """Descarta niveles inválidos y acota la confianza."""
        evaluation: Evaluation | None = None
        raw_eval = raw.suggested_evaluation

        if raw_eval is not None:
            level = RubricLevel.parse(raw_eval.self_assessed_level)
            if level is None and raw_eval.self_assessed_level not in (None, ""):
                self.logger.info(
                    "unknown_level_dropped",
                    level=str(raw_eval.self_assessed_level)[:50],
                )

            confidence = self._clamp_confidence(raw_eval.confidence)
            if level is not None:
                evaluation = Evaluation(
                    self_assessed_level=level,
                    confidence=confidence,
                    justification=raw_eval.justification,
                    evidence=raw_eval.evidence,
                )

        return TutorTurn(
            response=raw.response.strip(),
            suggested_evaluation=evaluation,
            should_terminate=raw.should_terminate,
        )

    @staticmethod
    def _clamp_confidence(value: Any) -> float | None:
        if isinstance(value, bool) or value is None:
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if number != number:  # NaN
            return None
        return max(0.0, min(1.0, number))


__all__ = [
    "TutorOutputParser",
    "RawTutorOutput",
    "RawEvaluation",
]
