"""
Clasificador de seguridad primario basado en modelo.

Ejecuta dos comprobaciones independientes en paralelo (ideación
homicida/suicida y lenguaje inapropiado) contra un modelo externo con
salida JSON. Cualquier fallo se convierte en ClassifierUnavailableError
para que el llamador active el detector de respaldo.
"""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any, Sequence, TypeVar

from pydantic import BaseModel, Field, StrictBool, ValidationError

from config.settings import ModelDefaults, SafetyConfig
from src.core.exceptions import ClassifierUnavailableError, ModelError
from src.core.types import ConversationMessage, SafetyCategory, SafetyVerdict, VerdictSource
from src.guardrails.base import BaseSafetyDetector
from src.guardrails.prompts import (
    HARM_CHECK_SYSTEM_PROMPT,
    LANGUAGE_CHECK_SYSTEM_PROMPT,
    build_classifier_messages,
)
from src.models.base import BaseModelAdapter
from src.utils.logging import log_model_call


# =============================================================================
# Esquemas de salida
# =============================================================================

class HarmCheckOutput(BaseModel):
    """Salida de la comprobación de ideación."""
    homicidal: StrictBool
    suicidal: StrictBool
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str | None = None


class LanguageCheckOutput(BaseModel):
    """Salida de la comprobación de lenguaje."""
    inappropriate_language: StrictBool
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str | None = None


SchemaT = TypeVar("SchemaT", bound=BaseModel)

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class PrimarySafetyClassifier(BaseSafetyDetector):
    """
    Clasificador primario.

    Los flags homicida y suicida cuentan siempre; el de lenguaje
    inapropiado sólo si su confianza alcanza `flag_threshold`. Con varias categorías marcadas gana la más grave:
    homicida, suicida y lenguaje inapropiado, en ese orden.

    Example:
        ```python
        classifier = PrimarySafetyClassifier(model, SafetyConfig())
        verdict = await classifier.detect("I worked with my team", history)
        ```
    """

    def __init__(
        self,
        model: BaseModelAdapter,
        config: SafetyConfig,
        temperature: float = 0.1,
        max_tokens: int = 200,
    ) -> None:
        super().__init__(name="primary_classifier", source=VerdictSource.PRIMARY)
        self.model = model
        self.config = config
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_defaults(
        cls,
        model: BaseModelAdapter,
        config: SafetyConfig,
        defaults: ModelDefaults,
    ) -> "PrimarySafetyClassifier":
        return cls(
            model,
            config,
            temperature=defaults.safety_temperature,
            max_tokens=defaults.safety_max_tokens,
        )

    async def detect(
        self,
        message: str,
        history: Sequence[ConversationMessage] = (),
    ) -> SafetyVerdict:
        """
        Clasifica el mensaje con ambas comprobaciones.

        Raises:
            ClassifierUnavailableError: Si el modelo falla o la salida no
                cumple el esquema.
        """
        window = list(history)[-self.config.history_window:] if self.config.history_window else []

        harm, language = await asyncio.gather(
            self._run_check(HARM_CHECK_SYSTEM_PROMPT, HarmCheckOutput, message, window),
            self._run_check(LANGUAGE_CHECK_SYSTEM_PROMPT, LanguageCheckOutput, message, window),
        )

        # El umbral sólo filtra lenguaje; un flag crítico cuenta siempre
        candidates: list[tuple[SafetyCategory, float, str | None]] = []
        if harm.homicidal:
            candidates.append((SafetyCategory.HOMICIDAL, harm.confidence, harm.reason))
        if harm.suicidal:
            candidates.append((SafetyCategory.SUICIDAL, harm.confidence, harm.reason))
        if language.inappropriate_language and language.confidence >= self.config.flag_threshold:
            candidates.append(
                (SafetyCategory.INAPPROPRIATE_LANGUAGE, language.confidence, language.reason)
            )

        if candidates:
            category, confidence, reason = candidates[0]
            return self._create_flagged_verdict(
                category=category,
                confidence=confidence,
                reason=reason or f"Modelo marcó {category.value}",
            )

        return self._create_clear_verdict(
            reason="Modelo no marcó ninguna categoría",
            confidence=max(harm.confidence, language.confidence),
        )

    async def _run_check(
        self,
        system_prompt: str,
        schema: type[SchemaT],
        message: str,
        history: Sequence[ConversationMessage],
    ) -> SchemaT:
        messages = build_classifier_messages(system_prompt, message, history)
        log_model_call(
            self.logger,
            model_id=self.model.model_id,
            operation=f"classify.{schema.__name__}",
        )

        try:
            response = await self.model.generate(
                messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                json_mode=True,
            )
        except ModelError as e:
            raise ClassifierUnavailableError(str(e), model=self.model.model_id) from e

        return self._parse(response.content, schema)

    def _parse(self, content: str, schema: type[SchemaT]) -> SchemaT:
        """Valida la salida contra el esquema; no intenta reparaciones."""
        cleaned = _FENCE.sub("", content.strip())
        try:
            data: Any = json.loads(cleaned)
            return schema.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise ClassifierUnavailableError(
                f"Salida inválida para {schema.__name__}: {e}",
                model=self.model.model_id,
            ) from e


__all__ = [
    "PrimarySafetyClassifier",
    "HarmCheckOutput",
    "LanguageCheckOutput",
]
