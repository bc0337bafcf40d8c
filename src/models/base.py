"""
Interfaz abstracta para modelos de lenguaje.

Define el contrato que implementan los adaptadores usados por el
clasificador de seguridad y por el generador del tutor.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Sequence

from src.core.types import ConversationMessage, MessageRole, ModelResponse

# Roles del diálogo traducidos al vocabulario de chat completions
_ROLE_MAP = {
    MessageRole.TUTOR: "assistant",
    MessageRole.STUDENT: "user",
}

ChatInput = Sequence[ConversationMessage | dict[str, Any]]


class BaseModelAdapter(ABC):
    """
    Clase base abstracta para adaptadores de modelos de lenguaje.

    Attributes:
        model_name: Nombre del modelo específico.
        backend_name: Nombre del backend (ollama, openai_local).
        is_loaded: Indica si el adaptador está listo.
        supports_json_mode: Si el backend puede forzar salida JSON.
    """

    def __init__(
        self,
        model_name: str,
        backend_name: str,
        **kwargs: Any,
    ) -> None:
        self.model_name = model_name
        self.backend_name = backend_name
        self.is_loaded = False
        self.supports_json_mode = True
        self._config = kwargs

    @property
    def model_id(self) -> str:
        """Identificador completo del modelo (backend/model_name)."""
        return f"{self.backend_name}/{self.model_name}"

    # =========================================================================
    # Métodos abstractos
    # =========================================================================

    @abstractmethod
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
        """
        Genera una respuesta completa.

        Args:
            messages: Mensajes de la conversación (dicts o ConversationMessage).
            temperature: Temperatura de sampling.
            max_tokens: Máximo de tokens a generar.
            stop: Secuencias de parada opcionales.
            json_mode: Solicita al backend un objeto JSON como salida.
            **kwargs: Argumentos adicionales del backend.

        Returns:
            ModelResponse con el texto generado y métricas.

        Raises:
            ModelGenerationError: Si hay un error durante la generación.
            ModelTimeoutError: Si se excede el timeout.
            ModelConnectionError: Si el backend no es alcanzable.
        """

    @abstractmethod
    async def health_check(self) -> bool:
        """True si el backend está operativo."""

    @abstractmethod
    async def get_model_info(self) -> dict[str, Any]:
        """Información del modelo cargado."""

    # =========================================================================
    # Ciclo de vida
    # =========================================================================

    async def load(self) -> None:
        self.is_loaded = True

    async def unload(self) -> None:
        self.is_loaded = False

    # =========================================================================
    # Utilidades
    # =========================================================================

    def _normalize_messages(self, messages: ChatInput) -> list[dict[str, str]]:
        """
        Normaliza mensajes al formato `{"role", "content"}` de chat.

        Los mensajes del diálogo se traducen: tutor → assistant,
        student → user.

        Raises:
            ValueError: Si un mensaje tiene un tipo no soportado.
        """
        normalized = []
        for msg in messages:
            if isinstance(msg, ConversationMessage):
                normalized.append({
                    "role": _ROLE_MAP[msg.role],
                    "content": msg.content,
                })
            elif isinstance(msg, dict):
                role = msg.get("role", "user")
                if isinstance(role, MessageRole):
                    role = _ROLE_MAP[role]
                normalized.append({
                    "role": str(role),
                    "content": msg.get("content", ""),
                })
            else:
                raise ValueError(f"Formato de mensaje no soportado: {type(msg)}")
        return normalized

    def _create_response(
        self,
        content: str,
        *,
        prompt_tokens: int | None = None,
        completion_tokens: int | None = None,
        generation_time_ms: float | None = None,
        finish_reason: str | None = None,
        raw_response: dict[str, Any] | None = None,
    ) -> ModelResponse:
        """Crea un ModelResponse con totales y velocidad derivados."""
        total_tokens = None
        if prompt_tokens is not None and completion_tokens is not None:
            total_tokens = prompt_tokens + completion_tokens

        tokens_per_second = None
        if completion_tokens and generation_time_ms and generation_time_ms > 0:
            tokens_per_second = completion_tokens / (generation_time_ms / 1000)

        return ModelResponse(
            content=content,
            model=self.model_id,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens,
            generation_time_ms=generation_time_ms,
            tokens_per_second=tokens_per_second,
            finish_reason=finish_reason,
            raw_response=raw_response,
        )

    @asynccontextmanager
    async def _measure_time(self) -> AsyncGenerator[dict[str, float], None]:
        """Mide la duración del bloque en `timing["elapsed_ms"]`."""
        timing: dict[str, float] = {}
        start = time.perf_counter()
        try:
            yield timing
        finally:
            timing["elapsed_ms"] = (time.perf_counter() - start) * 1000

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model_id}, loaded={self.is_loaded})"


__all__ = [
    "BaseModelAdapter",
    "ChatInput",
]
