"""
Adaptador para modelos de Ollama.

Implementa BaseModelAdapter sobre la API REST `/api/chat` de Ollama.
"""

from __future__ import annotations

import time
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.core.exceptions import (
    ModelConnectionError,
    ModelGenerationError,
    ModelNotFoundError,
    ModelTimeoutError,
)
from src.core.types import ModelResponse
from src.models.base import BaseModelAdapter, ChatInput


class OllamaAdapter(BaseModelAdapter):
    """
    Adaptador para modelos servidos por Ollama.

    Con `json_mode=True` se envía `format="json"`, que restringe la
    salida a un objeto JSON.

    Example:
        ```python
        adapter = OllamaAdapter(model_name="llama3.1:8b")
        response = await adapter.generate(
            [{"role": "user", "content": "Clasifica este mensaje"}],
            json_mode=True,
            temperature=0.1,
        )
        ```
    """

    def __init__(
        self,
        model_name: str,
        base_url: str = "http://localhost:11434",
        timeout: float = 60.0,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            model_name=model_name,
            backend_name="ollama",
            **kwargs,
        )
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Obtiene o crea el cliente HTTP."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout, connect=10.0),
            )
        return self._client

    async def _close_client(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    @retry(
        retry=retry_if_exception_type((httpx.ConnectError, httpx.ConnectTimeout)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
    )
    async def generate(
        self,
        messages: ChatInput,
        *,
        temperature: float = 0.7,
        max_tokens: int = 800,
        stop: list[str] | None = None,
        json_mode: bool = False,
        system_prompt: str | None = None,
        **kwargs: Any,
    ) -> ModelResponse:
        """
        Genera una respuesta usando la API de chat de Ollama.

        Args:
            messages: Mensajes de la conversación.
            temperature: Temperatura de sampling.
            max_tokens: Máximo de tokens (`num_predict`).
            stop: Secuencias de parada opcionales.
            json_mode: Fuerza `format="json"`.
            system_prompt: Prompt de sistema antepuesto a los mensajes.
            **kwargs: Opciones adicionales de Ollama.

        Raises:
            ModelConnectionError: Si no se puede conectar a Ollama.
            ModelNotFoundError: Si el modelo no existe.
            ModelGenerationError: Si Ollama responde con error.
            ModelTimeoutError: Si se excede el timeout.
        """
        client = await self._get_client()
        normalized_messages = self._normalize_messages(messages)

        if system_prompt:
            normalized_messages = [
                {"role": "system", "content": system_prompt},
                *normalized_messages,
            ]

        payload: dict[str, Any] = {
            "model": self.model_name,
            "messages": normalized_messages,
            "stream": False,
            "options": {
                "temperature": temperature,
                "num_predict": max_tokens,
            },
        }
        if stop:
            payload["options"]["stop"] = stop
        if json_mode:
            payload["format"] = "json"

        for key, value in kwargs.items():
            payload["options"].setdefault(key, value)

        start_time = time.perf_counter()

        try:
            response = await client.post("/api/chat", json=payload)

            if response.status_code == 404:
                raise ModelNotFoundError(self.model_name, "ollama")

            response.raise_for_status()
            data = response.json()

        except httpx.ConnectError as e:
            raise ModelConnectionError("ollama", self.base_url, str(e)) from e
        except httpx.TimeoutException as e:
            raise ModelTimeoutError(self.model_name, self.timeout) from e
        except httpx.HTTPStatusError as e:
            raise ModelGenerationError(
                self.model_name,
                f"HTTP {e.response.status_code}: {e.response.text}",
            ) from e

        elapsed_ms = (time.perf_counter() - start_time) * 1000

        return self._create_response(
            content=data.get("message", {}).get("content", ""),
            prompt_tokens=data.get("prompt_eval_count"),
            completion_tokens=data.get("eval_count"),
            generation_time_ms=elapsed_ms,
            finish_reason=data.get("done_reason", "stop"),
            raw_response=data,
        )

    async def health_check(self) -> bool:
        """True si Ollama responde en `/api/tags`."""
        try:
            client = await self._get_client()
            response = await client.get("/api/tags")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def get_model_info(self) -> dict[str, Any]:
        """
        Obtiene información del modelo desde `/api/show`.

        Raises:
            ModelNotFoundError: Si Ollama no conoce el modelo.
        """
        client = await self._get_client()

        try:
            response = await client.post("/api/show", json={"name": self.model_name})
            if response.status_code == 404:
                raise ModelNotFoundError(self.model_name, "ollama")
            response.raise_for_status()
            data = response.json()
        except httpx.ConnectError as e:
            raise ModelConnectionError("ollama", self.base_url, str(e)) from e

        details = data.get("details", {})
        return {
            "model": self.model_name,
            "backend": "ollama",
            "family": details.get("family"),
            "parameter_size": details.get("parameter_size"),
            "quantization": details.get("quantization_level"),
        }

    async def list_models(self) -> list[str]:
        """Nombres de los modelos disponibles en el servidor."""
        client = await self._get_client()
        try:
            response = await client.get("/api/tags")
            response.raise_for_status()
        except httpx.ConnectError as e:
            raise ModelConnectionError("ollama", self.base_url, str(e)) from e
        return [m.get("name") for m in response.json().get("models", [])]

    async def unload(self) -> None:
        await self._close_client()
        self.is_loaded = False


__all__ = ["OllamaAdapter"]
