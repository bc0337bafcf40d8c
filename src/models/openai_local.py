"""
Adaptador para servidores compatibles con la API de OpenAI.

Permite usar vLLM, llama.cpp server, LM Studio o LocalAI como backend
del tutor o del clasificador de seguridad.
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


class OpenAILocalAdapter(BaseModelAdapter):
    """
    Adaptador para servidores que implementan `/v1/chat/completions`.

    Con `json_mode=True` se envía `response_format={"type": "json_object"}`;
    los servidores que no lo soportan suelen ignorarlo, y el parser del
    llamador sigue validando la salida.

    Example:
        ```python
        adapter = OpenAILocalAdapter(
            model_name="meta-llama/Llama-3.1-8B-Instruct",
            base_url="http://localhost:8000/v1",
        )
        response = await adapter.generate(
            [{"role": "user", "content": "Hola"}],
            json_mode=True,
        )
        ```
    """

    def __init__(
        self,
        model_name: str,
        base_url: str = "http://localhost:8000/v1",
        api_key: str = "not-needed",
        timeout: float = 120.0,
        server_type: str = "generic",
        **kwargs: Any,
    ) -> None:
        super().__init__(
            model_name=model_name,
            backend_name="openai_local",
            **kwargs,
        )
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.server_type = server_type
        # llama.cpp antiguo no acepta response_format
        self.supports_json_mode = server_type != "llamacpp"

        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Obtiene o crea el cliente HTTP con headers de autenticación."""
        if self._client is None or self._client.is_closed:
            headers = {"Content-Type": "application/json"}
            if self.api_key and self.api_key != "not-needed":
                headers["Authorization"] = f"Bearer {self.api_key}"

            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
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
        top_p: float = 1.0,
        **kwargs: Any,
    ) -> ModelResponse:
        """
        Genera una respuesta usando la API de chat completions.

        Returns:
            ModelResponse con el texto generado.

        Raises:
            ModelNotFoundError: Si el servidor responde 404.
            ModelGenerationError: Si la petición es rechazada o no hay choices.
            ModelTimeoutError: Si se excede el timeout HTTP.
        """
        client = await self._get_client()

        payload: dict[str, Any] = {
            "model": self.model_name,
            "messages": self._normalize_messages(messages),
            "temperature": temperature,
            "max_tokens": max_tokens,
            "top_p": top_p,
            "stream": False,
        }
        if stop:
            payload["stop"] = stop
        if json_mode and self.supports_json_mode:
            payload["response_format"] = {"type": "json_object"}

        for key, value in kwargs.items():
            payload.setdefault(key, value)

        start_time = time.perf_counter()

        try:
            response = await client.post("/chat/completions", json=payload)

            if response.status_code == 404:
                raise ModelNotFoundError(self.model_name, "openai_local")

            if response.status_code == 400:
                error_data = response.json()
                error_msg = error_data.get("error", {}).get("message", response.text)
                raise ModelGenerationError(self.model_name, error_msg)

            response.raise_for_status()
            data = response.json()

        except httpx.ConnectError as e:
            raise ModelConnectionError("openai_local", self.base_url, str(e)) from e
        except httpx.TimeoutException as e:
            raise ModelTimeoutError(self.model_name, self.timeout) from e
        except httpx.HTTPStatusError as e:
            raise ModelGenerationError(
                self.model_name,
                f"HTTP {e.response.status_code}: {e.response.text}",
            ) from e

        elapsed_ms = (time.perf_counter() - start_time) * 1000

        choices = data.get("choices", [])
        if not choices:
            raise ModelGenerationError(
                self.model_name,
                "No se recibieron choices en la respuesta",
            )

        usage = data.get("usage", {})
        return self._create_response(
            content=choices[0].get("message", {}).get("content") or "",
            prompt_tokens=usage.get("prompt_tokens"),
            completion_tokens=usage.get("completion_tokens"),
            generation_time_ms=elapsed_ms,
            finish_reason=choices[0].get("finish_reason"),
            raw_response=data,
        )

    async def health_check(self) -> bool:
        """Verifica si el servidor responde en `/models`."""
        try:
            client = await self._get_client()
            response = await client.get("/models")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def get_model_info(self) -> dict[str, Any]:
        info: dict[str, Any] = {
            "model": self.model_name,
            "backend": "openai_local",
            "server_type": self.server_type,
        }
        client = await self._get_client()
        try:
            response = await client.get("/models")
        except httpx.HTTPError:
            return info

        if response.status_code == 200:
            models = response.json().get("data", [])
            for model in models:
                if model.get("id") == self.model_name:
                    info["owned_by"] = model.get("owned_by")
                    return info
            info["available_models"] = [m.get("id") for m in models]
        return info

    async def unload(self) -> None:
        await self._close_client()
        self.is_loaded = False


__all__ = ["OpenAILocalAdapter"]
