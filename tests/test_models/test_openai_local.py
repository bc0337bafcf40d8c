"""
Tests para el adaptador OpenAI-compatible.
"""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from src.core.exceptions import (
    ModelConnectionError,
    ModelGenerationError,
    ModelNotFoundError,
)
from src.models.openai_local import OpenAILocalAdapter


def attach_transport(
    adapter: OpenAILocalAdapter,
    handler: Callable[[httpx.Request], httpx.Response],
) -> None:
    adapter._client = httpx.AsyncClient(
        base_url=adapter.base_url,
        transport=httpx.MockTransport(handler),
    )


class TestOpenAILocalAdapter:
    """Tests para OpenAILocalAdapter."""

    @pytest.fixture
    def adapter(self) -> OpenAILocalAdapter:
        return OpenAILocalAdapter(
            model_name="meta-llama/Llama-3.1-8B-Instruct",
            base_url="http://localhost:8000/v1",
        )

    def test_init(self, adapter: OpenAILocalAdapter) -> None:
        assert adapter.backend_name == "openai_local"
        assert adapter.model_id == "openai_local/meta-llama/Llama-3.1-8B-Instruct"
        assert adapter.supports_json_mode is True

    def test_llamacpp_disables_json_mode(self) -> None:
        adapter = OpenAILocalAdapter("local", server_type="llamacpp")
        assert adapter.supports_json_mode is False

    @pytest.mark.asyncio
    async def test_generate_success(
        self,
        adapter: OpenAILocalAdapter,
        mock_openai_response: dict[str, Any],
    ) -> None:
        """Test de generación exitosa con response_format."""
        captured: dict[str, Any] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["path"] = request.url.path
            captured["payload"] = json.loads(request.content)
            return httpx.Response(200, json=mock_openai_response)

        attach_transport(adapter, handler)

        response = await adapter.generate(
            [{"role": "user", "content": "Hi"}],
            json_mode=True,
        )

        assert response.content == '{"response": "Tell me more."}'
        assert response.finish_reason == "stop"
        assert response.total_tokens == 75
        assert captured["path"].endswith("/chat/completions")
        assert captured["payload"]["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_generate_no_choices(self, adapter: OpenAILocalAdapter) -> None:
        attach_transport(adapter, lambda request: httpx.Response(200, json={"choices": []}))

        with pytest.raises(ModelGenerationError):
            await adapter.generate([{"role": "user", "content": "Hi"}])

    @pytest.mark.asyncio
    async def test_generate_bad_request(self, adapter: OpenAILocalAdapter) -> None:
        attach_transport(
            adapter,
            lambda request: httpx.Response(400, json={"error": {"message": "context too long"}}),
        )

        with pytest.raises(ModelGenerationError) as exc_info:
            await adapter.generate([{"role": "user", "content": "Hi"}])

        assert "context too long" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_generate_not_found(self, adapter: OpenAILocalAdapter) -> None:
        attach_transport(adapter, lambda request: httpx.Response(404))

        with pytest.raises(ModelNotFoundError):
            await adapter.generate([{"role": "user", "content": "Hi"}])

    @pytest.mark.asyncio
    async def test_generate_connection_error(self, adapter: OpenAILocalAdapter) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        attach_transport(adapter, handler)

        with pytest.raises(ModelConnectionError):
            await adapter.generate([{"role": "user", "content": "Hi"}])

    @pytest.mark.asyncio
    async def test_get_model_info_lists_available(self, adapter: OpenAILocalAdapter) -> None:
        attach_transport(
            adapter,
            lambda request: httpx.Response(200, json={"data": [{"id": "other-model"}]}),
        )

        info = await adapter.get_model_info()

        assert info["available_models"] == ["other-model"]
