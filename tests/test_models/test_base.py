"""
Tests para las clases base de adaptadores de modelos.
"""

from __future__ import annotations

import pytest

from src.core.types import ConversationMessage, MessageRole
from src.models.base import BaseModelAdapter


class ConcreteAdapter(BaseModelAdapter):
    """Implementación concreta para testing."""

    async def generate(self, messages, **kwargs):
        content = f"Generated from {len(messages)} messages"
        return self._create_response(
            content=content,
            prompt_tokens=10,
            completion_tokens=5,
            generation_time_ms=500.0,
        )

    async def health_check(self):
        return True

    async def get_model_info(self):
        return {"model": self.model_name, "backend": self.backend_name}


class TestBaseModelAdapter:
    """Tests para BaseModelAdapter."""

    def test_init(self) -> None:
        """Test de inicialización básica."""
        adapter = ConcreteAdapter(
            model_name="test-model",
            backend_name="test-backend",
        )

        assert adapter.model_name == "test-model"
        assert adapter.backend_name == "test-backend"
        assert adapter.model_id == "test-backend/test-model"
        assert adapter.is_loaded is False
        assert adapter.supports_json_mode is True

    def test_normalize_messages_from_dict(self) -> None:
        """Los dicts conservan su rol."""
        adapter = ConcreteAdapter("test", "test")

        normalized = adapter._normalize_messages([
            {"role": "system", "content": "System prompt"},
            {"role": "user", "content": "User message"},
        ])

        assert normalized == [
            {"role": "system", "content": "System prompt"},
            {"role": "user", "content": "User message"},
        ]

    def test_normalize_conversation_messages(self) -> None:
        """Tutor se traduce a assistant y student a user."""
        adapter = ConcreteAdapter("test", "test")

        normalized = adapter._normalize_messages([
            ConversationMessage(role=MessageRole.TUTOR, content="Hi!", position=0),
            ConversationMessage(role=MessageRole.STUDENT, content="Hello", position=1),
        ])

        assert normalized[0] == {"role": "assistant", "content": "Hi!"}
        assert normalized[1] == {"role": "user", "content": "Hello"}

    def test_normalize_dict_with_message_role(self) -> None:
        adapter = ConcreteAdapter("test", "test")

        normalized = adapter._normalize_messages([
            {"role": MessageRole.STUDENT, "content": "x"},
        ])

        assert normalized[0]["role"] == "user"

    def test_normalize_invalid_type_raises(self) -> None:
        adapter = ConcreteAdapter("test", "test")

        with pytest.raises(ValueError):
            adapter._normalize_messages(["not a message"])

    def test_create_response_derives_totals(self) -> None:
        """Test de totales y velocidad derivados."""
        adapter = ConcreteAdapter("m", "b")

        response = adapter._create_response(
            "ok",
            prompt_tokens=10,
            completion_tokens=50,
            generation_time_ms=1000.0,
        )

        assert response.model == "b/m"
        assert response.total_tokens == 60
        assert response.tokens_per_second == pytest.approx(50.0)

    def test_create_response_without_usage(self) -> None:
        adapter = ConcreteAdapter("m", "b")

        response = adapter._create_response("ok")

        assert response.total_tokens is None
        assert response.tokens_per_second is None

    @pytest.mark.asyncio
    async def test_measure_time(self) -> None:
        adapter = ConcreteAdapter("m", "b")

        async with adapter._measure_time() as timing:
            pass

        assert timing["elapsed_ms"] >= 0

    @pytest.mark.asyncio
    async def test_load_unload(self) -> None:
        adapter = ConcreteAdapter("m", "b")

        await adapter.load()
        assert adapter.is_loaded is True

        await adapter.unload()
        assert adapter.is_loaded is False
