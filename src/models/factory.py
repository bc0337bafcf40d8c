"""
Factory para crear adaptadores de modelos.

El backend se elige a partir del identificador "backend/model_name", de
modo que cambiar el modelo del tutor o del clasificador es sólo cuestión
de configuración.
"""

from __future__ import annotations

from typing import Any

from config.settings import Settings, get_settings, parse_model_id
from src.core.exceptions import (
    BackendNotSupportedError,
    InvalidModelIdError,
    ModelConnectionError,
)
from src.models.base import BaseModelAdapter
from src.models.ollama_adapter import OllamaAdapter
from src.models.openai_local import OpenAILocalAdapter


# Registro de backends soportados
SUPPORTED_BACKENDS = ["ollama", "openai_local"]


class ModelFactory:
    """
    Factory de adaptadores de modelos de lenguaje.

    Los adaptadores se cachean por identificador y argumentos, de modo
    que el tutor y el clasificador comparten cliente HTTP cuando usan el
    mismo modelo.

    Example:
        ```python
        adapter = ModelFactory.create("ollama/llama3.1:8b")
        adapter = ModelFactory.create(
            "openai_local/meta-llama/Llama-3.1-8B-Instruct",
            base_url="http://localhost:8000/v1",
        )
        ```
    """

    _cache: dict[str, BaseModelAdapter] = {}

    @staticmethod
    def create(
        model_id: str,
        *,
        settings: Settings | None = None,
        use_cache: bool = True,
        **kwargs: Any,
    ) -> BaseModelAdapter:
        """
        Crea un adaptador de modelo basado en el identificador.

        Args:
            model_id: Identificador del modelo ("backend/model_name").
            settings: Configuración a usar (por defecto la global).
            use_cache: Si reutilizar un adaptador ya creado.
            **kwargs: Argumentos adicionales para el adaptador.

        Raises:
            InvalidModelIdError: Si el formato del model_id es inválido.
            BackendNotSupportedError: Si el backend no está soportado.
        """
        cache_key = f"{model_id}:{hash(frozenset(kwargs.items()))}"
        if use_cache and cache_key in ModelFactory._cache:
            return ModelFactory._cache[cache_key]

        try:
            backend, model_name = parse_model_id(model_id)
        except ValueError as e:
            raise InvalidModelIdError(model_id) from e

        settings = settings or get_settings()

        adapter: BaseModelAdapter
        if backend == "ollama":
            adapter = OllamaAdapter(
                model_name=model_name,
                base_url=kwargs.pop("base_url", settings.ollama.base_url),
                timeout=kwargs.pop("timeout", settings.ollama.timeout),
                **kwargs,
            )
        elif backend == "openai_local":
            adapter = OpenAILocalAdapter(
                model_name=model_name,
                base_url=kwargs.pop("base_url", settings.openai_local.base_url),
                api_key=kwargs.pop("api_key", settings.openai_local.api_key),
                timeout=kwargs.pop("timeout", settings.openai_local.timeout),
                server_type=kwargs.pop("server_type", "generic"),
                **kwargs,
            )
        else:
            raise BackendNotSupportedError(backend, SUPPORTED_BACKENDS)

        if use_cache:
            ModelFactory._cache[cache_key] = adapter

        return adapter

    @staticmethod
    async def create_and_verify(
        model_id: str,
        *,
        settings: Settings | None = None,
        **kwargs: Any,
    ) -> BaseModelAdapter:
        """
        Crea un adaptador y comprueba que el backend responde.

        Raises:
            ModelConnectionError: Si el health check falla.
        """
        adapter = ModelFactory.create(model_id, settings=settings, **kwargs)

        if not await adapter.health_check():
            raise ModelConnectionError(
                adapter.backend_name,
                getattr(adapter, "base_url", "local"),
                f"Health check falló para {model_id}",
            )

        return adapter

    @staticmethod
    def clear_cache() -> None:
        ModelFactory._cache.clear()

    @staticmethod
    async def cleanup_all() -> None:
        """Cierra los clientes de todos los adaptadores en caché."""
        for adapter in ModelFactory._cache.values():
            await adapter.unload()
        ModelFactory._cache.clear()


async def get_model(
    model_id: str,
    *,
    verify: bool = False,
    settings: Settings | None = None,
    **kwargs: Any,
) -> BaseModelAdapter:
    """
    Atajo para obtener un adaptador cacheado.

    Con `verify=True` se comprueba la disponibilidad del backend.
    """
    if verify:
        return await ModelFactory.create_and_verify(model_id, settings=settings, **kwargs)
    return ModelFactory.create(model_id, settings=settings, **kwargs)


__all__ = [
    "ModelFactory",
    "get_model",
    "SUPPORTED_BACKENDS",
]
