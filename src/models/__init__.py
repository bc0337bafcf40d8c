"""
Capa de abstracción de modelos de lenguaje.

Backends soportados:

- **Ollama**: modelos locales via servidor Ollama
- **OpenAI Local**: servidores compatibles con la API de OpenAI
  (vLLM, llama.cpp, LM Studio)

Ejemplo de uso:
    ```python
    from src.models import get_model

    model = await get_model("ollama/llama3.1:8b")
    response = await model.generate(
        [{"role": "user", "content": "Hola"}],
        json_mode=True,
    )
    print(response.content)
    ```

El formato de identificador de modelo es "backend/model_name":
- ollama/llama3.1:8b
- openai_local/meta-llama/Llama-3.1-8B-Instruct
"""

from src.models.base import BaseModelAdapter, ChatInput
from src.models.factory import SUPPORTED_BACKENDS, ModelFactory, get_model
from src.models.ollama_adapter import OllamaAdapter
from src.models.openai_local import OpenAILocalAdapter

__all__ = [
    "BaseModelAdapter",
    "ChatInput",
    "OllamaAdapter",
    "OpenAILocalAdapter",
    "ModelFactory",
    "get_model",
    "SUPPORTED_BACKENDS",
]
