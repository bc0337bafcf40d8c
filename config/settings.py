"""
Configuración centralizada del motor de autoevaluación.

Este módulo proporciona una configuración tipada y validada usando Pydantic Settings.
Soporta carga desde variables de entorno y archivos .env.

Los componentes del motor reciben sus sub-configuraciones de forma explícita
en el constructor; `get_settings()` sólo se usa en los puntos de composición
(servicio HTTP, factories y scripts).
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, PrivateAttr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# Enumeraciones
# =============================================================================

class ModelBackend(str, Enum):
    """Backends de modelos soportados."""
    OLLAMA = "ollama"
    OPENAI_LOCAL = "openai_local"


class LogLevel(str, Enum):
    """Niveles de logging."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# =============================================================================
# Modelos de Configuración
# =============================================================================

class OllamaConfig(BaseModel):
    """Configuración para backend Ollama."""
    base_url: str = "http://localhost:11434"
    timeout: int = 60

    model_config = {"extra": "allow"}


class OpenAILocalConfig(BaseModel):
    """Configuración para backends compatibles con OpenAI API."""
    base_url: str = "http://localhost:8000/v1"
    api_key: str = "not-needed"
    timeout: int = 60

    model_config = {"extra": "allow"}


class ModelDefaults(BaseModel):
    """Modelos y parámetros de generación por defecto."""
    tutor_model: str = "ollama/llama3.1:8b"
    safety_model: str = "ollama/llama3.1:8b"
    tutor_temperature: float = 0.7
    safety_temperature: float = 0.1
    tutor_max_tokens: int = 800
    safety_max_tokens: int = 200


class SafetyConfig(BaseModel):
    """Configuración del clasificador de seguridad."""
    # Clasificador primario (modelo)
    primary_enabled: bool = True
    classifier_timeout: float = Field(default=8.0, gt=0)

    # Confianza mínima para aceptar un flag de lenguaje del modelo primario
    flag_threshold: float = Field(default=0.5, ge=0.0, le=1.0)

    # Número de detecciones de lenguaje inapropiado antes de escalar.
    # 1 = escalar en la primera detección.
    inappropriate_language_threshold: int = Field(default=1, ge=1)

    # Mensajes previos enviados al clasificador como contexto
    history_window: int = Field(default=4, ge=0)


class DialogueConfig(BaseModel):
    """Configuración de la máquina de estados del diálogo."""
    max_student_turns: int = Field(default=3, ge=1)
    generator_timeout: float = Field(default=30.0, gt=0)
    history_window: int = Field(default=12, ge=0)
    max_message_length: int = Field(default=4000, ge=100)


class EscalationConfig(BaseModel):
    """Configuración del gateway de escalado."""
    # Intentos por notificación (el primero más al menos un reintento)
    notification_max_attempts: int = Field(default=3, ge=2)
    notification_retry_min_wait: float = 0.2
    notification_retry_max_wait: float = 2.0

    # Intentos de escritura del incidente
    incident_write_attempts: int = Field(default=3, ge=1)


class ServiceConfig(BaseModel):
    """Configuración del servicio HTTP."""
    host: str = "localhost"
    port: int = 8002


class LoggingConfig(BaseModel):
    """Configuración de logging."""
    level: LogLevel = LogLevel.INFO
    format: str = "json"
    include_timestamps: bool = True
    log_model_inputs: bool = False
    log_model_outputs: bool = False
    log_file: str | None = None

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Sólo se admiten los renderers json y console."""
        if v not in ("json", "console"):
            raise ValueError(f"Formato de log desconocido: {v}")
        return v


# =============================================================================
# Settings Principal
# =============================================================================

class Settings(BaseSettings):
    """
    Configuración principal del motor de autoevaluación.

    Los valores pueden ser sobrescritos mediante variables de entorno
    con el prefijo SELFEVAL_, por ejemplo:
    - SELFEVAL_DEBUG=true
    - SELFEVAL_SAFETY__CLASSIFIER_TIMEOUT=5
    - SELFEVAL_DIALOGUE__MAX_STUDENT_TURNS=3
    """

    model_config = SettingsConfigDict(
        env_prefix="SELFEVAL_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Modo debug
    debug: bool = False

    # Rutas del proyecto
    project_root: Path = Field(default_factory=lambda: Path(__file__).parent.parent)
    config_dir: Path = Field(default_factory=lambda: Path(__file__).parent)

    # Catálogo de habilidades y roster de supervisión (YAML)
    catalog_file: str = "catalog.yaml"

    # Configuraciones de subsistemas
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    openai_local: OpenAILocalConfig = Field(default_factory=OpenAILocalConfig)
    model_defaults: ModelDefaults = Field(default_factory=ModelDefaults)
    safety: SafetyConfig = Field(default_factory=SafetyConfig)
    dialogue: DialogueConfig = Field(default_factory=DialogueConfig)
    escalation: EscalationConfig = Field(default_factory=EscalationConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    _catalog_cache: dict[str, Any] | None = PrivateAttr(default=None)

    def get_catalog(self) -> dict[str, Any]:
        """
        Carga y cachea el catálogo (habilidades y roster) desde YAML.

        Returns:
            Diccionario con las secciones `skills` y `roster`, o vacío
            si el archivo no existe.
        """
        if self._catalog_cache is None:
            catalog_path = Path(self.catalog_file)
            if not catalog_path.is_absolute():
                catalog_path = self.config_dir / catalog_path
            if catalog_path.exists():
                with open(catalog_path, encoding="utf-8") as f:
                    self._catalog_cache = yaml.safe_load(f) or {}
            else:
                self._catalog_cache = {}
        return self._catalog_cache

    def get_backend_config(self, backend: ModelBackend | str) -> dict[str, Any]:
        """
        Obtiene la configuración de un backend específico.

        Args:
            backend: Tipo de backend (ollama, openai_local).

        Returns:
            Diccionario con la configuración del backend.
        """
        if isinstance(backend, ModelBackend):
            backend = backend.value

        if backend == "ollama":
            return self.ollama.model_dump()
        elif backend == "openai_local":
            return self.openai_local.model_dump()
        else:
            raise ValueError(f"Backend desconocido: {backend}")


@lru_cache
def get_settings() -> Settings:
    """
    Obtiene la instancia cacheada de Settings.

    Returns:
        Instancia de Settings configurada.
    """
    return Settings()


# =============================================================================
# Funciones de utilidad
# =============================================================================

def parse_model_id(model_id: str) -> tuple[str, str]:
    """
    Parsea un identificador de modelo en backend y nombre.

    Args:
        model_id: Identificador del modelo (ej: "ollama/llama3.1:8b")

    Returns:
        Tupla (backend, model_name)

    Raises:
        ValueError: Si el formato es inválido.
    """
    if "/" not in model_id:
        raise ValueError(
            f"Formato de model_id inválido: {model_id}. "
            f"Usa el formato 'backend/model_name' (ej: 'ollama/llama3.1:8b')"
        )

    backend, model_name = model_id.split("/", 1)
    return backend, model_name


__all__ = [
    "Settings",
    "get_settings",
    "ModelBackend",
    "LogLevel",
    "OllamaConfig",
    "OpenAILocalConfig",
    "ModelDefaults",
    "SafetyConfig",
    "DialogueConfig",
    "EscalationConfig",
    "ServiceConfig",
    "LoggingConfig",
    "parse_model_id",
]
