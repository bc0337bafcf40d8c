"""
Módulo de configuración del motor de autoevaluación.
"""

from config.settings import (
    DialogueConfig,
    EscalationConfig,
    LoggingConfig,
    LogLevel,
    ModelBackend,
    ModelDefaults,
    OllamaConfig,
    OpenAILocalConfig,
    SafetyConfig,
    ServiceConfig,
    Settings,
    get_settings,
    parse_model_id,
)

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
