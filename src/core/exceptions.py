"""
Excepciones personalizadas del motor de autoevaluación.

Este módulo define una jerarquía de excepciones que permite
un manejo de errores preciso y consistente en todo el sistema.
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# Excepción Base
# =============================================================================

class SelfEvalError(Exception):
    """
    Excepción base para todos los errores del motor de autoevaluación.

    Attributes:
        message: Mensaje descriptivo del error.
        details: Información adicional sobre el error.
        recoverable: Indica si el error es recuperable.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convierte la excepción a un diccionario serializable."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# Errores de Modelo
# =============================================================================

class ModelError(SelfEvalError):
    """Error relacionado con modelos de lenguaje."""
    pass


class ModelNotFoundError(ModelError):
    """El modelo solicitado no fue encontrado."""

    def __init__(self, model_id: str, backend: str | None = None) -> None:
        details = {"model_id": model_id}
        if backend:
            details["backend"] = backend
        super().__init__(
            f"Modelo no encontrado: {model_id}",
            details=details,
            recoverable=False,
        )


class ModelConnectionError(ModelError):
    """Error de conexión con el backend del modelo."""

    def __init__(self, backend: str, base_url: str, cause: str | None = None) -> None:
        details = {"backend": backend, "base_url": base_url}
        if cause:
            details["cause"] = cause
        super().__init__(
            f"No se pudo conectar al backend {backend} en {base_url}",
            details=details,
            recoverable=True,
        )


class ModelGenerationError(ModelError):
    """Error durante la generación de texto."""

    def __init__(self, model: str, cause: str) -> None:
        super().__init__(
            f"Error generando respuesta con {model}: {cause}",
            details={"model": model, "cause": cause},
            recoverable=True,
        )


class ModelTimeoutError(ModelError):
    """Timeout durante la generación."""

    def __init__(self, model: str, timeout_seconds: float) -> None:
        super().__init__(
            f"Timeout de {timeout_seconds}s excedido para modelo {model}",
            details={"model": model, "timeout_seconds": timeout_seconds},
            recoverable=True,
        )


# =============================================================================
# Errores de Configuración
# =============================================================================

class ConfigurationError(SelfEvalError):
    """Error de configuración del sistema."""

    def __init__(self, message: str, config_key: str | None = None) -> None:
        details = {}
        if config_key:
            details["config_key"] = config_key
        super().__init__(message, details=details, recoverable=False)


class InvalidModelIdError(ConfigurationError):
    """Formato de model_id inválido."""

    def __init__(self, model_id: str) -> None:
        super().__init__(
            f"Formato de model_id inválido: '{model_id}'. "
            f"Use el formato 'backend/model_name' (ej: 'ollama/llama3.1:8b')",
            config_key="model_id",
        )


class BackendNotSupportedError(ConfigurationError):
    """Backend no soportado."""

    def __init__(self, backend: str, supported_backends: list[str]) -> None:
        super().__init__(
            f"Backend '{backend}' no soportado. "
            f"Backends disponibles: {', '.join(supported_backends)}",
            config_key="backend",
        )


# =============================================================================
# Errores de Sesión y Catálogo
# =============================================================================

class SessionError(SelfEvalError):
    """Error relacionado con sesiones de autoevaluación."""
    pass


class SessionNotFoundError(SessionError):
    """La sesión solicitada no existe."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            f"Sesión no encontrada: {session_id}",
            details={"session_id": session_id},
            recoverable=False,
        )


class SessionClosedError(SessionError):
    """Se intentó procesar un turno en una sesión terminada."""

    def __init__(self, session_id: str, status: str) -> None:
        super().__init__(
            f"La sesión {session_id} está cerrada ({status})",
            details={"session_id": session_id, "status": status},
            recoverable=False,
        )


class CatalogError(SelfEvalError):
    """Error del catálogo de habilidades."""
    pass


class SkillNotFoundError(CatalogError):
    """La habilidad no existe en el catálogo."""

    def __init__(self, skill_id: str) -> None:
        super().__init__(
            f"Habilidad no encontrada: {skill_id}",
            details={"skill_id": skill_id},
            recoverable=False,
        )


# =============================================================================
# Errores de Seguridad
# =============================================================================

class SafetyError(SelfEvalError):
    """Error en el pipeline de seguridad."""
    pass


class ClassifierUnavailableError(SafetyError):
    """El clasificador primario falló, expiró o devolvió una salida inválida."""

    def __init__(self, cause: str, model: str | None = None) -> None:
        details = {"cause": cause}
        if model:
            details["model"] = model
        super().__init__(
            f"Clasificador primario no disponible: {cause}",
            details=details,
            recoverable=True,
        )


# =============================================================================
# Errores del Generador
# =============================================================================

class GenerationError(SelfEvalError):
    """Error del generador de respuestas del tutor."""
    pass


class GeneratorUnavailableError(GenerationError):
    """El modelo del tutor falló o excedió el timeout."""

    def __init__(self, cause: str, model: str | None = None) -> None:
        details = {"cause": cause}
        if model:
            details["model"] = model
        super().__init__(
            f"Generador no disponible: {cause}",
            details=details,
            recoverable=True,
        )


class MalformedGeneratorOutputError(GenerationError):
    """La salida del generador no cumple el esquema tras el re-parseo."""

    def __init__(self, response_preview: str, cause: str) -> None:
        super().__init__(
            f"Salida del generador malformada: {cause}",
            details={
                "response_preview": response_preview[:200],
                "cause": cause,
            },
            recoverable=True,
        )


# =============================================================================
# Errores de Parsing
# =============================================================================

class ParsingError(SelfEvalError):
    """Error al parsear respuestas del modelo."""
    pass


class JSONParsingError(ParsingError):
    """Error al parsear JSON de la respuesta."""

    def __init__(self, response_preview: str, parse_error: str) -> None:
        super().__init__(
            f"Error parseando JSON: {parse_error}",
            details={
                "response_preview": response_preview[:200],
                "parse_error": parse_error,
            },
            recoverable=True,
        )


# =============================================================================
# Errores de Escalado
# =============================================================================

class EscalationError(SelfEvalError):
    """Error en el escalado de incidentes."""
    pass


class IncidentPersistenceError(EscalationError):
    """No se pudo registrar el incidente de seguridad."""

    def __init__(self, student_id: str, cause: str) -> None:
        super().__init__(
            f"No se pudo registrar el incidente del estudiante {student_id}: {cause}",
            details={"student_id": student_id, "cause": cause},
            recoverable=True,
        )


class NoEligibleReviewerError(EscalationError):
    """No hay docentes que puedan supervisar al estudiante."""

    def __init__(self, student_id: str, incident_id: str) -> None:
        super().__init__(
            f"Sin docentes elegibles para el estudiante {student_id}",
            details={"student_id": student_id, "incident_id": incident_id},
            recoverable=False,
        )


class NotificationDeliveryError(EscalationError):
    """La entrega de una notificación falló."""

    def __init__(self, teacher_id: str, incident_id: str, cause: str) -> None:
        super().__init__(
            f"No se pudo notificar al docente {teacher_id}: {cause}",
            details={
                "teacher_id": teacher_id,
                "incident_id": incident_id,
                "cause": cause,
            },
            recoverable=True,
        )


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Base
    "SelfEvalError",
    # Model errors
    "ModelError",
    "ModelNotFoundError",
    "ModelConnectionError",
    "ModelGenerationError",
    "ModelTimeoutError",
    # Configuration errors
    "ConfigurationError",
    "InvalidModelIdError",
    "BackendNotSupportedError",
    # Session & catalog errors
    "SessionError",
    "SessionNotFoundError",
    "SessionClosedError",
    "CatalogError",
    "SkillNotFoundError",
    # Safety errors
    "SafetyError",
    "ClassifierUnavailableError",
    # Generation errors
    "GenerationError",
    "GeneratorUnavailableError",
    "MalformedGeneratorOutputError",
    # Parsing errors
    "ParsingError",
    "JSONParsingError",
    # Escalation errors
    "EscalationError",
    "IncidentPersistenceError",
    "NoEligibleReviewerError",
    "NotificationDeliveryError",
]
