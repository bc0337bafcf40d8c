"""
Tipos y estructuras de datos del motor de autoevaluación.

Este módulo define los tipos centrales usados en todo el sistema:
habilidades y niveles de rúbrica, mensajes y sesiones, veredictos de
seguridad, incidentes, notificaciones y el resultado etiquetado de un turno.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


# =============================================================================
# Enumeraciones
# =============================================================================

class RubricLevel(str, Enum):
    """Niveles de la rúbrica, de menor a mayor dominio."""
    EMERGING = "emerging"
    DEVELOPING = "developing"
    PROFICIENT = "proficient"
    APPLYING = "applying"

    @property
    def rank(self) -> int:
        """Posición ordinal del nivel (0 = emerging)."""
        return list(RubricLevel).index(self)

    @classmethod
    def parse(cls, value: Any) -> RubricLevel | None:
        """
        Convierte un valor arbitrario en un nivel canónico.

        Devuelve None si el valor no corresponde a ninguno de los cuatro
        niveles; nunca inventa un nivel.
        """
        if isinstance(value, RubricLevel):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class MessageRole(str, Enum):
    """Roles en una conversación de autoevaluación."""
    TUTOR = "tutor"
    STUDENT = "student"


class SessionStatus(str, Enum):
    """Estado de una sesión de autoevaluación."""
    ACTIVE = "active"
    TERMINATED_NORMAL = "terminated_normal"
    TERMINATED_SAFETY = "terminated_safety"


class TerminationReason(str, Enum):
    """Motivo por el que una sesión dejó de estar activa."""
    TURN_LIMIT = "turn_limit"
    GENERATOR_COMPLETED = "generator_completed"
    SAFETY = "safety"


class SafetyCategory(str, Enum):
    """Categorías del veredicto de seguridad."""
    HOMICIDAL = "homicidal"
    SUICIDAL = "suicidal"
    INAPPROPRIATE_LANGUAGE = "inappropriate_language"
    NONE = "none"

    @property
    def is_critical(self) -> bool:
        """Ideación homicida o suicida: siempre crítica."""
        return self in (SafetyCategory.HOMICIDAL, SafetyCategory.SUICIDAL)


class VerdictSource(str, Enum):
    """Detector que produjo el veredicto."""
    PRIMARY = "primary"
    FALLBACK = "fallback"


class IncidentSeverity(str, Enum):
    """Severidad de un incidente de seguridad."""
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def for_category(cls, category: SafetyCategory) -> IncidentSeverity:
        return cls.CRITICAL if category.is_critical else cls.HIGH


class TurnOutcome(str, Enum):
    """Resultado etiquetado de un turno."""
    SAFE_CONTINUE = "safe_continue"
    SAFE_TERMINATE = "safe_terminate"
    UNSAFE_TERMINATE = "unsafe_terminate"


# =============================================================================
# Habilidades y Mensajes
# =============================================================================

class ComponentSkill(BaseModel):
    """Habilidad del catálogo con las descripciones de sus cuatro niveles."""
    id: str
    name: str
    emerging: str
    developing: str
    proficient: str
    applying: str

    model_config = {"frozen": True}

    def rubric_levels(self) -> dict[RubricLevel, str]:
        """Descripciones indexadas por nivel, en orden ascendente."""
        return {
            RubricLevel.EMERGING: self.emerging,
            RubricLevel.DEVELOPING: self.developing,
            RubricLevel.PROFICIENT: self.proficient,
            RubricLevel.APPLYING: self.applying,
        }


class ConversationMessage(BaseModel):
    """Mensaje en una sesión de autoevaluación."""
    role: MessageRole
    content: str
    position: int
    timestamp: datetime = Field(default_factory=datetime.now)


class Evaluation(BaseModel):
    """
    Evaluación sugerida del nivel del estudiante.

    `calibrated_from` guarda el nivel original cuando la política de
    calibración lo rebajó por falta de evidencia.
    """
    self_assessed_level: RubricLevel | None = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    justification: str | None = None
    evidence: list[str] = Field(default_factory=list)
    calibrated_from: RubricLevel | None = None
    calibration_note: str | None = None


# =============================================================================
# Sesión de Autoevaluación
# =============================================================================

class SelfEvaluationSession(BaseModel):
    """Sesión de autoevaluación sobre una única habilidad."""
    session_id: UUID = Field(default_factory=uuid4)

    # Participantes y contexto
    student_id: str
    teacher_id: str | None = None
    skill_id: str
    assessment_id: str | None = None

    # Historial
    messages: list[ConversationMessage] = Field(default_factory=list)

    # Estado
    current_evaluation: Evaluation | None = None
    student_turn_count: int = 0
    status: SessionStatus = SessionStatus.ACTIVE
    termination_reason: TerminationReason | None = None
    inappropriate_language_strikes: int = 0

    # Metadatos
    started_at: datetime = Field(default_factory=datetime.now)
    ended_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    def add_message(self, role: MessageRole, content: str) -> ConversationMessage:
        """Añade un mensaje al final del historial."""
        message = ConversationMessage(
            role=role,
            content=content,
            position=len(self.messages),
        )
        self.messages.append(message)
        return message

    def get_last_n(self, n: int) -> list[ConversationMessage]:
        """Obtiene los últimos n mensajes."""
        return self.messages[-n:] if n > 0 else []

    def student_messages(self) -> list[ConversationMessage]:
        return [m for m in self.messages if m.role == MessageRole.STUDENT]

    def terminate(self, status: SessionStatus, reason: TerminationReason) -> None:
        """Lleva la sesión a un estado terminal."""
        self.status = status
        self.termination_reason = reason
        self.ended_at = datetime.now()


# =============================================================================
# Seguridad
# =============================================================================

class SafetyVerdict(BaseModel):
    """Veredicto del clasificador de seguridad para un mensaje."""
    flagged: bool
    category: SafetyCategory = SafetyCategory.NONE
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    source: VerdictSource
    reason: str | None = None
    matched_phrases: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @classmethod
    def clear(cls, source: VerdictSource, confidence: float = 0.0, reason: str | None = None) -> SafetyVerdict:
        """Veredicto sin contenido de riesgo."""
        return cls(
            flagged=False,
            category=SafetyCategory.NONE,
            confidence=confidence,
            source=source,
            reason=reason,
        )

    @classmethod
    def fail_closed(cls, reason: str) -> SafetyVerdict:
        """Veredicto por defecto cuando ningún detector pudo evaluar."""
        return cls(
            flagged=True,
            category=SafetyCategory.INAPPROPRIATE_LANGUAGE,
            confidence=1.0,
            source=VerdictSource.FALLBACK,
            reason=reason,
        )


class SafetyIncident(BaseModel):
    """Incidente de seguridad registrado para revisión humana."""
    incident_id: UUID = Field(default_factory=uuid4)
    student_id: str
    teacher_id: str | None = None
    skill_id: str | None = None
    assessment_id: str | None = None
    session_id: UUID | None = None

    incident_type: SafetyCategory
    message: str
    severity: IncidentSeverity
    conversation_snapshot: list[ConversationMessage] = Field(default_factory=list)

    detection_source: VerdictSource | None = None
    confidence: float | None = None

    # Resolución (acción externa del revisor)
    resolved: bool = False
    resolution_notes: str | None = None
    resolved_at: datetime | None = None

    created_at: datetime = Field(default_factory=datetime.now)


class Notification(BaseModel):
    """Notificación a un docente sobre un incidente."""
    notification_id: UUID = Field(default_factory=uuid4)
    teacher_id: str
    incident_id: UUID
    title: str
    summary: str
    priority: str
    read: bool = False
    created_at: datetime = Field(default_factory=datetime.now)


# =============================================================================
# Salidas del Tutor y del Motor
# =============================================================================

class TutorTurn(BaseModel):
    """Salida validada del generador de respuestas del tutor."""
    response: str
    suggested_evaluation: Evaluation | None = None
    should_terminate: bool = False


class TurnResult(BaseModel):
    """
    Resultado de procesar un turno del estudiante.

    `is_final_turn` indica que se agotó el límite de turnos del estudiante;
    `terminated`, que la sesión se cerró en este turno por cualquier motivo.
    `accepted` es False cuando el turno no se aplicó a la sesión (fallo del
    generador); el cliente puede reintentar el mismo mensaje.
    """
    session_id: UUID
    outcome: TurnOutcome
    response: str
    is_final_turn: bool = False
    terminated: bool = False
    status: SessionStatus
    termination_reason: TerminationReason | None = None
    suggested_evaluation: Evaluation | None = None
    student_turn_count: int
    accepted: bool = True
    recovered_error: str | None = None
    safety_category: SafetyCategory | None = None
    incident_id: UUID | None = None


class SubmissionReview(BaseModel):
    """Resultado de revisar una autoevaluación enviada de una sola vez."""
    student_id: str
    skill_id: str
    claimed_level: RubricLevel
    supported_level: RubricLevel
    feedback: str
    flagged: bool = False
    safety_category: SafetyCategory | None = None
    incident_id: UUID | None = None


# =============================================================================
# Respuesta del Modelo (genérica)
# =============================================================================

class ModelResponse(BaseModel):
    """Respuesta genérica de un modelo de lenguaje."""
    content: str
    model: str

    # Métricas de generación
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None

    # Timing
    generation_time_ms: float | None = None
    tokens_per_second: float | None = None

    # Información adicional del backend
    finish_reason: str | None = None
    raw_response: dict[str, Any] | None = None


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Enums
    "RubricLevel",
    "MessageRole",
    "SessionStatus",
    "TerminationReason",
    "SafetyCategory",
    "VerdictSource",
    "IncidentSeverity",
    "TurnOutcome",
    # Skills & messages
    "ComponentSkill",
    "ConversationMessage",
    "Evaluation",
    # Session
    "SelfEvaluationSession",
    # Safety
    "SafetyVerdict",
    "SafetyIncident",
    "Notification",
    # Outputs
    "TutorTurn",
    "TurnResult",
    "SubmissionReview",
    # Model
    "ModelResponse",
]
