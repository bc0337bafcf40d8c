"""
Módulo core del motor de autoevaluación.

Contiene tipos, estructuras de datos y excepciones fundamentales.
"""

from src.core.exceptions import (
    BackendNotSupportedError,
    CatalogError,
    ClassifierUnavailableError,
    ConfigurationError,
    EscalationError,
    GenerationError,
    GeneratorUnavailableError,
    IncidentPersistenceError,
    InvalidModelIdError,
    JSONParsingError,
    MalformedGeneratorOutputError,
    ModelConnectionError,
    ModelError,
    ModelGenerationError,
    ModelNotFoundError,
    ModelTimeoutError,
    NoEligibleReviewerError,
    NotificationDeliveryError,
    ParsingError,
    SafetyError,
    SelfEvalError,
    SessionClosedError,
    SessionError,
    SessionNotFoundError,
    SkillNotFoundError,
)
from src.core.types import (
    ComponentSkill,
    ConversationMessage,
    Evaluation,
    IncidentSeverity,
    MessageRole,
    ModelResponse,
    Notification,
    RubricLevel,
    SafetyCategory,
    SafetyIncident,
    SafetyVerdict,
    SelfEvaluationSession,
    SessionStatus,
    SubmissionReview,
    TerminationReason,
    TurnOutcome,
    TurnResult,
    TutorTurn,
    VerdictSource,
)

__all__ = [
    # Types - Enums
    "RubricLevel",
    "MessageRole",
    "SessionStatus",
    "TerminationReason",
    "SafetyCategory",
    "VerdictSource",
    "IncidentSeverity",
    "TurnOutcome",
    # Types - Skills & messages
    "ComponentSkill",
    "ConversationMessage",
    "Evaluation",
    "SelfEvaluationSession",
    # Types - Safety
    "SafetyVerdict",
    "SafetyIncident",
    "Notification",
    # Types - Outputs
    "TutorTurn",
    "TurnResult",
    "SubmissionReview",
    "ModelResponse",
    # Exceptions
    "SelfEvalError",
    "ModelError",
    "ModelNotFoundError",
    "ModelConnectionError",
    "ModelGenerationError",
    "ModelTimeoutError",
    "ConfigurationError",
    "InvalidModelIdError",
    "BackendNotSupportedError",
    "SessionError",
    "SessionNotFoundError",
    "SessionClosedError",
    "CatalogError",
    "SkillNotFoundError",
    "SafetyError",
    "ClassifierUnavailableError",
    "GenerationError",
    "GeneratorUnavailableError",
    "MalformedGeneratorOutputError",
    "ParsingError",
    "JSONParsingError",
    "EscalationError",
    "IncidentPersistenceError",
    "NoEligibleReviewerError",
    "NotificationDeliveryError",
]
