"""
Agente de autoevaluación (máquina de estados del diálogo).

El agente guía al estudiante en una conversación corta sobre una
habilidad del catálogo:
- Clasifica cada mensaje antes de generar nada
- Escala los mensajes marcados y cierra la sesión con un mensaje fijo
- Genera la crítica del tutor y calibra el nivel sugerido por evidencia
- Cierra la sesión al llegar al límite de turnos

Cada turno trabaja sobre una copia de la sesión; la copia sólo se guarda
cuando el turno se acepta, de modo que un fallo del generador no deja
mutaciones parciales.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from config.settings import DialogueConfig, SafetyConfig, Settings, get_settings
from src.core.exceptions import (
    GenerationError,
    SessionClosedError,
)
from src.core.types import (
    Evaluation,
    MessageRole,
    RubricLevel,
    SafetyCategory,
    SafetyVerdict,
    SelfEvaluationSession,
    SessionStatus,
    SubmissionReview,
    TerminationReason,
    TurnOutcome,
    TurnResult,
    TutorTurn,
)
from src.escalation import (
    EscalationGateway,
    InMemoryIncidentStore,
    InMemoryNotificationSink,
    InMemoryTeacherDirectory,
)
from src.guardrails.classifier import SafetyClassifier
from src.guardrails.filters.response_filter import DEFAULT_ENCOURAGEMENT, TutorResponseFilter
from src.models.factory import get_model
from src.utils.logging import LogContext, get_logger, log_safety_verdict
from src.utils.metrics import MetricsCollector, get_metrics

from .calibration import RubricCalibrationPolicy
from .catalog import InMemorySkillCatalog, SkillCatalog
from .generator import TutorResponseGenerator
from .prompts import CONDUCT_MESSAGE, CRISIS_MESSAGE
from .session_manager import SessionManager, SessionStore, summarize_session


class SelfEvaluationAgent:
    """
    Agente de autoevaluación.

    Attributes:
        catalog: Catálogo de habilidades.
        session_store: Almacén de sesiones (con lock por sesión).
        classifier: Clasificador de seguridad (primario + respaldo).
        generator: Generador de respuestas del tutor.
        escalation: Gateway de escalado de incidentes.

    Example:
        ```python
        agent = await SelfEvaluationAgent.create()
        session = await agent.start_session("s-100", "collaboration")

        result = await agent.process_turn(
            session.session_id,
            "I worked with my team on the science fair project",
        )
        print(result.outcome, result.response)
        ```
    """

    def __init__(
        self,
        catalog: SkillCatalog,
        session_store: SessionStore,
        classifier: SafetyClassifier,
        generator: TutorResponseGenerator,
        escalation: EscalationGateway,
        dialogue_config: DialogueConfig,
        safety_config: SafetyConfig,
        calibration: RubricCalibrationPolicy | None = None,
        response_filter: TutorResponseFilter | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.catalog = catalog
        self.session_store = session_store
        self.classifier = classifier
        self.generator = generator
        self.escalation = escalation
        self.dialogue_config = dialogue_config
        self.safety_config = safety_config
        self.calibration = calibration or RubricCalibrationPolicy()
        self.response_filter = response_filter or TutorResponseFilter()
        self.metrics = metrics or get_metrics()
        self.logger = get_logger("tutor.agent")

    @classmethod
    async def create(cls, settings: Settings | None = None) -> "SelfEvaluationAgent":
        """
        Factory method que compone el agente desde la configuración.

        Usa los adaptadores en memoria para catálogo, sesiones, incidentes
        y notificaciones.
        """
        settings = settings or get_settings()
        defaults = settings.model_defaults
        metrics = get_metrics()

        tutor_model = await get_model(defaults.tutor_model, settings=settings)
        safety_model = await get_model(defaults.safety_model, settings=settings)

        escalation = EscalationGateway(
            incident_store=InMemoryIncidentStore(),
            notification_sink=InMemoryNotificationSink(),
            directory=InMemoryTeacherDirectory.from_settings(settings),
            config=settings.escalation,
            metrics=metrics,
        )

        return cls(
            catalog=InMemorySkillCatalog.from_settings(settings),
            session_store=SessionManager(),
            classifier=SafetyClassifier.with_model(
                safety_model, settings.safety, defaults, metrics=metrics
            ),
            generator=TutorResponseGenerator(tutor_model, settings.dialogue, defaults),
            escalation=escalation,
            dialogue_config=settings.dialogue,
            safety_config=settings.safety,
            metrics=metrics,
        )

    # =========================================================================
    # Sesiones
    # =========================================================================

    async def start_session(
        self,
        student_id: str,
        skill_id: str,
        teacher_id: str | None = None,
        assessment_id: str | None = None,
    ) -> SelfEvaluationSession:
        """
        Inicia una sesión sobre una habilidad del catálogo.

        Raises:
            SkillNotFoundError: Si la habilidad no existe.
        """
        self.catalog.get_component_skill(skill_id)

        session = SelfEvaluationSession(
            student_id=student_id,
            skill_id=skill_id,
            teacher_id=teacher_id,
            assessment_id=assessment_id,
        )
        await self.session_store.save_session(session)

        self.metrics.increment("sessions_started")
        self.logger.info(
            "session_started",
            session_id=str(session.session_id),
            student_id=student_id,
            skill_id=skill_id,
        )
        return session

    async def get_session(self, session_id: UUID) -> SelfEvaluationSession:
        return await self.session_store.load_session(session_id)

    # =========================================================================
    # Turnos
    # =========================================================================

    async def process_turn(self, session_id: UUID, message: str) -> TurnResult:
        """
        Procesa un mensaje del estudiante.

        Pipeline:
        1. Rechazar si la sesión está cerrada
        2. Registrar el mensaje y contar el turno
        3. Clasificar (nunca falla abierto)
        4. Si está marcado: escalar y cerrar con un mensaje fijo
        5. Si no: generar, calibrar y filtrar la respuesta
        6. Cerrar si es el último turno o el generador lo indica

        Args:
            session_id: Sesión activa.
            message: Texto crudo del estudiante (puede estar vacío).

        Returns:
            TurnResult etiquetado (safe_continue, safe_terminate, unsafe_terminate).

        Raises:
            SessionNotFoundError: Si la sesión no existe.
            SessionClosedError: Si la sesión ya terminó.
            IncidentPersistenceError: Si no se pudo registrar el incidente;
                la sesión queda igualmente cerrada por seguridad.
        """
        async with self.session_store.lock_for(session_id):
            with LogContext(session_id=str(session_id)):
                with self.metrics.timer("turn_latency_ms"):
                    result = await self._process_turn_locked(session_id, message)

        self.metrics.increment("turns_processed", labels={"outcome": result.outcome.value})
        return result

    async def _process_turn_locked(self, session_id: UUID, message: str) -> TurnResult:
        stored = await self.session_store.load_session(session_id)
        if not stored.is_active:
            raise SessionClosedError(str(session_id), stored.status.value)

        skill = self.catalog.get_component_skill(stored.skill_id)

        session = stored.model_copy(deep=True)
        recent_history = session.get_last_n(self.safety_config.history_window)
        session.add_message(MessageRole.STUDENT, message)
        session.student_turn_count += 1

        verdict = await self.classifier.classify(message, recent_history)
        log_safety_verdict(
            self.logger,
            detector="safety_classifier",
            flagged=verdict.flagged,
            category=verdict.category.value,
            source=verdict.source.value,
            confidence=verdict.confidence,
        )

        if verdict.flagged and self._should_escalate(session, verdict):
            return await self._terminate_for_safety(session, message, verdict)

        is_final_turn = session.student_turn_count >= self.dialogue_config.max_student_turns

        try:
            turn = await self.generator.generate(
                skill,
                session.messages,
                session.current_evaluation,
                is_final_turn,
            )
        except GenerationError as e:
            return self._recover_from_generator_failure(stored, e)

        return await self._apply_tutor_turn(session, turn, is_final_turn)

    def _should_escalate(self, session: SelfEvaluationSession, verdict: SafetyVerdict) -> bool:
        """
        Aplica el umbral de lenguaje inapropiado.

        Las categorías críticas escalan siempre. El lenguaje inapropiado
        escala cuando las detecciones de la sesión alcanzan el umbral.
        """
        if verdict.category != SafetyCategory.INAPPROPRIATE_LANGUAGE:
            return True

        session.inappropriate_language_strikes += 1
        threshold = self.safety_config.inappropriate_language_threshold
        if session.inappropriate_language_strikes >= threshold:
            return True

        self.logger.info(
            "inappropriate_language_below_threshold",
            strikes=session.inappropriate_language_strikes,
            threshold=threshold,
        )
        return False

    async def _terminate_for_safety(
        self,
        session: SelfEvaluationSession,
        message: str,
        verdict: SafetyVerdict,
    ) -> TurnResult:
        response = CRISIS_MESSAGE if verdict.category.is_critical else CONDUCT_MESSAGE
        session.terminate(SessionStatus.TERMINATED_SAFETY, TerminationReason.SAFETY)
        session.add_message(MessageRole.TUTOR, response)

        # La sesión queda cerrada aunque falle el registro del incidente
        try:
            incident = await self.escalation.escalate(
                student_id=session.student_id,
                incident_type=verdict.category,
                message=message,
                conversation_snapshot=session.messages,
                teacher_id=session.teacher_id,
                skill_id=session.skill_id,
                assessment_id=session.assessment_id,
                session_id=session.session_id,
                verdict=verdict,
            )
        finally:
            await self.session_store.save_session(session)

        self.logger.warning(
            "session_terminated",
            status=session.status.value,
            reason=TerminationReason.SAFETY.value,
            category=verdict.category.value,
            incident_id=str(incident.incident_id),
        )

        return TurnResult(
            session_id=session.session_id,
            outcome=TurnOutcome.UNSAFE_TERMINATE,
            response=response,
            terminated=True,
            status=session.status,
            termination_reason=session.termination_reason,
            suggested_evaluation=session.current_evaluation,
            student_turn_count=session.student_turn_count,
            safety_category=verdict.category,
            incident_id=incident.incident_id,
        )

    def _recover_from_generator_failure(
        self,
        stored: SelfEvaluationSession,
        error: GenerationError,
    ) -> TurnResult:
        """El turno no se aplica: la sesión guardada queda intacta."""
        kind = type(error).__name__
        self.metrics.increment("generator_failures", labels={"kind": kind})
        self.logger.warning("generator_unavailable", kind=kind, error=str(error))

        return TurnResult(
            session_id=stored.session_id,
            outcome=TurnOutcome.SAFE_CONTINUE,
            response=DEFAULT_ENCOURAGEMENT,
            status=stored.status,
            suggested_evaluation=stored.current_evaluation,
            student_turn_count=stored.student_turn_count,
            accepted=False,
            recovered_error=kind,
        )

    async def _apply_tutor_turn(
        self,
        session: SelfEvaluationSession,
        turn: TutorTurn,
        is_final_turn: bool,
    ) -> TurnResult:
        explanation: str | None = None
        if turn.suggested_evaluation is not None:
            calibration = self.calibration.calibrate(turn.suggested_evaluation)
            if calibration.demoted:
                self.metrics.increment("evaluations_demoted")
                explanation = calibration.explanation
            session.current_evaluation = calibration.evaluation

        closing = is_final_turn or turn.should_terminate
        response = turn.response
        if explanation:
            response = f"{explanation} {response}" if response else explanation
        response, _ = self.response_filter.filter(response, is_final_turn=closing)

        session.add_message(MessageRole.TUTOR, response)

        outcome = TurnOutcome.SAFE_CONTINUE
        if closing:
            reason = (
                TerminationReason.TURN_LIMIT
                if is_final_turn
                else TerminationReason.GENERATOR_COMPLETED
            )
            session.terminate(SessionStatus.TERMINATED_NORMAL, reason)
            outcome = TurnOutcome.SAFE_TERMINATE
            self.logger.info(
                "session_terminated",
                status=session.status.value,
                reason=reason.value,
                student_turn_count=session.student_turn_count,
            )

        await self.session_store.save_session(session)

        return TurnResult(
            session_id=session.session_id,
            outcome=outcome,
            response=response,
            is_final_turn=is_final_turn,
            terminated=closing,
            status=session.status,
            termination_reason=session.termination_reason,
            suggested_evaluation=session.current_evaluation,
            student_turn_count=session.student_turn_count,
        )

    # =========================================================================
    # Revisión de una autoevaluación completa
    # =========================================================================

    async def review_submission(
        self,
        student_id: str,
        skill_id: str,
        level: RubricLevel,
        justification: str,
        examples: str,
        teacher_id: str | None = None,
    ) -> SubmissionReview:
        """
        Revisa una autoevaluación enviada de una sola vez.

        El texto combinado pasa por el clasificador de seguridad; si se
        marca, se escala y se devuelve el mensaje fijo correspondiente.

        Raises:
            SkillNotFoundError: Si la habilidad no existe.
            IncidentPersistenceError: Si no se pudo registrar el incidente.
        """
        skill = self.catalog.get_component_skill(skill_id)
        submission_text = "\n".join(t for t in (justification, examples) if t)

        claimed = Evaluation(
            self_assessed_level=level,
            justification=justification,
            evidence=[examples] if examples else [],
        )
        calibration = self.calibration.calibrate(claimed)
        supported = calibration.evaluation.self_assessed_level or level

        verdict = await self.classifier.classify(submission_text)
        log_safety_verdict(
            self.logger,
            detector="safety_classifier",
            flagged=verdict.flagged,
            category=verdict.category.value,
            source=verdict.source.value,
            confidence=verdict.confidence,
            operation="review",
        )

        if verdict.flagged:
            incident = await self.escalation.escalate(
                student_id=student_id,
                incident_type=verdict.category,
                message=submission_text,
                teacher_id=teacher_id,
                skill_id=skill_id,
                verdict=verdict,
            )
            return SubmissionReview(
                student_id=student_id,
                skill_id=skill_id,
                claimed_level=level,
                supported_level=supported,
                feedback=CRISIS_MESSAGE if verdict.category.is_critical else CONDUCT_MESSAGE,
                flagged=True,
                safety_category=verdict.category,
                incident_id=incident.incident_id,
            )

        try:
            turn = await self.generator.review(skill, level, justification, examples)
            feedback = turn.response
        except GenerationError as e:
            kind = type(e).__name__
            self.metrics.increment("generator_failures", labels={"kind": kind})
            self.logger.warning("generator_unavailable", kind=kind, operation="review")
            feedback = ""

        if calibration.demoted:
            self.metrics.increment("evaluations_demoted")
            feedback = f"{calibration.explanation} {feedback}".strip()
        feedback, _ = self.response_filter.filter(feedback, is_final_turn=True)

        return SubmissionReview(
            student_id=student_id,
            skill_id=skill_id,
            claimed_level=level,
            supported_level=supported,
            feedback=feedback,
        )

    async def get_session_metrics(self, session_id: UUID) -> dict[str, Any]:
        """Resumen de la sesión (turnos, mensajes, estado, duración)."""
        session = await self.session_store.load_session(session_id)
        return summarize_session(session)


__all__ = ["SelfEvaluationAgent"]
