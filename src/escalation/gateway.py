"""
Gateway de escalado de incidentes de seguridad.

Flujo:
1. Registrar el incidente (síncrono, con reintentos). Si no se puede
   registrar se lanza IncidentPersistenceError.
2. Resolver los docentes elegibles.
3. Notificar a cada docente en segundo plano, con reintentos por
   destinatario. Un fallo parcial no deshace nada.
"""

from __future__ import annotations

import asyncio
from typing import Sequence
from uuid import UUID

from tenacity import AsyncRetrying, RetryError, stop_after_attempt, wait_exponential

from config.settings import EscalationConfig
from src.core.exceptions import (
    IncidentPersistenceError,
    NoEligibleReviewerError,
    NotificationDeliveryError,
)
from src.core.types import (
    ConversationMessage,
    IncidentSeverity,
    SafetyCategory,
    SafetyIncident,
    SafetyVerdict,
)
from src.escalation.directory import TeacherDirectory
from src.escalation.stores import IncidentStore, NotificationSink
from src.utils.logging import get_logger
from src.utils.metrics import MetricsCollector, get_metrics


NOTIFICATION_CONTENT: dict[IncidentSeverity, tuple[str, str]] = {
    IncidentSeverity.CRITICAL: ("URGENT: Safety Incident Reported", "high"),
    IncidentSeverity.HIGH: ("Safety Incident: Inappropriate Language", "medium"),
}

CATEGORY_LABELS = {
    SafetyCategory.HOMICIDAL: "homicidal ideation",
    SafetyCategory.SUICIDAL: "suicidal ideation",
    SafetyCategory.INAPPROPRIATE_LANGUAGE: "inappropriate language",
}


def build_notification_summary(incident: SafetyIncident, preview_chars: int = 200) -> str:
    """Resumen legible del incidente para el docente."""
    label = CATEGORY_LABELS.get(incident.incident_type, incident.incident_type.value)
    preview = incident.message.strip()
    if len(preview) > preview_chars:
        preview = preview[:preview_chars].rstrip() + "..."
    parts = [f"Student {incident.student_id} triggered a {label} alert"]
    if incident.skill_id:
        parts.append(f" during a self-evaluation of '{incident.skill_id}'")
    parts.append(f'. Message: "{preview}"')
    return "".join(parts)


class EscalationGateway:
    """
    Gateway de escalado.

    Example:
        ```python
        gateway = EscalationGateway(store, sink, directory, EscalationConfig())
        incident = await gateway.escalate(
            student_id="s-100",
            incident_type=SafetyCategory.SUICIDAL,
            message=text,
            conversation_snapshot=session.messages,
        )
        await gateway.drain()
        ```
    """

    def __init__(
        self,
        incident_store: IncidentStore,
        notification_sink: NotificationSink,
        directory: TeacherDirectory,
        config: EscalationConfig,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.incident_store = incident_store
        self.notification_sink = notification_sink
        self.directory = directory
        self.config = config
        self.metrics = metrics or get_metrics()
        self.logger = get_logger("escalation.gateway")
        self._pending: set[asyncio.Task] = set()

    async def escalate(
        self,
        student_id: str,
        incident_type: SafetyCategory,
        message: str,
        conversation_snapshot: Sequence[ConversationMessage] = (),
        *,
        teacher_id: str | None = None,
        skill_id: str | None = None,
        assessment_id: str | None = None,
        session_id: UUID | None = None,
        verdict: SafetyVerdict | None = None,
    ) -> SafetyIncident:
        """
        Registra el incidente y lanza la notificación a los docentes.

        Returns:
            El incidente registrado.

        Raises:
            IncidentPersistenceError: Si el registro falla tras los reintentos.
        """
        severity = IncidentSeverity.for_category(incident_type)
        incident = SafetyIncident(
            student_id=student_id,
            teacher_id=teacher_id,
            skill_id=skill_id,
            assessment_id=assessment_id,
            session_id=session_id,
            incident_type=incident_type,
            message=message,
            severity=severity,
            conversation_snapshot=[m.model_copy() for m in conversation_snapshot],
            detection_source=verdict.source if verdict else None,
            confidence=verdict.confidence if verdict else None,
        )

        await self._record(incident)
        self.metrics.increment("incidents_recorded", labels={"severity": severity.value})
        self.logger.warning(
            "incident_recorded",
            incident_id=str(incident.incident_id),
            student_id=student_id,
            category=incident_type.value,
            severity=severity.value,
        )

        # El incidente ya es durable; un fallo del directorio no debe propagarse
        try:
            recipients = await self.directory.eligible_teachers(student_id, teacher_id)
        except Exception as e:
            self.logger.error(
                "teacher_lookup_failed",
                incident_id=str(incident.incident_id),
                student_id=student_id,
                error=str(e),
            )
            recipients = []

        if not recipients:
            gap = NoEligibleReviewerError(student_id, str(incident.incident_id))
            self.metrics.increment("no_eligible_reviewer")
            self.logger.error("no_eligible_reviewer", **gap.details)
            return incident

        task = asyncio.create_task(self._fan_out(incident, recipients))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return incident

    async def drain(self) -> None:
        """Espera a que terminen las notificaciones en curso."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    @property
    def pending_deliveries(self) -> int:
        return len(self._pending)

    async def _record(self, incident: SafetyIncident) -> None:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.config.incident_write_attempts),
                wait=wait_exponential(
                    multiplier=self.config.notification_retry_min_wait,
                    max=self.config.notification_retry_max_wait,
                ),
                reraise=True,
            ):
                with attempt:
                    await self.incident_store.record(incident)
        except Exception as e:
            self.logger.error(
                "incident_write_failed",
                incident_id=str(incident.incident_id),
                error=str(e),
            )
            raise IncidentPersistenceError(incident.student_id, str(e)) from e

    async def _fan_out(self, incident: SafetyIncident, recipients: list[str]) -> None:
        title, priority = NOTIFICATION_CONTENT[incident.severity]
        summary = build_notification_summary(incident)
        await asyncio.gather(*(
            self._deliver(teacher_id, incident, title, summary, priority)
            for teacher_id in recipients
        ))

    async def _deliver(
        self,
        teacher_id: str,
        incident: SafetyIncident,
        title: str,
        summary: str,
        priority: str,
    ) -> bool:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.config.notification_max_attempts),
                wait=wait_exponential(
                    multiplier=self.config.notification_retry_min_wait,
                    max=self.config.notification_retry_max_wait,
                ),
            ):
                with attempt:
                    await self.notification_sink.notify(
                        teacher_id,
                        incident.incident_id,
                        title,
                        summary,
                        priority,
                    )
        except RetryError as e:
            cause = e.last_attempt.exception()
            failure = NotificationDeliveryError(
                teacher_id, str(incident.incident_id), str(cause)
            )
            self.metrics.increment("notifications_failed")
            self.logger.error("notification_delivery_failed", **failure.details)
            return False

        self.metrics.increment("notifications_sent")
        return True


__all__ = [
    "EscalationGateway",
    "NOTIFICATION_CONTENT",
    "build_notification_summary",
]
