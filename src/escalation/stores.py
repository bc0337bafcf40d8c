"""
Almacenes de incidentes y notificaciones.

Los almacenes reales son servicios externos; aquí se definen sus
contratos y las implementaciones en memoria que usan el servicio HTTP
y los tests.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.core.types import Notification, SafetyIncident
from src.utils.logging import get_logger


class IncidentStore(Protocol):
    """Contrato de persistencia de incidentes."""

    async def record(self, incident: SafetyIncident) -> SafetyIncident: ...


class NotificationSink(Protocol):
    """Contrato de entrega de notificaciones a docentes."""

    async def notify(
        self,
        teacher_id: str,
        incident_id: UUID,
        title: str,
        summary: str,
        priority: str,
    ) -> Notification: ...


class InMemoryIncidentStore:
    """Registro de incidentes en memoria, con la superficie de revisión."""

    def __init__(self) -> None:
        self._incidents: dict[UUID, SafetyIncident] = {}
        self._lock = asyncio.Lock()
        self.logger = get_logger("escalation.incidents")

    async def record(self, incident: SafetyIncident) -> SafetyIncident:
        async with self._lock:
            self._incidents[incident.incident_id] = incident.model_copy(deep=True)
        return incident

    async def get(self, incident_id: UUID) -> SafetyIncident | None:
        incident = self._incidents.get(incident_id)
        return incident.model_copy(deep=True) if incident else None

    async def list_incidents(
        self,
        teacher_id: str | None = None,
        resolved: bool | None = None,
    ) -> list[SafetyIncident]:
        """
        Lista incidentes, los más recientes primero.

        Args:
            teacher_id: Filtra por docente de referencia.
            resolved: Filtra por estado de resolución.
        """
        incidents = [
            i for i in self._incidents.values()
            if (teacher_id is None or i.teacher_id == teacher_id)
            and (resolved is None or i.resolved == resolved)
        ]
        incidents.sort(key=lambda i: i.created_at, reverse=True)
        return [i.model_copy(deep=True) for i in incidents]

    async def resolve_incident(self, incident_id: UUID, notes: str) -> SafetyIncident | None:
        """Marca un incidente como resuelto. Devuelve None si no existe."""
        async with self._lock:
            incident = self._incidents.get(incident_id)
            if incident is None:
                return None
            incident.resolved = True
            incident.resolution_notes = notes
            incident.resolved_at = datetime.now()

        self.logger.info("incident_resolved", incident_id=str(incident_id))
        return incident.model_copy(deep=True)

    def __len__(self) -> int:
        return len(self._incidents)


class InMemoryNotificationSink:
    """Bandeja de notificaciones en memoria, una lista por docente."""

    def __init__(self) -> None:
        self._by_teacher: dict[str, list[Notification]] = {}

    async def notify(
        self,
        teacher_id: str,
        incident_id: UUID,
        title: str,
        summary: str,
        priority: str,
    ) -> Notification:
        notification = Notification(
            teacher_id=teacher_id,
            incident_id=incident_id,
            title=title,
            summary=summary,
            priority=priority,
        )
        self._by_teacher.setdefault(teacher_id, []).append(notification)
        return notification

    def list_for_teacher(self, teacher_id: str) -> list[Notification]:
        return list(self._by_teacher.get(teacher_id, []))

    def list_for_incident(self, incident_id: UUID) -> list[Notification]:
        return [
            n
            for notifications in self._by_teacher.values()
            for n in notifications
            if n.incident_id == incident_id
        ]


__all__ = [
    "IncidentStore",
    "NotificationSink",
    "InMemoryIncidentStore",
    "InMemoryNotificationSink",
]
