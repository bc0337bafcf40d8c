"""
Escalado de incidentes de seguridad a revisores humanos.
"""

from src.escalation.directory import InMemoryTeacherDirectory, TeacherDirectory
from src.escalation.gateway import (
    NOTIFICATION_CONTENT,
    EscalationGateway,
    build_notification_summary,
)
from src.escalation.stores import (
    IncidentStore,
    InMemoryIncidentStore,
    InMemoryNotificationSink,
    NotificationSink,
)

__all__ = [
    "EscalationGateway",
    "NOTIFICATION_CONTENT",
    "build_notification_summary",
    "IncidentStore",
    "NotificationSink",
    "InMemoryIncidentStore",
    "InMemoryNotificationSink",
    "TeacherDirectory",
    "InMemoryTeacherDirectory",
]
