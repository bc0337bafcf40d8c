"""
Router de revisión de incidentes (acción externa del revisor).
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from src.agents.tutor import SelfEvaluationAgent
from src.core.types import Notification, SafetyIncident
from src.services.dependencies import get_agent

router = APIRouter()


class ResolveRequest(BaseModel):
    notes: str


@router.get("/incidents", response_model=list[SafetyIncident])
async def list_incidents(
    teacher_id: str | None = None,
    resolved: bool | None = None,
    agent: SelfEvaluationAgent = Depends(get_agent),
):
    """Lista incidentes, opcionalmente filtrados."""
    return await agent.escalation.incident_store.list_incidents(
        teacher_id=teacher_id,
        resolved=resolved,
    )


@router.post("/incidents/{incident_id}/resolve", response_model=SafetyIncident)
async def resolve_incident(
    incident_id: UUID,
    request: ResolveRequest,
    agent: SelfEvaluationAgent = Depends(get_agent),
):
    """Marca un incidente como resuelto."""
    incident = await agent.escalation.incident_store.resolve_incident(
        incident_id, request.notes
    )
    if incident is None:
        raise HTTPException(status_code=404, detail=f"Incidente no encontrado: {incident_id}")
    return incident


@router.get("/teachers/{teacher_id}/notifications", response_model=list[Notification])
async def list_notifications(
    teacher_id: str,
    agent: SelfEvaluationAgent = Depends(get_agent),
):
    """Notificaciones recibidas por un docente."""
    return agent.escalation.notification_sink.list_for_teacher(teacher_id)
