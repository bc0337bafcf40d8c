"""
Dependencias compartidas de los routers.
"""

from fastapi import HTTPException

from src.agents.tutor import SelfEvaluationAgent
from src.core.exceptions import (
    IncidentPersistenceError,
    SelfEvalError,
    SessionClosedError,
    SessionNotFoundError,
    SkillNotFoundError,
)

# Instancia global del agente (estado en memoria)
# En producción los almacenes serían servicios externos
_agent: SelfEvaluationAgent | None = None


async def get_agent() -> SelfEvaluationAgent:
    """Obtiene o crea el agente singleton."""
    global _agent
    if _agent is None:
        _agent = await SelfEvaluationAgent.create()
    return _agent


def current_agent() -> SelfEvaluationAgent | None:
    """Agente ya creado, sin crearlo si no existe."""
    return _agent


def reset_agent() -> None:
    global _agent
    _agent = None


def to_http_error(error: SelfEvalError) -> HTTPException:
    """Traduce una excepción del motor a un error HTTP."""
    if isinstance(error, (SessionNotFoundError, SkillNotFoundError)):
        status = 404
    elif isinstance(error, SessionClosedError):
        status = 409
    elif isinstance(error, IncidentPersistenceError):
        status = 503
    else:
        status = 500
    return HTTPException(status_code=status, detail=error.to_dict())
