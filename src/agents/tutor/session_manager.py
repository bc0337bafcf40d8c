"""
Gestor de sesiones de autoevaluación.

Almacén en memoria de sesiones con un lock por sesión. Las sesiones se
guardan y se devuelven como copias, de modo que una mutación que no
llega a `save_session` nunca es observable.

Al desalojar una sesión terminada se conserva su estado final, para que
un turno repetido siga respondiendo SessionClosedError.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Any, Protocol
from uuid import UUID

from src.core.exceptions import SessionClosedError, SessionNotFoundError
from src.core.types import SelfEvaluationSession, SessionStatus
from src.utils.logging import get_logger


class SessionStore(Protocol):
    """Contrato del almacén de sesiones usado por la máquina de estados."""

    async def load_session(self, session_id: UUID) -> SelfEvaluationSession: ...

    async def save_session(self, session: SelfEvaluationSession) -> None: ...

    def lock_for(self, session_id: UUID) -> asyncio.Lock: ...


def summarize_session(session: SelfEvaluationSession) -> dict[str, Any]:
    """Resumen de una sesión: turnos, mensajes, estado y duración."""
    end_time = session.ended_at or datetime.now()
    evaluation = session.current_evaluation
    return {
        "session_id": str(session.session_id),
        "skill_id": session.skill_id,
        "status": session.status.value,
        "termination_reason": (
            session.termination_reason.value if session.termination_reason else None
        ),
        "student_turn_count": session.student_turn_count,
        "message_count": len(session.messages),
        "current_level": (
            evaluation.self_assessed_level.value
            if evaluation and evaluation.self_assessed_level
            else None
        ),
        "duration_seconds": (end_time - session.started_at).total_seconds(),
        "started_at": session.started_at.isoformat(),
        "ended_at": session.ended_at.isoformat() if session.ended_at else None,
    }


class SessionManager:
    """
    Almacén de sesiones en memoria.

    Attributes:
        max_sessions: Máximo de sesiones retenidas.
    """

    def __init__(self, max_sessions: int = 1000) -> None:
        self._sessions: dict[UUID, SelfEvaluationSession] = {}
        self._locks: dict[UUID, asyncio.Lock] = {}
        # Estado final de las sesiones terminadas ya desalojadas
        self._closed: dict[UUID, SessionStatus] = {}
        self.max_sessions = max_sessions
        self.logger = get_logger("tutor.session_manager")

    async def load_session(self, session_id: UUID) -> SelfEvaluationSession:
        """
        Carga una copia de la sesión.

        Raises:
            SessionNotFoundError: Si la sesión no existe.
            SessionClosedError: Si la sesión terminó y ya fue desalojada.
        """
        session = self._sessions.get(session_id)
        if session is None:
            if session_id in self._closed:
                raise SessionClosedError(str(session_id), self._closed[session_id].value)
            raise SessionNotFoundError(str(session_id))
        return session.model_copy(deep=True)

    async def save_session(self, session: SelfEvaluationSession) -> None:
        """
        Guarda una copia de la sesión.

        Raises:
            ValueError: Si es una sesión nueva y se excede el límite.
        """
        is_new = session.session_id not in self._sessions
        if is_new and len(self._sessions) >= self.max_sessions:
            self._cleanup_old_sessions()

            if len(self._sessions) >= self.max_sessions:
                raise ValueError(
                    f"Límite de sesiones alcanzado ({self.max_sessions})"
                )

        self._sessions[session.session_id] = session.model_copy(deep=True)
        if is_new:
            self.logger.info(
                "session_created",
                session_id=str(session.session_id),
                student_id=session.student_id,
                skill_id=session.skill_id,
            )

    def lock_for(self, session_id: UUID) -> asyncio.Lock:
        """Lock que serializa los turnos de una sesión."""
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    def _cleanup_old_sessions(self, max_age_hours: int = 24) -> int:
        """
        Desaloja sesiones terminadas o más antiguas que `max_age_hours`.

        Una sesión cuyo lock está tomado nunca se desaloja.
        """
        now = datetime.now()
        max_age = timedelta(hours=max_age_hours)

        to_remove = [
            session_id
            for session_id, session in self._sessions.items()
            if (not session.is_active or (now - session.started_at) > max_age)
            and not self._is_locked(session_id)
        ]
        for session_id in to_remove:
            session = self._sessions.pop(session_id)
            if not session.is_active:
                self._closed[session_id] = session.status
            self._locks.pop(session_id, None)

        if to_remove:
            self.logger.info("old_sessions_cleaned", removed_count=len(to_remove))

        return len(to_remove)

    def _is_locked(self, session_id: UUID) -> bool:
        lock = self._locks.get(session_id)
        return lock is not None and lock.locked()

    def get_active_sessions_count(self) -> int:
        return sum(1 for s in self._sessions.values() if s.is_active)


__all__ = [
    "SessionStore",
    "SessionManager",
    "summarize_session",
]
