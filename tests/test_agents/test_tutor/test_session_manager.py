"""
Tests para el gestor de sesiones de autoevaluación.
"""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from src.agents.tutor.session_manager import SessionManager, summarize_session
from src.core.exceptions import SessionClosedError, SessionNotFoundError
from src.core.types import (
    Evaluation,
    MessageRole,
    RubricLevel,
    SelfEvaluationSession,
    SessionStatus,
    TerminationReason,
)


@pytest.fixture
def session_manager() -> SessionManager:
    """Crea un gestor de sesiones para tests."""
    return SessionManager(max_sessions=3)


def new_session(**kwargs) -> SelfEvaluationSession:
    return SelfEvaluationSession(student_id="s-100", skill_id="collaboration", **kwargs)


class TestSessionManager:
    """Tests para SessionManager."""

    @pytest.mark.asyncio
    async def test_save_and_load(self, session_manager: SessionManager) -> None:
        session = new_session()
        await session_manager.save_session(session)

        loaded = await session_manager.load_session(session.session_id)

        assert loaded.session_id == session.session_id
        assert loaded is not session

    @pytest.mark.asyncio
    async def test_load_missing_raises(self, session_manager: SessionManager) -> None:
        with pytest.raises(SessionNotFoundError):
            await session_manager.load_session(uuid4())

    @pytest.mark.asyncio
    async def test_unsaved_mutations_are_not_visible(self, session_manager: SessionManager) -> None:
        """Mutar una copia cargada no altera la sesión guardada."""
        session = new_session()
        await session_manager.save_session(session)

        loaded = await session_manager.load_session(session.session_id)
        loaded.add_message(MessageRole.STUDENT, "draft")
        loaded.student_turn_count += 1
        session.add_message(MessageRole.STUDENT, "also not saved")

        reloaded = await session_manager.load_session(session.session_id)
        assert reloaded.messages == []
        assert reloaded.student_turn_count == 0

    def test_lock_for_is_stable_per_session(self, session_manager: SessionManager) -> None:
        session_id = uuid4()

        assert session_manager.lock_for(session_id) is session_manager.lock_for(session_id)
        assert session_manager.lock_for(session_id) is not session_manager.lock_for(uuid4())

    @pytest.mark.asyncio
    async def test_limit_evicts_terminated_sessions(self, session_manager: SessionManager) -> None:
        """Una sesión terminada desalojada sigue respondiendo como cerrada."""
        finished = new_session()
        finished.terminate(SessionStatus.TERMINATED_NORMAL, TerminationReason.TURN_LIMIT)
        await session_manager.save_session(finished)
        await session_manager.save_session(new_session())
        await session_manager.save_session(new_session())

        await session_manager.save_session(new_session())

        assert session_manager.get_active_sessions_count() == 3
        with pytest.raises(SessionClosedError) as exc_info:
            await session_manager.load_session(finished.session_id)
        assert exc_info.value.details["status"] == "terminated_normal"

    @pytest.mark.asyncio
    async def test_limit_reached_with_active_sessions(self, session_manager: SessionManager) -> None:
        for _ in range(3):
            await session_manager.save_session(new_session())

        with pytest.raises(ValueError):
            await session_manager.save_session(new_session())

    @pytest.mark.asyncio
    async def test_existing_session_can_be_saved_at_limit(
        self,
        session_manager: SessionManager,
    ) -> None:
        sessions = [new_session() for _ in range(3)]
        for session in sessions:
            await session_manager.save_session(session)

        sessions[0].student_turn_count = 1
        await session_manager.save_session(sessions[0])

        loaded = await session_manager.load_session(sessions[0].session_id)
        assert loaded.student_turn_count == 1

    @pytest.mark.asyncio
    async def test_old_sessions_are_cleaned(self, session_manager: SessionManager) -> None:
        old = new_session(started_at=datetime.now() - timedelta(hours=30))
        await session_manager.save_session(old)
        await session_manager.save_session(new_session())
        await session_manager.save_session(new_session())

        await session_manager.save_session(new_session())

        with pytest.raises(SessionNotFoundError):
            await session_manager.load_session(old.session_id)

    @pytest.mark.asyncio
    async def test_session_in_use_is_not_evicted(self, session_manager: SessionManager) -> None:
        old = new_session(started_at=datetime.now() - timedelta(hours=30))
        await session_manager.save_session(old)
        await session_manager.save_session(new_session())
        await session_manager.save_session(new_session())

        lock = session_manager.lock_for(old.session_id)
        async with lock:
            with pytest.raises(ValueError):
                await session_manager.save_session(new_session())

            assert session_manager.lock_for(old.session_id) is lock
            loaded = await session_manager.load_session(old.session_id)
            assert loaded.session_id == old.session_id


class TestSummarizeSession:
    """Tests para summarize_session."""

    def test_active_session(self) -> None:
        session = new_session()
        session.add_message(MessageRole.STUDENT, "hi")
        session.student_turn_count = 1

        summary = summarize_session(session)

        assert summary["status"] == "active"
        assert summary["message_count"] == 1
        assert summary["student_turn_count"] == 1
        assert summary["current_level"] is None
        assert summary["ended_at"] is None
        assert summary["duration_seconds"] >= 0

    def test_terminated_session(self) -> None:
        session = new_session(
            current_evaluation=Evaluation(self_assessed_level=RubricLevel.PROFICIENT),
        )
        session.terminate(SessionStatus.TERMINATED_SAFETY, TerminationReason.SAFETY)

        summary = summarize_session(session)

        assert summary["status"] == "terminated_safety"
        assert summary["termination_reason"] == "safety"
        assert summary["current_level"] == "proficient"
        assert summary["ended_at"] is not None
