"""
Router de sesiones de autoevaluación.
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from src.agents.tutor import SelfEvaluationAgent
from src.core.exceptions import SelfEvalError
from src.core.types import (
    ConversationMessage,
    Evaluation,
    RubricLevel,
    SubmissionReview,
    TurnResult,
)
from src.services.dependencies import get_agent, to_http_error

router = APIRouter()


class SessionRequest(BaseModel):
    student_id: str
    skill_id: str
    teacher_id: str | None = None
    assessment_id: str | None = None


class SessionResponse(BaseModel):
    session_id: str
    skill_id: str
    status: str


class TurnRequest(BaseModel):
    message: str = ""


class SessionView(BaseModel):
    session_id: str
    student_id: str
    skill_id: str
    status: str
    termination_reason: str | None = None
    student_turn_count: int
    current_evaluation: Evaluation | None = None
    messages: list[ConversationMessage] = Field(default_factory=list)
    metrics: dict[str, Any] = Field(default_factory=dict)


class ReviewRequest(BaseModel):
    student_id: str
    skill_id: str
    level: RubricLevel
    justification: str = ""
    examples: str = ""
    teacher_id: str | None = None


@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def start_session(
    request: SessionRequest,
    agent: SelfEvaluationAgent = Depends(get_agent),
):
    """Inicia una sesión de autoevaluación."""
    try:
        session = await agent.start_session(
            student_id=request.student_id,
            skill_id=request.skill_id,
            teacher_id=request.teacher_id,
            assessment_id=request.assessment_id,
        )
    except SelfEvalError as e:
        raise to_http_error(e) from e

    return SessionResponse(
        session_id=str(session.session_id),
        skill_id=session.skill_id,
        status=session.status.value,
    )


@router.post("/sessions/{session_id}/turns", response_model=TurnResult)
async def submit_turn(
    session_id: UUID,
    request: TurnRequest,
    agent: SelfEvaluationAgent = Depends(get_agent),
):
    """Envía un mensaje del estudiante y devuelve la respuesta del tutor."""
    try:
        return await agent.process_turn(session_id, request.message)
    except SelfEvalError as e:
        raise to_http_error(e) from e


@router.get("/sessions/{session_id}", response_model=SessionView)
async def get_session(
    session_id: UUID,
    agent: SelfEvaluationAgent = Depends(get_agent),
):
    """Estado actual de una sesión."""
    try:
        session = await agent.get_session(session_id)
        metrics = await agent.get_session_metrics(session_id)
    except SelfEvalError as e:
        raise to_http_error(e) from e

    return SessionView(
        session_id=str(session.session_id),
        student_id=session.student_id,
        skill_id=session.skill_id,
        status=session.status.value,
        termination_reason=(
            session.termination_reason.value if session.termination_reason else None
        ),
        student_turn_count=session.student_turn_count,
        current_evaluation=session.current_evaluation,
        messages=session.messages,
        metrics=metrics,
    )


@router.post("/reviews", response_model=SubmissionReview)
async def review_submission(
    request: ReviewRequest,
    agent: SelfEvaluationAgent = Depends(get_agent),
):
    """Revisa una autoevaluación enviada de una sola vez."""
    try:
        return await agent.review_submission(
            student_id=request.student_id,
            skill_id=request.skill_id,
            level=request.level,
            justification=request.justification,
            examples=request.examples,
            teacher_id=request.teacher_id,
        )
    except SelfEvalError as e:
        raise to_http_error(e) from e
