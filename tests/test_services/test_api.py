"""
Tests de la API HTTP del motor de autoevaluación.
"""

from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from src.agents.tutor import CRISIS_MESSAGE, SelfEvaluationAgent
from src.core.types import SafetyCategory, SafetyIncident
from src.escalation import EscalationGateway, InMemoryIncidentStore, InMemoryNotificationSink
from src.services import dependencies
from src.services.app import app
from tests.fakes import make_safety_model, tutor_json


class FailingIncidentStore(InMemoryIncidentStore):
    async def record(self, incident: SafetyIncident) -> SafetyIncident:
        raise ConnectionError("incident database unavailable")


@pytest.fixture
def agent(make_agent: Callable[..., SelfEvaluationAgent]) -> SelfEvaluationAgent:
    return make_agent(
        [
            tutor_json("Thanks! Which project was it?", level="developing"),
            tutor_json("Good. What was the outcome?"),
        ],
        safety_model=make_safety_model({"hurt myself": SafetyCategory.SUICIDAL}),
    )


@pytest.fixture
def client(agent: SelfEvaluationAgent) -> Iterator[TestClient]:
    """Cliente con el agente de prueba instalado como singleton."""
    dependencies._agent = agent
    with TestClient(app) as test_client:
        yield test_client
    dependencies.reset_agent()


def start(client: TestClient, student_id: str = "s-100") -> str:
    response = client.post(
        "/self-evaluation/sessions",
        json={"student_id": student_id, "skill_id": "collaboration", "teacher_id": "t-rivera"},
    )
    assert response.status_code == 201
    return response.json()["session_id"]


def test_health_check(client: TestClient) -> None:
    """Verifica el endpoint de salud."""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient) -> None:
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "counters" in response.json()


def test_start_session_unknown_skill(client: TestClient) -> None:
    response = client.post(
        "/self-evaluation/sessions",
        json={"student_id": "s-100", "skill_id": "juggling"},
    )

    assert response.status_code == 404
    assert response.json()["detail"]["error_type"] == "SkillNotFoundError"


def test_turn_flow(client: TestClient) -> None:
    session_id = start(client)

    response = client.post(
        f"/self-evaluation/sessions/{session_id}/turns",
        json={"message": "I worked with my team"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["outcome"] == "safe_continue"
    assert body["response"] == "Thanks! Which project was it?"
    assert body["suggested_evaluation"]["self_assessed_level"] == "developing"

    view = client.get(f"/self-evaluation/sessions/{session_id}").json()
    assert view["status"] == "active"
    assert view["student_turn_count"] == 1
    assert [m["role"] for m in view["messages"]] == ["student", "tutor"]
    assert view["metrics"]["message_count"] == 2


def test_turn_unknown_session(client: TestClient) -> None:
    response = client.post(
        "/self-evaluation/sessions/00000000-0000-0000-0000-000000000000/turns",
        json={"message": "hello"},
    )

    assert response.status_code == 404


def test_flagged_turn_closes_session_and_notifies(
    client: TestClient,
    agent: SelfEvaluationAgent,
    notification_sink: InMemoryNotificationSink,
) -> None:
    session_id = start(client)

    response = client.post(
        f"/self-evaluation/sessions/{session_id}/turns",
        json={"message": "I want to hurt myself"},
    )

    body = response.json()
    assert body["outcome"] == "unsafe_terminate"
    assert body["response"] == CRISIS_MESSAGE
    assert body["safety_category"] == "suicidal"

    closed = client.post(
        f"/self-evaluation/sessions/{session_id}/turns",
        json={"message": "sorry"},
    )
    assert closed.status_code == 409

    incidents = client.get("/review/incidents", params={"teacher_id": "t-rivera"}).json()
    assert [i["incident_id"] for i in incidents] == [body["incident_id"]]

    resolved = client.post(
        f"/review/incidents/{body['incident_id']}/resolve",
        json={"notes": "Counselor met with the student"},
    )
    assert resolved.status_code == 200
    assert resolved.json()["resolved"] is True


def test_notifications_delivered_by_shutdown(
    agent: SelfEvaluationAgent,
    notification_sink: InMemoryNotificationSink,
) -> None:
    """Al cerrar la aplicación se esperan las entregas pendientes."""
    dependencies._agent = agent
    with TestClient(app) as test_client:
        session_id = start(test_client)
        test_client.post(
            f"/self-evaluation/sessions/{session_id}/turns",
            json={"message": "I want to hurt myself"},
        )
    dependencies.reset_agent()

    assert len(notification_sink.list_for_teacher("t-rivera")) == 1
    assert len(notification_sink.list_for_teacher("t-okafor")) == 1


def test_resolve_unknown_incident(client: TestClient) -> None:
    response = client.post(
        "/review/incidents/00000000-0000-0000-0000-000000000000/resolve",
        json={"notes": "n/a"},
    )

    assert response.status_code == 404


def test_incident_write_failure_is_503(client: TestClient, gateway: EscalationGateway) -> None:
    gateway.incident_store = FailingIncidentStore()
    session_id = start(client)

    response = client.post(
        f"/self-evaluation/sessions/{session_id}/turns",
        json={"message": "I want to hurt myself"},
    )

    assert response.status_code == 503
    assert response.json()["detail"]["error_type"] == "IncidentPersistenceError"


def test_review_endpoint(client: TestClient) -> None:
    response = client.post(
        "/self-evaluation/reviews",
        json={
            "student_id": "s-100",
            "skill_id": "collaboration",
            "level": "applying",
            "justification": "I always lead",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["claimed_level"] == "applying"
    assert body["supported_level"] == "developing"
    assert body["flagged"] is False


def test_review_rejects_unknown_level(client: TestClient) -> None:
    response = client.post(
        "/self-evaluation/reviews",
        json={"student_id": "s-100", "skill_id": "collaboration", "level": "expert"},
    )

    assert response.status_code == 422
