"""
Configuración y fixtures compartidos para tests.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Sequence

import pytest

# Añadir el directorio raíz al path para imports
ROOT_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT_DIR))

from config.settings import DialogueConfig, EscalationConfig, SafetyConfig  # noqa: E402
from src.agents.tutor import (  # noqa: E402
    InMemorySkillCatalog,
    SelfEvaluationAgent,
    SessionManager,
    TutorResponseGenerator,
)
from src.core.types import ComponentSkill  # noqa: E402
from src.escalation import (  # noqa: E402
    EscalationGateway,
    InMemoryIncidentStore,
    InMemoryNotificationSink,
    InMemoryTeacherDirectory,
)
from src.guardrails.classifier import SafetyClassifier  # noqa: E402
from src.models.base import BaseModelAdapter  # noqa: E402
from src.utils.metrics import MetricsCollector  # noqa: E402
from tests.fakes import ScriptedModel, make_safety_model  # noqa: E402


# =============================================================================
# Fixtures de dominio
# =============================================================================

@pytest.fixture
def collaboration_skill() -> ComponentSkill:
    return ComponentSkill(
        id="collaboration",
        name="Collaboration",
        emerging="Participates in group work when prompted.",
        developing="Contributes to group tasks but depends on others to organize.",
        proficient="Consistently contributes, listens and divides tasks fairly.",
        applying="Leads collaborative work and helps others grow as collaborators.",
    )


@pytest.fixture
def catalog(collaboration_skill: ComponentSkill) -> InMemorySkillCatalog:
    return InMemorySkillCatalog({collaboration_skill.id: collaboration_skill})


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def safety_config() -> SafetyConfig:
    return SafetyConfig(classifier_timeout=1.0)


@pytest.fixture
def dialogue_config() -> DialogueConfig:
    return DialogueConfig(generator_timeout=1.0)


@pytest.fixture
def escalation_config() -> EscalationConfig:
    return EscalationConfig(notification_retry_min_wait=0, notification_retry_max_wait=0)


@pytest.fixture
def incident_store() -> InMemoryIncidentStore:
    return InMemoryIncidentStore()


@pytest.fixture
def notification_sink() -> InMemoryNotificationSink:
    return InMemoryNotificationSink()


@pytest.fixture
def directory() -> InMemoryTeacherDirectory:
    return InMemoryTeacherDirectory(
        schools={"north-high": ["t-rivera", "t-okafor"]},
        students={
            "s-100": {"school": "north-high", "teacher_of_record": "t-rivera"},
            "s-200": {"school": "north-high"},
        },
    )


@pytest.fixture
def gateway(
    incident_store: InMemoryIncidentStore,
    notification_sink: InMemoryNotificationSink,
    directory: InMemoryTeacherDirectory,
    escalation_config: EscalationConfig,
    metrics: MetricsCollector,
) -> EscalationGateway:
    return EscalationGateway(
        incident_store,
        notification_sink,
        directory,
        escalation_config,
        metrics=metrics,
    )


@pytest.fixture
def make_agent(
    catalog: InMemorySkillCatalog,
    gateway: EscalationGateway,
    safety_config: SafetyConfig,
    dialogue_config: DialogueConfig,
    metrics: MetricsCollector,
) -> Callable[..., SelfEvaluationAgent]:
    """
    Construye un agente con modelos simulados.

    Args del factory:
        tutor_responses: Respuestas guionizadas del generador.
        safety_model: Modelo del clasificador (por defecto nunca marca).
        tutor_model: Modelo del tutor ya construido (ignora tutor_responses).
    """

    def factory(
        tutor_responses: Sequence[Any] = (),
        safety_model: BaseModelAdapter | None = None,
        tutor_model: BaseModelAdapter | None = None,
    ) -> SelfEvaluationAgent:
        classifier = SafetyClassifier.with_model(
            safety_model or make_safety_model(),
            safety_config,
            metrics=metrics,
        )
        generator = TutorResponseGenerator(
            tutor_model or ScriptedModel(tutor_responses, model_name="scripted-tutor"),
            dialogue_config,
        )
        return SelfEvaluationAgent(
            catalog=catalog,
            session_store=SessionManager(),
            classifier=classifier,
            generator=generator,
            escalation=gateway,
            dialogue_config=dialogue_config,
            safety_config=safety_config,
            metrics=metrics,
        )

    return factory


# =============================================================================
# Fixtures para mocking de respuestas HTTP
# =============================================================================

@pytest.fixture
def mock_ollama_response() -> dict[str, Any]:
    """Respuesta típica de Ollama."""
    return {
        "model": "llama3.1:8b",
        "message": {
            "role": "assistant",
            "content": '{"response": "Tell me more."}',
        },
        "done": True,
        "done_reason": "stop",
        "prompt_eval_count": 50,
        "eval_count": 25,
    }


@pytest.fixture
def mock_openai_response() -> dict[str, Any]:
    """Respuesta típica de OpenAI API compatible."""
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "created": 1677652288,
        "model": "meta-llama/Llama-3.1-8B-Instruct",
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": '{"response": "Tell me more."}',
                },
                "finish_reason": "stop",
            }
        ],
        "usage": {
            "prompt_tokens": 50,
            "completion_tokens": 25,
            "total_tokens": 75,
        },
    }


# =============================================================================
# Markers personalizados
# =============================================================================

def pytest_configure(config: Any) -> None:
    """Configura markers personalizados."""
    config.addinivalue_line(
        "markers",
        "integration: test de integración que requiere servicios externos"
    )
    config.addinivalue_line(
        "markers",
        "slow: test lento que puede omitirse con --skip-slow"
    )
    config.addinivalue_line(
        "markers",
        "e2e: test de ciclo de vida completo"
    )


def pytest_collection_modifyitems(config: Any, items: list[Any]) -> None:
    """Modifica la colección de tests según opciones."""
    if config.getoption("--skip-slow", default=False):
        skip_slow = pytest.mark.skip(reason="--skip-slow especificado")
        for item in items:
            if "slow" in item.keywords:
                item.add_marker(skip_slow)

    if not config.getoption("--integration", default=False):
        skip_integration = pytest.mark.skip(reason="usa --integration para ejecutarlo")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_addoption(parser: Any) -> None:
    """Añade opciones de línea de comandos."""
    parser.addoption(
        "--skip-slow",
        action="store_true",
        default=False,
        help="Omitir tests marcados como lentos"
    )
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="Ejecutar tests de integración"
    )
