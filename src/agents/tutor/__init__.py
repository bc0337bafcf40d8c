"""
Agente de autoevaluación.

Este módulo exporta el agente y sus componentes principales. El
SelfEvaluationAgent guía al estudiante en un diálogo corto sobre una
habilidad, clasificando cada mensaje antes de responder y escalando
cualquier contenido de riesgo a revisores humanos.

Ejemplo de uso:
    ```python
    import asyncio
    from src.agents.tutor import SelfEvaluationAgent

    async def main():
        agent = await SelfEvaluationAgent.create()
        session = await agent.start_session("s-100", "collaboration")

        result = await agent.process_turn(
            session.session_id,
            "I organized the tasks for our robotics team",
        )
        print(result.response)

    asyncio.run(main())
    ```
"""

from src.agents.tutor.agent import SelfEvaluationAgent
from src.agents.tutor.calibration import (
    CalibrationResult,
    EvidenceProfile,
    RubricCalibrationPolicy,
)
from src.agents.tutor.catalog import InMemorySkillCatalog, SkillCatalog
from src.agents.tutor.generator import TutorResponseGenerator
from src.agents.tutor.parser import TutorOutputParser
from src.agents.tutor.prompts import (
    CONDUCT_MESSAGE,
    CRISIS_MESSAGE,
    build_review_messages,
    build_tutor_messages,
)
from src.agents.tutor.session_manager import (
    SessionManager,
    SessionStore,
    summarize_session,
)

__all__ = [
    # Agente principal
    "SelfEvaluationAgent",
    # Generador y parser
    "TutorResponseGenerator",
    "TutorOutputParser",
    # Calibración
    "RubricCalibrationPolicy",
    "CalibrationResult",
    "EvidenceProfile",
    # Catálogo y sesiones
    "SkillCatalog",
    "InMemorySkillCatalog",
    "SessionStore",
    "SessionManager",
    "summarize_session",
    # Prompts
    "CRISIS_MESSAGE",
    "CONDUCT_MESSAGE",
    "build_tutor_messages",
    "build_review_messages",
]
