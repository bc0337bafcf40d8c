"""
Motor de Autoevaluación Guiada.

Permite que un estudiante autoevalúe su dominio de una habilidad mediante
un diálogo acotado con un tutor respaldado por un modelo de lenguaje,
produciendo un nivel de rúbrica calibrado con evidencia. Cualquier señal de
autolesión, daño a terceros o lenguaje abusivo detiene el diálogo y se
escala a un revisor humano.

Módulos principales:
- `core`: Tipos, estructuras de datos y excepciones
- `models`: Capa de abstracción para modelos de lenguaje
- `guardrails`: Clasificador de seguridad (primario + heurístico)
- `agents.tutor`: Generador del tutor, calibración y máquina de estados
- `escalation`: Registro de incidentes y notificación a docentes
- `services`: API HTTP (FastAPI)
- `utils`: Logging y métricas

Ejemplo de uso rápido:
    ```python
    from src.agents.tutor import SelfEvaluationAgent

    agent = await SelfEvaluationAgent.create()
    session = await agent.start_session(student_id="s-100", skill_id="collaboration")
    result = await agent.process_turn(session.session_id, "I worked with my team")
    print(result.outcome, result.response)
    ```
"""

__version__ = "0.1.0"
