"""
Prompts del tutor de autoevaluación.

El tutor critica el último mensaje del estudiante contra la rúbrica de
la habilidad, aplica la política de calibración por evidencia y responde
siempre con un objeto JSON.
"""

from __future__ import annotations

from string import Template
from typing import Sequence

from src.core.types import ComponentSkill, ConversationMessage, Evaluation, RubricLevel


# =============================================================================
# PROMPT PRINCIPAL DEL TUTOR
# =============================================================================

TUTOR_SYSTEM_TEMPLATE = Template("""You are a friendly AI tutor helping a student self-assess their competency in "$skill_name".
Your goal is to help the student judge their level accurately and see a path toward the highest level, "applying".

RUBRIC LEVELS (lowest to highest):
$rubric

CURRENT SELF-EVALUATION:
$current_evaluation

HOW TO RESPOND:
1. Critique the student's latest message with this structure:
   - Strengths: what the student already shows, in rubric language.
   - Gaps: at least two constructive gaps, each tied to the wording of a rubric level.
   - Next steps: concrete actions that move them toward "applying".
2. $turn_instruction

$calibration_rules

OUTPUT FORMAT:
Respond ONLY with a JSON object:
{
  "response": "<your message to the student>",
  "suggested_evaluation": {
    "self_assessed_level": "emerging" | "developing" | "proficient" | "applying" | null,
    "confidence": <number between 0 and 1>,
    "justification": "<why this level fits>",
    "evidence": ["<specific evidence quoted or paraphrased from the student>"]
  } | null,
  "should_terminate": true | false
}
Set "should_terminate" to true only when the self-evaluation is complete.""")


CALIBRATION_RULES = """EVIDENCE RULES FOR LEVELS:
- "proficient" requires a specific situation (when, where, which project) AND a concrete outcome or detail.
- "applying" requires a specific situation, a concrete outcome, AND an impact on others (helping, teaching or leading peers).
- Claims without that evidence must not be accepted. State the lower level the evidence supports and name exactly what evidence is missing.
- Never suggest a level above what the student's own evidence supports."""


FOLLOW_UP_INSTRUCTION = (
    "End with exactly ONE follow-up question that asks for the specific "
    "evidence still missing."
)


FINAL_TURN_INSTRUCTION = (
    "This is the FINAL turn. Do NOT ask any question. Write a concluding "
    "summary of what the student showed, the level their evidence supports, "
    "and one or two next steps. Set \"should_terminate\" to true."
)


# =============================================================================
# REVISIÓN DE AUTOEVALUACIÓN ENVIADA
# =============================================================================

REVIEW_SYSTEM_TEMPLATE = Template("""You are an AI tutor reviewing a student's written self-evaluation of "$skill_name".

RUBRIC LEVELS (lowest to highest):
$rubric

$calibration_rules

Give specific, actionable guidance that helps the student progress from their current level to "applying".
Do not ask questions.

Respond ONLY with a JSON object:
{
  "response": "<feedback for the student>",
  "suggested_evaluation": {
    "self_assessed_level": "emerging" | "developing" | "proficient" | "applying",
    "confidence": <number between 0 and 1>,
    "justification": "<why this level fits>",
    "evidence": ["<evidence from the submission>"]
  },
  "should_terminate": true
}""")


SUBMISSION_TEMPLATE = Template("""STUDENT SELF-EVALUATION:
- Self-assessed level: $level
- Justification: $justification
- Examples provided: $examples""")


# =============================================================================
# MENSAJES FIJOS DE SEGURIDAD (no generativos)
# =============================================================================

CRISIS_MESSAGE = (
    "I'm concerned about what you've shared and want you to know that mental "
    "health is very important. This conversation has been flagged and someone "
    "will reach out to you soon to provide support. Please speak with a trusted "
    "adult, counselor, or call a crisis helpline if you need immediate help."
)


CONDUCT_MESSAGE = (
    "Inappropriate language was detected in our conversation. This has been "
    "flagged and someone will reach out to you about appropriate language use "
    "at school. This conversation is now closed."
)


# =============================================================================
# FUNCIONES DE FORMATO
# =============================================================================

def format_rubric(skill: ComponentSkill) -> str:
    return "\n".join(
        f"{level.value.upper()}: {description}"
        for level, description in skill.rubric_levels().items()
    )


def format_current_evaluation(evaluation: Evaluation | None) -> str:
    if evaluation is None or evaluation.self_assessed_level is None:
        return "- Self-assessed level: not selected yet"
    lines = [f"- Self-assessed level: {evaluation.self_assessed_level.value}"]
    if evaluation.confidence is not None:
        lines.append(f"- Confidence: {evaluation.confidence:.2f}")
    if evaluation.justification:
        lines.append(f"- Justification: {evaluation.justification}")
    return "\n".join(lines)


def build_tutor_messages(
    skill: ComponentSkill,
    history: Sequence[ConversationMessage],
    current_evaluation: Evaluation | None,
    is_final_turn: bool,
) -> list[ConversationMessage | dict[str, str]]:
    """
    Construye los mensajes del generador.

    El prompt de sistema lleva la rúbrica y las reglas; el historial se
    pasa como turnos de chat y termina en el último mensaje del estudiante.
    """
    system = TUTOR_SYSTEM_TEMPLATE.substitute(
        skill_name=skill.name,
        rubric=format_rubric(skill),
        current_evaluation=format_current_evaluation(current_evaluation),
        turn_instruction=FINAL_TURN_INSTRUCTION if is_final_turn else FOLLOW_UP_INSTRUCTION,
        calibration_rules=CALIBRATION_RULES,
    )
    return [{"role": "system", "content": system}, *history]


def build_review_messages(
    skill: ComponentSkill,
    level: RubricLevel,
    justification: str,
    examples: str,
) -> list[dict[str, str]]:
    system = REVIEW_SYSTEM_TEMPLATE.substitute(
        skill_name=skill.name,
        rubric=format_rubric(skill),
        calibration_rules=CALIBRATION_RULES,
    )
    user = SUBMISSION_TEMPLATE.substitute(
        level=level.value,
        justification=justification or "Not provided",
        examples=examples or "Not provided",
    )
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "TUTOR_SYSTEM_TEMPLATE",
    "CALIBRATION_RULES",
    "FOLLOW_UP_INSTRUCTION",
    "FINAL_TURN_INSTRUCTION",
    "REVIEW_SYSTEM_TEMPLATE",
    "SUBMISSION_TEMPLATE",
    "CRISIS_MESSAGE",
    "CONDUCT_MESSAGE",
    "format_rubric",
    "format_current_evaluation",
    "build_tutor_messages",
    "build_review_messages",
]
