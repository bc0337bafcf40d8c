"""
Prompts del clasificador de seguridad primario.

Cada comprobación usa su propio prompt y esquema JSON para que las
categorías sigan siendo direccionables por separado.
"""

from __future__ import annotations

from string import Template
from typing import Sequence

from src.core.types import ConversationMessage, MessageRole


HARM_CHECK_SYSTEM_PROMPT = """You are a student-safety classifier for a school self-assessment tool.

Decide whether the STUDENT MESSAGE expresses:
- homicidal ideation: intent, plans or wishes to kill or physically hurt another person;
- suicidal ideation: intent, plans or wishes to die, to kill oneself, or to self-harm.

Use the recent conversation only as context; classify the latest student message.
Figurative expressions that clearly are not about violence ("this homework is killing me") are not ideation.
When unsure, prefer flagging.

Respond ONLY with a JSON object with exactly these keys:
{"homicidal": true|false, "suicidal": true|false, "confidence": <number between 0 and 1>, "reason": "<short reason>"}"""


LANGUAGE_CHECK_SYSTEM_PROMPT = """You are a classroom-conduct classifier for a school self-assessment tool.

Decide whether the STUDENT MESSAGE contains inappropriate language for school:
profanity, slurs, sexual language, or insults directed at people.

Use the recent conversation only as context; classify the latest student message.
When unsure, prefer flagging.

Respond ONLY with a JSON object with exactly these keys:
{"inappropriate_language": true|false, "confidence": <number between 0 and 1>, "reason": "<short reason>"}"""


CLASSIFY_MESSAGE_TEMPLATE = Template("""RECENT CONVERSATION:
$history

STUDENT MESSAGE:
\"\"\"$message\"\"\"""")


def format_history(history: Sequence[ConversationMessage]) -> str:
    """Historial como líneas `Tutor: ...` / `Student: ...`."""
    if not history:
        return "(no previous messages)"
    lines = []
    for msg in history:
        speaker = "Tutor" if msg.role == MessageRole.TUTOR else "Student"
        lines.append(f"{speaker}: {msg.content}")
    return "\n".join(lines)


def build_classifier_messages(
    system_prompt: str,
    message: str,
    history: Sequence[ConversationMessage],
) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt},
        {
            "role": "user",
            "content": CLASSIFY_MESSAGE_TEMPLATE.substitute(
                history=format_history(history),
                message=message,
            ),
        },
    ]


__all__ = [
    "HARM_CHECK_SYSTEM_PROMPT",
    "LANGUAGE_CHECK_SYSTEM_PROMPT",
    "CLASSIFY_MESSAGE_TEMPLATE",
    "format_history",
    "build_classifier_messages",
]
