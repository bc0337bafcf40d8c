"""
Patrones de detección del motor de autoevaluación.

Centraliza la tabla de política de seguridad (categoría → patrones), los
marcadores de evidencia usados por la calibración de rúbrica y las
utilidades de detección de preguntas. La tabla está versionada y la
comparten el detector heurístico de respaldo y el script
`scripts/check_safety_policy.py`.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Pattern

from src.core.types import SafetyCategory


# =============================================================================
# Política de Seguridad
# =============================================================================

SAFETY_POLICY_VERSION = "2025.2"

HOMICIDAL_PATTERNS: list[str] = [
    # Inglés
    r"\bkill\s+(someone|somebody|them|him|her|everyone|people)\b",
    r"\bmurder\w*",
    r"\bhomicid\w*",
    r"\b(want|wanna|going|gonna|plan|planning)\s+(to\s+)?(kill|hurt|harm|shoot|stab|beat)\b(?!\s+(myself|me)\b)",
    r"\bhurt\s+(someone|somebody|others|people|everyone)\b",
    r"\bhurt\s+(my\s+)?(classmates?|teachers?|friends?|brother|sister|parents?|mom|dad|team)\b",
    r"\bharm\s+(others|someone|somebody|people)\b",
    r"\bthinking\s+(about|of)\s+killing\b(?!\s+myself)",
    r"\bshoot\s+up\s+(the\s+|my\s+)?school\b",
    r"\b(kill|stab|shoot)\s+(you|u|ya)\b",
    r"\b(will|['’]ll|gonna)\s+(kill|stab|shoot|hurt)\b(?!\s+(myself|me)\b)",
    r"\bbeat\s+(him|her|them|you|u|someone|somebody)\s+(up|until|to\s+death)\b",
    r"\buntil\s+(he|she|they|you)\s+bleeds?\b",
    r"\bviolence\b",
    # Español
    r"\bmatar\s+a\s+(alguien|todos|mi|mis|un|una|el|la)\b",
    r"\bquiero\s+matar(lo|la|los|las)?\b",
    r"\basesinar\w*",
    r"\b(lastimar|herir)\s+a\s+(alguien|mi|mis|todos)\b",
    r"\bhacer(le|les)\s+daño\s+a\b",
]

SUICIDAL_PATTERNS: list[str] = [
    # Inglés
    r"\bsuicid\w*",
    r"\bself[\s-]?harm\w*",
    r"\b(hurt|hurting|harm|harming|cut|cutting)\s+myself\b",
    r"\bkill(ing)?\s+myself\b",
    r"\bwant\s+to\s+die\b",
    r"\bend\s+my\s+life\b",
    r"\bend\s+it\s+all\b",
    r"\bno\s+reason\s+to\s+live\b",
    r"\bbetter\s+off\s+dead\b",
    r"\bwanna\s+die\b",
    r"\bwish\s+i\s+(was|were)\s+dead\b",
    r"\bkms\b",
    # Español
    r"\bquiero\s+morir(me)?\b",
    r"\bmatarme\b",
    r"\bquitarme\s+la\s+vida\b",
    r"\bhacerme\s+daño\b",
    r"\bautolesi\w*",
    r"\bno\s+quiero\s+vivir\b",
]

PROFANITY_WORDS: list[str] = [
    # Inglés
    "damn", "hell", "crap", "shit", "fuck", "fucking", "bitch", "ass",
    "asshole", "bastard", "piss", "dick", "cock", "pussy", "whore", "slut",
    # Español
    "mierda", "puta", "puto", "joder", "cabrón", "cabron", "gilipollas",
    "pendejo", "coño",
]

INAPPROPRIATE_LANGUAGE_PATTERNS: list[str] = [
    rf"\b{re.escape(word)}\b" for word in PROFANITY_WORDS
]

# Orden de prioridad: la primera categoría que coincide gana
SAFETY_POLICY: dict[SafetyCategory, list[str]] = {
    SafetyCategory.HOMICIDAL: HOMICIDAL_PATTERNS,
    SafetyCategory.SUICIDAL: SUICIDAL_PATTERNS,
    SafetyCategory.INAPPROPRIATE_LANGUAGE: INAPPROPRIATE_LANGUAGE_PATTERNS,
}


# =============================================================================
# Marcadores de Evidencia (calibración de rúbrica)
# =============================================================================

SITUATION_MARKERS: list[str] = [
    # Inglés
    r"\bwhen\s+(i|we|my)\b",
    r"\bduring\b",
    r"\bfor\s+(example|instance)\b",
    r"\b(last|this|past)\s+(week|month|year|semester|term|summer)\b",
    r"\b(yesterday|recently)\b",
    r"\bin\s+(my|our)\s+([\w-]+\s+){0,3}(project|class|team|group|assignment|lab|club|presentation)\b",
    r"\b(january|february|march|april|may|june|july|august|september|october|november|december)\b",
    r"\b\d{1,2}/\d{1,2}(/\d{2,4})?\b",
    # Español
    r"\bcuando\s+(yo|nosotros|mi|trabaj\w+|hice|hicimos)\b",
    r"\bdurante\b",
    r"\bpor\s+ejemplo\b",
    r"\b(la\s+semana|el\s+mes|el\s+año)\s+pasad[oa]\b",
    r"\ben\s+(mi|nuestro)\s+(proyecto|clase|equipo|grupo)\b",
]

OUTCOME_MARKERS: list[str] = [
    # Inglés
    r"\bas\s+a\s+result\b",
    r"\bwhich\s+led\s+to\b",
    r"\bresult(ed)?\s+in\b",
    r"\b(finished|completed|won|earned|improved|increased|reduced|delivered)\b",
    r"\b\d+(\.\d+)?\s*%",
    r"\b\d+\s+(points|people|members|days|weeks|hours|pages)\b",
    # Español
    r"\bcomo\s+resultado\b",
    r"\blo\s+que\s+(llev[oó]|permiti[oó])\b",
    r"\b(conseguimos|logramos|terminamos|mejor[oó]|ganamos)\b",
]

IMPACT_MARKERS: list[str] = [
    # Inglés
    r"\bhelped\s+(my\s+)?(team|teammates|classmates?|peers?|others|group|friends?|students?)\b",
    r"\b(taught|mentored|coached|trained|showed)\s+\w+",
    r"\bclassmates?\b",
    r"\bpeers?\b",
    r"\bothers\b",
    r"\byounger\s+students\b",
    # Español
    r"\bayud[eé]\s+a\s+(mis|otros|mi)\b",
    r"\benseñ[eé]\b",
    r"\bcompañeros\b",
]

SPECIFIC_DETAIL_MARKERS: list[str] = [
    r"\d",
    r"\"[^\"]{3,}\"",
    r"\b(named|called|titled|llamad[oa])\b",
]


# =============================================================================
# Marcadores de Rol (filtro de entrada)
# =============================================================================

ROLE_MARKER_PATTERNS: list[str] = [
    r"\[/?(system|assistant|user|tutor)\]",
    r"</?(system|assistant|user|tutor)>",
    r"###\s*(system|assistant|user|tutor)\s*:",
    r"<\|im_(start|end)\|>",
]


# =============================================================================
# Indicadores de Preguntas
# =============================================================================

QUESTION_INDICATORS: list[str] = [
    r"\?\s*$",
    r"^¿",
    r"^(what|how|why|when|where|which|who|can|could|would|do|does|did)\b.*\?",
]

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")


# =============================================================================
# Funciones de Utilidad
# =============================================================================

_compiled_cache: dict[str, list[Pattern[str]]] = {}


def compile_patterns(patterns: list[str], cache_key: str | None = None) -> list[Pattern[str]]:
    """
    Compila una lista de patrones regex con flag case-insensitive.

    Args:
        patterns: Lista de patrones regex como strings.
        cache_key: Clave opcional para cachear los patrones compilados.

    Returns:
        Lista de patrones compilados.
    """
    if cache_key and cache_key in _compiled_cache:
        return _compiled_cache[cache_key]

    compiled = [re.compile(p, re.IGNORECASE | re.UNICODE) for p in patterns]

    if cache_key:
        _compiled_cache[cache_key] = compiled

    return compiled


def check_any_pattern(
    text: str,
    patterns: list[Pattern[str]],
) -> tuple[bool, str | None, float]:
    """
    Verifica si algún patrón coincide con el texto.

    Returns:
        Tupla (coincide, fragmento_encontrado, score).
        El score es 1.0 si hay match, 0.0 si no.
    """
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return True, match.group(0), 1.0
    return False, None, 0.0


def find_all_matches(text: str, patterns: list[Pattern[str]]) -> list[str]:
    """Fragmentos del texto que coinciden con algún patrón, sin duplicados."""
    found: list[str] = []
    for pattern in patterns:
        for match in pattern.finditer(text):
            fragment = match.group(0)
            if fragment not in found:
                found.append(fragment)
    return found


def policy_patterns(category: SafetyCategory) -> list[Pattern[str]]:
    """Patrones compilados de una categoría de la política."""
    return compile_patterns(
        SAFETY_POLICY[category],
        f"policy:{SAFETY_POLICY_VERSION}:{category.value}",
    )


def has_marker(text: str, markers: list[str], cache_key: str) -> bool:
    matched, _, _ = check_any_pattern(text, compile_patterns(markers, cache_key))
    return matched


def normalize_text(text: str) -> str:
    """
    Normaliza texto para comparación.

    - Normaliza unicode (NFC)
    - Convierte a minúsculas
    - Colapsa espacios múltiples
    """
    text = unicodedata.normalize("NFC", text)
    text = text.lower()
    text = re.sub(r"\s+", " ", text)
    return text.strip()


def split_sentences(text: str) -> list[str]:
    """Divide el texto en oraciones conservando la puntuación final."""
    return [s.strip() for s in _SENTENCE_SPLIT.split(text.strip()) if s.strip()]


def is_question(sentence: str) -> bool:
    patterns = compile_patterns(QUESTION_INDICATORS, "questions")
    return any(p.search(sentence.strip()) for p in patterns)


def contains_question(text: str) -> bool:
    """True si alguna oración del texto es una pregunta."""
    return any(is_question(s) for s in split_sentences(text))


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Política
    "SAFETY_POLICY_VERSION",
    "SAFETY_POLICY",
    "HOMICIDAL_PATTERNS",
    "SUICIDAL_PATTERNS",
    "PROFANITY_WORDS",
    "INAPPROPRIATE_LANGUAGE_PATTERNS",
    # Evidencia
    "SITUATION_MARKERS",
    "OUTCOME_MARKERS",
    "IMPACT_MARKERS",
    "SPECIFIC_DETAIL_MARKERS",
    # Filtros
    "ROLE_MARKER_PATTERNS",
    "QUESTION_INDICATORS",
    # Funciones
    "compile_patterns",
    "check_any_pattern",
    "find_all_matches",
    "policy_patterns",
    "has_marker",
    "normalize_text",
    "split_sentences",
    "is_question",
    "contains_question",
]
