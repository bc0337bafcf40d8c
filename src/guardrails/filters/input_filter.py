"""
Filtro de mensajes del estudiante.

Limpia el texto antes de incluirlo en el prompt del tutor. El
clasificador de seguridad siempre recibe el texto crudo.
"""

from __future__ import annotations

import re
import unicodedata

from src.guardrails.patterns import ROLE_MARKER_PATTERNS, compile_patterns
from src.utils.logging import get_logger


class StudentMessageFilter:
    """
    Sanitizador del mensaje del estudiante.

    - Normaliza unicode y espacios
    - Elimina caracteres de control
    - Elimina marcadores de rol (`[system]`, `<assistant>`, ...)
    - Trunca mensajes demasiado largos
    """

    def __init__(self, max_length: int = 4000) -> None:
        self.max_length = max_length
        self.logger = get_logger("guardrail.input_filter")
        self._role_markers = compile_patterns(ROLE_MARKER_PATTERNS, "role_markers")

    def filter(self, raw_message: str) -> str:
        """
        Devuelve la versión limpia del mensaje.

        Args:
            raw_message: Mensaje tal como lo envió el estudiante.

        Returns:
            Texto limpio; puede ser vacío.
        """
        text = unicodedata.normalize("NFC", raw_message)

        # Caracteres de control excepto newlines y tabs
        text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", text)

        cleaned = text
        for pattern in self._role_markers:
            cleaned = pattern.sub("", cleaned)
        if cleaned != text:
            self.logger.info(
                "role_markers_removed",
                original_preview=text[:100],
            )

        cleaned = re.sub(r"[ \t]+", " ", cleaned)
        cleaned = re.sub(r"\n{3,}", "\n\n", cleaned).strip()

        if len(cleaned) > self.max_length:
            self.logger.warning(
                "input_truncated",
                original_length=len(cleaned),
                max_length=self.max_length,
            )
            cleaned = cleaned[: self.max_length]

        return cleaned


__all__ = ["StudentMessageFilter"]
