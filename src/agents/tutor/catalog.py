"""
Catálogo de habilidades.

El catálogo real vive en un servicio externo; aquí se define su contrato
y una implementación en memoria alimentada desde `config/catalog.yaml`.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from config.settings import Settings, get_settings
from src.core.exceptions import SkillNotFoundError
from src.core.types import ComponentSkill


class SkillCatalog(Protocol):
    """Contrato de consulta de habilidades."""

    def get_component_skill(self, skill_id: str) -> ComponentSkill: ...


class InMemorySkillCatalog:
    """Catálogo de habilidades en memoria."""

    def __init__(self, skills: Mapping[str, ComponentSkill] | None = None) -> None:
        self._skills: dict[str, ComponentSkill] = dict(skills or {})

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping[str, Any]]) -> "InMemorySkillCatalog":
        """
        Construye el catálogo desde la sección `skills` del YAML.

        Args:
            data: `{skill_id: {name, emerging, developing, proficient, applying}}`.
        """
        skills = {
            skill_id: ComponentSkill(id=skill_id, **fields)
            for skill_id, fields in data.items()
        }
        return cls(skills)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "InMemorySkillCatalog":
        settings = settings or get_settings()
        return cls.from_mapping(settings.get_catalog().get("skills", {}))

    def add(self, skill: ComponentSkill) -> None:
        self._skills[skill.id] = skill

    def get_component_skill(self, skill_id: str) -> ComponentSkill:
        """
        Busca una habilidad por id.

        Raises:
            SkillNotFoundError: Si no existe.
        """
        try:
            return self._skills[skill_id]
        except KeyError:
            raise SkillNotFoundError(skill_id) from None

    def list_skills(self) -> list[ComponentSkill]:
        return list(self._skills.values())


__all__ = [
    "SkillCatalog",
    "InMemorySkillCatalog",
]
