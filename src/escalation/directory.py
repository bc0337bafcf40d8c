"""
Directorio de supervisión: qué docentes pueden revisar a un estudiante.

Un docente es elegible si es el docente de referencia del estudiante o
enseña en su misma escuela.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from config.settings import Settings, get_settings


class TeacherDirectory(Protocol):
    """Contrato de resolución de docentes elegibles."""

    async def eligible_teachers(
        self,
        student_id: str,
        teacher_id: str | None = None,
    ) -> list[str]: ...


class InMemoryTeacherDirectory:
    """
    Directorio en memoria alimentado desde la sección `roster` del catálogo.

    Attributes:
        schools: `{school_id: [teacher_id, ...]}`.
        students: `{student_id: {"school": ..., "teacher_of_record": ...}}`.
    """

    def __init__(
        self,
        schools: Mapping[str, list[str]] | None = None,
        students: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        self.schools = {k: list(v) for k, v in (schools or {}).items()}
        self.students = {k: dict(v) for k, v in (students or {}).items()}

    @classmethod
    def from_roster(cls, roster: Mapping[str, Any]) -> "InMemoryTeacherDirectory":
        schools = {
            school_id: list((data or {}).get("teachers", []))
            for school_id, data in (roster.get("schools") or {}).items()
        }
        return cls(schools=schools, students=roster.get("students") or {})

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "InMemoryTeacherDirectory":
        settings = settings or get_settings()
        return cls.from_roster(settings.get_catalog().get("roster") or {})

    async def eligible_teachers(
        self,
        student_id: str,
        teacher_id: str | None = None,
    ) -> list[str]:
        """
        Docentes elegibles, sin duplicados y en orden estable.

        Args:
            student_id: Estudiante del incidente.
            teacher_id: Docente de la sesión, si se conoce.
        """
        record = self.students.get(student_id, {})
        candidates: list[str] = []
        for tid in (teacher_id, record.get("teacher_of_record")):
            if tid:
                candidates.append(tid)
        school = record.get("school")
        if school:
            candidates.extend(self.schools.get(school, []))
        return list(dict.fromkeys(candidates))


__all__ = [
    "TeacherDirectory",
    "InMemoryTeacherDirectory",
]
