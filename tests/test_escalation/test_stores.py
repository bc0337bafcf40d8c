"""
Tests para el directorio de docentes y los almacenes en memoria.
"""

from uuid import uuid4

import pytest

from config.settings import Settings
from src.core.types import IncidentSeverity, SafetyCategory, SafetyIncident
from src.escalation import (
    InMemoryIncidentStore,
    InMemoryNotificationSink,
    InMemoryTeacherDirectory,
)


def make_incident(teacher_id: str | None = None) -> SafetyIncident:
    return SafetyIncident(
        student_id="s-100",
        teacher_id=teacher_id,
        incident_type=SafetyCategory.INAPPROPRIATE_LANGUAGE,
        message="this is shit",
        severity=IncidentSeverity.HIGH,
    )


class TestTeacherDirectory:
    """Tests para InMemoryTeacherDirectory."""

    @pytest.mark.asyncio
    async def test_teacher_of_record_first_and_deduplicated(
        self,
        directory: InMemoryTeacherDirectory,
    ) -> None:
        assert await directory.eligible_teachers("s-100") == ["t-rivera", "t-okafor"]

    @pytest.mark.asyncio
    async def test_session_teacher_leads(self, directory: InMemoryTeacherDirectory) -> None:
        teachers = await directory.eligible_teachers("s-200", teacher_id="t-okafor")

        assert teachers == ["t-okafor", "t-rivera"]

    @pytest.mark.asyncio
    async def test_unknown_student(self, directory: InMemoryTeacherDirectory) -> None:
        assert await directory.eligible_teachers("s-999") == []

    @pytest.mark.asyncio
    async def test_from_roster(self) -> None:
        directory = InMemoryTeacherDirectory.from_roster({
            "schools": {"east": {"teachers": ["t-1", "t-2"]}},
            "students": {"s-1": {"school": "east"}},
        })

        assert await directory.eligible_teachers("s-1") == ["t-1", "t-2"]

    @pytest.mark.asyncio
    async def test_from_bundled_settings(self) -> None:
        directory = InMemoryTeacherDirectory.from_settings(Settings())

        assert "t-rivera" in await directory.eligible_teachers("s-100")


class TestInMemoryIncidentStore:
    """Tests para InMemoryIncidentStore."""

    @pytest.mark.asyncio
    async def test_record_and_get(self) -> None:
        store = InMemoryIncidentStore()
        incident = make_incident()

        await store.record(incident)

        assert (await store.get(incident.incident_id)).message == "this is shit"
        assert await store.get(uuid4()) is None
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_list_filters(self) -> None:
        store = InMemoryIncidentStore()
        mine = make_incident(teacher_id="t-rivera")
        other = make_incident(teacher_id="t-okafor")
        await store.record(mine)
        await store.record(other)
        await store.resolve_incident(other.incident_id, "talked with the student")

        assert [i.incident_id for i in await store.list_incidents(teacher_id="t-rivera")] == [
            mine.incident_id
        ]
        assert [i.incident_id for i in await store.list_incidents(resolved=True)] == [
            other.incident_id
        ]
        assert len(await store.list_incidents()) == 2

    @pytest.mark.asyncio
    async def test_resolve(self) -> None:
        store = InMemoryIncidentStore()
        incident = make_incident()
        await store.record(incident)

        resolved = await store.resolve_incident(incident.incident_id, "parents contacted")

        assert resolved.resolved is True
        assert resolved.resolution_notes == "parents contacted"
        assert resolved.resolved_at is not None
        assert await store.resolve_incident(uuid4(), "x") is None


class TestInMemoryNotificationSink:
    @pytest.mark.asyncio
    async def test_notify_and_list(self) -> None:
        sink = InMemoryNotificationSink()
        incident_id = uuid4()

        notification = await sink.notify("t-rivera", incident_id, "Title", "Summary", "high")

        assert notification.read is False
        assert sink.list_for_teacher("t-rivera") == [notification]
        assert sink.list_for_incident(incident_id) == [notification]
        assert sink.list_for_teacher("t-okafor") == []
