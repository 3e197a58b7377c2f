"""Tests for natural-key find-or-create of students and mentors."""

from __future__ import annotations

import pytest

from halaqah.core.errors import RemoteStoreError, ValidationError
from halaqah.core.lookups import PersonKind
from halaqah.data.memory_store import MemoryStore
from halaqah.data.repositories.people_repository import MENTORS, STUDENTS
from halaqah.roster.resolver import EntityResolver


@pytest.fixture
def seeded_store() -> MemoryStore:
    return MemoryStore(
        {
            STUDENTS: [{"id": "stu_ali", "name": "Ali", "category": "MUT", "class_label": "1A", "active": True}],
            MENTORS: [{"id": "men_hamid", "name": "Ust. Hamid", "category": "MUT", "class_label": "2A"}],
        }
    )


class TestResolve:
    @pytest.mark.asyncio
    async def test_existing_person_is_reused(self, seeded_store):
        resolver = EntityResolver(seeded_store)

        resolved = await resolver.resolve(PersonKind.STUDENT, "Ali", "MUT", "3B")

        assert resolved.id == "stu_ali"
        assert resolved.created is False
        # class label is never overwritten from the candidate
        assert (await seeded_store.get_record(STUDENTS, "stu_ali"))["class_label"] == "1A"

    @pytest.mark.asyncio
    async def test_same_name_other_category_creates_new_person(self, seeded_store):
        resolver = EntityResolver(seeded_store)

        resolved = await resolver.resolve(PersonKind.STUDENT, "Ali", "ALI", "X-A")

        assert resolved.created is True
        assert resolved.id != "stu_ali"
        assert seeded_store.count(STUDENTS) == 2

    @pytest.mark.asyncio
    async def test_miss_creates_exactly_once_per_batch(self, memory_store):
        resolver = EntityResolver(memory_store)

        first = await resolver.resolve(PersonKind.MENTOR, "Ust. Hamid", "MUT", "2A")
        second = await resolver.resolve(PersonKind.MENTOR, "Ust. Hamid", "MUT", "2A")

        assert first.created is True
        assert second.created is False
        assert first.id == second.id
        assert memory_store.count(MENTORS) == 1

    @pytest.mark.asyncio
    async def test_snapshot_is_loaded_once(self, seeded_store):
        resolver = EntityResolver(seeded_store)
        await resolver.resolve(PersonKind.STUDENT, "Ali", "MUT")
        await resolver.resolve(PersonKind.STUDENT, "Ali", "MUT")

        assert seeded_store.calls.count(("list", STUDENTS)) == 1

    @pytest.mark.asyncio
    async def test_name_is_trimmed_but_case_sensitive(self, seeded_store):
        resolver = EntityResolver(seeded_store)

        assert (await resolver.resolve(PersonKind.STUDENT, "  Ali ", "MUT")).id == "stu_ali"
        assert (await resolver.resolve(PersonKind.STUDENT, "ali", "MUT")).created is True

    @pytest.mark.asyncio
    async def test_created_student_is_active(self, memory_store):
        resolved = await EntityResolver(memory_store).resolve(PersonKind.STUDENT, "Zaid", "JAM", "TQS")

        record = await memory_store.get_record(STUDENTS, resolved.id)
        assert record["active"] is True
        assert record["class_label"] == "TQS"


class TestResolveErrors:
    @pytest.mark.asyncio
    async def test_empty_name_rejected(self, memory_store):
        with pytest.raises(ValidationError):
            await EntityResolver(memory_store).resolve(PersonKind.STUDENT, "   ", "MUT")
        assert memory_store.count(STUDENTS) == 0

    @pytest.mark.asyncio
    async def test_unknown_category_rejected(self, memory_store):
        with pytest.raises(ValidationError):
            await EntityResolver(memory_store).resolve(PersonKind.MENTOR, "Ust. Hamid", "SMP")

    @pytest.mark.asyncio
    async def test_store_failure_propagates_without_retry(self, memory_store):
        memory_store.fail_on.add(("create", MENTORS))

        with pytest.raises(RemoteStoreError):
            await EntityResolver(memory_store).resolve(PersonKind.MENTOR, "Ust. Hamid", "MUT")

        assert memory_store.calls.count(("create", MENTORS)) == 1
