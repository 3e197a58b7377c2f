"""Student and mentor repositories.

Both person kinds share the same shape (name, category, class label) and the
same natural key, so one base class carries the store calls.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from halaqah.core.lookups import Category, PersonKind
from halaqah.core.models import Mentor, Student

from ..store import RecordStore

logger = logging.getLogger(__name__)

STUDENTS = "students"
MENTORS = "mentors"

P = TypeVar("P", Student, Mentor)


class _PersonRepository(Generic[P]):
    collection: str
    model: type[P]
    person_kind: PersonKind

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def list_all(self, category: Category | None = None) -> list[P]:
        """List every person, optionally limited to one category."""
        filters = {"category": category.value} if category else None
        records = await self.store.list_records(self.collection, filters, sort="name")
        return [self.model.from_record(r) for r in records]

    async def get(self, record_id: str) -> P:
        return self.model.from_record(await self.store.get_record(self.collection, record_id))

    async def create(self, name: str, category: Category, class_label: str = "", **extra: Any) -> P:
        data: dict[str, Any] = {"name": name, "category": category.value, "class_label": class_label}
        data.update(extra)
        record = await self.store.create_record(self.collection, data)
        logger.debug(f"Created {self.person_kind.value} '{name}' ({category.value}) id={record['id']}")
        return self.model.from_record(record)

    async def update(self, record_id: str, fields: dict[str, Any]) -> P:
        data = {key: value.value if isinstance(value, Category) else value for key, value in fields.items()}
        return self.model.from_record(await self.store.update_record(self.collection, record_id, data))

    async def delete(self, record_id: str) -> None:
        await self.store.delete_record(self.collection, record_id)


class StudentRepository(_PersonRepository[Student]):
    collection = STUDENTS
    model = Student
    person_kind = PersonKind.STUDENT

    async def create(self, name: str, category: Category, class_label: str = "", **extra: Any) -> Student:
        extra.setdefault("active", True)
        return await super().create(name, category, class_label, **extra)

    async def list_active(self, category: Category | None = None) -> list[Student]:
        """Students still enrolled; inactive students get no attendance rows."""
        return [s for s in await self.list_all(category) if s.active]


class MentorRepository(_PersonRepository[Mentor]):
    collection = MENTORS
    model = Mentor
    person_kind = PersonKind.MENTOR


def repository_for(store: RecordStore, kind: PersonKind) -> StudentRepository | MentorRepository:
    if kind is PersonKind.STUDENT:
        return StudentRepository(store)
    return MentorRepository(store)
