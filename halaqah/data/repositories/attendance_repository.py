"""Attendance repository for student and mentor attendance rows."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from halaqah.core.lookups import Category, CircleKind, PersonKind, SessionTime
from halaqah.core.models import AttendanceEntry, AttendanceRecord, format_date

from ..store import BatchOperation, RecordStore

logger = logging.getLogger(__name__)

STUDENT_ATTENDANCE = "student_attendance"
MENTOR_ATTENDANCE = "mentor_attendance"

COLLECTIONS: dict[PersonKind, str] = {
    PersonKind.STUDENT: STUDENT_ATTENDANCE,
    PersonKind.MENTOR: MENTOR_ATTENDANCE,
}
PERSON_FIELDS: dict[PersonKind, str] = {
    PersonKind.STUDENT: "student",
    PersonKind.MENTOR: "mentor",
}


class AttendanceRepository:
    """Append-only attendance storage. Resubmission creates new rows."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    @staticmethod
    def create_operation(
        person_kind: PersonKind,
        entry: AttendanceEntry,
        session_date: date,
        session_time: SessionTime,
        category: Category,
        kind: CircleKind,
    ) -> BatchOperation:
        """Build the batch create for one person's attendance row."""
        data = {
            "date": format_date(session_date),
            "session_time": session_time.value,
            "category": category.value,
            "kind": kind.value,
            "circle": entry.circle_id,
            PERSON_FIELDS[person_kind]: entry.person_id,
            "status": entry.status.value,
            "remark": entry.remark,
        }
        return BatchOperation.create(COLLECTIONS[person_kind], data)

    async def submit(self, operations: list[BatchOperation]) -> list[dict[str, Any]]:
        """Write every attendance row in one batch request."""
        return await self.store.submit_batch(operations)

    async def find(
        self,
        person_kind: PersonKind,
        session_date: date | None = None,
        session_time: SessionTime | None = None,
        category: Category | None = None,
        kind: CircleKind | None = None,
    ) -> list[AttendanceRecord]:
        filters: dict[str, Any] = {}
        if session_date:
            filters["date"] = format_date(session_date)
        if session_time:
            filters["session_time"] = session_time.value
        if category:
            filters["category"] = category.value
        if kind:
            filters["kind"] = kind.value
        records = await self.store.list_records(COLLECTIONS[person_kind], filters or None, sort="-date")
        return [AttendanceRecord.from_record(r, person_kind) for r in records]

    async def list_between(
        self,
        person_kind: PersonKind,
        start: date,
        end: date,
        category: Category | None = None,
        kind: CircleKind | None = None,
    ) -> list[AttendanceRecord]:
        """Rows with ``start <= date <= end``; the store only filters by equality."""
        rows = await self.find(person_kind, category=category, kind=kind)
        return [r for r in rows if r.date is not None and start <= r.date <= end]

