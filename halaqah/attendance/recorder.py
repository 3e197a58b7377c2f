"""Batch attendance recording.

A session covers every included circle of one category and kind: one mentor
row per circle and one student row per active member, all sent to the store in
a single batch request. Everyone defaults to HADIR unless overridden.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from halaqah.core.errors import ValidationError
from halaqah.core.lookups import (
    DEFAULT_CATALOG,
    DEFAULT_STATUS,
    AttendanceStatus,
    Category,
    CircleKind,
    LookupCatalog,
    PersonKind,
    SessionTime,
)
from halaqah.core.models import AttendanceEntry, CircleWithMembers
from halaqah.data.repositories import AttendanceRepository
from halaqah.data.store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class SessionKey:
    """What one attendance submission is about"""

    date: date
    session_time: SessionTime
    category: Category
    kind: CircleKind


@dataclass
class AttendanceSessionResult:
    key: SessionKey
    circle_count: int
    mentor_entries: list[AttendanceEntry] = field(default_factory=list)
    student_entries: list[AttendanceEntry] = field(default_factory=list)

    @property
    def status_counts(self) -> dict[str, int]:
        counts = Counter(e.status.value for e in self.mentor_entries + self.student_entries)
        return {status.value: counts.get(status.value, 0) for status in AttendanceStatus}

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.key.date.isoformat(),
            "session_time": self.key.session_time.value,
            "category": self.key.category.value,
            "kind": self.key.kind.value,
            "circles": self.circle_count,
            "mentor_records": len(self.mentor_entries),
            "student_records": len(self.student_entries),
            "status_counts": self.status_counts,
        }


def validate_session(
    catalog: LookupCatalog, session_time: Any, category: Any, kind: Any
) -> tuple[SessionTime, Category, CircleKind]:
    """Parse and cross-check session time, category and kind.

    Raises:
        ValidationError: Unknown value, a session time the kind does not run,
            or a category without circles of that kind.
    """
    parsed_kind = catalog.parse_kind(kind)
    parsed_category = catalog.parse_category(category)
    parsed_time = catalog.parse_session_time(session_time)

    if parsed_time not in catalog.session_times_for(parsed_kind):
        allowed = ", ".join(t.value for t in catalog.session_times_for(parsed_kind))
        raise ValidationError(
            f"Session time {parsed_time.value} is not valid for {parsed_kind.value} circles (allowed: {allowed})",
            field="session_time",
        )
    if parsed_category not in catalog.categories_for(parsed_kind):
        raise ValidationError(
            f"Category {parsed_category.value} has no {parsed_kind.value} circles",
            field="category",
        )
    return parsed_time, parsed_category, parsed_kind


class AttendanceBatchRecorder:
    """Builds and submits one combined attendance request."""

    def __init__(self, store: RecordStore, catalog: LookupCatalog = DEFAULT_CATALOG) -> None:
        self.catalog = catalog
        self.attendance = AttendanceRepository(store)

    def build_entries(
        self,
        circles: list[CircleWithMembers],
        status_overrides: Mapping[str, Any] | None = None,
        remarks: Mapping[str, str] | None = None,
    ) -> tuple[list[AttendanceEntry], list[AttendanceEntry]]:
        """Expand circles into mentor and student entries.

        Overrides and remarks are keyed by person id; a mentor's override
        applies to every circle they lead.

        Raises:
            ValidationError: An override names someone outside the roster, or
                a circle has no mentor.
        """
        overrides = {pid: self.catalog.parse_status(s) for pid, s in (status_overrides or {}).items()}
        notes = dict(remarks or {})

        mentor_entries: list[AttendanceEntry] = []
        student_entries: list[AttendanceEntry] = []
        known: set[str] = set()
        for item in circles:
            if not item.mentor_id:
                raise ValidationError(f"Circle {item.circle.sequence_number} has no mentor", field="circles")
            known.add(item.mentor_id)
            mentor_entries.append(
                AttendanceEntry(
                    item.circle_id,
                    item.mentor_id,
                    overrides.get(item.mentor_id, DEFAULT_STATUS),
                    notes.get(item.mentor_id, ""),
                )
            )
            for student_id in item.member_ids:
                known.add(student_id)
                student_entries.append(
                    AttendanceEntry(
                        item.circle_id,
                        student_id,
                        overrides.get(student_id, DEFAULT_STATUS),
                        notes.get(student_id, ""),
                    )
                )

        unknown = sorted((set(overrides) | set(notes)) - known)
        if unknown:
            raise ValidationError(f"Not in this session's roster: {', '.join(unknown)}", field="status_overrides")
        return mentor_entries, student_entries

    async def record(
        self,
        session_date: date,
        session_time: Any,
        category: Any,
        kind: Any,
        circles: list[CircleWithMembers],
        status_overrides: Mapping[str, Any] | None = None,
        remarks: Mapping[str, str] | None = None,
    ) -> AttendanceSessionResult:
        """Record a full session in one store request.

        Not idempotent: submitting twice writes two sets of rows.

        Raises:
            ValidationError: Invalid session parameters or an empty circle set.
            RemoteStoreError: The batch request failed; nothing was recorded
                by this call as far as the caller is concerned.
        """
        parsed_time, parsed_category, parsed_kind = validate_session(self.catalog, session_time, category, kind)
        if not circles:
            raise ValidationError("No circles to record attendance for", field="circles")
        for item in circles:
            if item.circle.category is not parsed_category or item.circle.kind is not parsed_kind:
                raise ValidationError(
                    f"Circle {item.circle_id} is not a {parsed_category.value}/{parsed_kind.value} circle",
                    field="circles",
                )

        key = SessionKey(session_date, parsed_time, parsed_category, parsed_kind)
        mentor_entries, student_entries = self.build_entries(circles, status_overrides, remarks)

        scope = (session_date, parsed_time, parsed_category, parsed_kind)
        operations = [self.attendance.create_operation(PersonKind.MENTOR, e, *scope) for e in mentor_entries]
        operations += [self.attendance.create_operation(PersonKind.STUDENT, e, *scope) for e in student_entries]
        await self.attendance.submit(operations)

        result = AttendanceSessionResult(key, len(circles), mentor_entries, student_entries)
        logger.info(
            f"Recorded attendance {session_date} {parsed_time.value} {parsed_category.value}/{parsed_kind.value}: "
            f"{len(mentor_entries)} mentors, {len(student_entries)} students"
        )
        return result
