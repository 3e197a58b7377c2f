"""Attendance report and dashboard aggregation.

Read-only views over the attendance, roster and progress collections. The
store only filters by equality, so date ranges and class filters are applied
here after loading.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date, timedelta
from typing import Any

from halaqah.core.lookups import AttendanceStatus, Category, CircleKind, PersonKind
from halaqah.core.models import AttendanceRecord, ProgressMetric
from halaqah.data.repositories import (
    AttendanceRepository,
    CircleRepository,
    MentorRepository,
    ProgressRepository,
    StudentRepository,
)
from halaqah.data.store import RecordStore

logger = logging.getLogger(__name__)

ROLES = ("santri", "musammi", "all")
TREND_DAYS = 7
PROGRESS_MONTHS = 6


def status_counts(records: list[AttendanceRecord]) -> dict[str, int]:
    counts = Counter(r.status for r in records)
    return {status.value: counts.get(status, 0) for status in AttendanceStatus}


def previous_months(today: date, count: int) -> list[str]:
    """The last ``count`` months as YYYY-MM, oldest first, ending with today's month."""
    months: list[str] = []
    year, month = today.year, today.month
    for _ in range(count):
        months.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


class ReportService:
    """Builds report and dashboard payloads - enables mocking in tests."""

    def __init__(self, store: RecordStore) -> None:
        self.attendance = AttendanceRepository(store)
        self.students = StudentRepository(store)
        self.mentors = MentorRepository(store)
        self.circles = CircleRepository(store)
        self.memorization = ProgressRepository(store, ProgressMetric.MEMORIZATION)

    async def attendance_report(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
        category: Category | None = None,
        class_label: str | None = None,
        role: str = "all",
        kind: CircleKind | None = None,
    ) -> dict[str, Any]:
        """Attendance rows joined with person names and classes, plus status totals.

        Args:
            date_from: Inclusive lower bound on the session date.
            date_to: Inclusive upper bound on the session date.
            category: Only rows recorded for this category.
            class_label: Only people currently in this class.
            role: 'santri', 'musammi' or 'all'.
            kind: Only rows of this circle kind.

        Returns:
            Dict with ``data`` (rows sorted by date then name) and ``stats``.
        """
        people_kinds: list[PersonKind] = []
        if role in ("santri", "all"):
            people_kinds.append(PersonKind.STUDENT)
        if role in ("musammi", "all"):
            people_kinds.append(PersonKind.MENTOR)

        circles = {c.id: c for c in await self.circles.list_all(category=category, kind=kind)}
        rows: list[dict[str, Any]] = []
        matched: list[AttendanceRecord] = []

        for person_kind in people_kinds:
            repo = self.students if person_kind is PersonKind.STUDENT else self.mentors
            people = {p.id: p for p in await repo.list_all()}
            for record in await self.attendance.find(person_kind, category=category, kind=kind):
                if record.date is None:
                    continue
                if date_from and record.date < date_from:
                    continue
                if date_to and record.date > date_to:
                    continue
                person = people.get(record.person_id)
                if person is None:
                    # orphaned row; the person was deleted
                    continue
                if class_label and person.class_label != class_label:
                    continue
                circle = circles.get(record.circle_id)
                matched.append(record)
                rows.append(
                    {
                        "id": record.id,
                        "date": record.date.isoformat(),
                        "session_time": record.session_time.value,
                        "category": record.category.value,
                        "kind": record.kind.value,
                        "circle_id": record.circle_id,
                        "sequence_number": circle.sequence_number if circle else None,
                        "role": person_kind.value,
                        "person_id": record.person_id,
                        "name": person.name,
                        "class_label": person.class_label,
                        "status": record.status.value,
                        "remark": record.remark,
                    }
                )

        rows.sort(key=lambda r: (r["date"], r["name"]))
        stats: dict[str, Any] = {"total": len(matched)}
        stats.update(status_counts(matched))
        logger.debug(f"Attendance report: {len(rows)} rows (role={role})")
        return {"data": rows, "stats": stats}

    async def dashboard_stats(self, today: date) -> dict[str, Any]:
        """Counts per category, today's and last week's student attendance, progress trend."""
        students = await self.students.list_active()
        mentors = await self.mentors.list_all()
        circles = await self.circles.list_all()

        student_attendance = await self.attendance.find(PersonKind.STUDENT)
        by_day: dict[date, list[AttendanceRecord]] = {}
        for record in student_attendance:
            if record.date is not None:
                by_day.setdefault(record.date, []).append(record)

        last_days = [today - timedelta(days=offset) for offset in range(TREND_DAYS - 1, -1, -1)]
        attendance_trend = [{"date": d.isoformat(), **status_counts(by_day.get(d, []))} for d in last_days]

        memorization = await self.memorization.find()
        progress_trend: list[dict[str, Any]] = []
        for month in previous_months(today, PROGRESS_MONTHS):
            entry: dict[str, Any] = {"month": month}
            for category in Category:
                values = [r.quantity for r in memorization if r.month == month and r.category is category]
                entry[category.value] = round(sum(values) / len(values), 1) if values else 0
            progress_trend.append(entry)

        return {
            "students_total": len(students),
            "students_by_category": {c.value: sum(1 for s in students if s.category is c) for c in Category},
            "mentors_total": len(mentors),
            "mentors_by_category": {c.value: sum(1 for m in mentors if m.category is c) for c in Category},
            "circles_by_category": {c.value: sum(1 for h in circles if h.category is c) for c in Category},
            "attendance_today": status_counts(by_day.get(today, [])),
            "attendance_last_7_days": attendance_trend,
            "memorization_average": progress_trend,
        }
