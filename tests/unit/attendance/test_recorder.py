"""Tests for batch attendance recording and the roster snapshot it is built from."""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock

import pytest

from halaqah.attendance.recorder import AttendanceBatchRecorder, validate_session
from halaqah.core.errors import RemoteStoreError, ValidationError
from halaqah.core.lookups import DEFAULT_CATALOG, AttendanceStatus, Category, CircleKind, SessionTime
from halaqah.core.models import Circle, CircleWithMembers
from halaqah.data.repositories.attendance_repository import MENTOR_ATTENDANCE, STUDENT_ATTENDANCE
from halaqah.data.repositories.people_repository import STUDENTS
from halaqah.roster.ingestor import RosterIngestor
from halaqah.roster.snapshot import RosterSnapshotLoader

SESSION_DATE = date(2025, 3, 10)


def _circle(circle_id: str = "c1", mentor_id: str = "m1", category: Category = Category.MUT) -> Circle:
    return Circle(circle_id, 3, category, mentor_id, "2A", CircleKind.REGULAR)


class TestValidateSession:
    def test_morning_only_accepts_dhuha(self):
        assert validate_session(DEFAULT_CATALOG, "DHUHA", "MUT", "PAGI")[0] is SessionTime.DHUHA
        with pytest.raises(ValidationError, match="not valid for PAGI"):
            validate_session(DEFAULT_CATALOG, "SUBUH", "MUT", "PAGI")

    def test_regular_rejects_dhuha(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_session(DEFAULT_CATALOG, "DHUHA", "MUT", "UTAMA")
        assert exc_info.value.field == "session_time"

    def test_morning_rejects_other_categories(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_session(DEFAULT_CATALOG, "DHUHA", "JAM", "PAGI")
        assert exc_info.value.field == "category"

    def test_unknown_category(self):
        with pytest.raises(ValidationError):
            validate_session(DEFAULT_CATALOG, "SUBUH", "XYZ", "UTAMA")


class TestRecord:
    @pytest.mark.asyncio
    async def test_defaults_everyone_to_present(self, memory_store):
        circles = [CircleWithMembers(_circle(), ["s1", "s2"])]

        result = await AttendanceBatchRecorder(memory_store).record(SESSION_DATE, "SUBUH", "MUT", "UTAMA", circles)

        assert memory_store.count(MENTOR_ATTENDANCE) == 1
        assert memory_store.count(STUDENT_ATTENDANCE) == 2
        rows = list(memory_store.collections[STUDENT_ATTENDANCE].values())
        assert {r["status"] for r in rows} == {"HADIR"}
        assert {r["student"] for r in rows} == {"s1", "s2"}
        assert rows[0]["date"] == "2025-03-10"
        assert rows[0]["session_time"] == "SUBUH"
        assert result.status_counts["HADIR"] == 3

    @pytest.mark.asyncio
    async def test_single_store_request(self):
        store = AsyncMock()
        circles = [CircleWithMembers(_circle("c1", "m1"), ["s1"]), CircleWithMembers(_circle("c2", "m2"), ["s2"])]

        await AttendanceBatchRecorder(store).record(SESSION_DATE, "ASHAR", "MUT", "UTAMA", circles)

        store.submit_batch.assert_awaited_once()
        operations = store.submit_batch.call_args[0][0]
        # mentors first, then students
        assert [op.collection for op in operations] == [MENTOR_ATTENDANCE] * 2 + [STUDENT_ATTENDANCE] * 2
        store.create_record.assert_not_called()

    @pytest.mark.asyncio
    async def test_overrides_and_remarks(self, memory_store):
        circles = [CircleWithMembers(_circle(), ["s1", "s2"])]

        result = await AttendanceBatchRecorder(memory_store).record(
            SESSION_DATE,
            "ISYA",
            "MUT",
            "UTAMA",
            circles,
            status_overrides={"s2": "sakit", "m1": AttendanceStatus.TERLAMBAT},
            remarks={"s2": "demam"},
        )

        by_student = {r["student"]: r for r in memory_store.collections[STUDENT_ATTENDANCE].values()}
        assert by_student["s2"]["status"] == "SAKIT"
        assert by_student["s2"]["remark"] == "demam"
        assert by_student["s1"]["status"] == "HADIR"
        assert result.mentor_entries[0].status is AttendanceStatus.TERLAMBAT

    @pytest.mark.asyncio
    async def test_override_for_unknown_person_rejected(self, memory_store):
        circles = [CircleWithMembers(_circle(), ["s1"])]

        with pytest.raises(ValidationError, match="s9"):
            await AttendanceBatchRecorder(memory_store).record(
                SESSION_DATE, "SUBUH", "MUT", "UTAMA", circles, status_overrides={"s9": "ALPA"}
            )
        assert memory_store.calls == []

    @pytest.mark.asyncio
    async def test_empty_circle_set_rejected(self, memory_store):
        with pytest.raises(ValidationError, match="No circles"):
            await AttendanceBatchRecorder(memory_store).record(SESSION_DATE, "SUBUH", "MUT", "UTAMA", [])

    @pytest.mark.asyncio
    async def test_circle_of_other_category_rejected(self, memory_store):
        circles = [CircleWithMembers(_circle(category=Category.ALI), ["s1"])]

        with pytest.raises(ValidationError):
            await AttendanceBatchRecorder(memory_store).record(SESSION_DATE, "SUBUH", "MUT", "UTAMA", circles)

    @pytest.mark.asyncio
    async def test_resubmission_appends_duplicates(self, memory_store):
        circles = [CircleWithMembers(_circle(), ["s1"])]
        recorder = AttendanceBatchRecorder(memory_store)

        await recorder.record(SESSION_DATE, "SUBUH", "MUT", "UTAMA", circles)
        await recorder.record(SESSION_DATE, "SUBUH", "MUT", "UTAMA", circles)

        assert memory_store.count(STUDENT_ATTENDANCE) == 2

    @pytest.mark.asyncio
    async def test_batch_failure_is_one_error(self, memory_store):
        memory_store.fail_on.add(("create", STUDENT_ATTENDANCE))
        circles = [CircleWithMembers(_circle(), ["s1", "s2"])]

        with pytest.raises(RemoteStoreError):
            await AttendanceBatchRecorder(memory_store).record(SESSION_DATE, "SUBUH", "MUT", "UTAMA", circles)

        assert memory_store.count(MENTOR_ATTENDANCE) == 0


class TestSnapshotToRecords:
    @pytest.mark.asyncio
    async def test_counts_follow_active_members(self, memory_store, catalog, clock, make_row):
        await RosterIngestor(memory_store, catalog, clock).ingest(
            [make_row("Ali"), make_row("Fatimah"), make_row("Zaid", sequence_number="4"), make_row("Umar")]
        )
        umar = next(r for r in memory_store.collections[STUDENTS].values() if r["name"] == "Umar")
        umar["active"] = False

        snapshot = await RosterSnapshotLoader(memory_store).load(Category.MUT, CircleKind.REGULAR)
        result = await AttendanceBatchRecorder(memory_store, catalog).record(
            SESSION_DATE, "SUBUH", Category.MUT, CircleKind.REGULAR, snapshot
        )

        assert len(snapshot) == 2
        assert sum(len(c.member_ids) for c in snapshot) == 3
        assert len(result.mentor_entries) == 2
        assert len(result.student_entries) == 3

    @pytest.mark.asyncio
    async def test_snapshot_of_empty_category(self, memory_store):
        assert await RosterSnapshotLoader(memory_store).load(Category.JAM, CircleKind.REGULAR) == []
