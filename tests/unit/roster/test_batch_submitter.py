"""Tests for combined (layered batch) roster submission."""

from __future__ import annotations

import pytest

from halaqah.core.lookups import CircleKind
from halaqah.data.memory_store import MemoryStore
from halaqah.data.repositories.circle_repository import CIRCLES
from halaqah.data.repositories.membership_repository import CIRCLE_MEMBERS
from halaqah.data.repositories.people_repository import MENTORS, STUDENTS
from halaqah.roster.batch_submitter import RosterBatchSubmitter
from halaqah.roster.ingestor import RosterIngestor


def _state(store: MemoryStore) -> dict[str, object]:
    """Store contents keyed by natural keys so two stores can be compared."""
    people = {
        collection: {r["id"]: (r["name"], r["category"]) for r in store.collections.get(collection, {}).values()}
        for collection in (STUDENTS, MENTORS)
    }
    circles = {
        r["id"]: (r["sequence_number"], r["category"], r["kind"]) for r in store.collections.get(CIRCLES, {}).values()
    }
    return {
        STUDENTS: sorted(people[STUDENTS].values()),
        MENTORS: sorted(people[MENTORS].values()),
        CIRCLES: sorted(
            (circles[r["id"]], people[MENTORS][r["mentor"]]) for r in store.collections.get(CIRCLES, {}).values()
        ),
        CIRCLE_MEMBERS: sorted(
            (people[STUDENTS][r["student"]], circles[r["circle"]], r["end_date"] == "")
            for r in store.collections.get(CIRCLE_MEMBERS, {}).values()
        ),
    }


class TestSubmit:
    @pytest.mark.asyncio
    async def test_one_request_per_layer(self, memory_store, catalog, clock, make_row):
        rows = [make_row("Ali"), make_row("Fatimah")]

        report = await RosterBatchSubmitter(memory_store, catalog, clock).submit(rows, CircleKind.MORNING)

        batches = [c for c in memory_store.calls if c[0] == "batch"]
        # mentors, circles, students, memberships
        assert batches == [("batch", "1"), ("batch", "1"), ("batch", "2"), ("batch", "2")]
        assert report.success
        assert (report.mentors_created, report.circles_created, report.students_created) == (1, 1, 2)
        assert report.memberships_created == 2
        assert report.rows_ingested == 2
        circle = next(iter(memory_store.collections[CIRCLES].values()))
        assert circle["kind"] == "PAGI"

    @pytest.mark.asyncio
    async def test_rerun_submits_nothing(self, memory_store, catalog, clock, make_row):
        rows = [make_row("Ali"), make_row("Fatimah")]
        submitter = RosterBatchSubmitter(memory_store, catalog, clock)
        await submitter.submit(rows)
        memory_store.calls.clear()

        report = await submitter.submit(rows)

        assert [c for c in memory_store.calls if c[0] == "batch"] == []
        assert report.entities_created == 0
        assert report.memberships_created == 0

    @pytest.mark.asyncio
    async def test_failed_layer_is_reported_against_all_rows(self, memory_store, catalog, clock, make_row):
        memory_store.fail_on.add(("create", STUDENTS))
        rows = [make_row("Ali"), make_row("Fatimah", sequence_number="4"), make_row("", row_number=9)]

        report = await RosterBatchSubmitter(memory_store, catalog, clock).submit(rows)

        assert report.group_failures[0].label == "students layer"
        assert report.group_failures[0].row_numbers == [1, 2]
        assert report.rows_ingested == 0
        # earlier layers stay written, the failed one is rolled back entirely
        assert memory_store.count(MENTORS) == 1
        assert memory_store.count(CIRCLES) == 2
        assert memory_store.count(STUDENTS) == 0
        assert memory_store.count(CIRCLE_MEMBERS) == 0

    @pytest.mark.asyncio
    async def test_no_valid_rows_sends_nothing(self, memory_store, catalog, clock, make_row):
        report = await RosterBatchSubmitter(memory_store, catalog, clock).submit([make_row("", row_number=2)])

        assert memory_store.calls == []
        assert report.skipped[0].row_number == 2


class TestParityWithIngestor:
    @pytest.mark.asyncio
    async def test_same_end_state(self, catalog, clock, make_row):
        rows = [
            make_row("Ali"),
            make_row("Fatimah"),
            make_row("Ali"),
            make_row(
                "Umar", student_class="X-A", student_category="ALI", sequence_number="1", mentor_name="Ust. Yusuf"
            ),
            make_row("Zaid", sequence_number="5", mentor_name="Ust. Yusuf"),
            make_row("Bad", sequence_number="zero"),
        ]
        per_entity, combined = MemoryStore(), MemoryStore()

        report_a = await RosterIngestor(per_entity, catalog, clock).ingest(rows)
        report_b = await RosterBatchSubmitter(combined, catalog, clock).submit(rows)

        assert _state(per_entity) == _state(combined)
        assert report_a.entities_created == report_b.entities_created
        assert report_a.memberships_created == report_b.memberships_created
        assert [s.row_number for s in report_a.skipped] == [s.row_number for s in report_b.skipped]

    @pytest.mark.asyncio
    async def test_same_end_state_for_transfers(self, catalog, clock, make_row):
        first = [make_row("Ali", sequence_number="1"), make_row("Fatimah", sequence_number="1")]
        second = [make_row("Ali", sequence_number="2"), make_row("Fatimah", sequence_number="1")]
        per_entity, combined = MemoryStore(), MemoryStore()

        await RosterIngestor(per_entity, catalog, clock).ingest(first)
        report_a = await RosterIngestor(per_entity, catalog, clock).ingest(second)
        await RosterBatchSubmitter(combined, catalog, clock).submit(first)
        report_b = await RosterBatchSubmitter(combined, catalog, clock).submit(second)

        assert _state(per_entity) == _state(combined)
        assert report_a.memberships_closed == report_b.memberships_closed == 1

    @pytest.mark.asyncio
    async def test_student_in_two_groups_ends_in_later_circle(self, catalog, clock, make_row):
        rows = [make_row("Ali", sequence_number="1"), make_row("Budi"), make_row("Ali", sequence_number="2")]
        per_entity, combined = MemoryStore(), MemoryStore()

        report_a = await RosterIngestor(per_entity, catalog, clock).ingest(rows)
        report_b = await RosterBatchSubmitter(combined, catalog, clock).submit(rows)

        assert _state(per_entity) == _state(combined)
        assert (report_b.memberships_created, report_b.memberships_closed) == (3, 1)
        assert (report_a.memberships_created, report_a.memberships_closed) == (3, 1)
        ali = next(sid for sid, s in combined.collections[STUDENTS].items() if s["name"] == "Ali")
        members = {
            (combined.collections[CIRCLES][r["circle"]]["sequence_number"], r["start_date"], r["end_date"])
            for r in combined.collections[CIRCLE_MEMBERS].values()
            if r["student"] == ali
        }
        assert members == {(1, "2025-03-10", "2025-03-10"), (2, "2025-03-10", "")}
