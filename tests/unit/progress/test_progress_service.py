"""Tests for monthly progress records."""

from __future__ import annotations

import pytest

from halaqah.core.errors import NotFoundError, ValidationError
from halaqah.core.lookups import Category, CircleKind
from halaqah.core.models import ProgressMetric
from halaqah.data.repositories.progress_repository import PROGRESS_COLLECTIONS
from halaqah.progress.service import ProgressService, parse_quantity


def _row(**overrides):
    row = {
        "month": "2025-03",
        "student_id": "s1",
        "circle_id": "c1",
        "category": "MUT",
        "class_label": "1A",
        "mentor_id": "m1",
        "quantity": "2.5",
    }
    row.update(overrides)
    return row


class TestParseQuantity:
    def test_juz_counts_are_decimal(self):
        assert parse_quantity(ProgressMetric.MEMORIZATION, "2.5") == 2.5
        assert parse_quantity(ProgressMetric.REVISION, 30) == 30

    def test_juz_count_is_capped(self):
        with pytest.raises(ValidationError, match="cannot exceed 30"):
            parse_quantity(ProgressMetric.MEMORIZATION, "30.5")

    def test_page_count_is_whole(self):
        assert parse_quantity(ProgressMetric.INCREMENT, "12") == 12
        with pytest.raises(ValidationError, match="whole number"):
            parse_quantity(ProgressMetric.INCREMENT, "1.5")

    @pytest.mark.parametrize("value", ["abc", None, "-1"])
    def test_rejects_bad_values(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_quantity(ProgressMetric.INCREMENT, value)
        assert exc_info.value.field == "quantity"


class TestBuildRecord:
    def test_valid_row(self):
        record = ProgressService(None).build_record(ProgressMetric.MEMORIZATION, _row(kind="pagi"))

        assert record.category is Category.MUT
        assert record.kind is CircleKind.MORNING
        assert record.quantity == 2.5

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"month": "2025-13"}, "month"),
            ({"month": "03-2025"}, "month"),
            ({"student_id": " "}, "student_id"),
            ({"circle_id": None}, "circle_id"),
            ({"category": "XYZ"}, "category"),
        ],
    )
    def test_invalid_fields(self, overrides, field):
        with pytest.raises(ValidationError) as exc_info:
            ProgressService(None).build_record(ProgressMetric.REVISION, _row(**overrides))
        assert exc_info.value.field == field


class TestCrud:
    @pytest.mark.asyncio
    async def test_each_metric_has_its_own_collection(self, memory_store):
        service = ProgressService(memory_store)

        await service.create(ProgressMetric.MEMORIZATION, _row())
        await service.create(ProgressMetric.INCREMENT, _row(quantity="4"))

        assert memory_store.count(PROGRESS_COLLECTIONS[ProgressMetric.MEMORIZATION]) == 1
        assert memory_store.count(PROGRESS_COLLECTIONS[ProgressMetric.INCREMENT]) == 1
        assert memory_store.count(PROGRESS_COLLECTIONS[ProgressMetric.REVISION]) == 0

    @pytest.mark.asyncio
    async def test_find_filters_by_month_and_category(self, memory_store):
        service = ProgressService(memory_store)
        await service.create(ProgressMetric.REVISION, _row())
        await service.create(ProgressMetric.REVISION, _row(month="2025-02"))
        await service.create(ProgressMetric.REVISION, _row(category="ALI", class_label="X-A"))

        found = await service.find(ProgressMetric.REVISION, month="2025-03", category="MUT")

        assert len(found) == 1
        assert found[0].month == "2025-03"

    @pytest.mark.asyncio
    async def test_update_changes_only_supplied_fields(self, memory_store):
        service = ProgressService(memory_store)
        created = await service.create(ProgressMetric.MEMORIZATION, _row())

        updated = await service.update(ProgressMetric.MEMORIZATION, created.id, {"quantity": "3", "notes": "ok"})

        assert updated.quantity == 3
        assert updated.notes == "ok"
        assert updated.month == "2025-03"

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, memory_store):
        with pytest.raises(ValidationError, match="Nothing to update"):
            await ProgressService(memory_store).update(ProgressMetric.MEMORIZATION, "x", {"notes": None})

    @pytest.mark.asyncio
    async def test_delete_missing_record(self, memory_store):
        with pytest.raises(NotFoundError):
            await ProgressService(memory_store).delete(ProgressMetric.MEMORIZATION, "missing")


class TestCreateBatch:
    @pytest.mark.asyncio
    async def test_valid_rows_are_created_and_bad_rows_reported(self, memory_store):
        rows = [_row(), _row(quantity="31"), _row(student_id="s2"), _row(month="")]

        report = await ProgressService(memory_store).create_batch(ProgressMetric.MEMORIZATION, rows)

        assert len(report.created) == 2
        assert [e.row_number for e in report.errors] == [2, 4]
        assert report.to_dict()["success"] is False
        assert report.to_dict()["count"] == 2
        assert memory_store.count(PROGRESS_COLLECTIONS[ProgressMetric.MEMORIZATION]) == 2

    @pytest.mark.asyncio
    async def test_clean_batch(self, memory_store):
        report = await ProgressService(memory_store).create_batch(ProgressMetric.INCREMENT, [_row(quantity="5")])

        assert report.to_dict() == {"success": True, "count": 1, "errors": []}
