"""Tests for the in-memory record store."""

from __future__ import annotations

import pytest

from halaqah.core.errors import NotFoundError, RemoteStoreError
from halaqah.data.memory_store import MemoryStore
from halaqah.data.store import BatchOperation


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore(
        {
            "circles": [
                {"id": "c2", "sequence_number": 2, "category": "MUT", "kind": "UTAMA"},
                {"id": "c1", "sequence_number": 1, "category": "MUT", "kind": "UTAMA"},
                {"id": "c3", "sequence_number": 1, "category": "ALI", "kind": "UTAMA"},
            ],
            "circle_members": [
                {"id": "m1", "circle": "c1", "student": "s1", "end_date": ""},
                {"id": "m2", "circle": "c1", "student": "s2", "end_date": "2025-01-01"},
            ],
        }
    )


class TestQueries:
    @pytest.mark.asyncio
    async def test_filters_are_equality(self, store):
        records = await store.list_records("circles", {"category": "MUT"}, sort="sequence_number")
        assert [r["id"] for r in records] == ["c1", "c2"]

    @pytest.mark.asyncio
    async def test_none_filter_matches_unset(self, store):
        records = await store.list_records("circle_members", {"end_date": None})
        assert [r["id"] for r in records] == ["m1"]

    @pytest.mark.asyncio
    async def test_multi_key_and_descending_sort(self, store):
        records = await store.list_records("circles", sort="category,-sequence_number")
        assert [r["id"] for r in records] == ["c3", "c2", "c1"]

    @pytest.mark.asyncio
    async def test_unknown_collection_is_empty(self, store):
        assert await store.list_records("nothing") == []

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, store):
        record = await store.get_record("circles", "c1")
        record["sequence_number"] = 99
        assert (await store.get_record("circles", "c1"))["sequence_number"] == 1


class TestWrites:
    @pytest.mark.asyncio
    async def test_create_assigns_pocketbase_shaped_id(self, store):
        record = await store.create_record("students", {"name": "Ali", "id": "ignored"})
        assert len(record["id"]) == 15
        assert record["id"] != "ignored"

    @pytest.mark.asyncio
    async def test_update_and_delete_missing_record(self, store):
        with pytest.raises(NotFoundError):
            await store.update_record("circles", "nope", {"name": "x"})
        with pytest.raises(NotFoundError):
            await store.delete_record("circles", "nope")

    @pytest.mark.asyncio
    async def test_fail_on_injects_remote_error(self, store):
        store.fail_on.add(("create", "students"))
        with pytest.raises(RemoteStoreError):
            await store.create_record("students", {"name": "Ali"})
        assert store.count("students") == 0


class TestSubmitBatch:
    @pytest.mark.asyncio
    async def test_applies_in_order(self, store):
        results = await store.submit_batch(
            [
                BatchOperation.create("students", {"name": "Ali"}),
                BatchOperation.update("circle_members", "m1", {"end_date": "2025-03-10"}),
                BatchOperation.delete("circle_members", "m2"),
            ]
        )

        assert results[0]["name"] == "Ali"
        assert results[1]["end_date"] == "2025-03-10"
        assert results[2] == {}
        assert store.count("circle_members") == 1

    @pytest.mark.asyncio
    async def test_all_or_nothing(self, store):
        with pytest.raises(RemoteStoreError):
            await store.submit_batch(
                [
                    BatchOperation.create("students", {"name": "Ali"}),
                    BatchOperation.delete("circle_members", "missing"),
                ]
            )

        assert store.count("students") == 0
        assert store.count("circle_members") == 2
