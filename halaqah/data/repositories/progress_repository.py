"""Monthly progress repository (memorization, revision, increment)."""

from __future__ import annotations

import logging
from typing import Any

from halaqah.core.lookups import Category, CircleKind
from halaqah.core.models import ProgressMetric, ProgressRecord

from ..store import RecordStore

logger = logging.getLogger(__name__)

PROGRESS_COLLECTIONS: dict[ProgressMetric, str] = {
    ProgressMetric.MEMORIZATION: "memorization_progress",
    ProgressMetric.REVISION: "revision_progress",
    ProgressMetric.INCREMENT: "increment_progress",
}


class ProgressRepository:
    """Data access for one progress metric's collection."""

    def __init__(self, store: RecordStore, metric: ProgressMetric) -> None:
        self.store = store
        self.metric = metric
        self.collection = PROGRESS_COLLECTIONS[metric]

    async def find(
        self,
        month: str | None = None,
        category: Category | None = None,
        kind: CircleKind | None = None,
        student_id: str | None = None,
    ) -> list[ProgressRecord]:
        filters: dict[str, Any] = {}
        if month:
            filters["month"] = month
        if category:
            filters["category"] = category.value
        if kind:
            filters["kind"] = kind.value
        if student_id:
            filters["student"] = student_id
        records = await self.store.list_records(self.collection, filters or None, sort="-month")
        return [ProgressRecord.from_record(r, self.metric) for r in records]

    async def get(self, record_id: str) -> ProgressRecord:
        return ProgressRecord.from_record(await self.store.get_record(self.collection, record_id), self.metric)

    async def create(self, record: ProgressRecord) -> ProgressRecord:
        created = await self.store.create_record(self.collection, record.to_record())
        return ProgressRecord.from_record(created, self.metric)

    async def update(self, record_id: str, fields: dict[str, Any]) -> ProgressRecord:
        updated = await self.store.update_record(self.collection, record_id, fields)
        return ProgressRecord.from_record(updated, self.metric)

    async def delete(self, record_id: str) -> None:
        await self.store.delete_record(self.collection, record_id)
