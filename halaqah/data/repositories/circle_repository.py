"""Circle repository."""

from __future__ import annotations

import logging
from typing import Any

from halaqah.core.lookups import Category, CircleKind
from halaqah.core.models import Circle

from ..store import RecordStore

logger = logging.getLogger(__name__)

CIRCLES = "circles"


class CircleRepository:
    """Data access for circles (halaqah)."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def list_all(self, category: Category | None = None, kind: CircleKind | None = None) -> list[Circle]:
        filters: dict[str, Any] = {}
        if category:
            filters["category"] = category.value
        if kind:
            filters["kind"] = kind.value
        records = await self.store.list_records(CIRCLES, filters or None, sort="category,sequence_number")
        return [Circle.from_record(r) for r in records]

    async def get(self, circle_id: str) -> Circle:
        return Circle.from_record(await self.store.get_record(CIRCLES, circle_id))

    async def find_by_natural_key(
        self, sequence_number: int, category: Category, kind: CircleKind
    ) -> Circle | None:
        """Find the circle with this (sequence number, category, kind), if any."""
        records = await self.store.list_records(
            CIRCLES,
            {"sequence_number": sequence_number, "category": category.value, "kind": kind.value},
        )
        if not records:
            return None
        if len(records) > 1:
            logger.warning(
                f"{len(records)} circles share key ({sequence_number}, {category.value}, {kind.value}); using first"
            )
        return Circle.from_record(records[0])

    async def create(
        self,
        sequence_number: int,
        category: Category,
        mentor_id: str,
        mentor_class: str = "",
        kind: CircleKind = CircleKind.REGULAR,
        name: str = "",
    ) -> Circle:
        circle = Circle("", sequence_number, category, mentor_id, mentor_class, kind, name)
        record = await self.store.create_record(CIRCLES, circle.to_record())
        logger.debug(f"Created circle {sequence_number}/{category.value}/{kind.value} id={record['id']}")
        return Circle.from_record(record)

    async def update(self, circle_id: str, fields: dict[str, Any]) -> Circle:
        return Circle.from_record(await self.store.update_record(CIRCLES, circle_id, fields))

    async def delete(self, circle_id: str) -> None:
        await self.store.delete_record(CIRCLES, circle_id)
