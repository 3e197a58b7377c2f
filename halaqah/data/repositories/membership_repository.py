"""Circle membership repository.

A membership is active while its ``end_date`` is empty. Transfers soft-close
the old row; the edit flow hard-deletes rows it removes.
"""

from __future__ import annotations

import logging
from datetime import date

from halaqah.core.errors import NotFoundError
from halaqah.core.lookups import CircleKind
from halaqah.core.models import Membership, format_date

from ..store import BatchOperation, RecordStore

logger = logging.getLogger(__name__)

CIRCLE_MEMBERS = "circle_members"


class MembershipRepository:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def list_active_for_circle(self, circle_id: str) -> list[Membership]:
        records = await self.store.list_records(CIRCLE_MEMBERS, {"circle": circle_id, "end_date": None})
        return [Membership.from_record(r) for r in records]

    async def list_active_for_student(self, student_id: str, kind: CircleKind) -> list[Membership]:
        records = await self.store.list_records(
            CIRCLE_MEMBERS, {"student": student_id, "kind": kind.value, "end_date": None}
        )
        return [Membership.from_record(r) for r in records]

    async def list_active(self, kind: CircleKind | None = None) -> list[Membership]:
        """All active memberships, optionally of one kind."""
        filters: dict[str, object] = {"end_date": None}
        if kind:
            filters["kind"] = kind.value
        records = await self.store.list_records(CIRCLE_MEMBERS, filters)
        return [Membership.from_record(r) for r in records]

    async def create(self, circle_id: str, student_id: str, kind: CircleKind, start_date: date) -> Membership:
        membership = Membership("", circle_id, student_id, kind, start_date)
        record = await self.store.create_record(CIRCLE_MEMBERS, membership.to_record())
        return Membership.from_record(record)

    async def close(self, membership_id: str, end_date: date) -> Membership:
        """Soft-close a membership by stamping its end date."""
        record = await self.store.update_record(CIRCLE_MEMBERS, membership_id, {"end_date": format_date(end_date)})
        return Membership.from_record(record)

    async def delete(self, membership_id: str) -> None:
        await self.store.delete_record(CIRCLE_MEMBERS, membership_id)

    async def delete_for_student(self, circle_id: str, student_id: str) -> int:
        """Hard-delete the student's active membership(s) in a circle.

        Returns:
            Number of rows deleted.

        Raises:
            NotFoundError: The student has no active membership in the circle.
        """
        memberships = [m for m in await self.list_active_for_circle(circle_id) if m.student_id == student_id]
        if not memberships:
            raise NotFoundError(
                CIRCLE_MEMBERS, student_id, f"Student '{student_id}' is not an active member of circle '{circle_id}'"
            )
        for membership in memberships:
            await self.delete(membership.id)
        return len(memberships)

    @staticmethod
    def create_operation(
        circle_id: str, student_id: str, kind: CircleKind, start_date: date, end_date: date | None = None
    ) -> BatchOperation:
        return BatchOperation.create(
            CIRCLE_MEMBERS, Membership("", circle_id, student_id, kind, start_date, end_date).to_record()
        )

    @staticmethod
    def close_operation(membership_id: str, end_date: date) -> BatchOperation:
        return BatchOperation.update(CIRCLE_MEMBERS, membership_id, {"end_date": format_date(end_date)})
