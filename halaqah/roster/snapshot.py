"""Current roster view used to populate an attendance session."""

from __future__ import annotations

import logging

from halaqah.core.lookups import Category, CircleKind
from halaqah.core.models import CircleWithMembers
from halaqah.data.repositories import CircleRepository, MembershipRepository, StudentRepository
from halaqah.data.store import RecordStore

logger = logging.getLogger(__name__)


class RosterSnapshotLoader:
    """Builds circles with their active, enrolled members for one category/kind."""

    def __init__(self, store: RecordStore) -> None:
        self.circles = CircleRepository(store)
        self.memberships = MembershipRepository(store)
        self.students = StudentRepository(store)

    async def load(self, category: Category, kind: CircleKind) -> list[CircleWithMembers]:
        circles = await self.circles.list_all(category=category, kind=kind)
        if not circles:
            return []

        active_students = {s.id for s in await self.students.list_active()}
        members: dict[str, list[str]] = {c.id: [] for c in circles}
        for membership in await self.memberships.list_active(kind):
            if membership.circle_id in members and membership.student_id in active_students:
                if membership.student_id not in members[membership.circle_id]:
                    members[membership.circle_id].append(membership.student_id)

        snapshot = [CircleWithMembers(circle, members[circle.id]) for circle in circles]
        logger.debug(
            f"Roster snapshot {category.value}/{kind.value}: {len(snapshot)} circles, "
            f"{sum(len(c.member_ids) for c in snapshot)} members"
        )
        return snapshot
