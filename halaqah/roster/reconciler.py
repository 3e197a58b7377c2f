"""Membership reconciliation.

Converges a circle's active member set to a desired set without relying on
transactions. Additions run first; a failed addition stops everything so no
removal happens against a half-built roster. Removal failures are collected
and the remaining removals still run.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from halaqah.clock import Clock, local_today
from halaqah.core.errors import HalaqahError, ReconcileError
from halaqah.core.models import Circle, Membership
from halaqah.data.repositories import MembershipRepository
from halaqah.data.store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """What a reconcile pass changed, including partial failures"""

    circle_id: str
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    closed: list[str] = field(default_factory=list)
    failed_removals: dict[str, str] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.failed_removals

    def to_dict(self) -> dict[str, object]:
        return {
            "circle_id": self.circle_id,
            "added": self.added,
            "removed": self.removed,
            "closed": self.closed,
            "failed_removals": self.failed_removals,
        }


def _ordered_unique(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(i for i in ids if i))


class MembershipReconciler:
    def __init__(self, store: RecordStore, clock: Clock = local_today) -> None:
        self.memberships = MembershipRepository(store)
        self.clock = clock

    async def add_member(self, circle: Circle, student_id: str, result: ReconcileResult | None = None) -> Membership:
        """Create an active membership starting today.

        Any other active membership of the student with the circle's kind is
        soft-closed first, keeping one active membership per (student, kind).
        """
        today = self.clock()
        for existing in await self.memberships.list_active_for_student(student_id, circle.kind):
            if existing.circle_id == circle.id:
                continue
            await self.memberships.close(existing.id, today)
            logger.info(f"Closed membership {existing.id} of student {student_id} in circle {existing.circle_id}")
            if result is not None:
                result.closed.append(existing.id)

        membership = await self.memberships.create(circle.id, student_id, circle.kind, today)
        if result is not None:
            result.added.append(student_id)
        return membership

    async def reconcile(
        self,
        circle: Circle,
        current: Iterable[str],
        desired: Iterable[str],
        allow_removal: bool = True,
    ) -> ReconcileResult:
        """Make the circle's active members equal ``desired``.

        Args:
            circle: Target circle; new memberships inherit its kind.
            current: Student ids currently active in the circle.
            desired: Student ids that should be active afterwards.
            allow_removal: False for ingestion, which only ever adds.

        Returns:
            ReconcileResult; check ``failed_removals`` for partial removal.

        Raises:
            ReconcileError: An addition failed. Carries the partial result;
                no removal was attempted.
        """
        current_ids = _ordered_unique(current)
        desired_ids = _ordered_unique(desired)
        current_set, desired_set = set(current_ids), set(desired_ids)
        to_add = [s for s in desired_ids if s not in current_set]
        to_remove = [s for s in current_ids if s not in desired_set] if allow_removal else []

        result = ReconcileResult(circle_id=circle.id)

        for student_id in to_add:
            try:
                await self.add_member(circle, student_id, result)
            except HalaqahError as e:
                logger.error(f"Adding student {student_id} to circle {circle.id} failed: {e}")
                raise ReconcileError(f"Failed to add student '{student_id}': {e}", result) from e

        if to_remove:
            active: dict[str, list[str]] = {}
            for membership in await self.memberships.list_active_for_circle(circle.id):
                active.setdefault(membership.student_id, []).append(membership.id)

            for student_id in to_remove:
                try:
                    for membership_id in active.get(student_id, []):
                        await self.memberships.delete(membership_id)
                    result.removed.append(student_id)
                except HalaqahError as e:
                    logger.error(f"Removing student {student_id} from circle {circle.id} failed: {e}")
                    result.failed_removals[student_id] = str(e)

        logger.info(
            f"Reconciled circle {circle.id}: +{len(result.added)} -{len(result.removed)} "
            f"closed={len(result.closed)} failed_removals={len(result.failed_removals)}"
        )
        return result
