"""Edit an existing circle's roster in place.

Unlike ingestion, editing may reassign the circle's mentor and number and it
removes students that are no longer listed (hard delete of the membership).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from halaqah.clock import Clock, local_today
from halaqah.core.errors import ValidationError
from halaqah.core.lookups import DEFAULT_CATALOG, LookupCatalog, PersonKind
from halaqah.core.models import Circle, RosterRow
from halaqah.data.repositories import CircleRepository, MembershipRepository, MentorRepository
from halaqah.data.store import RecordStore

from .reconciler import MembershipReconciler, ReconcileResult
from .resolver import EntityResolver

logger = logging.getLogger(__name__)


@dataclass
class EditResult:
    circle: Circle
    mentor_created: bool = False
    mentor_class_updated: bool = False
    students_created: int = 0
    reconcile: ReconcileResult | None = None
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "circle_id": self.circle.id,
            "sequence_number": self.circle.sequence_number,
            "mentor_id": self.circle.mentor_id,
            "mentor_created": self.mentor_created,
            "mentor_class_updated": self.mentor_class_updated,
            "students_created": self.students_created,
            "reconcile": self.reconcile.to_dict() if self.reconcile else None,
            "warnings": self.warnings,
        }


def _validate_edit_rows(rows: list[RosterRow], catalog: LookupCatalog) -> None:
    """Every row carries mentor data; student rows also need category and class.

    Rows without a student name only carry mentor data and are allowed. Every
    category is parsed here so that a bad row is rejected before anything is
    written.
    """
    if not rows:
        raise ValidationError("At least one row is required")

    for index, row in enumerate(rows):
        row_number = row.row_number or index + 1
        if not (row.sequence_number.strip() and row.mentor_name.strip() and row.mentor_category.strip()):
            raise ValidationError("Mentor data must be complete", row_number=row_number)
        if row.student_name.strip() and not (row.student_category.strip() and row.student_class.strip()):
            raise ValidationError(
                f"Student '{row.student_name.strip()}' needs a category and class", row_number=row_number
            )

        categories = [("mentor_category", row.mentor_category)]
        if row.student_name.strip():
            categories.append(("student_category", row.student_category))
        for field_name, value in categories:
            if not catalog.has_category(value):
                raise ValidationError(f"Unknown category '{value.strip()}'", row_number=row_number, field=field_name)


class RosterEditor:
    def __init__(
        self,
        store: RecordStore,
        catalog: LookupCatalog = DEFAULT_CATALOG,
        clock: Clock = local_today,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.circles = CircleRepository(store)
        self.mentors = MentorRepository(store)
        self.memberships = MembershipRepository(store)
        self.reconciler = MembershipReconciler(store, clock)

    async def edit(self, circle_id: str, rows: list[RosterRow]) -> EditResult:
        """Replace a circle's mentor data and member list.

        Args:
            circle_id: Circle being edited (its category and kind never change).
            rows: Edited rows; the first row's mentor fields apply to the circle.

        Returns:
            EditResult with the updated circle and the reconcile outcome.

        Raises:
            ValidationError: Incomplete rows, an unknown category, a bad circle
                number, or a number already used by another circle of the same category and kind.
            NotFoundError: The circle does not exist.
            ReconcileError: Adding a member failed.
        """
        _validate_edit_rows(rows, self.catalog)
        circle = await self.circles.get(circle_id)
        first = rows[0]

        try:
            sequence_number = int(first.sequence_number.strip())
        except ValueError:
            sequence_number = 0
        if sequence_number <= 0:
            raise ValidationError(
                f"Circle number '{first.sequence_number}' must be a positive integer", field="sequence_number"
            )

        if sequence_number != circle.sequence_number:
            clash = await self.circles.find_by_natural_key(sequence_number, circle.category, circle.kind)
            if clash is not None and clash.id != circle.id:
                raise ValidationError(
                    f"Circle {sequence_number}/{circle.category.value}/{circle.kind.value} already exists",
                    field="sequence_number",
                )

        resolver = EntityResolver(self.store, self.catalog)
        await resolver.load()
        result = EditResult(circle=circle)

        mentor_class = first.mentor_class.strip()
        mentor = await resolver.resolve(PersonKind.MENTOR, first.mentor_name, first.mentor_category, mentor_class)
        result.mentor_created = mentor.created
        if not mentor.created:
            existing = resolver.find(PersonKind.MENTOR, *resolver.validate(first.mentor_name, first.mentor_category))
            if existing is not None and mentor_class and existing.class_label != mentor_class:
                await self.mentors.update(mentor.id, {"class_label": mentor_class})
                existing.class_label = mentor_class
                result.mentor_class_updated = True
                logger.info(f"Updated class of mentor {mentor.id} to {mentor_class}")

        result.circle = await self.circles.update(
            circle.id,
            {"sequence_number": sequence_number, "mentor": mentor.id, "mentor_class": mentor_class},
        )

        desired: list[str] = []
        for row in rows:
            if not row.student_name.strip():
                continue
            student = await resolver.resolve(
                PersonKind.STUDENT, row.student_name, row.student_category, row.student_class
            )
            if student.created:
                result.students_created += 1
            desired.append(student.id)

        current = [m.student_id for m in await self.memberships.list_active_for_circle(circle.id)]
        result.reconcile = await self.reconciler.reconcile(result.circle, current, desired, allow_removal=True)
        if result.reconcile.failed_removals:
            result.warnings.append(f"{len(result.reconcile.failed_removals)} members could not be removed")

        logger.info(f"Edited circle {circle.id}: {result.reconcile.to_dict()}")
        return result
