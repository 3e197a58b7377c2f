"""Combined roster submission through the store's batch endpoint.

Produces the same end state as ``RosterIngestor`` but plans every write up
front and sends each dependency layer as one request: mentors, then circles
(which need mentor ids), then students, then membership closes and creates.
"""

from __future__ import annotations

import logging
from typing import Any

from halaqah.clock import Clock, local_today
from halaqah.core.errors import HalaqahError
from halaqah.core.lookups import DEFAULT_CATALOG, Category, CircleKind, LookupCatalog, PersonKind
from halaqah.core.models import Circle, Membership, Mentor, RosterRow, Student
from halaqah.data.repositories import CircleRepository, MembershipRepository
from halaqah.data.repositories.circle_repository import CIRCLES
from halaqah.data.repositories.people_repository import MENTORS, STUDENTS
from halaqah.data.store import BatchOperation, RecordStore

from .ingestor import RowGroup, ValidRow, group_rows, mentor_mismatch_warnings, reused_circle_warning, validate_rows
from .report import GroupFailure, IngestReport
from .resolver import EntityResolver

logger = logging.getLogger(__name__)

PersonKey = tuple[str, Category]


class _LayerFailed(Exception):
    def __init__(self, layer: str, error: HalaqahError) -> None:
        self.layer = layer
        self.error = error
        super().__init__(f"{layer} batch failed: {error}")


class RosterBatchSubmitter:
    """One-call-per-layer ingestion for large rosters."""

    def __init__(
        self,
        store: RecordStore,
        catalog: LookupCatalog = DEFAULT_CATALOG,
        clock: Clock = local_today,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.clock = clock
        self.circles = CircleRepository(store)
        self.memberships = MembershipRepository(store)

    async def submit(self, rows: list[RosterRow], kind: CircleKind = CircleKind.REGULAR) -> IngestReport:
        """Validate, plan and submit a roster batch.

        A failed layer stops the submission; earlier layers stay written and
        the failure is reported against every valid row.
        """
        report = IngestReport(rows_received=len(rows))
        valid, skipped = validate_rows(rows, self.catalog, kind)
        report.skipped.extend(skipped)
        groups = group_rows(valid)
        if not groups:
            logger.info(f"Roster batch ({kind.value}): {report.summary()}")
            return report

        try:
            await self._submit_groups(groups, kind, report)
            report.rows_ingested = len(valid)
        except _LayerFailed as e:
            logger.error(str(e))
            report.group_failures.append(GroupFailure(f"{e.layer} layer", [r.row_number for r in valid], str(e.error)))

        logger.info(f"Roster batch ({kind.value}): {report.summary()}")
        return report

    async def _submit_layer(self, layer: str, operations: list[BatchOperation]) -> list[dict[str, Any]]:
        if not operations:
            return []
        try:
            results = await self.store.submit_batch(operations)
        except HalaqahError as e:
            raise _LayerFailed(layer, e) from e
        logger.debug(f"Submitted {layer} layer: {len(operations)} operations")
        return results

    async def _resolve_people(
        self,
        layer: str,
        kind: PersonKind,
        wanted: dict[PersonKey, str],
        resolver: EntityResolver,
    ) -> tuple[dict[PersonKey, str], int]:
        """Map each (name, category) to an id, batch-creating the missing ones."""
        ids: dict[PersonKey, str] = {}
        missing: list[PersonKey] = []
        for key in wanted:
            existing = resolver.find(kind, *key)
            if existing is not None:
                ids[key] = existing.id
            else:
                missing.append(key)

        collection = STUDENTS if kind is PersonKind.STUDENT else MENTORS
        operations = [
            BatchOperation.create(
                collection, {"name": name, "category": category.value, "class_label": wanted[(name, category)]}
            )
            for name, category in missing
        ]
        if kind is PersonKind.STUDENT:
            for op in operations:
                op.data["active"] = True

        results = await self._submit_layer(layer, operations)
        model = Student if kind is PersonKind.STUDENT else Mentor
        for key, record in zip(missing, results, strict=True):
            entity = model.from_record(record)
            resolver.remember(kind, entity)
            ids[key] = entity.id
        return ids, len(missing)

    async def _submit_groups(self, groups: list[RowGroup], kind: CircleKind, report: IngestReport) -> None:
        resolver = EntityResolver(self.store, self.catalog)
        await resolver.load()

        # Layer 1: mentors (first row of each group decides)
        wanted_mentors: dict[PersonKey, str] = {}
        for group in groups:
            report.warnings.extend(mentor_mismatch_warnings(group))
            first = group.rows[0]
            wanted_mentors.setdefault((first.mentor_name, first.mentor_category), first.mentor_class)
        mentor_ids, report.mentors_created = await self._resolve_people(
            "mentors", PersonKind.MENTOR, wanted_mentors, resolver
        )

        # Layer 2: circles
        existing_circles = {c.natural_key: c for c in await self.circles.list_all(kind=kind)}
        circle_by_group: dict[tuple[int, Category], Circle] = {}
        new_groups: list[RowGroup] = []
        for group in groups:
            first = group.rows[0]
            mentor_id = mentor_ids[(first.mentor_name, first.mentor_category)]
            circle = existing_circles.get((group.sequence_number, group.category, kind))
            if circle is None:
                new_groups.append(group)
                continue
            circle_by_group[(group.sequence_number, group.category)] = circle
            warning = reused_circle_warning(group, circle, mentor_id)
            if warning:
                report.warnings.append(warning)

        circle_ops = []
        for group in new_groups:
            first = group.rows[0]
            mentor_id = mentor_ids[(first.mentor_name, first.mentor_category)]
            circle = Circle("", group.sequence_number, group.category, mentor_id, first.mentor_class, kind)
            circle_ops.append(BatchOperation.create(CIRCLES, circle.to_record()))
        for group, record in zip(new_groups, await self._submit_layer("circles", circle_ops), strict=True):
            circle_by_group[(group.sequence_number, group.category)] = Circle.from_record(record)
        report.circles_created = len(new_groups)

        # Layer 3: students
        wanted_students: dict[PersonKey, str] = {}
        for group in groups:
            for row in group.rows:
                wanted_students.setdefault((row.student_name, row.student_category), row.student_class)
        student_ids, report.students_created = await self._resolve_people(
            "students", PersonKind.STUDENT, wanted_students, resolver
        )

        # Layer 4: membership closes then creates, in one request
        operations = await self._plan_memberships(groups, circle_by_group, student_ids, kind)
        await self._submit_layer("memberships", operations)
        report.memberships_closed = sum(1 for op in operations if op.data.get("end_date"))
        report.memberships_created = sum(1 for op in operations if op.action == "create")

    async def _plan_memberships(
        self,
        groups: list[RowGroup],
        circle_by_group: dict[tuple[int, Category], Circle],
        student_ids: dict[PersonKey, str],
        kind: CircleKind,
    ) -> list[BatchOperation]:
        """Plan the closes and creates that per-entity ingestion would issue.

        A student listed under two circles in one batch ends up active only in
        the later one. The earlier membership is still written, already closed
        (start and end today), as per-entity ingestion leaves it.
        """
        today = self.clock()
        active = await self._active_memberships(kind)
        closes: list[BatchOperation] = []
        superseded: list[BatchOperation] = []
        planned: dict[str, BatchOperation] = {}
        planned_circle: dict[str, str] = {}
        closed_ids: set[str] = set()

        for group in groups:
            circle = circle_by_group[(group.sequence_number, group.category)]
            for row in group.rows:
                student_id = student_ids[_row_student_key(row)]
                if planned_circle.get(student_id) == circle.id:
                    continue
                current = [m for m in active.get(student_id, []) if m.id not in closed_ids]
                if student_id not in planned and any(m.circle_id == circle.id for m in current):
                    continue

                for membership in current:
                    closes.append(self.memberships.close_operation(membership.id, today))
                    closed_ids.add(membership.id)
                if planned.pop(student_id, None) is not None:
                    superseded.append(
                        self.memberships.create_operation(
                            planned_circle[student_id], student_id, kind, today, end_date=today
                        )
                    )
                planned[student_id] = self.memberships.create_operation(circle.id, student_id, kind, today)
                planned_circle[student_id] = circle.id

        return closes + superseded + list(planned.values())

    async def _active_memberships(self, kind: CircleKind) -> dict[str, list[Membership]]:
        by_student: dict[str, list[Membership]] = {}
        for membership in await self.memberships.list_active(kind):
            by_student.setdefault(membership.student_id, []).append(membership)
        return by_student


def _row_student_key(row: ValidRow) -> PersonKey:
    return (row.student_name, row.student_category)
