"""Roster batch ingestion.

Bulk rows (typed in or imported) are validated, grouped by circle, and turned
into mentors, circles, students and memberships. Groups are processed strictly
one after another in the order they first appear; within a group the mentor is
resolved before the circle, and the circle before any student.

A failure inside a group aborts that group only. Everything already written
stays written; the report says what happened.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from halaqah.clock import Clock, local_today
from halaqah.core.errors import HalaqahError, ValidationError
from halaqah.core.lookups import DEFAULT_CATALOG, Category, CircleKind, LookupCatalog, PersonKind
from halaqah.core.models import Circle, RosterRow
from halaqah.data.repositories import CircleRepository, MembershipRepository
from halaqah.data.store import RecordStore

from .reconciler import MembershipReconciler, ReconcileResult
from .report import GroupFailure, IngestReport, RowIssue
from .resolver import EntityResolver

logger = logging.getLogger(__name__)


@dataclass
class ValidRow:
    """A roster row that passed validation, with parsed categories and number"""

    row_number: int
    student_name: str
    student_class: str
    student_category: Category
    sequence_number: int
    mentor_name: str
    mentor_category: Category
    mentor_class: str


@dataclass
class RowGroup:
    """Rows sharing one (sequence number, student category) circle key"""

    sequence_number: int
    category: Category
    rows: list[ValidRow] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"Circle {self.sequence_number}/{self.category.value}"

    @property
    def row_numbers(self) -> list[int]:
        return [r.row_number for r in self.rows]


def validate_row(row: RosterRow, catalog: LookupCatalog, kind: CircleKind, row_number: int) -> ValidRow:
    """Validate one raw row.

    Raises:
        ValidationError: A field is empty, the sequence number is not a
            positive integer, or a category is unknown or not offered for
            this circle kind.
    """
    values = {name: str(getattr(row, name) or "").strip() for name in RosterRow.REQUIRED_FIELDS}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", row_number=row_number)

    try:
        sequence_number = int(values["sequence_number"])
    except ValueError:
        sequence_number = 0
    if sequence_number <= 0:
        raise ValidationError(
            f"Circle number '{values['sequence_number']}' must be a positive integer",
            row_number=row_number,
            field="sequence_number",
        )

    student_category = catalog.parse_category(values["student_category"])
    mentor_category = catalog.parse_category(values["mentor_category"])
    if student_category not in catalog.categories_for(kind):
        raise ValidationError(
            f"Category {student_category.value} has no {kind.value} circles",
            row_number=row_number,
            field="student_category",
        )

    return ValidRow(
        row_number=row_number,
        student_name=values["student_name"],
        student_class=values["student_class"],
        student_category=student_category,
        sequence_number=sequence_number,
        mentor_name=values["mentor_name"],
        mentor_category=mentor_category,
        mentor_class=values["mentor_class"],
    )


def validate_rows(
    rows: list[RosterRow],
    catalog: LookupCatalog = DEFAULT_CATALOG,
    kind: CircleKind = CircleKind.REGULAR,
) -> tuple[list[ValidRow], list[RowIssue]]:
    """Split rows into valid ones and skipped ones with reasons.

    Rows without a ``row_number`` are numbered by 1-based position.
    """
    valid: list[ValidRow] = []
    skipped: list[RowIssue] = []
    for index, row in enumerate(rows):
        row_number = row.row_number or index + 1
        try:
            valid.append(validate_row(row, catalog, kind, row_number))
        except ValidationError as e:
            logger.debug(f"Skipping row {row_number}: {e}")
            skipped.append(RowIssue(row_number, str(e)))
    return valid, skipped


def group_rows(rows: list[ValidRow]) -> list[RowGroup]:
    """Group by (sequence number, student category) in first-appearance order."""
    groups: dict[tuple[int, Category], RowGroup] = {}
    for row in rows:
        key = (row.sequence_number, row.student_category)
        if key not in groups:
            groups[key] = RowGroup(row.sequence_number, row.student_category)
        groups[key].rows.append(row)
    return list(groups.values())


def mentor_mismatch_warnings(group: RowGroup) -> list[RowIssue]:
    """Rows naming a different mentor than the group's first row."""
    first = group.rows[0]
    return [
        RowIssue(
            row.row_number,
            f"{group.label} already uses mentor '{first.mentor_name}' from row {first.row_number}; "
            f"'{row.mentor_name}' ignored",
        )
        for row in group.rows[1:]
        if (row.mentor_name, row.mentor_category) != (first.mentor_name, first.mentor_category)
    ]


def reused_circle_warning(group: RowGroup, circle: Circle, mentor_id: str) -> RowIssue | None:
    """Flag an existing circle whose stored mentor differs from the rows'.

    The stored mentor is preserved; ingestion never reassigns it.
    """
    if circle.mentor_id == mentor_id:
        return None
    logger.warning(
        f"{group.label} exists with mentor {circle.mentor_id}, rows name {mentor_id}; keeping stored mentor"
    )
    return RowIssue(
        group.rows[0].row_number,
        f"{group.label} already exists with a different mentor; existing mentor kept",
    )


class RosterIngestor:
    """Per-entity ingestion: one store call per create, in dependency order."""

    def __init__(
        self,
        store: RecordStore,
        catalog: LookupCatalog = DEFAULT_CATALOG,
        clock: Clock = local_today,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.circles = CircleRepository(store)
        self.memberships = MembershipRepository(store)
        self.reconciler = MembershipReconciler(store, clock)

    async def ingest(self, rows: list[RosterRow], kind: CircleKind = CircleKind.REGULAR) -> IngestReport:
        """Ingest a batch of roster rows.

        Args:
            rows: Raw rows; invalid ones are skipped and reported.
            kind: Circle kind all rows belong to.

        Returns:
            IngestReport for the whole batch.
        """
        report = IngestReport(rows_received=len(rows))
        valid, skipped = validate_rows(rows, self.catalog, kind)
        report.skipped.extend(skipped)

        resolver = EntityResolver(self.store, self.catalog)
        if valid:
            await resolver.load()

        for group in group_rows(valid):
            try:
                await self._ingest_group(group, kind, resolver, report)
            except HalaqahError as e:
                logger.error(f"{group.label} aborted: {e}")
                report.group_failures.append(GroupFailure(group.label, group.row_numbers, str(e)))

        logger.info(f"Roster ingest ({kind.value}): {report.summary()}")
        return report

    async def _ingest_group(
        self,
        group: RowGroup,
        kind: CircleKind,
        resolver: EntityResolver,
        report: IngestReport,
    ) -> None:
        first = group.rows[0]
        report.warnings.extend(mentor_mismatch_warnings(group))

        mentor = await resolver.resolve(PersonKind.MENTOR, first.mentor_name, first.mentor_category, first.mentor_class)
        if mentor.created:
            report.mentors_created += 1

        circle = await self.circles.find_by_natural_key(group.sequence_number, group.category, kind)
        if circle is None:
            circle = await self.circles.create(
                group.sequence_number, group.category, mentor.id, first.mentor_class, kind
            )
            report.circles_created += 1
        else:
            warning = reused_circle_warning(group, circle, mentor.id)
            if warning:
                report.warnings.append(warning)

        for row in group.rows:
            student = await resolver.resolve(
                PersonKind.STUDENT, row.student_name, row.student_category, row.student_class
            )
            if student.created:
                report.students_created += 1

            # re-read so duplicates within the group see earlier rows' memberships
            active = {m.student_id for m in await self.memberships.list_active_for_circle(circle.id)}
            if student.id not in active:
                result = ReconcileResult(circle.id)
                await self.reconciler.add_member(circle, student.id, result)
                report.memberships_created += 1
                report.memberships_closed += len(result.closed)
            report.rows_ingested += 1
