"""Monthly memorization progress: single-record CRUD and batch import.

Each metric has its own collection and quantity rule: memorization and
revision are juz counts (decimal, 0-30), increment is a page count (whole,
non-negative). Rows are keyed by (month, student, circle) but, like
attendance, are append-only; a second submission creates a second row.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from halaqah.core.errors import ValidationError
from halaqah.core.lookups import DEFAULT_CATALOG, CircleKind, LookupCatalog
from halaqah.core.models import ProgressMetric, ProgressRecord
from halaqah.data.repositories import ProgressRepository
from halaqah.data.store import RecordStore
from halaqah.roster.report import RowIssue

logger = logging.getLogger(__name__)

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
MAX_JUZ = 30


def parse_quantity(metric: ProgressMetric, value: Any) -> float:
    """Validate a quantity for the metric and return it as a number."""
    try:
        quantity = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Quantity '{value}' is not a number", field="quantity") from None

    if quantity < 0:
        raise ValidationError("Quantity cannot be negative", field="quantity")
    if metric is ProgressMetric.INCREMENT:
        if not quantity.is_integer():
            raise ValidationError("Page count must be a whole number", field="quantity")
        return int(quantity)
    if quantity > MAX_JUZ:
        raise ValidationError(f"Juz count cannot exceed {MAX_JUZ}", field="quantity")
    return quantity


@dataclass
class ProgressBatchReport:
    created: list[ProgressRecord] = field(default_factory=list)
    errors: list[RowIssue] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": not self.errors,
            "count": len(self.created),
            "errors": [{"row": e.row_number, "error": e.message} for e in self.errors],
        }


class ProgressService:
    def __init__(self, store: RecordStore, catalog: LookupCatalog = DEFAULT_CATALOG) -> None:
        self.store = store
        self.catalog = catalog

    def repository(self, metric: ProgressMetric) -> ProgressRepository:
        return ProgressRepository(self.store, metric)

    def build_record(self, metric: ProgressMetric, data: Mapping[str, Any]) -> ProgressRecord:
        """Validate raw fields into a ProgressRecord (not yet stored).

        Raises:
            ValidationError: Bad month, missing student/circle, unknown
                category or kind, or a quantity outside the metric's range.
        """
        month = str(data.get("month") or "").strip()
        if not MONTH_PATTERN.match(month):
            raise ValidationError(f"Month '{month}' must be YYYY-MM", field="month")

        student_id = str(data.get("student_id") or "").strip()
        circle_id = str(data.get("circle_id") or "").strip()
        if not student_id:
            raise ValidationError("student_id is required", field="student_id")
        if not circle_id:
            raise ValidationError("circle_id is required", field="circle_id")

        return ProgressRecord(
            id="",
            metric=metric,
            month=month,
            student_id=student_id,
            circle_id=circle_id,
            category=self.catalog.parse_category(data.get("category")),
            class_label=str(data.get("class_label") or "").strip(),
            mentor_id=str(data.get("mentor_id") or "").strip(),
            quantity=parse_quantity(metric, data.get("quantity")),
            kind=self.catalog.parse_kind(data.get("kind") or CircleKind.REGULAR),
            notes=str(data.get("notes") or ""),
        )

    async def find(
        self, metric: ProgressMetric, month: str | None = None, category: Any = None, kind: Any = None
    ) -> list[ProgressRecord]:
        return await self.repository(metric).find(
            month=month,
            category=self.catalog.parse_category(category) if category else None,
            kind=self.catalog.parse_kind(kind) if kind else None,
        )

    async def create(self, metric: ProgressMetric, data: Mapping[str, Any]) -> ProgressRecord:
        return await self.repository(metric).create(self.build_record(metric, data))

    async def update(self, metric: ProgressMetric, record_id: str, data: Mapping[str, Any]) -> ProgressRecord:
        """Patch a record; only supplied fields are validated and changed."""
        fields: dict[str, Any] = {}
        if data.get("month") is not None:
            month = str(data["month"]).strip()
            if not MONTH_PATTERN.match(month):
                raise ValidationError(f"Month '{month}' must be YYYY-MM", field="month")
            fields["month"] = month
        if data.get("quantity") is not None:
            fields["quantity"] = parse_quantity(metric, data["quantity"])
        if data.get("category") is not None:
            fields["category"] = self.catalog.parse_category(data["category"]).value
        if data.get("kind") is not None:
            fields["kind"] = self.catalog.parse_kind(data["kind"]).value
        for source, target in (("student_id", "student"), ("circle_id", "circle"), ("mentor_id", "mentor")):
            if data.get(source) is not None:
                fields[target] = str(data[source]).strip()
        for name in ("class_label", "notes"):
            if data.get(name) is not None:
                fields[name] = str(data[name])

        if not fields:
            raise ValidationError("Nothing to update")
        return await self.repository(metric).update(record_id, fields)

    async def delete(self, metric: ProgressMetric, record_id: str) -> None:
        await self.repository(metric).delete(record_id)

    async def create_batch(self, metric: ProgressMetric, rows: list[Mapping[str, Any]]) -> ProgressBatchReport:
        """Validate every row, report the bad ones, create the rest.

        Row numbers in the report are 1-based positions in ``rows``.
        """
        report = ProgressBatchReport()
        valid: list[ProgressRecord] = []
        for index, row in enumerate(rows, start=1):
            try:
                valid.append(self.build_record(metric, row))
            except ValidationError as e:
                report.errors.append(RowIssue(index, str(e)))

        repo = self.repository(metric)
        for record in valid:
            report.created.append(await repo.create(record))

        logger.info(
            f"Progress batch ({metric.value}): {len(report.created)} created, {len(report.errors)} rows rejected"
        )
        return report
