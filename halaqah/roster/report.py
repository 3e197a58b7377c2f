"""Batch outcome reporting for roster ingestion."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Reasons beyond this many are counted but not listed
MAX_REASONS = 10


@dataclass
class RowIssue:
    row_number: int
    message: str

    def __str__(self) -> str:
        return f"Row {self.row_number}: {self.message}"


@dataclass
class GroupFailure:
    """A group (or batch layer) whose processing was aborted"""

    label: str
    row_numbers: list[int]
    message: str

    def __str__(self) -> str:
        rows = ", ".join(str(n) for n in self.row_numbers)
        return f"{self.label} (rows {rows}): {self.message}"


@dataclass
class IngestReport:
    """One summary per batch: counts plus the reasons behind every skip."""

    rows_received: int = 0
    rows_ingested: int = 0
    mentors_created: int = 0
    circles_created: int = 0
    students_created: int = 0
    memberships_created: int = 0
    memberships_closed: int = 0
    skipped: list[RowIssue] = field(default_factory=list)
    warnings: list[RowIssue] = field(default_factory=list)
    group_failures: list[GroupFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.skipped and not self.group_failures

    @property
    def entities_created(self) -> int:
        return self.mentors_created + self.circles_created + self.students_created

    def reasons(self, limit: int = MAX_REASONS) -> tuple[list[str], int]:
        """Failure reasons first, then warnings, truncated to ``limit``.

        Returns:
            Tuple of (listed reasons, number of reasons left out).
        """
        everything = [str(f) for f in self.group_failures]
        everything += [str(s) for s in self.skipped]
        everything += [str(w) for w in self.warnings]
        return everything[:limit], max(0, len(everything) - limit)

    def summary(self) -> str:
        parts = [
            f"{self.rows_ingested}/{self.rows_received} rows ingested",
            f"created {self.mentors_created} mentors, {self.circles_created} circles, "
            f"{self.students_created} students, {self.memberships_created} memberships",
        ]
        if self.memberships_closed:
            parts.append(f"closed {self.memberships_closed} memberships")
        if self.skipped:
            parts.append(f"{len(self.skipped)} rows skipped")
        if self.group_failures:
            parts.append(f"{len(self.group_failures)} groups failed")
        if self.warnings:
            parts.append(f"{len(self.warnings)} warnings")
        return "; ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        reasons, omitted = self.reasons()
        return {
            "success": self.success,
            "summary": self.summary(),
            "rows_received": self.rows_received,
            "rows_ingested": self.rows_ingested,
            "mentors_created": self.mentors_created,
            "circles_created": self.circles_created,
            "students_created": self.students_created,
            "memberships_created": self.memberships_created,
            "memberships_closed": self.memberships_closed,
            "skipped_rows": len(self.skipped),
            "warnings": len(self.warnings),
            "group_failures": len(self.group_failures),
            "reasons": reasons,
            "reasons_omitted": omitted,
        }
