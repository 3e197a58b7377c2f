"""Delimited-text roster import.

Turns an uploaded roster file into ``RosterRow`` objects ready for ingestion.
Column order: student name, student class, student category, circle sequence
number, mentor name, mentor category, mentor class. Student classes are checked
against their category's labels, mentor classes against the mentor labels. The
first non-blank line is a header and is discarded.

Problems never raise: rows with the wrong column count are excluded and listed
as errors, unrecognized categories or class labels are blanked and listed as
warnings (the blank then fails row validation downstream).
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass, field

from halaqah.core.lookups import DEFAULT_CATALOG, Category, LookupCatalog
from halaqah.core.models import RosterRow

from .normalization import match_class_label, match_mentor_class, normalize_category
from .report import IngestReport, RowIssue

logger = logging.getLogger(__name__)

EXPECTED_COLUMNS = len(RosterRow.REQUIRED_FIELDS)


@dataclass
class ImportIssue:
    row_number: int
    message: str

    def __str__(self) -> str:
        return f"Row {self.row_number}: {self.message}"


@dataclass
class ImportResult:
    """Normalized rows plus everything that was excluded or adjusted"""

    rows: list[RosterRow] = field(default_factory=list)
    errors: list[ImportIssue] = field(default_factory=list)
    warnings: list[ImportIssue] = field(default_factory=list)

    def merge_into(self, report: IngestReport) -> IngestReport:
        """Fold parse problems into an ingest report.

        Rows excluded while parsing count as received and skipped, so a file
        with a malformed line never reports success.
        """
        report.rows_received += len(self.errors)
        report.skipped.extend(RowIssue(e.row_number, e.message) for e in self.errors)
        report.skipped.sort(key=lambda issue: issue.row_number)
        report.warnings.extend(RowIssue(w.row_number, w.message) for w in self.warnings)
        report.warnings.sort(key=lambda issue: issue.row_number)
        return report


def _normalize_pair(
    result: ImportResult,
    row_number: int,
    role: str,
    raw_category: str,
    raw_class: str,
    catalog: LookupCatalog,
) -> tuple[str, str]:
    category: Category | None = normalize_category(raw_category)
    if category is None and raw_category:
        result.warnings.append(
            ImportIssue(row_number, f"{role} category '{raw_category}' not recognized, left empty")
        )

    if role == "Mentor":
        class_label = match_mentor_class(raw_class, catalog)
        scope = "mentors"
    else:
        class_label = match_class_label(raw_class, category, catalog)
        scope = category.value if category else "the given category"
    if class_label is None and raw_class:
        result.warnings.append(
            ImportIssue(row_number, f"{role} class '{raw_class}' is not valid for {scope}, left empty")
        )

    return (category.value if category else "", class_label or "")


def parse_roster_text(text: str, catalog: LookupCatalog = DEFAULT_CATALOG, delimiter: str = ",") -> ImportResult:
    """Parse and normalize roster text.

    Args:
        text: Whole file contents.
        catalog: Catalog used to validate class labels per category.
        delimiter: Column separator (comma by default).

    Returns:
        ImportResult whose rows carry their physical 1-based line number.
    """
    result = ImportResult()
    header_seen = False

    for row_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        if not header_seen:
            header_seen = True
            continue

        columns = [c.strip() for c in next(csv.reader([line], delimiter=delimiter))]
        if len(columns) != EXPECTED_COLUMNS:
            result.errors.append(ImportIssue(row_number, f"expected {EXPECTED_COLUMNS} columns, got {len(columns)}"))
            logger.debug(f"Import row {row_number} excluded: {len(columns)} columns")
            continue

        student_name, student_class, student_category, sequence, mentor_name, mentor_category, mentor_class = columns
        student_category, student_class = _normalize_pair(
            result, row_number, "Student", student_category, student_class, catalog
        )
        mentor_category, mentor_class = _normalize_pair(
            result, row_number, "Mentor", mentor_category, mentor_class, catalog
        )

        result.rows.append(
            RosterRow(
                student_name=student_name,
                student_class=student_class,
                student_category=student_category,
                sequence_number=sequence,
                mentor_name=mentor_name,
                mentor_category=mentor_category,
                mentor_class=mentor_class,
                row_number=row_number,
            )
        )

    logger.info(
        f"Parsed roster text: {len(result.rows)} rows, {len(result.errors)} errors, {len(result.warnings)} warnings"
    )
    return result
