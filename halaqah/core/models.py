"""Core domain models for the roster and attendance engine.

These models represent the business concepts and are independent of the
record store. Repositories convert between them and raw store records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from .lookups import AttendanceStatus, Category, CircleKind, PersonKind, SessionTime


class ProgressMetric(Enum):
    """Monthly progress figures tracked per student"""

    MEMORIZATION = "hafalan"  # juz, decimal
    REVISION = "murojaah"  # juz, decimal
    INCREMENT = "penambahan"  # pages, integer


def parse_date(value: Any) -> date | None:
    """Parse a store date value ('YYYY-MM-DD' or PocketBase datetime) to a date.

    Empty values (PocketBase returns "" for unset dates) become None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def format_date(value: date | None) -> str:
    return value.isoformat() if value else ""


@dataclass
class Student:
    """A person enrolled in a circle (santri)"""

    id: str
    name: str
    category: Category
    class_label: str = ""
    active: bool = True

    @property
    def natural_key(self) -> tuple[str, Category]:
        return (self.name, self.category)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Student:
        return cls(
            id=record["id"],
            name=record.get("name", ""),
            category=Category(record["category"]),
            class_label=record.get("class_label") or "",
            active=bool(record.get("active", True)),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category.value,
            "class_label": self.class_label,
            "active": self.active,
        }


@dataclass
class Mentor:
    """A person leading a circle (musammi)"""

    id: str
    name: str
    category: Category
    class_label: str = ""
    notes: str = ""

    @property
    def natural_key(self) -> tuple[str, Category]:
        return (self.name, self.category)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Mentor:
        return cls(
            id=record["id"],
            name=record.get("name", ""),
            category=Category(record["category"]),
            class_label=record.get("class_label") or "",
            notes=record.get("notes") or "",
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category.value,
            "class_label": self.class_label,
            "notes": self.notes,
        }


@dataclass
class Circle:
    """A recurring study group of one mentor and several students (halaqah)"""

    id: str
    sequence_number: int
    category: Category
    mentor_id: str
    mentor_class: str = ""
    kind: CircleKind = CircleKind.REGULAR
    name: str = ""

    @property
    def natural_key(self) -> tuple[int, Category, CircleKind]:
        return (self.sequence_number, self.category, self.kind)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Circle:
        return cls(
            id=record["id"],
            sequence_number=int(record.get("sequence_number") or 0),
            category=Category(record["category"]),
            mentor_id=record.get("mentor") or "",
            mentor_class=record.get("mentor_class") or "",
            kind=CircleKind(record.get("kind") or CircleKind.REGULAR.value),
            name=record.get("name") or "",
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "sequence_number": self.sequence_number,
            "category": self.category.value,
            "mentor": self.mentor_id,
            "mentor_class": self.mentor_class,
            "kind": self.kind.value,
            "name": self.name,
        }


@dataclass
class Membership:
    """Time-bounded link between a student and a circle"""

    id: str
    circle_id: str
    student_id: str
    kind: CircleKind
    start_date: date | None
    end_date: date | None = None

    @property
    def is_active(self) -> bool:
        return self.end_date is None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Membership:
        return cls(
            id=record["id"],
            circle_id=record.get("circle", ""),
            student_id=record.get("student", ""),
            kind=CircleKind(record.get("kind") or CircleKind.REGULAR.value),
            start_date=parse_date(record.get("start_date")),
            end_date=parse_date(record.get("end_date")),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "circle": self.circle_id,
            "student": self.student_id,
            "kind": self.kind.value,
            "start_date": format_date(self.start_date),
            "end_date": format_date(self.end_date),
        }


@dataclass
class AttendanceEntry:
    """One person's status inside a batch attendance submission"""

    circle_id: str
    person_id: str
    status: AttendanceStatus = AttendanceStatus.HADIR
    remark: str = ""


@dataclass
class AttendanceRecord:
    """A stored attendance row for a student or a mentor"""

    id: str
    person_kind: PersonKind
    date: date | None
    session_time: SessionTime
    category: Category
    kind: CircleKind
    circle_id: str
    person_id: str
    status: AttendanceStatus
    remark: str = ""

    @classmethod
    def from_record(cls, record: dict[str, Any], person_kind: PersonKind) -> AttendanceRecord:
        person_field = "student" if person_kind is PersonKind.STUDENT else "mentor"
        return cls(
            id=record["id"],
            person_kind=person_kind,
            date=parse_date(record.get("date")),
            session_time=SessionTime(record["session_time"]),
            category=Category(record["category"]),
            kind=CircleKind(record.get("kind") or CircleKind.REGULAR.value),
            circle_id=record.get("circle", ""),
            person_id=record.get(person_field, ""),
            status=AttendanceStatus(record["status"]),
            remark=record.get("remark") or "",
        )


@dataclass
class ProgressRecord:
    """Monthly progress figure for one student in one circle"""

    id: str
    metric: ProgressMetric
    month: str  # YYYY-MM
    student_id: str
    circle_id: str
    category: Category
    class_label: str
    mentor_id: str
    quantity: float
    kind: CircleKind = CircleKind.REGULAR
    notes: str = ""

    @classmethod
    def from_record(cls, record: dict[str, Any], metric: ProgressMetric) -> ProgressRecord:
        return cls(
            id=record["id"],
            metric=metric,
            month=record.get("month", ""),
            student_id=record.get("student", ""),
            circle_id=record.get("circle", ""),
            category=Category(record["category"]),
            class_label=record.get("class_label") or "",
            mentor_id=record.get("mentor") or "",
            quantity=float(record.get("quantity") or 0),
            kind=CircleKind(record.get("kind") or CircleKind.REGULAR.value),
            notes=record.get("notes") or "",
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "student": self.student_id,
            "circle": self.circle_id,
            "category": self.category.value,
            "class_label": self.class_label,
            "mentor": self.mentor_id,
            "quantity": self.quantity,
            "kind": self.kind.value,
            "notes": self.notes,
        }


@dataclass
class RosterRow:
    """One row of bulk roster input, as typed or imported.

    Fields stay raw strings until validation; ``row_number`` is the 1-based
    position in the source (header included for imported text).
    """

    student_name: str
    student_class: str
    student_category: str
    sequence_number: str
    mentor_name: str
    mentor_category: str
    mentor_class: str
    row_number: int = 0

    REQUIRED_FIELDS = (
        "student_name",
        "student_class",
        "student_category",
        "sequence_number",
        "mentor_name",
        "mentor_category",
        "mentor_class",
    )


@dataclass
class CircleWithMembers:
    """A circle together with its currently active member ids"""

    circle: Circle
    member_ids: list[str] = field(default_factory=list)

    @property
    def circle_id(self) -> str:
        return self.circle.id

    @property
    def mentor_id(self) -> str:
        return self.circle.mentor_id
