"""Lookup catalog: the closed reference sets every other component validates against.

Categories, session times, attendance statuses and circle kinds are closed sets
defined here. Class labels per category are semi-static: the defaults below are
replaced per category by whatever the store's ``class_labels`` collection holds.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .errors import ValidationError


class Category(Enum):
    """Coarse track a student, mentor or circle belongs to (marhalah)"""

    MUT = "MUT"
    ALI = "ALI"
    JAM = "JAM"


class SessionTime(Enum):
    """Named time-of-day slot an attendance record belongs to (waktu)"""

    SUBUH = "SUBUH"
    DHUHA = "DHUHA"
    ASHAR = "ASHAR"
    ISYA = "ISYA"


class AttendanceStatus(Enum):
    """Attendance status (kehadiran). HADIR is the default for every person."""

    HADIR = "HADIR"
    SAKIT = "SAKIT"
    IZIN = "IZIN"
    ALPA = "ALPA"
    TERLAMBAT = "TERLAMBAT"


class CircleKind(Enum):
    """Ordinary circle schedule vs. the distinguished morning variant (jenis halaqah)"""

    REGULAR = "UTAMA"
    MORNING = "PAGI"


class PersonKind(Enum):
    """The two person kinds the resolver and recorder handle"""

    STUDENT = "santri"
    MENTOR = "musammi"


DEFAULT_STATUS = AttendanceStatus.HADIR

CATEGORY_NAMES: dict[Category, str] = {
    Category.MUT: "Mutawassitoh",
    Category.ALI: "Aliyah",
    Category.JAM: "Jami'iyyah",
}

SESSION_TIME_NAMES: dict[SessionTime, str] = {
    SessionTime.SUBUH: "Subuh",
    SessionTime.DHUHA: "Dhuha",
    SessionTime.ASHAR: "Ashar",
    SessionTime.ISYA: "Isya",
}

STATUS_NAMES: dict[AttendanceStatus, str] = {
    AttendanceStatus.HADIR: "Hadir",
    AttendanceStatus.SAKIT: "Sakit",
    AttendanceStatus.IZIN: "Izin",
    AttendanceStatus.ALPA: "Alpa",
    AttendanceStatus.TERLAMBAT: "Terlambat",
}

KIND_SESSION_TIMES: dict[CircleKind, tuple[SessionTime, ...]] = {
    CircleKind.REGULAR: (SessionTime.SUBUH, SessionTime.ASHAR, SessionTime.ISYA),
    CircleKind.MORNING: (SessionTime.DHUHA,),
}

# Morning circles are only run for the Mutawassitoh track
KIND_CATEGORIES: dict[CircleKind, tuple[Category, ...]] = {
    CircleKind.REGULAR: (Category.MUT, Category.ALI, Category.JAM),
    CircleKind.MORNING: (Category.MUT,),
}

DEFAULT_CLASS_LABELS: dict[Category, tuple[str, ...]] = {
    Category.MUT: ("1A", "1B", "2A", "2B", "3A", "3B"),
    Category.ALI: ("X-A", "X-B", "XI-A", "XI-B", "XII-A", "XII-B"),
    Category.JAM: ("TQS", "TAHFIDZ"),
}

# Mentors are graded by their own memorization level, independent of category
DEFAULT_MENTOR_CLASS_LABELS: tuple[str, ...] = ("TQS", "KHS", "KS")


def _parse_enum(enum_cls: type[Enum], value: Any, label: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    token = str(value or "").strip().upper()
    for member in enum_cls:
        if member.value == token or member.name == token:
            return member
    allowed = ", ".join(m.value for m in enum_cls)
    raise ValidationError(f"Invalid {label} '{value}'. Must be one of: {allowed}", field=label)


@dataclass(frozen=True)
class LookupCatalog:
    """Reference values consumed by resolver, ingestor and recorder."""

    class_labels: dict[Category, tuple[str, ...]] = field(default_factory=lambda: dict(DEFAULT_CLASS_LABELS))
    mentor_class_labels: tuple[str, ...] = DEFAULT_MENTOR_CLASS_LABELS

    def parse_category(self, value: Any) -> Category:
        """Return the Category for a code, raising ValidationError otherwise."""
        return _parse_enum(Category, value, "category")

    def has_category(self, value: Any) -> bool:
        try:
            self.parse_category(value)
        except ValidationError:
            return False
        return True

    def parse_session_time(self, value: Any) -> SessionTime:
        return _parse_enum(SessionTime, value, "session_time")

    def parse_status(self, value: Any) -> AttendanceStatus:
        return _parse_enum(AttendanceStatus, value, "status")

    def parse_kind(self, value: Any) -> CircleKind:
        return _parse_enum(CircleKind, value, "kind")

    def category_name(self, category: Category) -> str:
        return CATEGORY_NAMES[category]

    def classes_for(self, category: Category) -> tuple[str, ...]:
        """Allowed class labels for a category."""
        return self.class_labels.get(category, ())

    def mentor_classes(self) -> tuple[str, ...]:
        """Allowed mentor class labels (the same for every category)."""
        return self.mentor_class_labels

    def session_times_for(self, kind: CircleKind) -> tuple[SessionTime, ...]:
        """Session times a circle kind may record attendance for."""
        return KIND_SESSION_TIMES[kind]

    def categories_for(self, kind: CircleKind) -> tuple[Category, ...]:
        return KIND_CATEGORIES[kind]

    def with_class_labels(self, labels: Iterable[tuple[Category, str]]) -> LookupCatalog:
        """Return a catalog whose class labels are replaced by the given pairs.

        Categories absent from ``labels`` keep their current labels.
        """
        grouped: dict[Category, list[str]] = {}
        for category, label in labels:
            if label and label not in grouped.setdefault(category, []):
                grouped[category].append(label)
        if not grouped:
            return self

        merged = dict(self.class_labels)
        merged.update({category: tuple(values) for category, values in grouped.items()})
        return replace(self, class_labels=merged)

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the shape the frontend lookup endpoint returns."""
        return {
            "marhalah": [{"MarhalahID": c.value, "NamaMarhalah": name} for c, name in CATEGORY_NAMES.items()],
            "waktu": [{"WaktuID": t.value, "NamaWaktu": name} for t, name in SESSION_TIME_NAMES.items()],
            "kehadiran": [{"StatusID": s.value, "NamaStatus": name} for s, name in STATUS_NAMES.items()],
            "kelas": [
                {"MarhalahID": category.value, "Kelas": label}
                for category, labels in self.class_labels.items()
                for label in labels
            ],
            "kelas_musammi": list(self.mentor_class_labels),
            "jenis": [
                {
                    "JenisHalaqah": kind.value,
                    "WaktuID": [t.value for t in KIND_SESSION_TIMES[kind]],
                    "MarhalahID": [c.value for c in KIND_CATEGORIES[kind]],
                }
                for kind in CircleKind
            ],
        }


DEFAULT_CATALOG = LookupCatalog()
