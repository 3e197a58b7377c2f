"""
Pydantic schemas for student, mentor and circle CRUD endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from halaqah.core.models import Circle, Mentor, Student


class StudentCreate(BaseModel):
    """Request model for creating a student."""

    name: str = Field(..., min_length=1)
    category: str
    class_label: str = ""
    active: bool = True

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be blank")
        return v


class StudentUpdate(BaseModel):
    """Request model for updating a student."""

    name: str | None = None
    category: str | None = None
    class_label: str | None = None
    active: bool | None = None


class StudentResponse(BaseModel):
    id: str
    name: str
    category: str
    class_label: str
    active: bool

    @classmethod
    def from_model(cls, student: Student) -> StudentResponse:
        return cls(
            id=student.id,
            name=student.name,
            category=student.category.value,
            class_label=student.class_label,
            active=student.active,
        )


class MentorCreate(BaseModel):
    """Request model for creating a mentor."""

    name: str = Field(..., min_length=1)
    category: str
    class_label: str = ""
    notes: str = ""

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be blank")
        return v


class MentorUpdate(BaseModel):
    """Request model for updating a mentor."""

    name: str | None = None
    category: str | None = None
    class_label: str | None = None
    notes: str | None = None


class MentorResponse(BaseModel):
    id: str
    name: str
    category: str
    class_label: str
    notes: str

    @classmethod
    def from_model(cls, mentor: Mentor) -> MentorResponse:
        return cls(
            id=mentor.id,
            name=mentor.name,
            category=mentor.category.value,
            class_label=mentor.class_label,
            notes=mentor.notes,
        )


class CircleCreate(BaseModel):
    """Request model for creating a circle directly."""

    sequence_number: int = Field(..., gt=0)
    category: str
    mentor_id: str = Field(..., min_length=1)
    mentor_class: str = ""
    kind: str = "UTAMA"
    name: str = ""


class CircleUpdate(BaseModel):
    """Request model for updating a circle."""

    sequence_number: int | None = Field(default=None, gt=0)
    mentor_id: str | None = None
    mentor_class: str | None = None
    name: str | None = None


class CircleResponse(BaseModel):
    id: str
    sequence_number: int
    category: str
    mentor_id: str
    mentor_class: str
    kind: str
    name: str

    @classmethod
    def from_model(cls, circle: Circle) -> CircleResponse:
        return cls(
            id=circle.id,
            sequence_number=circle.sequence_number,
            category=circle.category.value,
            mentor_id=circle.mentor_id,
            mentor_class=circle.mentor_class,
            kind=circle.kind.value,
            name=circle.name,
        )


class MemberAdd(BaseModel):
    """Request model for adding one student to a circle."""

    student_id: str = Field(..., min_length=1)


class MemberResponse(BaseModel):
    id: str
    circle_id: str
    student_id: str
    kind: str
    start_date: str
    end_date: str
