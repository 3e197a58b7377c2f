"""
Pydantic schemas for monthly progress endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from halaqah.core.models import ProgressRecord


class ProgressCreate(BaseModel):
    """Request model for one progress record.

    Fields are validated by the progress service so that single and batch
    creates report problems the same way.
    """

    month: str
    student_id: str
    circle_id: str
    category: str
    class_label: str = ""
    mentor_id: str = ""
    quantity: float
    kind: str = "UTAMA"
    notes: str = ""


class ProgressUpdate(BaseModel):
    month: str | None = None
    student_id: str | None = None
    circle_id: str | None = None
    category: str | None = None
    class_label: str | None = None
    mentor_id: str | None = None
    quantity: float | None = None
    kind: str | None = None
    notes: str | None = None


class ProgressBatchRequest(BaseModel):
    """Raw rows, so one malformed row is reported instead of failing the request."""

    data: list[dict[str, Any]] = Field(..., min_length=1)


class ProgressResponse(BaseModel):
    id: str
    metric: str
    month: str
    student_id: str
    circle_id: str
    category: str
    class_label: str
    mentor_id: str
    quantity: float
    kind: str
    notes: str

    @classmethod
    def from_model(cls, record: ProgressRecord) -> ProgressResponse:
        return cls(
            id=record.id,
            metric=record.metric.value,
            month=record.month,
            student_id=record.student_id,
            circle_id=record.circle_id,
            category=record.category.value,
            class_label=record.class_label,
            mentor_id=record.mentor_id,
            quantity=record.quantity,
            kind=record.kind.value,
            notes=record.notes,
        )
