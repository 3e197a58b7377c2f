"""
Pydantic schemas for attendance endpoints.
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel, Field


class AttendanceBatchRequest(BaseModel):
    """Request body for recording one full attendance session."""

    date: datetime.date
    session_time: str
    category: str
    kind: str = "UTAMA"
    circle_ids: list[str] | None = Field(
        default=None,
        description="Circles to include; all circles of the category/kind when omitted",
    )
    status_overrides: dict[str, str] = Field(
        default_factory=dict,
        description="Person id -> status for everyone not present (HADIR is the default)",
    )
    remarks: dict[str, str] = Field(default_factory=dict)


class RosterCircle(BaseModel):
    """A circle as shown on the attendance form."""

    circle_id: str
    sequence_number: int
    mentor_id: str
    mentor_name: str
    members: list[dict[str, str]]


class AttendanceRecordResponse(BaseModel):
    id: str
    date: str
    session_time: str
    category: str
    kind: str
    circle_id: str
    person_id: str
    status: str
    remark: str
