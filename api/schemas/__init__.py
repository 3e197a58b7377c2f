"""
Pydantic schemas for the Halaqah API.

Re-exports all schemas for convenient importing.
"""

from __future__ import annotations

from .attendance import AttendanceBatchRequest, AttendanceRecordResponse, RosterCircle
from .auth import LoginRequest, LoginResponse
from .entities import (
    CircleCreate,
    CircleResponse,
    CircleUpdate,
    MemberAdd,
    MemberResponse,
    MentorCreate,
    MentorResponse,
    MentorUpdate,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
)
from .progress import ProgressBatchRequest, ProgressCreate, ProgressResponse, ProgressUpdate
from .roster import RosterBatchRequest, RosterEditRequest, RosterImportRequest, RosterRowIn

__all__ = [
    "AttendanceBatchRequest",
    "AttendanceRecordResponse",
    "CircleCreate",
    "CircleResponse",
    "CircleUpdate",
    "LoginRequest",
    "LoginResponse",
    "MemberAdd",
    "MemberResponse",
    "MentorCreate",
    "MentorResponse",
    "MentorUpdate",
    "ProgressBatchRequest",
    "ProgressCreate",
    "ProgressResponse",
    "ProgressUpdate",
    "RosterBatchRequest",
    "RosterCircle",
    "RosterEditRequest",
    "RosterImportRequest",
    "RosterRowIn",
    "StudentCreate",
    "StudentResponse",
    "StudentUpdate",
]
