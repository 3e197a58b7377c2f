"""Attendance recording for mentors and students."""

from __future__ import annotations

from .recorder import AttendanceBatchRecorder, AttendanceSessionResult, SessionKey, validate_session
from .session_state import AttendanceEditingSession, SessionRegistry, SessionState

__all__ = [
    "AttendanceBatchRecorder",
    "AttendanceEditingSession",
    "AttendanceSessionResult",
    "SessionKey",
    "SessionRegistry",
    "SessionState",
    "validate_session",
]
