"""Editing-session state machine for attendance entry.

Idle -> Populating -> Submitting -> Success -> Idle (statuses back to default)
                                 -> Failed  -> Populating (statuses kept)

A submit while Submitting raises SubmissionInProgressError; this is what stops
a double click from recording the same session twice.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TypeVar

from halaqah.core.errors import SubmissionInProgressError, ValidationError
from halaqah.core.lookups import DEFAULT_STATUS, AttendanceStatus, Category, CircleKind
from halaqah.core.models import CircleWithMembers

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionState(Enum):
    IDLE = "idle"
    POPULATING = "populating"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


class AttendanceEditingSession:
    """Statuses being edited for one (category, kind) attendance form."""

    def __init__(self, category: Category, kind: CircleKind) -> None:
        self.category = category
        self.kind = kind
        self.state = SessionState.IDLE
        self.circles: list[CircleWithMembers] = []
        self.statuses: dict[str, AttendanceStatus] = {}
        self.remarks: dict[str, str] = {}

    def populate(self, circles: list[CircleWithMembers]) -> None:
        """Load a roster; every mentor and member starts at the default status."""
        if self.state is SessionState.SUBMITTING:
            raise SubmissionInProgressError("Cannot reload the roster while a submission is in progress")
        self.circles = list(circles)
        self.statuses = {}
        for item in self.circles:
            self.statuses[item.mentor_id] = DEFAULT_STATUS
            for student_id in item.member_ids:
                self.statuses[student_id] = DEFAULT_STATUS
        self.remarks = {}
        self.state = SessionState.POPULATING

    def set_status(self, person_id: str, status: AttendanceStatus, remark: str | None = None) -> None:
        if self.state is not SessionState.POPULATING:
            raise ValidationError(f"Session is {self.state.value}, not accepting edits")
        if person_id not in self.statuses:
            raise ValidationError(f"'{person_id}' is not in this session's roster")
        self.statuses[person_id] = status
        if remark is not None:
            self.remarks[person_id] = remark

    def overrides(self) -> dict[str, AttendanceStatus]:
        """Only the statuses that differ from the default."""
        return {pid: status for pid, status in self.statuses.items() if status is not DEFAULT_STATUS}

    async def submit(self, action: Callable[[], Awaitable[T]]) -> T:
        """Run ``action`` as this session's submission.

        Raises:
            SubmissionInProgressError: A submission is already running.
        """
        if self.state is SessionState.SUBMITTING:
            raise SubmissionInProgressError(
                f"Attendance for {self.category.value}/{self.kind.value} is already being submitted"
            )
        self.state = SessionState.SUBMITTING
        try:
            result = await action()
        except Exception:
            self.state = SessionState.FAILED
            logger.warning(f"Attendance submission {self.category.value}/{self.kind.value} failed; edits kept")
            self.state = SessionState.POPULATING
            raise

        self.state = SessionState.SUCCESS
        self._reset()
        self.state = SessionState.IDLE
        return result

    def _reset(self) -> None:
        self.statuses = {pid: DEFAULT_STATUS for pid in self.statuses}
        self.remarks = {}


class SessionRegistry:
    """One editing session per (category, kind) for the single operator."""

    def __init__(self) -> None:
        self._sessions: dict[tuple[Category, CircleKind], AttendanceEditingSession] = {}

    def get(self, category: Category, kind: CircleKind) -> AttendanceEditingSession:
        key = (category, kind)
        if key not in self._sessions:
            self._sessions[key] = AttendanceEditingSession(category, kind)
        return self._sessions[key]
