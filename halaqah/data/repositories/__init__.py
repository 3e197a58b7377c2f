"""Repositories mapping domain models onto record store collections."""

from __future__ import annotations

from .attendance_repository import AttendanceRepository
from .circle_repository import CircleRepository
from .lookup_repository import load_catalog
from .membership_repository import MembershipRepository
from .people_repository import MentorRepository, StudentRepository, repository_for
from .progress_repository import ProgressRepository

__all__ = [
    "AttendanceRepository",
    "CircleRepository",
    "MembershipRepository",
    "MentorRepository",
    "ProgressRepository",
    "StudentRepository",
    "load_catalog",
    "repository_for",
]
