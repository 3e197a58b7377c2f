"""
Halaqah - Core business logic for study-circle rosters and attendance.

This package contains:
- core: Lookup catalog, domain models and error types
- data: Record stores (PocketBase, in-memory) and repositories
- roster: Entity resolution, membership reconciliation and bulk roster ingestion
- attendance: Batch attendance recording and the editing-session state machine
- progress: Monthly memorization/revision/increment figures
"""

from halaqah.core.errors import (
    HalaqahError,
    NotFoundError,
    ReconcileError,
    RemoteStoreError,
    SubmissionInProgressError,
    TransportError,
    ValidationError,
)
from halaqah.core.lookups import (
    DEFAULT_CATALOG,
    AttendanceStatus,
    Category,
    CircleKind,
    LookupCatalog,
    SessionTime,
)

__all__ = [
    "DEFAULT_CATALOG",
    "AttendanceStatus",
    "Category",
    "CircleKind",
    "HalaqahError",
    "LookupCatalog",
    "NotFoundError",
    "ReconcileError",
    "RemoteStoreError",
    "SessionTime",
    "SubmissionInProgressError",
    "TransportError",
    "ValidationError",
]
