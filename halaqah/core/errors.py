"""Error types raised by the roster and attendance engine.

Per-row problems inside a batch are collected into reports instead of being
raised; these exceptions abort the operation (or the group) they occur in.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from halaqah.roster.reconciler import ReconcileResult


class HalaqahError(Exception):
    """Base exception for all engine errors."""

    pass


class ValidationError(HalaqahError):
    """Raised when a required field is missing or malformed."""

    def __init__(self, message: str, row_number: int | None = None, field: str | None = None) -> None:
        self.row_number = row_number
        self.field = field
        super().__init__(message)


class NotFoundError(HalaqahError):
    """Raised when a referenced entity does not exist in the store."""

    def __init__(self, collection: str, record_id: str, message: str | None = None) -> None:
        self.collection = collection
        self.record_id = record_id
        super().__init__(message or f"{collection} record '{record_id}' not found")


class RemoteStoreError(HalaqahError):
    """Raised when the record store rejects a call.

    The store's own message is kept verbatim. Conflicts (e.g. a unique index
    rejecting a create) arrive here too; they are not retried.
    """

    def __init__(self, message: str, status: int | None = None, data: Any = None) -> None:
        self.status = status
        self.data = data
        super().__init__(message)


class TransportError(RemoteStoreError):
    """Raised when the record store cannot be reached at all."""

    pass


class ReconcileError(HalaqahError):
    """Raised when adding a member fails; removals were not attempted."""

    def __init__(self, message: str, result: ReconcileResult) -> None:
        self.result = result
        super().__init__(message)


class SubmissionInProgressError(HalaqahError):
    """Raised when a second submit arrives while one is in flight."""

    pass
