"""Record stores and repositories."""

from __future__ import annotations

from .memory_store import MemoryStore
from .pocketbase_store import PocketBaseStore
from .store import BatchOperation, Record, RecordStore

__all__ = ["BatchOperation", "MemoryStore", "PocketBaseStore", "Record", "RecordStore"]
