"""Record store interface.

The engine talks to its backing store only through these per-record operations
plus one batch call. Nothing here promises cross-record atomicity: callers order
their writes and report partial failures themselves.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

Record = dict[str, Any]


@dataclass
class BatchOperation:
    """One write inside a single batch request"""

    action: Literal["create", "update", "delete"]
    collection: str
    data: dict[str, Any] = field(default_factory=dict)
    record_id: str | None = None

    @classmethod
    def create(cls, collection: str, data: dict[str, Any]) -> BatchOperation:
        return cls("create", collection, data)

    @classmethod
    def update(cls, collection: str, record_id: str, data: dict[str, Any]) -> BatchOperation:
        return cls("update", collection, data, record_id)

    @classmethod
    def delete(cls, collection: str, record_id: str) -> BatchOperation:
        return cls("delete", collection, {}, record_id)


class RecordStore(ABC):
    """Abstract record store: simple CRUD per collection, no multi-record commit."""

    @abstractmethod
    async def list_records(
        self,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        sort: str | None = None,
    ) -> list[Record]:
        """List every record of a collection whose fields equal ``filters``.

        A filter value of None matches unset fields (None or empty string).
        """

    @abstractmethod
    async def get_record(self, collection: str, record_id: str) -> Record:
        """Fetch one record; raises NotFoundError when absent."""

    @abstractmethod
    async def create_record(self, collection: str, data: Mapping[str, Any]) -> Record:
        """Create a record and return it with its store-assigned ``id``."""

    @abstractmethod
    async def update_record(self, collection: str, record_id: str, data: Mapping[str, Any]) -> Record:
        """Patch the given fields; raises NotFoundError when absent."""

    @abstractmethod
    async def delete_record(self, collection: str, record_id: str) -> None:
        """Hard-delete a record; raises NotFoundError when absent."""

    @abstractmethod
    async def submit_batch(self, operations: list[BatchOperation]) -> list[Record]:
        """Send several writes as one request.

        Returns one result per operation, in order (the stored record for
        create/update, an empty dict for delete). Any failure is reported as a
        single error for the whole request.
        """
