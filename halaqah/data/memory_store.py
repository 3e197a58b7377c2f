"""In-process record store used for local development and tests."""

from __future__ import annotations

import copy
import logging
import secrets
import string
from collections.abc import Mapping
from enum import Enum
from typing import Any

from halaqah.core.errors import NotFoundError, RemoteStoreError

from .store import BatchOperation, Record, RecordStore

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_LENGTH = 15


def _new_id() -> str:
    """PocketBase-shaped 15-character id."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))


def _normalize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def _matches(record: Record, filters: Mapping[str, Any]) -> bool:
    for name, expected in filters.items():
        actual = record.get(name)
        expected = _normalize(expected)
        if expected is None:
            if actual not in (None, ""):
                return False
        elif actual != expected:
            return False
    return True


def _sort_key(name: str):
    # unset values sort last and never get compared against typed values
    def key(record: Record) -> tuple[bool, Any]:
        value = record.get(name)
        unset = value in (None, "")
        return (unset, "" if unset else value)

    return key


class MemoryStore(RecordStore):
    """Dict-backed store with PocketBase-like semantics.

    Records are deep-copied in and out so callers cannot mutate stored state.
    Collections are created on first write. ``fail_on`` lets tests make a
    given (action, collection) pair raise ``RemoteStoreError``.
    """

    def __init__(self, seed: Mapping[str, list[Record]] | None = None) -> None:
        self.collections: dict[str, dict[str, Record]] = {}
        self.fail_on: set[tuple[str, str]] = set()
        self.calls: list[tuple[str, str]] = []
        for collection, records in (seed or {}).items():
            for record in records:
                data = dict(record)
                data.setdefault("id", _new_id())
                self.collections.setdefault(collection, {})[data["id"]] = data

    def _check(self, action: str, collection: str) -> None:
        self.calls.append((action, collection))
        if (action, collection) in self.fail_on:
            raise RemoteStoreError(f"Failed to {action} record in {collection}.", status=400)

    def _get(self, collection: str, record_id: str) -> Record:
        try:
            return self.collections.get(collection, {})[record_id]
        except KeyError:
            raise NotFoundError(collection, record_id) from None

    async def list_records(
        self,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        sort: str | None = None,
    ) -> list[Record]:
        self._check("list", collection)
        records = [r for r in self.collections.get(collection, {}).values() if _matches(r, filters or {})]
        if sort:
            for key in reversed(sort.split(",")):
                key = key.strip()
                reverse = key.startswith("-")
                name = key.lstrip("-+")
                records.sort(key=_sort_key(name), reverse=reverse)
        return copy.deepcopy(records)

    async def get_record(self, collection: str, record_id: str) -> Record:
        self._check("get", collection)
        return copy.deepcopy(self._get(collection, record_id))

    async def create_record(self, collection: str, data: Mapping[str, Any]) -> Record:
        self._check("create", collection)
        return self._create(collection, data)

    def _create(self, collection: str, data: Mapping[str, Any]) -> Record:
        record = {key: _normalize(value) for key, value in copy.deepcopy(dict(data)).items()}
        record["id"] = _new_id()
        self.collections.setdefault(collection, {})[record["id"]] = record
        return copy.deepcopy(record)

    async def update_record(self, collection: str, record_id: str, data: Mapping[str, Any]) -> Record:
        self._check("update", collection)
        return self._update(collection, record_id, data)

    def _update(self, collection: str, record_id: str, data: Mapping[str, Any]) -> Record:
        record = self._get(collection, record_id)
        record.update({key: _normalize(value) for key, value in copy.deepcopy(dict(data)).items() if key != "id"})
        return copy.deepcopy(record)

    async def delete_record(self, collection: str, record_id: str) -> None:
        self._check("delete", collection)
        self._get(collection, record_id)
        del self.collections[collection][record_id]

    async def submit_batch(self, operations: list[BatchOperation]) -> list[Record]:
        """Apply operations in order, all-or-nothing.

        On any failure the store is restored to its pre-batch state and a single
        ``RemoteStoreError`` is raised, mirroring PocketBase's transactional batch.
        """
        self.calls.append(("batch", str(len(operations))))
        snapshot = copy.deepcopy(self.collections)
        results: list[Record] = []
        try:
            for index, op in enumerate(operations):
                if (op.action, op.collection) in self.fail_on:
                    raise RemoteStoreError(
                        f"Batch request failed at item {index}: {op.action} {op.collection}",
                        status=400,
                    )
                if op.action == "create":
                    results.append(self._create(op.collection, op.data))
                elif op.action == "update":
                    results.append(self._update(op.collection, op.record_id or "", op.data))
                else:
                    self._get(op.collection, op.record_id or "")
                    del self.collections[op.collection][op.record_id or ""]
                    results.append({})
        except NotFoundError as e:
            self.collections = snapshot
            raise RemoteStoreError(f"Batch request failed: {e}", status=400) from e
        except RemoteStoreError:
            self.collections = snapshot
            raise
        return results

    def count(self, collection: str) -> int:
        return len(self.collections.get(collection, {}))
