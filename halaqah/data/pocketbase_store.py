"""PocketBase-backed record store.

The PocketBase Python SDK is synchronous, so every call is pushed onto a worker
thread with ``asyncio.to_thread``. SDK errors are translated into the engine's
error types with the server's message kept verbatim.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

from pocketbase.client import ClientResponseError  # type: ignore[attr-defined]

from halaqah.core.errors import NotFoundError, RemoteStoreError, TransportError
from halaqah.logging_config import TRACE

from .store import BatchOperation, Record, RecordStore

if TYPE_CHECKING:
    from pocketbase import PocketBase

logger = logging.getLogger(__name__)

BATCH_PATH = "/api/batch"

# SDK bookkeeping attributes that are not record fields
_RECORD_META = {"collection_id", "collection_name", "expand"}


def _filter_literal(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    if value is None:
        return '""'
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return str(value)
    # json.dumps gives a double-quoted literal with quotes and backslashes escaped
    return json.dumps(str(value))


def build_filter(filters: Mapping[str, Any] | None) -> str:
    """Build a PocketBase filter expression of ANDed equality checks."""
    if not filters:
        return ""
    return " && ".join(f"{name} = {_filter_literal(value)}" for name, value in filters.items())


def record_to_dict(record: Any) -> Record:
    """Convert an SDK Record (or a raw dict) into a plain field dict."""
    if isinstance(record, dict):
        return dict(record)
    return {key: value for key, value in vars(record).items() if not key.startswith("_") and key not in _RECORD_META}


def _translate_error(error: ClientResponseError, collection: str, record_id: str | None = None) -> Exception:
    status = getattr(error, "status", None)
    data = getattr(error, "data", None)
    message = str(error)
    if isinstance(data, dict) and data.get("message"):
        message = str(data["message"])

    if status == 404 and record_id is not None:
        return NotFoundError(collection, record_id)
    if not status:
        return TransportError(message, status=status, data=data)
    return RemoteStoreError(message, status=status, data=data)


class PocketBaseStore(RecordStore):
    """Record store over a PocketBase server."""

    def __init__(self, pb: PocketBase) -> None:
        """Initialize with an (already authenticated) PocketBase client.

        Args:
            pb: PocketBase client instance.
        """
        self.pb = pb

    async def _call(
        self,
        fn: Callable[..., Any],
        *args: Any,
        collection: str,
        record_id: str | None = None,
        **kwargs: Any,
    ) -> Any:
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except ClientResponseError as e:
            logger.error(f"PocketBase error on {collection}: status={getattr(e, 'status', None)} {e}")
            raise _translate_error(e, collection, record_id) from e

    async def list_records(
        self,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        sort: str | None = None,
    ) -> list[Record]:
        query_params: dict[str, Any] = {}
        filter_str = build_filter(filters)
        if filter_str:
            query_params["filter"] = filter_str
        if sort:
            query_params["sort"] = sort

        logger.log(TRACE, f"get_full_list {collection} params={query_params}")
        records = await self._call(
            self.pb.collection(collection).get_full_list,
            collection=collection,
            query_params=query_params,
        )
        return [record_to_dict(r) for r in records]

    async def get_record(self, collection: str, record_id: str) -> Record:
        record = await self._call(
            self.pb.collection(collection).get_one,
            record_id,
            collection=collection,
            record_id=record_id,
        )
        return record_to_dict(record)

    async def create_record(self, collection: str, data: Mapping[str, Any]) -> Record:
        logger.log(TRACE, f"create {collection} body={dict(data)}")
        record = await self._call(self.pb.collection(collection).create, dict(data), collection=collection)
        return record_to_dict(record)

    async def update_record(self, collection: str, record_id: str, data: Mapping[str, Any]) -> Record:
        logger.log(TRACE, f"update {collection}/{record_id} body={dict(data)}")
        record = await self._call(
            self.pb.collection(collection).update,
            record_id,
            dict(data),
            collection=collection,
            record_id=record_id,
        )
        return record_to_dict(record)

    async def delete_record(self, collection: str, record_id: str) -> None:
        await self._call(
            self.pb.collection(collection).delete,
            record_id,
            collection=collection,
            record_id=record_id,
        )

    async def submit_batch(self, operations: list[BatchOperation]) -> list[Record]:
        """Send all operations through PocketBase's ``/api/batch`` endpoint."""
        if not operations:
            return []

        requests = [self._batch_request(op) for op in operations]
        logger.log(TRACE, f"batch of {len(requests)} requests")
        response = await self._call(
            self.pb.send,
            BATCH_PATH,
            {"method": "POST", "body": {"requests": requests}},
            collection="batch",
        )

        results: list[Record] = []
        for op, item in zip(operations, response or [], strict=False):
            body = item.get("body") if isinstance(item, dict) else None
            results.append(dict(body) if op.action != "delete" and isinstance(body, dict) else {})
        return results

    @staticmethod
    def _batch_request(op: BatchOperation) -> dict[str, Any]:
        base_url = f"/api/collections/{op.collection}/records"
        if op.action == "create":
            return {"method": "POST", "url": base_url, "body": op.data}
        if op.action == "update":
            return {"method": "PATCH", "url": f"{base_url}/{op.record_id}", "body": op.data}
        return {"method": "DELETE", "url": f"{base_url}/{op.record_id}"}
