"""
Progress Router - Monthly memorization, revision and increment records.

Metric path segment: hafalan (memorization), murojaah (revision) or
penambahan (increment).
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from halaqah.core.lookups import LookupCatalog
from halaqah.core.models import ProgressMetric
from halaqah.data.store import RecordStore
from halaqah.progress import ProgressService

from ..dependencies import get_catalog, get_store
from ..schemas.progress import ProgressBatchRequest, ProgressCreate, ProgressResponse, ProgressUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/progress", tags=["progress"])


def parse_metric(metric: str) -> ProgressMetric:
    token = metric.strip().lower()
    for member in ProgressMetric:
        if token in (member.value, member.name.lower()):
            return member
    raise HTTPException(status_code=404, detail=f"Unknown progress metric '{metric}'")


@router.get("/{metric}", response_model=list[ProgressResponse])
async def list_progress(
    metric: str,
    month: str | None = Query(None),
    category: str | None = Query(None),
    kind: str | None = Query(None),
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
) -> list[ProgressResponse]:
    records = await ProgressService(store, catalog).find(parse_metric(metric), month, category, kind)
    return [ProgressResponse.from_model(r) for r in records]


@router.post("/{metric}", response_model=ProgressResponse, status_code=201)
async def create_progress(
    metric: str,
    body: ProgressCreate,
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
) -> ProgressResponse:
    record = await ProgressService(store, catalog).create(parse_metric(metric), body.model_dump())
    return ProgressResponse.from_model(record)


@router.post("/{metric}/batch", status_code=201)
async def create_progress_batch(
    metric: str,
    body: ProgressBatchRequest,
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
) -> dict[str, Any]:
    """Create every valid row; invalid rows are listed with their 1-based position."""
    report = await ProgressService(store, catalog).create_batch(parse_metric(metric), body.data)
    return report.to_dict()


@router.put("/{metric}/{record_id}", response_model=ProgressResponse)
async def update_progress(
    metric: str,
    record_id: str,
    body: ProgressUpdate,
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
) -> ProgressResponse:
    record = await ProgressService(store, catalog).update(
        parse_metric(metric), record_id, body.model_dump(exclude_none=True)
    )
    return ProgressResponse.from_model(record)


@router.delete("/{metric}/{record_id}", status_code=204)
async def delete_progress(metric: str, record_id: str, store: RecordStore = Depends(get_store)) -> None:
    await ProgressService(store).delete(parse_metric(metric), record_id)
