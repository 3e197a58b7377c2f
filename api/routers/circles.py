"""
Circles Router - Circle CRUD, membership management and bulk roster endpoints.

Bulk endpoints:
- POST /api/circles/ingest: per-entity ingestion of manual rows
- POST /api/circles/batch: same rows, submitted layer by layer as batch requests
- POST /api/circles/import: delimited text, normalized, then either mode
- PUT  /api/circles/{id}/roster: edit one circle (removes unlisted members)
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query

from halaqah.clock import Clock
from halaqah.core.errors import ValidationError
from halaqah.core.lookups import LookupCatalog
from halaqah.core.models import format_date
from halaqah.data.repositories import CircleRepository, MembershipRepository, MentorRepository, StudentRepository
from halaqah.data.store import RecordStore
from halaqah.roster import (
    MembershipReconciler,
    ReconcileResult,
    RosterBatchSubmitter,
    RosterEditor,
    RosterIngestor,
    parse_roster_text,
)

from ..dependencies import get_catalog, get_clock, get_store
from ..schemas.entities import CircleCreate, CircleResponse, CircleUpdate, MemberAdd, MemberResponse
from ..schemas.roster import RosterBatchRequest, RosterEditRequest, RosterImportRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/circles", tags=["circles"])


# ============================================================================
# Bulk roster endpoints (declared before /{circle_id} routes)
# ============================================================================


@router.post("/ingest")
async def ingest_roster(
    body: RosterBatchRequest,
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
    clock: Clock = Depends(get_clock),
) -> dict[str, Any]:
    """Ingest manual rows with one store call per entity."""
    kind = catalog.parse_kind(body.kind)
    report = await RosterIngestor(store, catalog, clock).ingest(body.to_rows(), kind)
    return report.to_dict()


@router.post("/batch")
async def submit_roster_batch(
    body: RosterBatchRequest,
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
    clock: Clock = Depends(get_clock),
) -> dict[str, Any]:
    """Ingest manual rows through the store's batch endpoint."""
    kind = catalog.parse_kind(body.kind)
    report = await RosterBatchSubmitter(store, catalog, clock).submit(body.to_rows(), kind)
    return report.to_dict()


@router.post("/import")
async def import_roster(
    body: RosterImportRequest,
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
    clock: Clock = Depends(get_clock),
) -> dict[str, Any]:
    """Normalize delimited text, then ingest the surviving rows."""
    kind = catalog.parse_kind(body.kind)
    parsed = parse_roster_text(body.text, catalog, body.delimiter)

    if body.mode == "combined":
        report = await RosterBatchSubmitter(store, catalog, clock).submit(parsed.rows, kind)
    else:
        report = await RosterIngestor(store, catalog, clock).ingest(parsed.rows, kind)

    result = parsed.merge_into(report).to_dict()
    result["import_errors"] = [str(e) for e in parsed.errors]
    result["import_warnings"] = [str(w) for w in parsed.warnings]
    return result


# ============================================================================
# Circle CRUD
# ============================================================================


@router.get("", response_model=list[CircleResponse])
async def list_circles(
    category: str | None = Query(None),
    kind: str | None = Query(None),
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
) -> list[CircleResponse]:
    circles = await CircleRepository(store).list_all(
        category=catalog.parse_category(category) if category else None,
        kind=catalog.parse_kind(kind) if kind else None,
    )
    return [CircleResponse.from_model(c) for c in circles]


@router.get("/{circle_id}", response_model=CircleResponse)
async def get_circle(circle_id: str, store: RecordStore = Depends(get_store)) -> CircleResponse:
    return CircleResponse.from_model(await CircleRepository(store).get(circle_id))


@router.post("", response_model=CircleResponse, status_code=201)
async def create_circle(
    body: CircleCreate,
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
) -> CircleResponse:
    """Create a circle directly; its (number, category, kind) must be unused."""
    category = catalog.parse_category(body.category)
    kind = catalog.parse_kind(body.kind)
    if category not in catalog.categories_for(kind):
        raise ValidationError(f"Category {category.value} has no {kind.value} circles", field="category")

    repo = CircleRepository(store)
    if await repo.find_by_natural_key(body.sequence_number, category, kind) is not None:
        raise ValidationError(
            f"Circle {body.sequence_number}/{category.value}/{kind.value} already exists", field="sequence_number"
        )
    await MentorRepository(store).get(body.mentor_id)
    circle = await repo.create(body.sequence_number, category, body.mentor_id, body.mentor_class, kind, body.name)
    return CircleResponse.from_model(circle)


@router.put("/{circle_id}", response_model=CircleResponse)
async def update_circle(
    circle_id: str,
    body: CircleUpdate,
    store: RecordStore = Depends(get_store),
) -> CircleResponse:
    repo = CircleRepository(store)
    circle = await repo.get(circle_id)
    fields: dict[str, Any] = {}
    if body.sequence_number is not None and body.sequence_number != circle.sequence_number:
        clash = await repo.find_by_natural_key(body.sequence_number, circle.category, circle.kind)
        if clash is not None:
            raise ValidationError(f"Circle number {body.sequence_number} is already used", field="sequence_number")
        fields["sequence_number"] = body.sequence_number
    if body.mentor_id is not None:
        await MentorRepository(store).get(body.mentor_id)
        fields["mentor"] = body.mentor_id
    if body.mentor_class is not None:
        fields["mentor_class"] = body.mentor_class
    if body.name is not None:
        fields["name"] = body.name
    if not fields:
        return CircleResponse.from_model(circle)
    return CircleResponse.from_model(await repo.update(circle_id, fields))


@router.delete("/{circle_id}", status_code=204)
async def delete_circle(circle_id: str, store: RecordStore = Depends(get_store)) -> None:
    """Delete a circle together with its membership rows."""
    memberships = MembershipRepository(store)
    for membership in await memberships.list_active_for_circle(circle_id):
        await memberships.delete(membership.id)
    await CircleRepository(store).delete(circle_id)
    logger.info(f"Deleted circle {circle_id}")


# ============================================================================
# Membership
# ============================================================================


@router.get("/{circle_id}/members", response_model=list[MemberResponse])
async def list_members(circle_id: str, store: RecordStore = Depends(get_store)) -> list[MemberResponse]:
    await CircleRepository(store).get(circle_id)
    memberships = await MembershipRepository(store).list_active_for_circle(circle_id)
    return [
        MemberResponse(
            id=m.id,
            circle_id=m.circle_id,
            student_id=m.student_id,
            kind=m.kind.value,
            start_date=format_date(m.start_date),
            end_date=format_date(m.end_date),
        )
        for m in memberships
    ]


@router.post("/{circle_id}/members", status_code=201)
async def add_member(
    circle_id: str,
    body: MemberAdd,
    store: RecordStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
) -> dict[str, Any]:
    """Add one student; an active membership of the same kind elsewhere is closed."""
    circle = await CircleRepository(store).get(circle_id)
    await StudentRepository(store).get(body.student_id)

    active = {m.student_id for m in await MembershipRepository(store).list_active_for_circle(circle_id)}
    if body.student_id in active:
        raise ValidationError(f"Student '{body.student_id}' is already a member of this circle", field="student_id")

    result = ReconcileResult(circle.id)
    membership = await MembershipReconciler(store, clock).add_member(circle, body.student_id, result)
    return {"membership_id": membership.id, "closed": result.closed}


@router.delete("/{circle_id}/members/{student_id}", status_code=204)
async def remove_member(circle_id: str, student_id: str, store: RecordStore = Depends(get_store)) -> None:
    await MembershipRepository(store).delete_for_student(circle_id, student_id)


@router.put("/{circle_id}/roster")
async def edit_roster(
    circle_id: str,
    body: RosterEditRequest,
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
    clock: Clock = Depends(get_clock),
) -> dict[str, Any]:
    """Replace the circle's mentor data and member list."""
    result = await RosterEditor(store, catalog, clock).edit(circle_id, body.to_rows())
    return result.to_dict()
