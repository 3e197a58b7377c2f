"""
Attendance Router - Session roster, batch recording, listings and report.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query

from halaqah.attendance import AttendanceBatchRecorder, SessionRegistry, validate_session
from halaqah.core.errors import ValidationError
from halaqah.core.lookups import LookupCatalog, PersonKind
from halaqah.core.models import AttendanceRecord, format_date
from halaqah.data.repositories import AttendanceRepository, MentorRepository, StudentRepository
from halaqah.data.store import RecordStore
from halaqah.roster import RosterSnapshotLoader

from ..dependencies import get_catalog, get_session_registry, get_store
from ..schemas.attendance import AttendanceBatchRequest, AttendanceRecordResponse, RosterCircle
from ..services.report_service import ROLES, ReportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/attendance", tags=["attendance"])


def _to_response(record: AttendanceRecord) -> AttendanceRecordResponse:
    return AttendanceRecordResponse(
        id=record.id,
        date=format_date(record.date),
        session_time=record.session_time.value,
        category=record.category.value,
        kind=record.kind.value,
        circle_id=record.circle_id,
        person_id=record.person_id,
        status=record.status.value,
        remark=record.remark,
    )


@router.get("/roster", response_model=list[RosterCircle])
async def get_session_roster(
    category: str = Query(...),
    kind: str = Query("UTAMA"),
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
    registry: SessionRegistry = Depends(get_session_registry),
) -> list[RosterCircle]:
    """Circles with their mentor and active members; resets the editing session to defaults."""
    parsed_category = catalog.parse_category(category)
    parsed_kind = catalog.parse_kind(kind)
    snapshot = await RosterSnapshotLoader(store).load(parsed_category, parsed_kind)
    registry.get(parsed_category, parsed_kind).populate(snapshot)

    mentors = {m.id: m for m in await MentorRepository(store).list_all()}
    students = {s.id: s for s in await StudentRepository(store).list_all(parsed_category)}
    return [
        RosterCircle(
            circle_id=item.circle_id,
            sequence_number=item.circle.sequence_number,
            mentor_id=item.mentor_id,
            mentor_name=mentors[item.mentor_id].name if item.mentor_id in mentors else "",
            members=[
                {
                    "student_id": sid,
                    "name": students[sid].name if sid in students else "",
                    "class_label": students[sid].class_label if sid in students else "",
                }
                for sid in item.member_ids
            ],
        )
        for item in snapshot
    ]


@router.post("/batch", status_code=201)
async def record_attendance(
    body: AttendanceBatchRequest,
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
    registry: SessionRegistry = Depends(get_session_registry),
) -> dict[str, Any]:
    """Record a whole session (every mentor and active student) in one store request.

    Returns 409 while an earlier submission for the same category and kind is
    still in flight.
    """
    _, category, kind = validate_session(catalog, body.session_time, body.category, body.kind)
    snapshot = await RosterSnapshotLoader(store).load(category, kind)

    if body.circle_ids is not None:
        by_id = {item.circle_id: item for item in snapshot}
        unknown = [cid for cid in body.circle_ids if cid not in by_id]
        if unknown:
            raise ValidationError(
                f"Not {category.value}/{kind.value} circles: {', '.join(unknown)}", field="circle_ids"
            )
        snapshot = [by_id[cid] for cid in dict.fromkeys(body.circle_ids)]

    session = registry.get(category, kind)
    recorder = AttendanceBatchRecorder(store, catalog)

    async def submit() -> Any:
        return await recorder.record(
            body.date,
            body.session_time,
            category,
            kind,
            snapshot,
            status_overrides=body.status_overrides,
            remarks=body.remarks,
        )

    result = await session.submit(submit)
    return result.to_dict()


@router.get("/students", response_model=list[AttendanceRecordResponse])
async def list_student_attendance(
    date: date | None = Query(None),
    session_time: str | None = Query(None),
    category: str | None = Query(None),
    kind: str | None = Query(None),
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
) -> list[AttendanceRecordResponse]:
    return await _list_attendance(PersonKind.STUDENT, date, session_time, category, kind, store, catalog)


@router.get("/mentors", response_model=list[AttendanceRecordResponse])
async def list_mentor_attendance(
    date: date | None = Query(None),
    session_time: str | None = Query(None),
    category: str | None = Query(None),
    kind: str | None = Query(None),
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
) -> list[AttendanceRecordResponse]:
    return await _list_attendance(PersonKind.MENTOR, date, session_time, category, kind, store, catalog)


async def _list_attendance(
    person_kind: PersonKind,
    session_date: date | None,
    session_time: str | None,
    category: str | None,
    kind: str | None,
    store: RecordStore,
    catalog: LookupCatalog,
) -> list[AttendanceRecordResponse]:
    records = await AttendanceRepository(store).find(
        person_kind,
        session_date=session_date,
        session_time=catalog.parse_session_time(session_time) if session_time else None,
        category=catalog.parse_category(category) if category else None,
        kind=catalog.parse_kind(kind) if kind else None,
    )
    return [_to_response(r) for r in records]


@router.get("/report")
async def attendance_report(
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    category: str | None = Query(None),
    class_label: str | None = Query(None),
    role: str = Query("all"),
    kind: str | None = Query(None),
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
) -> dict[str, Any]:
    if role not in ROLES:
        raise ValidationError(f"Invalid role '{role}'. Must be one of: {', '.join(ROLES)}", field="role")
    if date_from and date_to and date_from > date_to:
        raise ValidationError("date_from must not be after date_to", field="date_from")

    return await ReportService(store).attendance_report(
        date_from=date_from,
        date_to=date_to,
        category=catalog.parse_category(category) if category else None,
        class_label=class_label or None,
        role=role,
        kind=catalog.parse_kind(kind) if kind else None,
    )
