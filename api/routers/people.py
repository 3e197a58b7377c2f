"""
People Router - Student (santri) and mentor (musammi) CRUD endpoints.

Explicit deletes live here; bulk roster flows never delete people.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from halaqah.core.errors import ValidationError
from halaqah.core.lookups import LookupCatalog
from halaqah.data.repositories import MentorRepository, StudentRepository
from halaqah.data.store import RecordStore

from ..dependencies import get_catalog, get_store
from ..schemas.entities import (
    MentorCreate,
    MentorResponse,
    MentorUpdate,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["people"])


def _update_fields(update: StudentUpdate | MentorUpdate, catalog: LookupCatalog) -> dict[str, object]:
    fields = update.model_dump(exclude_none=True)
    if "category" in fields:
        fields["category"] = catalog.parse_category(fields["category"]).value
    if "name" in fields:
        fields["name"] = str(fields["name"]).strip()
        if not fields["name"]:
            raise ValidationError("name cannot be blank", field="name")
    if not fields:
        raise ValidationError("Nothing to update")
    return fields


# ============================================================================
# Students
# ============================================================================


@router.get("/students", response_model=list[StudentResponse])
async def list_students(
    category: str | None = Query(None),
    active_only: bool = Query(False),
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
) -> list[StudentResponse]:
    repo = StudentRepository(store)
    parsed = catalog.parse_category(category) if category else None
    students = await (repo.list_active(parsed) if active_only else repo.list_all(parsed))
    return [StudentResponse.from_model(s) for s in students]


@router.get("/students/{student_id}", response_model=StudentResponse)
async def get_student(student_id: str, store: RecordStore = Depends(get_store)) -> StudentResponse:
    return StudentResponse.from_model(await StudentRepository(store).get(student_id))


@router.post("/students", response_model=StudentResponse, status_code=201)
async def create_student(
    body: StudentCreate,
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
) -> StudentResponse:
    student = await StudentRepository(store).create(
        body.name, catalog.parse_category(body.category), body.class_label.strip(), active=body.active
    )
    return StudentResponse.from_model(student)


@router.put("/students/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: str,
    body: StudentUpdate,
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
) -> StudentResponse:
    student = await StudentRepository(store).update(student_id, _update_fields(body, catalog))
    return StudentResponse.from_model(student)


@router.delete("/students/{student_id}", status_code=204)
async def delete_student(student_id: str, store: RecordStore = Depends(get_store)) -> None:
    await StudentRepository(store).delete(student_id)
    logger.info(f"Deleted student {student_id}")


# ============================================================================
# Mentors
# ============================================================================


@router.get("/mentors", response_model=list[MentorResponse])
async def list_mentors(
    category: str | None = Query(None),
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
) -> list[MentorResponse]:
    mentors = await MentorRepository(store).list_all(catalog.parse_category(category) if category else None)
    return [MentorResponse.from_model(m) for m in mentors]


@router.get("/mentors/{mentor_id}", response_model=MentorResponse)
async def get_mentor(mentor_id: str, store: RecordStore = Depends(get_store)) -> MentorResponse:
    return MentorResponse.from_model(await MentorRepository(store).get(mentor_id))


@router.post("/mentors", response_model=MentorResponse, status_code=201)
async def create_mentor(
    body: MentorCreate,
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
) -> MentorResponse:
    mentor = await MentorRepository(store).create(
        body.name, catalog.parse_category(body.category), body.class_label.strip(), notes=body.notes
    )
    return MentorResponse.from_model(mentor)


@router.put("/mentors/{mentor_id}", response_model=MentorResponse)
async def update_mentor(
    mentor_id: str,
    body: MentorUpdate,
    store: RecordStore = Depends(get_store),
    catalog: LookupCatalog = Depends(get_catalog),
) -> MentorResponse:
    mentor = await MentorRepository(store).update(mentor_id, _update_fields(body, catalog))
    return MentorResponse.from_model(mentor)


@router.delete("/mentors/{mentor_id}", status_code=204)
async def delete_mentor(mentor_id: str, store: RecordStore = Depends(get_store)) -> None:
    await MentorRepository(store).delete(mentor_id)
    logger.info(f"Deleted mentor {mentor_id}")
