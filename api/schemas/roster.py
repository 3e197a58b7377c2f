"""
Pydantic schemas for bulk roster endpoints (ingest, combined batch, import, edit).
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from halaqah.core.models import RosterRow


class RosterRowIn(BaseModel):
    """One manually entered roster row. Values stay raw until ingestion validates them."""

    student_name: str = ""
    student_class: str = ""
    student_category: str = ""
    sequence_number: str = ""
    mentor_name: str = ""
    mentor_category: str = ""
    mentor_class: str = ""

    @field_validator("sequence_number", mode="before")
    @classmethod
    def coerce_sequence(cls, v: object) -> str:
        """Accept numbers as well as strings for the circle number."""
        return "" if v is None else str(v)

    def to_row(self, row_number: int) -> RosterRow:
        return RosterRow(
            student_name=self.student_name,
            student_class=self.student_class,
            student_category=self.student_category,
            sequence_number=self.sequence_number,
            mentor_name=self.mentor_name,
            mentor_category=self.mentor_category,
            mentor_class=self.mentor_class,
            row_number=row_number,
        )


class RosterBatchRequest(BaseModel):
    """Request body for per-entity ingestion and combined submission."""

    rows: list[RosterRowIn] = Field(..., min_length=1)
    kind: str = "UTAMA"

    def to_rows(self) -> list[RosterRow]:
        return [row.to_row(index) for index, row in enumerate(self.rows, start=1)]


class RosterImportRequest(BaseModel):
    """Request body for delimited-text import."""

    text: str = Field(..., description="Whole file contents; first non-blank line is a header")
    kind: str = "UTAMA"
    mode: Literal["per_entity", "combined"] = "per_entity"
    delimiter: str = Field(default=",", min_length=1, max_length=1)


class RosterEditRequest(BaseModel):
    """Request body for editing one circle's roster."""

    rows: list[RosterRowIn] = Field(..., min_length=1)

    def to_rows(self) -> list[RosterRow]:
        return [row.to_row(index) for index, row in enumerate(self.rows, start=1)]
