"""
Lookups Router - Reference values for forms (categories, times, statuses, classes, kinds).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from halaqah.core.lookups import LookupCatalog

from ..dependencies import get_catalog

router = APIRouter(prefix="/api", tags=["lookups"])


@router.get("/lookups")
async def get_lookups(catalog: LookupCatalog = Depends(get_catalog)) -> dict[str, Any]:
    return catalog.to_dict()
