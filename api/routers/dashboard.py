"""
Dashboard Router - Summary statistics for the landing page.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from halaqah.clock import Clock
from halaqah.data.store import RecordStore

from ..dependencies import get_clock, get_store
from ..services.report_service import ReportService

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats")
async def get_dashboard_stats(
    store: RecordStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
) -> dict[str, Any]:
    return await ReportService(store).dashboard_stats(clock())
