"""Local calendar date for membership start/end stamps."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Asia/Jakarta"

Clock = Callable[[], date]


def local_today(tz_name: str | None = None) -> date:
    """Today's date in the given timezone (Asia/Jakarta by default)."""
    return datetime.now(ZoneInfo(tz_name or DEFAULT_TIMEZONE)).date()


def clock_for(tz_name: str) -> Clock:
    return lambda: local_today(tz_name)
