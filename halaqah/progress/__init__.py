"""Monthly memorization progress records."""

from __future__ import annotations

from .service import ProgressBatchReport, ProgressService, parse_quantity

__all__ = ["ProgressBatchReport", "ProgressService", "parse_quantity"]
