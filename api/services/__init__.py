"""
API Services - Read-side aggregation used by the Halaqah API routers.
"""

from .report_service import ReportService

__all__ = ["ReportService"]
