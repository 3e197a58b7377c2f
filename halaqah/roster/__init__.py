"""Roster engine: identity resolution, membership reconciliation and bulk ingestion."""

from __future__ import annotations

from .batch_submitter import RosterBatchSubmitter
from .editor import EditResult, RosterEditor
from .ingestor import RosterIngestor, group_rows, validate_rows
from .normalization import match_class_label, match_mentor_class, normalize_category
from .reconciler import MembershipReconciler, ReconcileResult
from .report import GroupFailure, IngestReport, RowIssue
from .resolver import EntityResolver, ResolvedEntity
from .snapshot import RosterSnapshotLoader
from .text_import import ImportIssue, ImportResult, parse_roster_text

__all__ = [
    "EditResult",
    "EntityResolver",
    "GroupFailure",
    "ImportIssue",
    "ImportResult",
    "IngestReport",
    "MembershipReconciler",
    "ReconcileResult",
    "ResolvedEntity",
    "RosterBatchSubmitter",
    "RosterEditor",
    "RosterIngestor",
    "RosterSnapshotLoader",
    "RowIssue",
    "group_rows",
    "match_class_label",
    "match_mentor_class",
    "normalize_category",
    "parse_roster_text",
    "validate_rows",
]
