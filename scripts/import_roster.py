#!/usr/bin/env python3
"""
Import a circle roster from a delimited text file.

Each line holds one student:
    student name, student class, student category, circle number,
    mentor name, mentor category, mentor class

The first non-blank line is a header and is skipped. Storage and credentials
come from the same environment as the API (STORAGE_BACKEND, POCKETBASE_URL,
POCKETBASE_ADMIN_EMAIL, POCKETBASE_ADMIN_PASSWORD).
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pocketbase import PocketBase

from api.settings import Settings, get_settings
from halaqah.clock import clock_for
from halaqah.core.lookups import CircleKind
from halaqah.data import MemoryStore, PocketBaseStore, RecordStore
from halaqah.data.repositories import load_catalog
from halaqah.logging_config import configure_logging, get_logger
from halaqah.roster import IngestReport, RosterBatchSubmitter, RosterIngestor, parse_roster_text

logger = get_logger(__name__)


def open_store(settings: Settings) -> RecordStore:
    """Build the record store named by the settings, authenticating if needed."""
    if settings.storage_backend == "memory":
        logger.warning("STORAGE_BACKEND=memory - nothing will be persisted")
        return MemoryStore()

    pb = PocketBase(settings.pocketbase_url)
    if not settings.skip_pb_auth:
        pb.collection("_superusers").auth_with_password(
            settings.pocketbase_admin_email, settings.pocketbase_admin_password
        )
        logger.info(f"Authenticated with PocketBase at {settings.pocketbase_url}")
    return PocketBaseStore(pb)


async def import_roster(
    store: RecordStore,
    text: str,
    kind: CircleKind = CircleKind.REGULAR,
    combined: bool = False,
    delimiter: str = ",",
    tz_name: str | None = None,
) -> tuple[IngestReport, list[str]]:
    """Parse and ingest roster text.

    Returns:
        Tuple of (ingest report, import problems found while parsing).
    """
    catalog = await load_catalog(store)
    parsed = parse_roster_text(text, catalog, delimiter)
    problems = [str(issue) for issue in parsed.errors + parsed.warnings]

    clock = clock_for(tz_name) if tz_name else clock_for(get_settings().tz)
    if combined:
        report = await RosterBatchSubmitter(store, catalog, clock).submit(parsed.rows, kind)
    else:
        report = await RosterIngestor(store, catalog, clock).ingest(parsed.rows, kind)
    return parsed.merge_into(report), problems


def print_report(report: IngestReport) -> None:
    print("\n" + "=" * 60)
    print("ROSTER IMPORT")
    print("=" * 60)
    print(report.summary())

    reasons, omitted = report.reasons()
    if reasons:
        print("\nDetails:")
        for reason in reasons:
            print(f"  - {reason}")
        if omitted:
            print(f"  ... and {omitted} more")


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Import a study-circle roster from a delimited text file")
    parser.add_argument("file", type=Path, help="Roster file (7 columns, header line first)")
    parser.add_argument("--kind", default="UTAMA", help="Circle kind: UTAMA (regular) or PAGI (morning)")
    parser.add_argument("--delimiter", default=",", help="Column delimiter (default: comma)")
    parser.add_argument("--combined", action="store_true", help="Submit layer by layer as batch requests")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    args = parser.parse_args()
    configure_logging(source="import", debug=args.debug or None)

    if not args.file.exists():
        print(f"ERROR: File not found: {args.file}")
        sys.exit(1)

    try:
        kind = CircleKind(args.kind.strip().upper())
    except ValueError:
        print(f"ERROR: Unknown circle kind '{args.kind}' (expected UTAMA or PAGI)")
        sys.exit(1)

    settings = get_settings()
    store = open_store(settings)
    text = args.file.read_text(encoding="utf-8-sig")

    report, _ = asyncio.run(
        import_roster(store, text, kind, combined=args.combined, delimiter=args.delimiter, tz_name=settings.tz)
    )
    print_report(report)

    if not report.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
