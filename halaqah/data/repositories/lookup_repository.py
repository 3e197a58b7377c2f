"""Loads the lookup catalog, extended with the store's class labels."""

from __future__ import annotations

import logging

from halaqah.core.errors import ValidationError
from halaqah.core.lookups import DEFAULT_CATALOG, Category, LookupCatalog

from ..store import RecordStore

logger = logging.getLogger(__name__)

CLASS_LABELS = "class_labels"


async def load_catalog(store: RecordStore, base: LookupCatalog = DEFAULT_CATALOG) -> LookupCatalog:
    """Return ``base`` with class labels replaced by the ``class_labels`` collection.

    Rows naming an unknown category are skipped with a warning.
    """
    records = await store.list_records(CLASS_LABELS, sort="category,label")
    pairs: list[tuple[Category, str]] = []
    for record in records:
        try:
            category = base.parse_category(record.get("category"))
        except ValidationError:
            logger.warning(f"Skipping class label {record.get('label')!r}: unknown category {record.get('category')!r}")
            continue
        label = str(record.get("label") or "").strip()
        if label:
            pairs.append((category, label))

    catalog = base.with_class_labels(pairs)
    logger.debug(f"Loaded lookup catalog with {len(pairs)} class labels from store")
    return catalog
