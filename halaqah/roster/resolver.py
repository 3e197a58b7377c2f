"""Natural-key find-or-create for students and mentors.

The resolver works against a snapshot of each person collection taken once per
batch. Lookups are a plain linear scan for an exact (name, category) match;
a miss creates exactly one record and appends it to the snapshot so later rows
in the same batch resolve to it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from halaqah.core.errors import ValidationError
from halaqah.core.lookups import DEFAULT_CATALOG, Category, LookupCatalog, PersonKind
from halaqah.core.models import Mentor, Student
from halaqah.data.repositories import repository_for
from halaqah.data.store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class ResolvedEntity:
    id: str
    created: bool


class EntityResolver:
    """Resolves person candidates to store ids within one batch."""

    def __init__(self, store: RecordStore, catalog: LookupCatalog = DEFAULT_CATALOG) -> None:
        self.catalog = catalog
        self._repos = {kind: repository_for(store, kind) for kind in PersonKind}
        self._snapshots: dict[PersonKind, list[Student | Mentor]] = {}

    async def load(self, *kinds: PersonKind) -> None:
        """(Re)load the snapshot for the given kinds, or both when none given."""
        for kind in kinds or tuple(PersonKind):
            self._snapshots[kind] = list(await self._repos[kind].list_all())
            logger.debug(f"Loaded {len(self._snapshots[kind])} {kind.value} records for resolution")

    async def _snapshot(self, kind: PersonKind) -> list[Student | Mentor]:
        if kind not in self._snapshots:
            await self.load(kind)
        return self._snapshots[kind]

    def validate(self, name: Any, category: Any) -> tuple[str, Category]:
        """Check a candidate's natural key and return it normalized."""
        clean_name = str(name or "").strip()
        if not clean_name:
            raise ValidationError("Name is required", field="name")
        return clean_name, self.catalog.parse_category(category)

    def find(self, kind: PersonKind, name: str, category: Category) -> Student | Mentor | None:
        """Scan the loaded snapshot; no store call. Call ``load`` first."""
        for entity in self._snapshots.get(kind, []):
            if entity.name == name and entity.category is category:
                return entity
        return None

    def remember(self, kind: PersonKind, entity: Student | Mentor) -> None:
        """Append an entity created elsewhere (e.g. by a batch) to the snapshot."""
        self._snapshots.setdefault(kind, []).append(entity)

    async def resolve(self, kind: PersonKind, name: Any, category: Any, class_label: str = "") -> ResolvedEntity:
        """Return the id of the matching person, creating it when absent.

        An existing match is returned as-is: its class label is never
        overwritten from the candidate.

        Raises:
            ValidationError: Empty name or unknown category.
            RemoteStoreError: The create call failed (not retried).
        """
        clean_name, parsed_category = self.validate(name, category)
        await self._snapshot(kind)

        existing = self.find(kind, clean_name, parsed_category)
        if existing is not None:
            return ResolvedEntity(existing.id, created=False)

        created = await self._repos[kind].create(clean_name, parsed_category, (class_label or "").strip())
        self.remember(kind, created)
        logger.info(f"Created {kind.value} '{clean_name}' ({parsed_category.value})")
        return ResolvedEntity(created.id, created=True)
