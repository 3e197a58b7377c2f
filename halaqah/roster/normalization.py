"""Pure normalization of free-text category and class tokens.

Imported rosters spell categories many ways ("MTS", "Mutawassitoh 2",
"aliyah"). These helpers map them onto catalog values and return None for
anything unrecognized; callers decide how to report it.
"""

from __future__ import annotations

from halaqah.core.lookups import CATEGORY_NAMES, Category, LookupCatalog

# Exact aliases checked after the category codes themselves
_CATEGORY_ALIASES: dict[str, Category] = {
    "MTS": Category.MUT,
    "MA": Category.ALI,
}

# Substrings that identify a category anywhere in the token, checked in order
_CATEGORY_FRAGMENTS: tuple[tuple[str, Category], ...] = (
    ("MUTAWASSITOH", Category.MUT),
    ("ALIYAH", Category.ALI),
    ("JAMI", Category.JAM),
)


def normalize_category(token: str | None) -> Category | None:
    """Map a category token to a Category, or None when it is not recognized.

    Matching is case-insensitive: codes first, then the MTS/MA aliases, then
    name fragments, then the display names.
    """
    normalized = (token or "").strip().upper()
    if not normalized:
        return None

    for category in Category:
        if normalized == category.value:
            return category

    if normalized in _CATEGORY_ALIASES:
        return _CATEGORY_ALIASES[normalized]

    for fragment, category in _CATEGORY_FRAGMENTS:
        if fragment in normalized:
            return category

    for category, name in CATEGORY_NAMES.items():
        if name.upper() == normalized:
            return category

    return None


def match_class_label(token: str | None, category: Category | None, catalog: LookupCatalog) -> str | None:
    """Return the catalog's class label for ``token`` within ``category``.

    Exact match wins, then a case-insensitive match (returning the catalog's
    spelling). Without a category no label can be valid.
    """
    if category is None:
        return None
    return _match_label(token, catalog.classes_for(category))


def match_mentor_class(token: str | None, catalog: LookupCatalog) -> str | None:
    """Return the catalog's mentor class label for ``token``, matched the same way."""
    return _match_label(token, catalog.mentor_classes())


def _match_label(token: str | None, labels: tuple[str, ...]) -> str | None:
    value = (token or "").strip()
    if not value:
        return None
    if value in labels:
        return value

    lowered = value.lower()
    for label in labels:
        if label.lower() == lowered:
            return label
    return None
