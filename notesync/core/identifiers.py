"""
Deterministic Identifiers.

Built-in categories are created independently on every install. To keep
them from forking across devices they get identifiers derived from their
content instead of random ones: a name-based UUID v5 (RFC 4122, SHA-1)
over the canonical string ``"name|color|symbol"`` lowercased, under a fixed
namespace.

The output must be bit-exact with every other client computing the same
identifier, so the construction is the stock one:

    sha1(namespace.bytes + canonical.encode("utf-8"))[:16]
    with version nibble = 5 and variant bits = 10

Usage:
    from notesync.core.identifiers import identifier_for, is_default_identifier

    identifier_for("Book", "green", "book")
    is_default_identifier(category.id)
"""

from functools import lru_cache
from uuid import UUID, uuid5

from notesync.core.palette import DEFAULT_CATEGORIES, DefaultCategory

CATEGORY_NAMESPACE = UUID("6ba7b810-9dad-11d1-80b4-00c04fd430c8")

_DELIMITER = "|"


def canonical_key(name: str, color: str, symbol: str) -> str:
    """Canonical lowercase delimiter-joined form of a category triple."""
    return _DELIMITER.join((name, color, symbol)).lower()


def identifier_for(name: str, color: str, symbol: str) -> str:
    """
    Deterministic identifier for a category triple.

    Pure: the same triple always yields the same identifier, on every
    install and every implementation.

    Returns:
        Lowercase hyphenated UUID string
    """
    return str(uuid5(CATEGORY_NAMESPACE, canonical_key(name, color, symbol)))


@lru_cache(maxsize=1)
def _default_identifiers() -> dict[str, DefaultCategory]:
    return {
        identifier_for(entry.name, entry.color, entry.symbol): entry
        for entry in DEFAULT_CATEGORIES
    }


@lru_cache(maxsize=1)
def _default_keys() -> dict[str, DefaultCategory]:
    return {
        canonical_key(entry.name, entry.color, entry.symbol): entry
        for entry in DEFAULT_CATEGORIES
    }


def default_identifiers() -> frozenset[str]:
    """Identifiers of every shipped default category."""
    return frozenset(_default_identifiers())


def is_default_identifier(identifier: str | UUID | None) -> bool:
    """True iff identifier belongs to one of the shipped default categories."""
    if identifier is None:
        return False
    try:
        normalized = str(identifier if isinstance(identifier, UUID) else UUID(str(identifier)))
    except ValueError:
        return False
    return normalized in _default_identifiers()


def default_entry_for(name: str | None, color: str | None, symbol: str | None) -> DefaultCategory | None:
    """
    Default category whose triple matches, or None.

    Matching is on the canonical (case-insensitive) key, the same key the
    identifier is computed from.
    """
    if name is None or color is None or symbol is None:
        return None
    return _default_keys().get(canonical_key(name, color, symbol))
