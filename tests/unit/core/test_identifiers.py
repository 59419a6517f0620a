"""
Unit Tests for Deterministic Identifiers.

Checks the UUID v5 construction against a from-scratch SHA-1 reference so
the output stays bit-exact with other clients.
"""

import hashlib
from uuid import RFC_4122, UUID

import pytest

from notesync.core.identifiers import (
    CATEGORY_NAMESPACE,
    canonical_key,
    default_entry_for,
    default_identifiers,
    identifier_for,
    is_default_identifier,
)
from notesync.core.palette import DEFAULT_CATEGORIES


def reference_uuid5(namespace: UUID, name: str) -> str:
    """UUID v5 built by hand: SHA-1, version nibble 5, RFC 4122 variant."""
    digest = bytearray(hashlib.sha1(namespace.bytes + name.encode("utf-8")).digest()[:16])
    digest[6] = (digest[6] & 0x0F) | 0x50
    digest[8] = (digest[8] & 0x3F) | 0x80
    return str(UUID(bytes=bytes(digest)))


class TestCanonicalKey:
    """Tests for the canonical category string."""

    def test_joins_and_lowercases(self):
        assert canonical_key("Book", "green", "book") == "book|green|book"

    def test_keeps_inner_punctuation(self):
        assert canonical_key("Message", "brown", "message.badge.filled.fill") == (
            "message|brown|message.badge.filled.fill"
        )


class TestIdentifierFor:
    """Tests for identifier_for."""

    @pytest.mark.parametrize("entry", DEFAULT_CATEGORIES, ids=lambda e: e.name)
    def test_matches_reference_construction(self, entry):
        expected = reference_uuid5(
            CATEGORY_NAMESPACE,
            f"{entry.name}|{entry.color}|{entry.symbol}".lower(),
        )
        assert identifier_for(entry.name, entry.color, entry.symbol) == expected

    @pytest.mark.parametrize(
        ("name", "color", "symbol", "expected"),
        [
            ("Book", "green", "book", "edb5d504-4409-5111-b58a-1f52746da2bf"),
            ("Cooking", "blue", "fork.knife", "7fff208e-4f35-5dba-a715-60bda0263b28"),
        ],
    )
    def test_known_vectors(self, name, color, symbol, expected):
        assert identifier_for(name, color, symbol) == expected

    def test_is_version_5_with_rfc4122_variant(self):
        value = UUID(identifier_for("Book", "green", "book"))
        assert value.version == 5
        assert value.variant == RFC_4122

    def test_is_lowercase_hyphenated(self):
        identifier = identifier_for("Day", "yellow", "sun.min")
        assert identifier == identifier.lower()
        assert len(identifier) == 36
        assert identifier.count("-") == 4

    def test_is_deterministic(self):
        assert identifier_for("Movie", "pink", "movieclapper") == identifier_for(
            "Movie", "pink", "movieclapper"
        )

    def test_is_case_insensitive(self):
        assert identifier_for("BOOK", "Green", "Book") == identifier_for("book", "green", "book")

    def test_differs_by_any_component(self):
        base = identifier_for("Book", "green", "book")
        assert identifier_for("Book", "blue", "book") != base
        assert identifier_for("Book", "green", "star") != base
        assert identifier_for("Books", "green", "book") != base

    def test_namespace_is_dns_namespace(self):
        assert str(CATEGORY_NAMESPACE) == "6ba7b810-9dad-11d1-80b4-00c04fd430c8"


class TestIsDefaultIdentifier:
    """Tests for the built-in identifier predicate."""

    def test_true_for_each_default(self):
        for entry in DEFAULT_CATEGORIES:
            assert is_default_identifier(identifier_for(entry.name, entry.color, entry.symbol))

    def test_accepts_uppercase_form(self):
        identifier = identifier_for("List", "gray", "list.bullet")
        assert is_default_identifier(identifier.upper())

    def test_accepts_uuid_instance(self):
        assert is_default_identifier(UUID(identifier_for("List", "gray", "list.bullet")))

    def test_false_for_custom_triple(self):
        assert not is_default_identifier(identifier_for("Travel", "teal", "paperplane"))

    @pytest.mark.parametrize("value", [None, "", "not-a-uuid", "1234"])
    def test_false_for_missing_or_malformed(self, value):
        assert is_default_identifier(value) is False

    def test_default_identifiers_has_one_per_entry(self):
        assert len(default_identifiers()) == len(DEFAULT_CATEGORIES)


class TestDefaultEntryFor:
    """Tests for matching a triple against the shipped defaults."""

    def test_matches_case_insensitively(self):
        entry = default_entry_for("cooking", "BLUE", "fork.knife")
        assert entry is not None
        assert entry.name == "Cooking"

    def test_none_for_custom(self):
        assert default_entry_for("Cooking", "red", "fork.knife") is None

    def test_none_for_missing_component(self):
        assert default_entry_for("Cooking", None, "fork.knife") is None
