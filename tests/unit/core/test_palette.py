"""Unit tests for notesync.core.palette."""

import pytest

from notesync.core.exceptions import ValidationError
from notesync.core.palette import (
    AVAILABLE_COLORS,
    AVAILABLE_SYMBOLS,
    DEFAULT_CATEGORIES,
    ensure_palette_tokens,
)


class TestDefaults:
    def test_six_defaults_in_index_order(self):
        assert [entry.name for entry in DEFAULT_CATEGORIES] == [
            "Book", "Cooking", "Day", "Movie", "Message", "List",
        ]
        assert [entry.index for entry in DEFAULT_CATEGORIES] == list(range(6))

    def test_defaults_use_palette_tokens(self):
        for entry in DEFAULT_CATEGORIES:
            assert entry.color in AVAILABLE_COLORS
            assert entry.symbol in AVAILABLE_SYMBOLS


class TestEnsurePaletteTokens:
    def test_accepts_known_tokens(self):
        ensure_palette_tokens("green", "book")

    def test_rejects_unknown_color(self):
        with pytest.raises(ValidationError) as exc_info:
            ensure_palette_tokens("chartreuse", "book")
        assert "color" in exc_info.value.details

    def test_reports_both_problems(self):
        with pytest.raises(ValidationError) as exc_info:
            ensure_palette_tokens("chartreuse", "rocket")
        assert set(exc_info.value.details) == {"color", "symbol"}
