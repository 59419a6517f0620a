"""
Category Palette.

Closed sets of color and symbol tokens a category may carry, and the
shipped default categories every install starts with.
"""

from typing import NamedTuple

from notesync.core.exceptions import ValidationError

AVAILABLE_COLORS: tuple[str, ...] = (
    "green", "blue", "yellow", "pink", "brown",
    "gray", "red", "purple", "orange", "teal", "indigo",
    "mint", "cyan", "rose", "lightBlue", "darkGreen",
)

AVAILABLE_SYMBOLS: tuple[str, ...] = (
    "book", "fork.knife", "sun.min", "movieclapper",
    "message.badge.filled.fill", "list.bullet", "paperplane",
    "doc.text", "calendar", "brain.head.profile",
    "lightbulb", "quote.bubble", "music.note",
    "cart", "tag", "house", "heart", "star",
)


class DefaultCategory(NamedTuple):
    """A shipped starter category."""

    name: str
    color: str
    symbol: str
    index: int


DEFAULT_CATEGORIES: tuple[DefaultCategory, ...] = (
    DefaultCategory("Book", "green", "book", 0),
    DefaultCategory("Cooking", "blue", "fork.knife", 1),
    DefaultCategory("Day", "yellow", "sun.min", 2),
    DefaultCategory("Movie", "pink", "movieclapper", 3),
    DefaultCategory("Message", "brown", "message.badge.filled.fill", 4),
    DefaultCategory("List", "gray", "list.bullet", 5),
)


def ensure_palette_tokens(color: str, symbol: str) -> None:
    """
    Check that color and symbol belong to the closed palette.

    Raises:
        ValidationError: If either token is unknown
    """
    problems = {}
    if color not in AVAILABLE_COLORS:
        problems["color"] = f"Unknown color token {color!r}"
    if symbol not in AVAILABLE_SYMBOLS:
        problems["symbol"] = f"Unknown symbol token {symbol!r}"
    if problems:
        raise ValidationError("Category tokens outside palette", details=problems)
