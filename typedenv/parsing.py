"""Shared parsing helpers for option and boolean value normalization."""

from __future__ import annotations


_TRUE_BOOLEAN_TOKENS = frozenset({"true", "1", "yes", "y", "on"})
_FALSE_BOOLEAN_TOKENS = frozenset({"false", "0", "no", "n", "off"})


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_soft_boolean(value: str) -> bool | None:
    """Parse a soft boolean token case-insensitively and return `None` when invalid.

    Surrounding whitespace is significant: `" yes"` is not an accepted token.
    """

    token = value.lower()
    if token in _TRUE_BOOLEAN_TOKENS:
        return True
    if token in _FALSE_BOOLEAN_TOKENS:
        return False
    return None


def parse_strict_boolean(value: str) -> bool | None:
    """Parse only the canonical `true`/`false` tokens."""

    if value == "true":
        return True
    if value == "false":
        return False
    return None
