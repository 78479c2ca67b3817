"""Shared validation helpers for frozen dataclass models.

Private module — not part of the public API. Used exclusively by
``__post_init__`` methods and ``from_dict`` constructors in sibling model
modules to enforce runtime type constraints before an instance escapes
its constructor.
"""

from __future__ import annotations

import string
from typing import Any

from .constants import EVENT_KIND_MAX


_HEX_DIGITS = frozenset(string.hexdigits.lower())


def validate_instance(value: Any, expected: type, name: str) -> None:
    """Raise ``TypeError`` if *value* is not an instance of *expected*."""
    if not isinstance(value, expected):
        article = "an" if expected.__name__[0] in "AEIOUaeiou" else "a"
        raise TypeError(f"{name} must be {article} {expected.__name__}, got {type(value).__name__}")


def validate_int(value: Any, name: str) -> None:
    """Raise ``TypeError`` if *value* is not an ``int`` (``bool`` excluded)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")


def validate_non_negative(value: Any, name: str) -> None:
    """Raise if *value* is not a non-negative ``int`` (``bool`` excluded)."""
    validate_int(value, name)
    if value < 0:
        raise ValueError(f"{name} must be non-negative")


def validate_kind(value: Any, name: str) -> None:
    """Raise if *value* is not an event kind in ``0..EVENT_KIND_MAX``."""
    validate_int(value, name)
    if not 0 <= value <= EVENT_KIND_MAX:
        raise ValueError(f"{name} must be between 0 and {EVENT_KIND_MAX}, got {value}")


def validate_hex(value: Any, name: str, *, length: int) -> None:
    """Raise if *value* is not a lowercase hex string of exactly *length* chars."""
    validate_instance(value, str, name)
    if len(value) != length or not set(value) <= _HEX_DIGITS:
        raise ValueError(f"{name} must be {length} lowercase hex characters")


def is_hex(value: str, *, length: int) -> bool:
    """Return True if *value* is a lowercase hex string of exactly *length* chars."""
    return len(value) == length and set(value) <= _HEX_DIGITS


def validate_text(value: Any, name: str) -> None:
    """Raise if *value* is not a ``str`` that encodes to UTF-8.

    Lone surrogates (``"\\ud800"``) are valid JSON escapes and valid Python
    strings, but cannot be written back out.
    """
    validate_instance(value, str, name)
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ValueError(f"{name} is not valid unicode at position {e.start}") from e
