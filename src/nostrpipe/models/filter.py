"""
Immutable query criteria with a functional builder API.

A [Filter][nostrpipe.models.filter.Filter] restricts which events a relay
query returns: a set of author public keys, a set of event kinds, and a
result-count limit. Empty author or kind sets mean *unconstrained*; the limit
is always a positive bound so that no query is unbounded.

Every builder method returns a new filter. Invalid input raises
[ConfigurationError][nostrpipe.exceptions.ConfigurationError] immediately;
the builder never proceeds with an empty or meaningless filter.

Examples:
    ```python
    f = (
        Filter()
        .with_authors({pubkey_hex})
        .with_kinds({EventKind.LONG_FORM_ARTICLE})
        .with_limit(20)
    )
    f.to_dict()  # {"authors": [...], "kinds": [30023], "limit": 20}
    ```

See Also:
    [to_nostr_filter()][nostrpipe.utils.protocol.to_nostr_filter]:
        Converts a filter into the SDK's ``nostr_sdk.Filter``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Any

from nostrpipe.exceptions import ConfigurationError

from ._validation import is_hex
from .constants import DEFAULT_LIMIT, EVENT_KIND_MAX


@dataclass(frozen=True, slots=True)
class Filter:
    """Relay query criteria.

    Attributes:
        authors: Author public keys as 64-char hex (empty = any author).
        kinds: Event kinds (empty = any kind).
        limit: Maximum number of events the relay should return.

    Raises:
        ConfigurationError: If any field is invalid, including at
            direct construction.
    """

    authors: frozenset[str] = field(default_factory=frozenset)
    kinds: frozenset[int] = field(default_factory=frozenset)
    limit: int = DEFAULT_LIMIT

    def __post_init__(self) -> None:
        object.__setattr__(self, "authors", frozenset(_check_authors(self.authors)))
        object.__setattr__(self, "kinds", frozenset(_check_kinds(self.kinds)))
        _check_limit(self.limit)

    def with_authors(self, keys: Iterable[str]) -> Filter:
        """Return a copy restricted to *keys* (hex public keys).

        Raises:
            ConfigurationError: If *keys* is empty or contains a key that is
                not 64 lowercase hex characters.
        """
        authors = frozenset(_check_authors(keys))
        if not authors:
            raise ConfigurationError("author set must not be empty")
        return replace(self, authors=authors)

    def with_kinds(self, kinds: Iterable[int]) -> Filter:
        """Return a copy restricted to *kinds*.

        Raises:
            ConfigurationError: If *kinds* is empty or contains a value
                outside ``0..65535``.
        """
        checked = frozenset(_check_kinds(kinds))
        if not checked:
            raise ConfigurationError("kind set must not be empty")
        return replace(self, kinds=checked)

    def with_limit(self, n: int) -> Filter:
        """Return a copy with result limit *n*.

        Raises:
            ConfigurationError: If *n* is not a positive integer.
        """
        return replace(self, limit=n)

    def to_dict(self) -> dict[str, Any]:
        """Return the NIP-01 filter object with sorted, deterministic fields."""
        data: dict[str, Any] = {}
        if self.authors:
            data["authors"] = sorted(self.authors)
        if self.kinds:
            data["kinds"] = sorted(self.kinds)
        data["limit"] = self.limit
        return data


def _check_authors(keys: Iterable[str]) -> list[str]:
    if isinstance(keys, str):
        raise ConfigurationError("authors must be a collection of keys, not a single string")
    checked = []
    for key in keys:
        if not isinstance(key, str) or not is_hex(key, length=64):
            raise ConfigurationError(f"invalid author public key: {key!r}")
        checked.append(key)
    return checked


def _check_kinds(kinds: Iterable[int]) -> list[int]:
    checked = []
    for kind in kinds:
        if isinstance(kind, bool) or not isinstance(kind, int):
            raise ConfigurationError(f"kind must be an int, got {type(kind).__name__}")
        if not 0 <= kind <= EVENT_KIND_MAX:
            raise ConfigurationError(f"kind must be between 0 and {EVENT_KIND_MAX}, got {kind}")
        checked.append(int(kind))
    return checked


def _check_limit(limit: Any) -> None:
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ConfigurationError(f"limit must be an int, got {type(limit).__name__}")
    if limit <= 0:
        raise ConfigurationError(f"limit must be positive, got {limit}")
