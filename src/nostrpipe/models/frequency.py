"""Tag-value frequency mapping and its sorted flattening.

[FrequencyMap][nostrpipe.models.frequency.FrequencyMap] is produced by the
tag aggregator and consumed by the sorters, which flatten it into a list of
[SortedEntry][nostrpipe.models.frequency.SortedEntry] without modifying it.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any, NamedTuple

from ._validation import validate_instance, validate_non_negative


class SortedEntry(NamedTuple):
    """One ``(key, count)`` pair of a sorted frequency map."""

    key: str
    count: int


class FrequencyMap(Mapping[str, int]):
    """Immutable mapping from tag value to occurrence count.

    Keys are unique strings; counts are non-negative integers. The mapping
    itself carries no order.

    Examples:
        ```python
        freq = FrequencyMap({"go": 2, "rust": 1})
        freq["go"]      # 2
        freq.total()    # 3
        ```
    """

    __slots__ = ("_counts",)

    def __init__(self, counts: Mapping[str, int] | None = None) -> None:
        data = dict(counts or {})
        for key, count in data.items():
            validate_instance(key, str, "frequency key")
            validate_non_negative(count, f"count[{key!r}]")
        self._counts: Mapping[str, int] = MappingProxyType(data)

    def __getitem__(self, key: str) -> int:
        return self._counts[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __repr__(self) -> str:
        return f"FrequencyMap({dict(self._counts)!r})"

    def __hash__(self) -> int:
        return hash(frozenset(self._counts.items()))

    def total(self) -> int:
        """Return the sum of all counts."""
        return sum(self._counts.values())

    def to_dict(self) -> dict[str, int]:
        return dict(self._counts)

    @classmethod
    def from_dict(cls, data: Any) -> FrequencyMap:
        """Build a map from decoded JSON, validating keys and counts."""
        validate_instance(data, dict, "frequency map")
        return cls(data)
