"""
Sorter: flatten a frequency map into a deterministic ordered list.

Both strategies are pure: the input map is never modified and a new list of
[SortedEntry][nostrpipe.models.SortedEntry] is returned.

Note:
    [sort_by_count()][nostrpipe.stages.sort.sort_by_count] orders counts
    **ascending** (least frequent first). This matches the historical
    behavior of the tool; callers wanting the most frequent values first
    can reverse the result.
"""

from __future__ import annotations

from collections.abc import Mapping

from nostrpipe.core.base_stage import PipelineContext, Stage
from nostrpipe.models import FrequencyMap, SortedEntry, StageName


def sort_by_count(frequencies: Mapping[str, int]) -> list[SortedEntry]:
    """Order entries by count ascending, then by key ascending on ties."""
    return [
        SortedEntry(key, count)
        for key, count in sorted(frequencies.items(), key=lambda item: (item[1], item[0]))
    ]


def sort_by_name(frequencies: Mapping[str, int]) -> list[SortedEntry]:
    """Order entries by key ascending.

    Python compares strings by code point, which is the same order as
    comparing their UTF-8 bytes.
    """
    return [SortedEntry(key, frequencies[key]) for key in sorted(frequencies)]


class SortByCount(Stage):
    NAME = StageName.SORT_BY_COUNT
    INPUT = (FrequencyMap,)
    OUTPUT = list

    async def run(self, context: PipelineContext, payload: FrequencyMap) -> list[SortedEntry]:
        return sort_by_count(payload)


class SortByName(Stage):
    NAME = StageName.SORT_BY_NAME
    INPUT = (FrequencyMap,)
    OUTPUT = list

    async def run(self, context: PipelineContext, payload: FrequencyMap) -> list[SortedEntry]:
        return sort_by_name(payload)
