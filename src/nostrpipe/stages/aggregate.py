"""
Tag Aggregator: count tag values across an event collection.

For every event and every tag whose key equals the aggregation key, the
count of the tag's value is incremented. Tags with a different key or fewer
than two elements are skipped without error, so the sum of the resulting
counts always equals the number of qualifying tags in the collection.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from nostrpipe.core.base_stage import PipelineContext, Stage
from nostrpipe.core.buffer import EventBuffer
from nostrpipe.models import TOPIC_TAG, Event, EventCollection, FrequencyMap, StageName


def count_by_key(events: Iterable[Event], key: str) -> FrequencyMap:
    """Count the values of every ``key`` tag in *events*.

    Examples:
        ```python
        count_by_key(events, "t")   # FrequencyMap({"go": 2, "rust": 1})
        ```
    """
    counts: Counter[str] = Counter()
    for event in events:
        counts.update(event.tag_values(key))
    return FrequencyMap(counts)


def as_events(payload: EventBuffer | EventCollection) -> EventCollection:
    """Return the typed events behind a stage payload."""
    if isinstance(payload, EventBuffer):
        return payload.events
    return payload


class CountTags(Stage):
    """Stage running [count_by_key()][nostrpipe.stages.aggregate.count_by_key]."""

    NAME = StageName.TAGS
    INPUT = (EventBuffer, EventCollection)
    OUTPUT = FrequencyMap

    def __init__(self, key: str = TOPIC_TAG) -> None:
        super().__init__()
        self.key = key

    def __repr__(self) -> str:
        return f"CountTags(key={self.key!r})"

    async def run(
        self, context: PipelineContext, payload: EventBuffer | EventCollection
    ) -> FrequencyMap:
        frequencies = count_by_key(as_events(payload), self.key)
        self._logger.debug("tags_counted", key=self.key, distinct=len(frequencies))
        return frequencies
