"""Frozen data models with no pipeline behavior.

The models layer is the foundation of the package: every other layer
depends on it and it depends only on the standard library,
[nostrpipe.exceptions][nostrpipe.exceptions], and ``nostr_sdk`` for the
event type conversion. All models are immutable; builder-style methods
return new instances.

Attributes:
    Event: Immutable NIP-01 event with wire and SDK conversion.
    Tag: Positional string sequence attached to an event.
    EventCollection: Ordered events returned by a single query.
    Filter: Relay query criteria with a functional builder API.
    FrequencyMap: Immutable tag-value to count mapping.
    SortedEntry: ``(key, count)`` pair produced by the sorters.
    PublishReport: IDs of the events sent by a publish run.

See Also:
    [nostrpipe.core.buffer][]: Byte encoding of event collections.
    [nostrpipe.stages][]: Stages that consume and produce these models.
"""

from .collection import EventCollection
from .constants import (
    DEFAULT_LIMIT,
    EVENT_KIND_MAX,
    TITLE_TAG,
    TOPIC_TAG,
    EventKind,
    StageName,
)
from .event import Event, Tag
from .filter import Filter
from .frequency import FrequencyMap, SortedEntry
from .report import PublishReport


__all__ = [
    "DEFAULT_LIMIT",
    "EVENT_KIND_MAX",
    "TITLE_TAG",
    "TOPIC_TAG",
    "Event",
    "EventCollection",
    "EventKind",
    "Filter",
    "FrequencyMap",
    "PublishReport",
    "SortedEntry",
    "StageName",
    "Tag",
]
