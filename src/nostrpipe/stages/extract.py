"""
Extractor: derive scalar sequences from an event collection.

* [extract_titles()][nostrpipe.stages.extract.extract_titles] collects the
  value of every ``title`` tag.
* [extract_identifiers()][nostrpipe.stages.extract.extract_identifiers]
  computes one addressable identifier per event from its author, kind, and
  title.

Events without a title never fail: they contribute no title, and an
identifier with an empty title component.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from nostrpipe.core.base_stage import PipelineContext, Stage
from nostrpipe.core.buffer import EventBuffer
from nostrpipe.models import TITLE_TAG, Event, EventCollection, StageName
from nostrpipe.utils.keys import encode_address

from .aggregate import as_events


AddressEncoder = Callable[[str, int, str], str]


def extract_titles(events: Iterable[Event]) -> list[str]:
    """Return every title tag value, in event order then tag order."""
    return [title for event in events for title in event.tag_values(TITLE_TAG)]


def extract_identifiers(
    events: Iterable[Event],
    encoder: AddressEncoder = encode_address,
) -> list[str]:
    """Return one addressable identifier per event.

    The identifier encodes ``(pubkey, kind, title)``, where ``title`` is the
    event's first title tag value, or ``""`` when it has none.

    Raises:
        EncodingError: Propagated from *encoder* on malformed input.
    """
    return [
        encoder(event.pubkey, event.kind, next(event.tag_values(TITLE_TAG), ""))
        for event in events
    ]


class Titles(Stage):
    NAME = StageName.TITLES
    INPUT = (EventBuffer, EventCollection)
    OUTPUT = list

    async def run(
        self, context: PipelineContext, payload: EventBuffer | EventCollection
    ) -> list[str]:
        return extract_titles(as_events(payload))


class Identifiers(Stage):
    NAME = StageName.IDENTIFIERS
    INPUT = (EventBuffer, EventCollection)
    OUTPUT = list

    def __init__(self, encoder: AddressEncoder = encode_address) -> None:
        super().__init__()
        self._encoder = encoder

    async def run(
        self, context: PipelineContext, payload: EventBuffer | EventCollection
    ) -> list[str]:
        return extract_identifiers(as_events(payload), self._encoder)
