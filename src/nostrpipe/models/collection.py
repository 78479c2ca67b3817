"""Ordered, immutable collection of events returned by a single query."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import overload

from ._validation import validate_instance
from .event import Event


@dataclass(frozen=True, slots=True, init=False)
class EventCollection(Sequence[Event]):
    """Ordered sequence of [Event][nostrpipe.models.event.Event] objects.

    Insertion order is retrieval order: deterministic for a single query,
    but not a global time ordering. Deduplication is the relay client's
    job; the collection stores exactly what it is given.

    Examples:
        ```python
        events = EventCollection([first, second])
        len(events)     # 2
        events[0]       # first
        events.ids()    # (first.id, second.id)
        ```
    """

    events: tuple[Event, ...]

    def __init__(self, events: Iterable[Event] = ()) -> None:
        items = tuple(events)
        for event in items:
            validate_instance(event, Event, "events[]")
        object.__setattr__(self, "events", items)

    @overload
    def __getitem__(self, index: int) -> Event: ...

    @overload
    def __getitem__(self, index: slice) -> EventCollection: ...

    def __getitem__(self, index: int | slice) -> Event | EventCollection:
        if isinstance(index, slice):
            return EventCollection(self.events[index])
        return self.events[index]

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self.events)

    def ids(self) -> tuple[str, ...]:
        """Return event IDs in collection order."""
        return tuple(event.id for event in self.events)
