"""
Serialization boundary between pipeline stages.

An [EventBuffer][nostrpipe.core.buffer.EventBuffer] holds an event
collection and lazily produces (or consumes) its canonical byte encoding::

    {"events":[{"id":"...","pubkey":"...","created_at":0,"kind":1,"tags":[],"content":"","sig":"..."}]}

Stages hand events to each other through a buffer so that any stage can be
replaced by one backed by real I/O (a file, a socket) without changing the
pipeline contract. A buffer built from a typed collection exposes it through
[events][nostrpipe.core.buffer.EventBuffer.events] without a byte round trip;
a buffer built from bytes decodes on demand.

Note:
    A buffer with zero events encodes to ``b""`` so that reading it as a
    stream reports end-of-stream on the very first read. Decoding ``b""``
    yields an empty collection.

See Also:
    [QueryExecutor][nostrpipe.stages.query.QueryExecutor]: Writes query
        results through a buffer.
    [render()][nostrpipe.stages.pipeline.render]: Uses the buffer encoding
        as the pipeline output for event payloads.
"""

from __future__ import annotations

import io
import json
from collections.abc import Iterable
from typing import BinaryIO

from nostrpipe.exceptions import DecodeError
from nostrpipe.models import Event, EventCollection


EVENTS_FIELD = "events"
_WHITESPACE = " \t\r\n"


class EventBuffer:
    """Typed event collection paired with its memoized canonical encoding.

    Build one with [from_events()][nostrpipe.core.buffer.EventBuffer.from_events]
    (typed side known, bytes produced on first use) or
    [from_bytes()][nostrpipe.core.buffer.EventBuffer.from_bytes] /
    [from_stream()][nostrpipe.core.buffer.EventBuffer.from_stream] (bytes known,
    events decoded on first use). Either side is computed at most once.

    Examples:
        ```python
        buffer = EventBuffer.from_events(events)
        data = buffer.encode()
        assert buffer.encode() is data          # memoized

        stream = buffer.as_stream()
        stream.read(16)                         # first 16 bytes
        EventBuffer.from_stream(stream)         # any binary reader works

        EventBuffer.from_bytes(data).to_events() == events
        ```
    """

    __slots__ = ("_encoded", "_events")

    def __init__(
        self,
        events: EventCollection | None = None,
        encoded: bytes | None = None,
    ) -> None:
        self._events = events
        self._encoded = encoded

    def __repr__(self) -> str:
        if self._events is not None:
            return f"EventBuffer(events={len(self._events)})"
        return f"EventBuffer(bytes={len(self._encoded or b'')})"

    def __len__(self) -> int:
        return len(self.events)

    def __bytes__(self) -> bytes:
        return self.encode()

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def from_events(cls, events: Iterable[Event]) -> EventBuffer:
        """Wrap a typed collection; the encoding is produced on first use."""
        if not isinstance(events, EventCollection):
            events = EventCollection(events)
        return cls(events=events)

    @classmethod
    def from_bytes(cls, data: bytes) -> EventBuffer:
        """Wrap an encoded buffer; events are decoded on first use."""
        return cls(encoded=bytes(data))

    @classmethod
    def from_stream(cls, stream: BinaryIO) -> EventBuffer:
        """Read *stream* to its end and wrap the bytes."""
        return cls.from_bytes(stream.read())

    # -------------------------------------------------------------------------
    # Byte side
    # -------------------------------------------------------------------------

    def encode(self) -> bytes:
        """Return the canonical encoding, serializing at most once.

        Repeated calls return the identical ``bytes`` object.
        """
        if self._encoded is None:
            self._encoded = encode_events(self._events or EventCollection())
        return self._encoded

    def as_stream(self) -> io.BytesIO:
        """Return a new cursor over the encoding.

        Every call starts at offset zero, so the buffer can be read any
        number of times. Reads past the end return ``b""``; an empty buffer
        returns ``b""`` on the first read.
        """
        return io.BytesIO(self.encode())

    # -------------------------------------------------------------------------
    # Typed side
    # -------------------------------------------------------------------------

    def to_events(self) -> EventCollection:
        """Decode the full encoding into a new collection.

        Raises:
            DecodeError: If the encoding is malformed. Nothing is skipped:
                one bad element fails the whole buffer.
        """
        return decode_events(self.encode())

    @property
    def events(self) -> EventCollection:
        """The typed collection, decoding only when the buffer came from bytes."""
        if self._events is None:
            self._events = self.to_events()
        return self._events


def encode_events(events: EventCollection) -> bytes:
    """Serialize *events* to the canonical compact UTF-8 JSON document."""
    if not events:
        return b""
    document = {EVENTS_FIELD: [event.to_dict() for event in events]}
    return json.dumps(document, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def decode_events(data: bytes) -> EventCollection:
    """Parse a canonical document back into an event collection.

    Raises:
        DecodeError: On invalid UTF-8, invalid JSON, trailing data, a
            document without an ``events`` array, or an invalid event.
    """
    if not data:
        return EventCollection()

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"invalid utf-8: {e.reason}", offset=e.start) from e

    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(e.msg, offset=_byte_offset(text, e.pos)) from e

    if not isinstance(document, dict) or not isinstance(document.get(EVENTS_FIELD), list):
        raise DecodeError(f"expected an object with an {EVENTS_FIELD!r} array", offset=0)

    events = []
    for index, item in enumerate(document[EVENTS_FIELD]):
        try:
            events.append(Event.from_dict(item))
        except KeyError as e:
            raise DecodeError(
                f"event {index}: missing field {e.args[0]!r}",
                offset=_element_offset(text, index),
                index=index,
            ) from e
        except (TypeError, ValueError) as e:
            raise DecodeError(
                f"event {index}: {e}",
                offset=_element_offset(text, index),
                index=index,
            ) from e
    return EventCollection(events)


def _byte_offset(text: str, pos: int) -> int:
    """Convert a character position in *text* to a UTF-8 byte offset."""
    return len(text[:pos].encode("utf-8"))


def _skip(text: str, pos: int, chars: str = _WHITESPACE) -> int:
    while pos < len(text) and text[pos] in chars:
        pos += 1
    return pos


def _events_array_start(text: str) -> int | None:
    """Return the character position of the top-level ``events`` array.

    Walks the keys of the top-level object only, so ``events`` keys nested
    in other members are ignored. The last occurrence wins, as in
    ``json.loads``.
    """
    decoder = json.JSONDecoder()
    found = None
    pos = _skip(text, _skip(text, 0) + 1)
    while pos < len(text) and text[pos] != "}":
        key, pos = decoder.raw_decode(text, pos)
        pos = _skip(text, _skip(text, pos) + 1)
        if key == EVENTS_FIELD:
            found = pos
        _, pos = decoder.raw_decode(text, pos)
        pos = _skip(text, pos, _WHITESPACE + ",")
    return found


def _element_offset(text: str, index: int) -> int:
    """Return the byte offset of element *index* of the ``events`` array.

    Only called on text that already parsed as a JSON object. Falls back to
    0 when the array cannot be located.
    """
    start = _events_array_start(text)
    if start is None:
        return 0

    decoder = json.JSONDecoder()
    pos = start + 1
    for current in range(index + 1):
        pos = _skip(text, pos, _WHITESPACE + ",")
        if current == index:
            return _byte_offset(text, pos)
        _, pos = decoder.raw_decode(text, pos)
    return 0
