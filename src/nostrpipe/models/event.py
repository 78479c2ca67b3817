"""
Immutable Nostr event and tag models.

[Event][nostrpipe.models.event.Event] is a plain frozen dataclass holding
the seven NIP-01 fields. It converts to and from the wire dictionary used by
relays and by the [EventBuffer][nostrpipe.core.buffer.EventBuffer] encoding,
and to and from ``nostr_sdk.Event`` for the transport and signing layers.

See Also:
    [nostrpipe.models.collection][]: Ordered collection of events returned
        by a single query.
    [nostrpipe.core.buffer][]: Canonical byte encoding of event collections.
"""

from __future__ import annotations

import datetime
import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from nostr_sdk import Event as NostrEvent

from ._validation import (
    validate_hex,
    validate_instance,
    validate_kind,
    validate_non_negative,
    validate_text,
)


@dataclass(frozen=True, slots=True)
class Tag:
    """Ordered sequence of strings attached to an event.

    By convention the first element is the key and the second the primary
    value, but a tag may carry any number of elements. Equality and key
    extraction are positional.

    Args:
        values: Tag elements in wire order.

    Examples:
        ```python
        tag = Tag.parse(["t", "nostr"])
        tag.key     # "t"
        tag.value   # "nostr"
        Tag(("e",)).value   # None
        ```
    """

    values: tuple[str, ...]

    def __post_init__(self) -> None:
        validate_instance(self.values, tuple, "values")
        for i, value in enumerate(self.values):
            validate_text(value, f"tag[{i}]")

    @classmethod
    def parse(cls, values: Any) -> Tag:
        """Build a tag from a JSON array of strings."""
        if not isinstance(values, list | tuple):
            raise TypeError(f"tag must be a list, got {type(values).__name__}")
        return cls(tuple(values))

    @property
    def key(self) -> str | None:
        """The first element, or ``None`` for an empty tag."""
        return self.values[0] if self.values else None

    @property
    def value(self) -> str | None:
        """The second element, or ``None`` when the tag has fewer than two."""
        return self.values[1] if len(self.values) > 1 else None

    def to_list(self) -> list[str]:
        return list(self.values)


@dataclass(frozen=True, slots=True)
class Event:
    """Immutable Nostr event.

    Validation is performed eagerly at construction time so invalid events
    never escape the constructor:

    * ``id`` and ``pubkey`` must be 64 lowercase hex characters.
    * ``kind`` must be in ``0..65535`` and ``created_at`` non-negative.
    * ``tags`` must be a tuple of [Tag][nostrpipe.models.event.Tag].

    The signature is opaque at this layer: it is carried verbatim and only
    checked by the transport layer
    ([RelayConnection.query()][nostrpipe.utils.protocol.RelayConnection.query]).

    Examples:
        ```python
        event = Event.from_dict(json.loads(raw))
        event.kind                   # 30023
        list(event.tag_values("t"))  # ["nostr", "python"]
        event.to_dict()              # NIP-01 wire dictionary
        ```

    Note:
        Events returned by a query are read-only. Republishing builds new
        events through [sign_event()][nostrpipe.utils.keys.sign_event]
        rather than modifying the originals.
    """

    id: str
    pubkey: str
    created_at: int
    kind: int
    tags: tuple[Tag, ...] = field(default=())
    content: str = ""
    sig: str = ""

    def __post_init__(self) -> None:
        validate_hex(self.id, "id", length=64)
        validate_hex(self.pubkey, "pubkey", length=64)
        validate_non_negative(self.created_at, "created_at")
        validate_kind(self.kind, "kind")
        validate_instance(self.tags, tuple, "tags")
        for tag in self.tags:
            validate_instance(tag, Tag, "tags[]")
        validate_text(self.content, "content")
        validate_text(self.sig, "sig")

    @property
    def timestamp(self) -> datetime.datetime:
        """``created_at`` as an aware UTC datetime."""
        return datetime.datetime.fromtimestamp(self.created_at, tz=datetime.UTC)

    def tag_values(self, key: str) -> Iterator[str]:
        """Yield the value of every tag whose key is *key*, in tag order.

        Tags with fewer than two elements carry no value and are skipped.
        """
        for tag in self.tags:
            if tag.key == key and tag.value is not None:
                yield tag.value

    def to_dict(self) -> dict[str, Any]:
        """Return the NIP-01 wire dictionary, in canonical field order."""
        return {
            "id": self.id,
            "pubkey": self.pubkey,
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": [tag.to_list() for tag in self.tags],
            "content": self.content,
            "sig": self.sig,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Event:
        """Build an event from a NIP-01 wire dictionary.

        Raises:
            TypeError: If *data* is not a mapping or a field has the wrong type.
            KeyError: If a required field is missing.
            ValueError: If a field value is out of range.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"event must be an object, got {type(data).__name__}")
        tags = data["tags"]
        if not isinstance(tags, list):
            raise TypeError(f"tags must be a list, got {type(tags).__name__}")
        return cls(
            id=data["id"],
            pubkey=data["pubkey"],
            created_at=data["created_at"],
            kind=data["kind"],
            tags=tuple(Tag.parse(tag) for tag in tags),
            content=data["content"],
            sig=data["sig"],
        )

    @classmethod
    def from_nostr(cls, nostr_event: NostrEvent) -> Event:
        """Convert a ``nostr_sdk.Event`` through its JSON representation."""
        return cls.from_dict(json.loads(nostr_event.as_json()))

    def to_nostr(self) -> NostrEvent:
        """Convert to a ``nostr_sdk.Event`` (used before publishing)."""
        return NostrEvent.from_json(json.dumps(self.to_dict()))
