"""Outcome of a publish run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ._validation import validate_instance


@dataclass(frozen=True, slots=True)
class PublishReport:
    """IDs of the events a [Publisher][nostrpipe.stages.publish.Publisher] sent.

    Attributes:
        relay: URL of the relay the events were sent to, if known.
        published: IDs of the newly signed events, in publish order.
    """

    relay: str | None = None
    published: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        validate_instance(self.published, tuple, "published")

    @classmethod
    def empty(cls, relay: str | None = None) -> PublishReport:
        return cls(relay=relay)

    @property
    def count(self) -> int:
        return len(self.published)

    def with_published(self, event_id: str) -> PublishReport:
        """Return a copy with *event_id* appended."""
        return PublishReport(relay=self.relay, published=(*self.published, event_id))

    def to_dict(self) -> dict[str, Any]:
        return {"relay": self.relay, "count": self.count, "published": list(self.published)}
