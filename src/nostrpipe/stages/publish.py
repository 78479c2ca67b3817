"""
Publisher: sign copies of a collection's events and send them to a relay.

For every source event a **new** event is built: kind, content, and tags
are copied, ``created_at`` is taken from the publisher's clock at publish
time, and the result is signed with the publisher's keys. The source events
are never modified.

Publishing is fail-fast: the first signing or transport failure aborts the
remaining events. A [PublishingError][nostrpipe.exceptions.PublishingError]
raised by the relay carries the report of what was already sent. An empty
collection is a no-op that makes no transport call.

Warning:
    The publisher holds a live private key. It is passed in explicitly
    (from [KeysConfig][nostrpipe.utils.keys.KeysConfig] in the CLI); nothing
    in this module reads the environment.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from nostrpipe.core.base_stage import PipelineContext, Stage
from nostrpipe.core.buffer import EventBuffer
from nostrpipe.core.logger import Logger
from nostrpipe.core.metrics import PIPELINE_COUNTER
from nostrpipe.exceptions import ConfigurationError, PublishingError
from nostrpipe.models import Event, EventCollection, PublishReport, StageName
from nostrpipe.utils.keys import sign_event
from nostrpipe.utils.protocol import connect_relay

from .aggregate import as_events


if TYPE_CHECKING:
    from nostr_sdk import Keys

    from nostrpipe.utils.protocol import RelayConnection


class Publisher:
    """Sign and republish events with a fixed key.

    Args:
        keys: Signing keys; republished events are authored by their
            public key.
        clock: Returns the current Unix time; called once per event.
    """

    def __init__(self, keys: Keys, *, clock: Callable[[], float] = time.time) -> None:
        self._keys = keys
        self._clock = clock
        self._logger = Logger("publisher")

    def __repr__(self) -> str:
        return "Publisher(keys=<redacted>)"

    def prepare(self, source: Event) -> Event:
        """Build the signed copy of *source* that will be published."""
        return sign_event(
            self._keys,
            kind=source.kind,
            content=source.content,
            tags=source.tags,
            created_at=int(self._clock()),
        )

    async def publish(self, connection: RelayConnection, events: Iterable[Event]) -> PublishReport:
        """Publish a signed copy of every event in *events*, in order.

        Returns:
            A [PublishReport][nostrpipe.models.PublishReport] listing the
            IDs of the new events.

        Raises:
            SigningError: If an event cannot be signed.
            PublishingError: If the relay rejects an event; ``report`` holds
                the events published before it.
            TransportError: On any other transport failure.
        """
        report = PublishReport.empty(relay=connection.url)
        for source in events:
            signed = self.prepare(source)
            try:
                await connection.publish(signed)
            except PublishingError as e:
                e.report = report
                self._logger.error(
                    "publish_rejected", event_id=signed.id, published=report.count, error=str(e)
                )
                raise
            report = report.with_published(signed.id)
            PIPELINE_COUNTER.labels(name="events_published").inc()
            self._logger.debug("event_published", source_id=source.id, event_id=signed.id)

        self._logger.info("publish_completed", relay=report.relay, published=report.count)
        return report


class Republish(Stage):
    """Stage publishing the incoming events through a [Publisher][nostrpipe.stages.publish.Publisher].

    Args:
        publisher: Publisher holding the signing key.
        relay: Target relay URL. When ``None`` the context connection is
            used; otherwise a connection is opened through the context's
            connector and closed when the stage finishes.
    """

    NAME = StageName.PUBLISH
    INPUT = (EventBuffer, EventCollection)
    OUTPUT = PublishReport

    def __init__(self, publisher: Publisher, relay: str | None = None) -> None:
        super().__init__()
        self._publisher = publisher
        self.relay = relay

    def __repr__(self) -> str:
        return f"Republish(relay={self.relay!r})"

    async def run(
        self, context: PipelineContext, payload: EventBuffer | EventCollection
    ) -> PublishReport:
        events = as_events(payload)
        if not events:
            self._logger.info("publish_skipped", reason="no events")
            target = self.relay or (context.connection.url if context.connection else None)
            return PublishReport.empty(relay=target)

        if self.relay is None:
            if context.connection is None:
                raise ConfigurationError("publish stage requires a relay connection or target relay")
            return await self._publisher.publish(context.connection, events)

        connector = context.connector or connect_relay
        connection = await connector(self.relay, context.timeout)
        try:
            return await self._publisher.publish(connection, events)
        finally:
            await connection.close()
