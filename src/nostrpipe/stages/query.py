"""
Query Executor: the stage that fetches events from a relay.

Submits a [Filter][nostrpipe.models.Filter] to the relay connection and
writes the returned events, in order, through an
[EventBuffer][nostrpipe.core.buffer.EventBuffer] for the next stage.

There is no retry: a transport failure propagates as a
[TransportError][nostrpipe.exceptions.TransportError] and the pipeline
stops without a partial result.

See Also:
    [RelayConnection.query()][nostrpipe.utils.protocol.RelayConnection.query]:
        The transport call this stage delegates to.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from nostrpipe.core.base_stage import PipelineContext, Stage
from nostrpipe.core.buffer import EventBuffer
from nostrpipe.core.logger import Logger
from nostrpipe.core.metrics import PIPELINE_COUNTER
from nostrpipe.exceptions import ConfigurationError
from nostrpipe.models import EventCollection, Filter, StageName


if TYPE_CHECKING:
    from nostrpipe.utils.protocol import RelayConnection


class QueryExecutor:
    """Run one bounded query and wrap the result in an event buffer."""

    def __init__(self) -> None:
        self._logger = Logger("query")

    async def execute(self, connection: RelayConnection, event_filter: Filter) -> EventBuffer:
        """Query *connection* with *event_filter*.

        Returns:
            A buffer over the events in the order the relay client returned
            them.

        Raises:
            TransportError: Propagated unchanged from the connection.
        """
        self._logger.debug("query_started", relay=connection.url, **_filter_fields(event_filter))
        events = EventCollection(await connection.query(event_filter))
        PIPELINE_COUNTER.labels(name="events_fetched").inc(len(events))
        self._logger.info("query_completed", relay=connection.url, events=len(events))
        return EventBuffer.from_events(events)


def _filter_fields(event_filter: Filter) -> dict[str, Any]:
    return {
        "authors": len(event_filter.authors),
        "kinds": ",".join(str(k) for k in sorted(event_filter.kinds)) or "any",
        "limit": event_filter.limit,
    }


class FilterSource(Stage):
    """Source stage emitting a fixed filter.

    The fluent [Pipeline][nostrpipe.stages.pipeline.Pipeline] methods
    ``author()``, ``kinds()`` and ``limit()`` replace this stage with one
    holding the updated filter.
    """

    NAME = StageName.FILTER
    INPUT = ()
    OUTPUT = Filter

    def __init__(self, event_filter: Filter) -> None:
        super().__init__()
        self.filter = event_filter

    def __repr__(self) -> str:
        return f"FilterSource({self.filter!r})"

    async def run(self, context: PipelineContext, payload: Any) -> Filter:
        return self.filter


class Query(Stage):
    """Stage wrapping [QueryExecutor][nostrpipe.stages.query.QueryExecutor]."""

    NAME = StageName.QUERY
    INPUT = (Filter,)
    OUTPUT = EventBuffer

    def __init__(self, executor: QueryExecutor | None = None) -> None:
        super().__init__()
        self._executor = executor or QueryExecutor()

    async def run(self, context: PipelineContext, payload: Filter) -> EventBuffer:
        if context.connection is None:
            raise ConfigurationError("query stage requires a relay connection in the context")
        return await self._executor.execute(context.connection, payload)
