"""Unit tests for stages.query module."""

import pytest

from nostrpipe.core.base_stage import PipelineContext
from nostrpipe.core.buffer import EventBuffer
from nostrpipe.exceptions import ConfigurationError, RelayTimeoutError
from nostrpipe.models import Filter
from nostrpipe.stages.query import FilterSource, Query, QueryExecutor


class TestQueryExecutor:
    """QueryExecutor.execute() wraps relay results in a buffer."""

    async def test_returns_events_in_order(self, mock_connection, topic_events):
        mock_connection.query.return_value = list(topic_events)
        event_filter = Filter().with_kinds([30023])

        buffer = await QueryExecutor().execute(mock_connection, event_filter)

        assert isinstance(buffer, EventBuffer)
        assert buffer.events == topic_events
        mock_connection.query.assert_awaited_once_with(event_filter)

    async def test_no_results(self, mock_connection):
        buffer = await QueryExecutor().execute(mock_connection, Filter())
        assert len(buffer) == 0
        assert buffer.as_stream().read() == b""

    async def test_transport_error_propagates(self, mock_connection):
        mock_connection.query.side_effect = RelayTimeoutError("Query timeout")
        with pytest.raises(RelayTimeoutError):
            await QueryExecutor().execute(mock_connection, Filter())


class TestFilterSource:
    """FilterSource emits its filter."""

    async def test_run(self):
        event_filter = Filter().with_limit(3)
        stage = FilterSource(event_filter)
        assert stage.is_source()
        assert await stage.run(PipelineContext(), None) is event_filter

    def test_repr(self):
        assert repr(FilterSource(Filter())).startswith("FilterSource(Filter(")


class TestQueryStage:
    """Query stage reads the connection from the context."""

    async def test_uses_context_connection(self, mock_connection, topic_events):
        mock_connection.query.return_value = list(topic_events)
        context = PipelineContext(connection=mock_connection)

        buffer = await Query().run(context, Filter())

        assert buffer.events == topic_events

    async def test_requires_connection(self):
        with pytest.raises(ConfigurationError, match="requires a relay connection"):
            await Query().run(PipelineContext(), Filter())

    def test_types(self):
        assert Query.accepts(Filter)
        assert Query.OUTPUT is EventBuffer
