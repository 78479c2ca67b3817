"""Unit tests for stages.aggregate module."""

from nostrpipe.core.base_stage import PipelineContext
from nostrpipe.core.buffer import EventBuffer
from nostrpipe.models import EventCollection, FrequencyMap
from nostrpipe.stages.aggregate import CountTags, as_events, count_by_key


class TestCountByKey:
    """count_by_key() tag frequency aggregation."""

    def test_topic_scenario(self, topic_events):
        assert count_by_key(topic_events, "t") == FrequencyMap({"go": 2, "rust": 1})

    def test_other_keys_ignored(self, make_event):
        events = [make_event(0, tags=[["t", "go"], ["title", "Intro"], ["p", "x"]])]
        assert count_by_key(events, "t") == {"go": 1}
        assert count_by_key(events, "title") == {"Intro": 1}

    def test_short_tags_skipped(self, make_event):
        events = [make_event(0, tags=[["t"], [], ["t", "go"]])]
        assert count_by_key(events, "t") == {"go": 1}

    def test_repeated_value_in_one_event(self, make_event):
        events = [make_event(0, tags=[["t", "go"], ["t", "go"]])]
        assert count_by_key(events, "t") == {"go": 2}

    def test_empty_collection(self):
        assert count_by_key(EventCollection(), "t") == FrequencyMap()

    def test_sum_equals_qualifying_tags(self, make_event):
        events = [
            make_event(0, tags=[["t", "a"], ["t", "b"], ["x", "a"]]),
            make_event(1, tags=[["t", "a"]]),
            make_event(2, tags=[]),
            make_event(3, tags=[["t", "c"], ["t", "a", "extra"]]),
        ]
        qualifying = sum(
            1 for event in events for tag in event.tags if tag.key == "t" and tag.value is not None
        )
        assert count_by_key(events, "t").total() == qualifying == 5


class TestAsEvents:
    def test_buffer(self, topic_events):
        assert as_events(EventBuffer.from_events(topic_events)) is topic_events

    def test_collection(self, topic_events):
        assert as_events(topic_events) is topic_events


class TestCountTagsStage:
    """CountTags stage."""

    async def test_from_encoded_buffer(self, topic_events):
        buffer = EventBuffer.from_bytes(EventBuffer.from_events(topic_events).encode())
        result = await CountTags("t").run(PipelineContext(), buffer)
        assert result == {"go": 2, "rust": 1}

    async def test_default_key_is_topic(self, topic_events):
        stage = CountTags()
        assert stage.key == "t"
        assert await stage.run(PipelineContext(), topic_events) == {"go": 2, "rust": 1}

    def test_types(self):
        assert CountTags.accepts(EventBuffer)
        assert CountTags.accepts(EventCollection)
        assert CountTags.OUTPUT is FrequencyMap
