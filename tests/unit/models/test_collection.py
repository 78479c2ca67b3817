"""Unit tests for models.collection module."""

import pytest

from nostrpipe.models import EventCollection


class TestEventCollection:
    """Ordered, immutable event sequence."""

    def test_empty(self):
        events = EventCollection()
        assert len(events) == 0
        assert not events
        assert events.ids() == ()

    def test_preserves_order(self, make_event):
        first, second = make_event(1), make_event(0)
        events = EventCollection([first, second])
        assert list(events) == [first, second]
        assert events[0] is first
        assert events.ids() == (first.id, second.id)

    def test_keeps_duplicates(self, make_event):
        event = make_event()
        assert len(EventCollection([event, event])) == 2

    def test_slice_returns_collection(self, topic_events):
        head = topic_events[:2]
        assert isinstance(head, EventCollection)
        assert len(head) == 2

    def test_equality(self, make_event):
        assert EventCollection([make_event(0)]) == EventCollection([make_event(0)])
        assert EventCollection([make_event(0)]) != EventCollection([make_event(1)])

    def test_accepts_generator(self, make_event):
        events = EventCollection(make_event(i) for i in range(3))
        assert len(events) == 3

    def test_rejects_non_event(self):
        with pytest.raises(TypeError, match=r"events\[\] must be an Event"):
            EventCollection([{"id": "x"}])
