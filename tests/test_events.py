"""
Tests for the event bus.
"""

import pytest

from gesture_trainer.core.events import EventBus, Events


class TestEventBus:
    """Test suite for EventBus."""

    @pytest.fixture
    def bus(self):
        return EventBus()

    def test_emit_passes_kwargs(self, bus):
        received = []
        bus.subscribe(Events.GESTURE_RECOGNIZED, lambda **kw: received.append(kw))

        bus.emit(Events.GESTURE_RECOGNIZED, label="Point", progress=2)

        assert received == [{"label": "Point", "progress": 2}]

    def test_priority_order(self, bus):
        order = []
        bus.subscribe("evt", lambda: order.append("low"), priority=0)
        bus.subscribe("evt", lambda: order.append("high"), priority=10)

        bus.emit("evt")
        assert order == ["high", "low"]

    def test_failing_listener_does_not_stop_others(self, bus):
        received = []

        def broken():
            raise RuntimeError("boom")

        bus.subscribe("evt", broken, priority=1)
        bus.subscribe("evt", lambda: received.append(True))

        bus.emit("evt")
        assert received == [True]

    def test_unsubscribe(self, bus):
        received = []

        def handler():
            received.append(True)

        bus.subscribe("evt", handler)
        bus.unsubscribe("evt", handler)
        bus.emit("evt")

        assert received == []
        assert bus.listener_count == 0

    def test_clear(self, bus):
        bus.subscribe("a", lambda: None)
        bus.subscribe("b", lambda: None)

        bus.clear("a")
        assert bus.listener_count == 1
        bus.clear()
        assert bus.listener_count == 0

    def test_history_bounded(self):
        bus = EventBus(max_history=3)
        for i in range(5):
            bus.emit(f"evt{i}", value=i)

        history = bus.get_history(last_n=10)
        assert [h.name for h in history] == ["evt2", "evt3", "evt4"]
        assert history[-1].payload_keys == ("value",)

    def test_subscribe_returns_unsubscribe(self, bus):
        received = []
        unsubscribe = bus.subscribe("evt", lambda: received.append(True))

        assert bus.emit("evt") == 1
        unsubscribe()
        assert bus.emit("evt") == 0
        assert received == [True]

    def test_failure_count(self, bus):
        def broken(**kwargs):
            raise ValueError("bad payload")

        bus.subscribe("evt", broken)
        assert bus.emit("evt", value=1) == 0
        assert bus.failure_count == 1

    def test_buses_are_independent(self):
        received = []
        first, second = EventBus(), EventBus()
        first.subscribe("evt", lambda: received.append(True))

        second.emit("evt")
        assert received == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
