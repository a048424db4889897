"""
tests/test_events.py — Unit tests for EventTarget dispatch semantics.
"""
import pytest

from Browser import ON_LOAD, ON_UNLOAD, EventArgs, EventTarget


class TestDispatch:
    def test_listeners_run_in_registration_order(self):
        target = EventTarget()
        calls = []
        target.add_event_listener(ON_LOAD, lambda e: calls.append("a"))
        target.add_event_listener(ON_LOAD, lambda e: calls.append("b"))
        target.dispatch_event(ON_LOAD, object())
        assert calls == ["a", "b"]

    def test_only_matching_event_listeners_run(self):
        target = EventTarget()
        calls = []
        target.add_event_listener(ON_LOAD, lambda e: calls.append("load"))
        target.add_event_listener(ON_UNLOAD, lambda e: calls.append("unload"))
        target.dispatch_event(ON_UNLOAD, object())
        assert calls == ["unload"]

    def test_event_carries_name_target_and_args(self):
        target = EventTarget()
        seen = []
        target.add_event_listener(ON_LOAD, seen.append)
        sender = object()
        args = EventArgs({"k": "v"})
        event = target.dispatch_event(ON_LOAD, sender, args)
        assert seen == [event]
        assert event.name == ON_LOAD
        assert event.target is sender
        assert event.args.get("k") == "v"
        assert event.args.get("missing", 1) == 1

    def test_stop_propagation_halts_later_listeners(self):
        target = EventTarget()
        calls = []

        def first(event):
            calls.append("first")
            event.args.stop_propagation()

        target.add_event_listener(ON_LOAD, first)
        target.add_event_listener(ON_LOAD, lambda e: calls.append("second"))
        event = target.dispatch_event(ON_LOAD, None)
        assert calls == ["first"]
        assert event.args.is_stopped

    def test_dispatch_without_listeners(self):
        event = EventTarget().dispatch_event(ON_LOAD, None)
        assert not event.args.is_stopped
        assert event.args.error is None

    def test_listener_exception_propagates(self):
        target = EventTarget()

        def boom(event):
            raise RuntimeError("listener failed")

        target.add_event_listener(ON_LOAD, boom)
        with pytest.raises(RuntimeError):
            target.dispatch_event(ON_LOAD, None)


class TestRegistration:
    def test_same_listener_may_be_added_twice(self):
        target = EventTarget()
        calls = []
        listener = lambda e: calls.append(1)  # noqa: E731
        target.add_event_listener(ON_LOAD, listener)
        target.add_event_listener(ON_LOAD, listener)
        target.dispatch_event(ON_LOAD, None)
        assert calls == [1, 1]

    def test_remove_drops_first_registration_only(self):
        target = EventTarget()
        listener = lambda e: None  # noqa: E731
        target.add_event_listener(ON_LOAD, listener)
        target.add_event_listener(ON_LOAD, listener)
        assert target.remove_event_listener(ON_LOAD, listener) is True
        assert target.listeners(ON_LOAD) == [listener]

    def test_remove_unknown_listener(self):
        target = EventTarget()
        assert target.remove_event_listener(ON_LOAD, lambda e: None) is False

    def test_listeners_returns_copy(self):
        target = EventTarget()
        target.add_event_listener(ON_LOAD, lambda e: None)
        target.listeners(ON_LOAD).clear()
        assert len(target.listeners(ON_LOAD)) == 1
