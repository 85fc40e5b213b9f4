"""Tests for the error hierarchy, ErrorHandler and EventBus."""

import logging

from recordlens.errors import (
    ApplicationError,
    DomainError,
    EmptyInputRejected,
    InfrastructureError,
    NetworkFailure,
    PartialTagFailure,
    ReconcileReadFailure,
    RecordLensError,
)
from recordlens.errors.handler import ErrorHandler, ErrorOccurredEvent, ErrorSeverity
from recordlens.events.bus import EventBus
from recordlens.events.record_events import RecordsChangedEvent

from fakes import RecordingNotifier


class TestHierarchy:
    def test_layers(self):
        assert issubclass(EmptyInputRejected, DomainError)
        assert issubclass(NetworkFailure, InfrastructureError)
        assert issubclass(PartialTagFailure, ApplicationError)
        assert issubclass(ReconcileReadFailure, RecordLensError)

    def test_network_failure_message(self):
        error = NetworkFailure("Loading page 2", ConnectionError("reset"))
        assert str(error) == "Loading page 2 failed: reset"
        assert str(NetworkFailure("Saving")) == "Saving failed"

    def test_partial_failure_sorts_names(self):
        error = PartialTagFailure("rec-1", {"b", "a"}, ["x"])
        assert error.failed == ("a", "b")
        assert error.tags == ("x",)
        assert "a, b" in str(error)


class TestErrorHandler:
    def test_error_is_logged_published_and_notified(self, caplog):
        bus = EventBus()
        events = []
        bus.subscribe(ErrorOccurredEvent, events.append)
        notifier = RecordingNotifier()
        handler = ErrorHandler(logging.getLogger("test.errors"), bus, notifier)

        handler.handle(NetworkFailure("x"), ErrorSeverity.ERROR, {"page": 2})

        assert "NetworkFailure" in caplog.text
        assert events[0].severity is ErrorSeverity.ERROR
        assert events[0].context == {"page": 2}
        assert notifier.errors == ["x failed"]

    def test_warning_is_not_notified(self):
        notifier = RecordingNotifier()
        handler = ErrorHandler(notifier=notifier)

        handler.handle(RuntimeError("meh"), ErrorSeverity.WARNING)

        assert notifier.errors == []

    def test_register_notifier(self):
        handler = ErrorHandler()
        notifier = RecordingNotifier()
        handler.register_notifier(notifier)

        handler.handle(RuntimeError("late"), ErrorSeverity.CRITICAL)

        assert notifier.errors == ["late"]


class TestEventBus:
    def test_publish_by_exact_type(self):
        bus = EventBus()
        seen = []
        bus.subscribe(RecordsChangedEvent, seen.append)

        event = RecordsChangedEvent(record_ids=["a"])
        bus.publish(event)

        assert seen == [event]

    def test_unsubscribe(self):
        bus = EventBus()
        seen = []
        sub = bus.subscribe(RecordsChangedEvent, seen.append)
        bus.unsubscribe(sub)

        bus.publish(RecordsChangedEvent(record_ids=[]))

        assert seen == []
        assert bus.subscriber_count(RecordsChangedEvent) == 0

    def test_failing_handler_is_isolated(self, caplog):
        bus = EventBus()
        seen = []

        def bad(event):
            raise RuntimeError("handler broke")

        bus.subscribe(RecordsChangedEvent, bad)
        bus.subscribe(RecordsChangedEvent, seen.append)
        bus.publish(RecordsChangedEvent(record_ids=[]))

        assert len(seen) == 1
        assert "handler broke" in caplog.text
