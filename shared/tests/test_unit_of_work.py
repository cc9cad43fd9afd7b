"""Unit of work and message bus behaviour."""

from dataclasses import dataclass

import pytest

from shared.application import message_bus as message_bus_module
from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class SomethingHappened(DomainEvent):
    note: str = ""


@pytest.fixture
def bus(monkeypatch):
    bus = MessageBus()
    monkeypatch.setattr(message_bus_module, "message_bus", bus)
    return bus


@pytest.mark.django_db
def test_events_are_published_after_commit(bus, django_capture_on_commit_callbacks):
    seen = []
    bus.register_event_handler(SomethingHappened, seen.append)

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with DjangoUnitOfWork() as uow:
            uow.record(SomethingHappened(note="first"))
            assert seen == []

    assert len(callbacks) == 1
    assert [event.note for event in seen] == ["first"]


@pytest.mark.django_db
def test_rollback_discards_events(bus, django_capture_on_commit_callbacks):
    seen = []
    bus.register_event_handler(SomethingHappened, seen.append)

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with pytest.raises(RuntimeError):
            with DjangoUnitOfWork() as uow:
                uow.record(SomethingHappened(note="lost"))
                raise RuntimeError("boom")

    assert callbacks == []
    assert seen == []


def test_registering_twice_is_a_no_op():
    bus = MessageBus()

    def handler(event):
        pass

    bus.register_event_handler(SomethingHappened, handler)
    bus.register_event_handler(SomethingHappened, handler)

    assert bus.handlers_for(SomethingHappened) == [handler]


def test_failing_handler_does_not_stop_the_others():
    bus = MessageBus()
    seen = []

    def broken(event):
        raise ValueError("handler failure")

    bus.register_event_handler(SomethingHappened, broken)
    bus.register_event_handler(SomethingHappened, seen.append)

    bus.publish_events([SomethingHappened(note="still delivered")])

    assert [event.note for event in seen] == ["still delivered"]


def test_event_serialization():
    event = SomethingHappened(aggregate_id=7, note="x")
    data = event.to_dict()

    assert data["event_type"] == "SomethingHappened"
    assert data["aggregate_id"] == 7
    assert data["event_id"] == str(event.event_id)


@pytest.mark.django_db
def test_booking_handlers_are_registered_at_startup():
    from apps.bookings.domain.events import BookingCancelled, BookingCreated
    from apps.bookings.handlers import log_booking_cancelled, log_booking_created

    assert log_booking_created in message_bus_module.message_bus.handlers_for(BookingCreated)
    assert log_booking_cancelled in message_bus_module.message_bus.handlers_for(BookingCancelled)
