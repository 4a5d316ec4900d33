import sys
import os
import logging

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from laundry.frp import (
    ORDER_CREATED,
    ORDER_STATUS_CHANGED,
    EventBus,
    create_event,
    create_order_event_bus,
)
from laundry.notifications import NotificationEmitter
from laundry.store import MemoryStore


def test_eventbus_immutability():
    """subscribe возвращает новую шину"""
    bus1 = EventBus()
    bus2 = bus1.subscribe("TEST", lambda e: None)

    assert bus1.subscribers == ()
    assert len(bus2.subscribers) == 1
    assert bus1 is not bus2


def test_handlers_run_in_subscription_order():
    seen = []
    bus = (
        EventBus()
        .subscribe("TEST", lambda e: seen.append("a"))
        .subscribe("OTHER", lambda e: seen.append("x"))
        .subscribe("TEST", lambda e: seen.append("b"))
    )
    assert bus.publish(create_event("TEST", {})) == 2
    assert seen == ["a", "b"]


def test_failing_handler_is_isolated():
    seen = []

    def broken(event):
        raise RuntimeError("boom")

    bus = EventBus().subscribe("TEST", broken).subscribe("TEST", lambda e: seen.append(e.name))
    assert bus.publish(create_event("TEST", {})) == 1
    assert seen == ["TEST"]


def test_failing_handler_logged_as_warning(caplog):
    def broken(event):
        raise RuntimeError("boom")

    bus = EventBus().subscribe("TEST", broken)
    with caplog.at_level(logging.DEBUG, logger="laundry.frp"):
        bus.publish(create_event("TEST", {}))

    records = [r for r in caplog.records if r.name == "laundry.frp"]
    assert [r.levelno for r in records] == [logging.WARNING]
    assert records[0].exc_info is not None


def test_order_bus_writes_notifications():
    emitter = NotificationEmitter(MemoryStore(), clock=lambda: "2024-05-01T10:00:00")
    bus = create_order_event_bus(emitter)

    bus.publish(create_event(ORDER_CREATED, {"order_id": 7, "customer_name": None}))
    bus.publish(create_event(ORDER_STATUS_CHANGED, {"order_id": 7, "old": "done", "new": "picked"}))

    messages = [n.message for n in emitter.list_all()]
    assert messages == ["Order #7 status: done → picked", "Order #7 created for customer"]
