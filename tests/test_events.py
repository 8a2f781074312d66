from datetime import datetime

import pytest

from mtracker.events import Event, EventBus, TRANSACTIONS_CHANGED, BUDGETS_CHANGED


def test_event_creation():
    event = Event(
        name=TRANSACTIONS_CHANGED,
        ts=datetime.now().isoformat(),
        payload={"snapshot": ()}
    )
    assert event.name == TRANSACTIONS_CHANGED
    assert event.payload["snapshot"] == ()


def test_event_bus_subscribe_and_publish():
    bus = EventBus()
    seen = []

    def handler(event: Event, payload: dict) -> dict:
        seen.append(event.name)
        return {"processed": True}

    bus.subscribe(TRANSACTIONS_CHANGED, handler)
    results = bus.publish(TRANSACTIONS_CHANGED, {"snapshot": ()})

    assert results == [{"processed": True}]
    assert seen == [TRANSACTIONS_CHANGED]
    assert bus.publish(BUDGETS_CHANGED, {}) == []


def test_event_bus_unsubscribe():
    bus = EventBus()

    def handler(event, payload):
        return {"n": 1}

    unsubscribe = bus.subscribe(TRANSACTIONS_CHANGED, handler)
    unsubscribe()
    assert bus.publish(TRANSACTIONS_CHANGED, {}) == []

    bus.subscribe(TRANSACTIONS_CHANGED, handler)
    bus.unsubscribe(TRANSACTIONS_CHANGED, handler)
    bus.unsubscribe(TRANSACTIONS_CHANGED, handler)
    assert bus.publish(TRANSACTIONS_CHANGED, {}) == []


def test_event_bus_handler_order():
    bus = EventBus()
    bus.subscribe(TRANSACTIONS_CHANGED, lambda e, p: {"first": True})
    bus.subscribe(TRANSACTIONS_CHANGED, lambda e, p: {"second": True})
    assert bus.publish(TRANSACTIONS_CHANGED, {}) == [{"first": True}, {"second": True}]


def test_event_bus_handler_error_propagates():
    bus = EventBus()

    def broken(event, payload):
        raise RuntimeError("boom")

    bus.subscribe(TRANSACTIONS_CHANGED, broken)
    with pytest.raises(RuntimeError):
        bus.publish(TRANSACTIONS_CHANGED, {})
