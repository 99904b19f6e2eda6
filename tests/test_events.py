from datetime import datetime

from pennywise.events import (
    Event, EventBus,
    FETCH_FAILED, MUTATION_FAILED, TRANSACTION_DELETE_REQUESTED,
    failure_notice_handler,
)


def test_event_creation():
    event = Event(
        name=FETCH_FAILED,
        ts=datetime.now().isoformat(),
        payload={"resource": "budgets", "message": "Failed to fetch category budgets"}
    )
    assert event.name == FETCH_FAILED
    assert event.payload["resource"] == "budgets"


def test_event_bus_subscribe_and_publish():
    bus = EventBus()
    collected = []

    def handler(event: Event, payload: dict) -> dict:
        collected.append(payload)
        return {"processed": True}

    bus.subscribe(TRANSACTION_DELETE_REQUESTED, handler)
    results = bus.publish(TRANSACTION_DELETE_REQUESTED, {"id": 4})

    assert results == [{"processed": True}]
    assert collected == [{"id": 4}]


def test_publish_without_subscribers():
    bus = EventBus()
    assert bus.publish(FETCH_FAILED, {"resource": "categories"}) == []


def test_unsubscribe():
    bus = EventBus()
    calls = []

    def handler(event, payload):
        calls.append(payload)
        return {}

    bus.subscribe(MUTATION_FAILED, handler)
    bus.unsubscribe(MUTATION_FAILED, handler)
    bus.publish(MUTATION_FAILED, {"action": "create_budget", "message": "boom"})
    assert calls == []
    # unknown handler or event is ignored
    bus.unsubscribe("NOPE", handler)


def test_failure_notice_handler():
    bus = EventBus()
    bus.subscribe(FETCH_FAILED, failure_notice_handler)
    bus.subscribe(MUTATION_FAILED, failure_notice_handler)

    fetch = bus.publish(FETCH_FAILED, {"resource": "transactions", "message": "No token found"})
    assert fetch[0]["notice"] == "transactions: No token found"
    assert "ts" in fetch[0]

    mutation = bus.publish(MUTATION_FAILED, {"action": "create_budget", "message": "Invalid request payload"})
    assert mutation[0]["notice"] == "create_budget: Invalid request payload"

    assert bus.publish(FETCH_FAILED, {"resource": "budgets"}) == [{}]
