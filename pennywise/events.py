from datetime import datetime
from typing import Callable, Dict, List, NamedTuple

__all__ = [
    'Event', 'EventBus',
    'FETCH_FAILED', 'MUTATION_FAILED', 'TRANSACTION_CREATED', 'BUDGET_CREATED',
    'TRANSACTION_DELETE_REQUESTED', 'failure_notice_handler',
]


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[Event, dict], dict]]] = {}

    def subscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        if name not in self._subscribers:
            self._subscribers[name] = []
        self._subscribers[name].append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        if name not in self._subscribers:
            return []

        event = Event(
            name=name,
            ts=datetime.now().isoformat(),
            payload=payload
        )

        results = []
        for handler in self._subscribers[name]:
            result = handler(event, payload)
            results.append(result)
        return results

    def unsubscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        if name in self._subscribers:
            if handler in self._subscribers[name]:
                self._subscribers[name].remove(handler)


FETCH_FAILED = "FETCH_FAILED"
MUTATION_FAILED = "MUTATION_FAILED"
TRANSACTION_CREATED = "TRANSACTION_CREATED"
BUDGET_CREATED = "BUDGET_CREATED"
# no handler deletes anything yet; the surface raises it from the row button
TRANSACTION_DELETE_REQUESTED = "TRANSACTION_DELETE_REQUESTED"


def failure_notice_handler(event: Event, payload: dict) -> dict:
    source = payload.get("resource") or payload.get("action", "")
    message = payload.get("message", "")
    if not message:
        return {}
    return {
        "notice": f"{source}: {message}" if source else message,
        "ts": event.ts,
    }

