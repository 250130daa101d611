from datetime import datetime
from typing import Any, Callable, Dict, List, NamedTuple

__all__ = [
    'event_bus', 'Event', 'EventBus',
    'HIERARCHY_EDITED', 'LEDGER_UPDATED', 'ACCOUNTS_UPDATED', 'WINDOW_CHANGED', 'SNAPSHOT_PUBLISHED',
]


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], Any]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def publish(self, name: str, payload: dict) -> List[Any]:
        handlers = list(self._subscribers.get(name, ()))
        if not handlers:
            return []

        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        return [handler(event, payload) for handler in handlers]

    def unsubscribe(self, name: str, handler: Handler) -> None:
        if handler in self._subscribers.get(name, ()):
            self._subscribers[name].remove(handler)


HIERARCHY_EDITED = "HIERARCHY_EDITED"
LEDGER_UPDATED = "LEDGER_UPDATED"
ACCOUNTS_UPDATED = "ACCOUNTS_UPDATED"
WINDOW_CHANGED = "WINDOW_CHANGED"
SNAPSHOT_PUBLISHED = "SNAPSHOT_PUBLISHED"

event_bus = EventBus()
