from typing import Callable, Dict, List, NamedTuple
from datetime import datetime

from compass.logging_setup import get_logger
from compass.money import cents

__all__ = ['event_bus', 'TRANSACTION_ADDED', 'BUDGET_ALERT', 'Event', 'EventBus',
           'budget_alert_handler', 'register_default_handlers']

logger = get_logger(__name__)


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[Event, dict], dict]]] = {}

    def subscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        handlers = self._subscribers.setdefault(name, [])
        if handler not in handlers:
            handlers.append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        handlers = self._subscribers.get(name, [])
        if not handlers:
            return []

        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        logger.debug("publishing %s to %d handler(s)", name, len(handlers))
        return [handler(event, payload) for handler in list(handlers)]

    def unsubscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)


TRANSACTION_ADDED = "TRANSACTION_ADDED"
BUDGET_ALERT = "BUDGET_ALERT"

event_bus = EventBus()


def budget_alert_handler(event: Event, payload: dict) -> dict:
    """Flag a recorded expense that pushes its category past the budget limit.

    Payload keys: ``category``, ``amount``, ``spent`` (including the new
    expense) and ``limit`` (absent when no budget applies).
    """
    limit = payload.get("limit")
    spent = payload.get("spent", 0)
    if payload.get("type") != "expense" or not limit:
        return {}
    if cents(spent) > cents(limit):
        category = payload.get("category", "")
        return {
            "alert": f"Budget exceeded for {category}: {spent:,.2f} / {limit:,.2f}",
            "category": category,
            "spent": spent,
            "limit": limit,
            "overage": float(cents(spent) - cents(limit)),
        }
    return {"spent": spent}


def register_default_handlers(bus: EventBus = event_bus) -> None:
    bus.subscribe(TRANSACTION_ADDED, budget_alert_handler)


register_default_handlers()
