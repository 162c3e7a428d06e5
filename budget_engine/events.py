from datetime import datetime
from typing import Callable, Dict, List, NamedTuple

from budget_engine.domain import InsightSnapshot
from budget_engine.functional import Either

__all__ = [
    'Event', 'EventBus', 'publish_insight_alerts',
    'INSIGHTS_COMPUTED', 'UNUSUAL_SPENDING', 'NEW_SPENDING', 'CATEGORY_ALERT', 'ALLOCATION_UNAVAILABLE',
]

INSIGHTS_COMPUTED = "INSIGHTS_COMPUTED"
UNUSUAL_SPENDING = "UNUSUAL_SPENDING"
NEW_SPENDING = "NEW_SPENDING"
CATEGORY_ALERT = "CATEGORY_ALERT"
ALLOCATION_UNAVAILABLE = "ALLOCATION_UNAVAILABLE"


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


class EventBus:
    """Synchronous publish/subscribe. Owned by the caller, one per dashboard/session."""

    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[Event], dict]]] = {}

    def subscribe(self, name: str, handler: Callable[[Event], dict]) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        if name not in self._subscribers:
            return []

        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        return [handler(event) for handler in list(self._subscribers[name])]

    def unsubscribe(self, name: str, handler: Callable[[Event], dict]) -> None:
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)


def publish_insight_alerts(bus: EventBus, result: Either[dict, InsightSnapshot]) -> int:
    """Publish one event per flag in the result; returns how many events were published."""
    if result.is_left():
        bus.publish(ALLOCATION_UNAVAILABLE, result.get_error())
        return 1

    snapshot = result.get_or_else(None)
    published = 0
    for item in snapshot.unusual_spending:
        bus.publish(UNUSUAL_SPENDING, {
            "category_id": item.category_id,
            "amount": item.amount,
            "percentage_increase": item.percentage_increase,
        })
        published += 1
    for item in snapshot.new_spending:
        bus.publish(NEW_SPENDING, {"category_id": item.category_id, "amount": item.amount})
        published += 1
    for alert in snapshot.category_alerts:
        bus.publish(CATEGORY_ALERT, {
            "category_id": alert.category_id,
            "kind": alert.kind,
            "spent": alert.spent,
            "limit": alert.limit,
            "percent_used": alert.percent_used,
        })
        published += 1

    bus.publish(INSIGHTS_COMPUTED, {
        "as_of": snapshot.as_of.isoformat(),
        "guilt_free_balance": snapshot.guilt_free_balance,
        "projected_savings": snapshot.projected_savings,
    })
    return published + 1
