from datetime import date

from budget_engine.domain import (
    CategoryAlert,
    InsightSnapshot,
    NewSpending,
    UnusualSpending,
)
from budget_engine.events import (
    ALLOCATION_UNAVAILABLE,
    CATEGORY_ALERT,
    INSIGHTS_COMPUTED,
    NEW_SPENDING,
    UNUSUAL_SPENDING,
    EventBus,
    publish_insight_alerts,
)
from budget_engine.functional import Left, Right


def make_snapshot():
    return InsightSnapshot(
        as_of=date(2025, 3, 31),
        allocations={"savings": 100},
        guilt_free_balance=250.0,
        monthly_spending_by_category={"food": 260, "fun": 50},
        unusual_spending=(UnusualSpending("food", 260, 0.3),),
        new_spending=(NewSpending("fun", 50),),
        projected_savings=1200.0,
        category_alerts=(CategoryAlert("food", "warning", 260, 300, 86.7),),
    )


def test_publish_without_subscribers_returns_empty():
    bus = EventBus()
    assert bus.publish("NOTHING", {}) == []


def test_subscribe_and_unsubscribe():
    bus = EventBus()

    def handler(event):
        return {"seen": event.payload["x"]}

    bus.subscribe("PING", handler)
    assert bus.publish("PING", {"x": 1}) == [{"seen": 1}]

    bus.unsubscribe("PING", handler)
    assert bus.publish("PING", {"x": 2}) == []
    bus.unsubscribe("UNKNOWN", handler)


def test_event_carries_name_and_timestamp():
    bus = EventBus()
    captured = []
    bus.subscribe("PING", lambda e: captured.append(e) or {})
    bus.publish("PING", {"x": 1})
    assert captured[0].name == "PING"
    assert captured[0].ts


def test_publish_insight_alerts():
    bus = EventBus()
    seen = []
    for name in (UNUSUAL_SPENDING, NEW_SPENDING, CATEGORY_ALERT, INSIGHTS_COMPUTED):
        bus.subscribe(name, lambda e: seen.append((e.name, e.payload)) or {})

    count = publish_insight_alerts(bus, Right(make_snapshot()))

    assert count == 4
    assert [name for name, _ in seen] == [UNUSUAL_SPENDING, NEW_SPENDING, CATEGORY_ALERT, INSIGHTS_COMPUTED]
    assert seen[0][1] == {"category_id": "food", "amount": 260, "percentage_increase": 0.3}
    assert seen[3][1]["guilt_free_balance"] == 250.0


def test_publish_unavailable_allocation():
    bus = EventBus()
    seen = []
    bus.subscribe(ALLOCATION_UNAVAILABLE, lambda e: seen.append(e.payload) or {})
    count = publish_insight_alerts(bus, Left({"error": "allocation_unavailable"}))
    assert count == 1
    assert seen == [{"error": "allocation_unavailable"}]
