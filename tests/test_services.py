from datetime import datetime

from envelope_core.domain import Account, AccountLabel, Capacity, EntryLabel, Hierarchy, Interval, LedgerEntry, NodeKind
from envelope_core.editing import add_capacity, new_budget, new_section, upsert_node
from envelope_core.events import (
    HIERARCHY_EDITED,
    LEDGER_UPDATED,
    SNAPSHOT_PUBLISHED,
    WINDOW_CHANGED,
    Event,
    EventBus,
)
from envelope_core.services import BudgetService, Recalculator
from envelope_core.window import ViewWindow

MARCH = ViewWindow(Interval.MONTH, datetime(2024, 3, 15))


def make_hierarchy():
    return Hierarchy(
        budgets=(new_budget("b1", "Living", [Capacity("b1-cap", 500)]),),
        sections=(
            new_section("s1", "b1", "Essentials", [Capacity("s1-cap", 100)]),
            new_section("s9", "gone", "Orphan", [Capacity("s9-cap", 100)]),
        ),
    )


def make_accounts():
    return (Account("a1", "Checking", label=AccountLabel(budget_id="b1")),)


def make_entry(id, amount, when, **label):
    return LedgerEntry(id=id, date=when, account_id="a1", amount=amount, label=EntryLabel(**label))


def test_event_bus_publish_and_unsubscribe():
    bus = EventBus()
    seen = []

    def handler(event: Event, payload: dict) -> dict:
        seen.append((event.name, payload))
        return {"ok": True}

    bus.subscribe(LEDGER_UPDATED, handler)
    assert bus.publish(LEDGER_UPDATED, {"entries": ()}) == [{"ok": True}]
    assert seen == [(LEDGER_UPDATED, {"entries": ()})]

    bus.unsubscribe(LEDGER_UPDATED, handler)
    assert bus.publish(LEDGER_UPDATED, {}) == []
    assert bus.publish("UNKNOWN", {}) == []


def test_budget_service_reports_validation_and_result():
    entries = (make_entry("t1", 20, datetime(2024, 3, 2)), make_entry("t2", 5, datetime(2024, 3, 3), category_id="c9"))
    report = BudgetService().report(entries, make_accounts(), make_hierarchy(), MARCH)

    assert report["window"] == "2024-03"
    assert report["interval"] == "month"
    nodes, entry_msgs = report["validation"]
    assert nodes["validator"] == "node_messages"
    assert len(nodes["messages"]) == 1 and "gone" in nodes["messages"][0]
    assert entry_msgs["messages"] == ["t2: Category with ID c9 does not exist"]

    budget = report["result"].get(NodeKind.BUDGET, "b1")
    assert budget.computed.unsorted_amount == 20
    assert budget.computed.children_total == 100


def test_budget_service_survives_broken_validator():
    def broken(entries, accounts, hierarchy, window):
        raise RuntimeError("boom")

    report = BudgetService(validators=[broken]).report((), (), make_hierarchy(), MARCH)
    assert report["validation"][0]["messages"] == ["validator_error: boom"]
    assert report["result"].get(NodeKind.BUDGET, "b1") is not None


def test_recalculator_recomputes_after_edit():
    calc = Recalculator(make_hierarchy(), MARCH, accounts=make_accounts())
    assert calc.snapshot.get(NodeKind.BUDGET, "b1").computed.children_total == 100

    calc.edit(upsert_node, new_section("s2", "b1", "Fun", [Capacity("s2-cap", 40)]))
    assert calc.snapshot.get(NodeKind.BUDGET, "b1").computed.children_total == 140
    assert calc.revision == 2


def test_recalculator_follows_bus_events():
    bus = EventBus()
    published = []
    bus.subscribe(SNAPSHOT_PUBLISHED, lambda event, payload: published.append(payload["revision"]))

    calc = Recalculator(make_hierarchy(), MARCH, accounts=make_accounts())
    calc.attach(bus)

    bus.publish(LEDGER_UPDATED, {"entries": (make_entry("t1", 30, datetime(2024, 4, 2)),)})
    assert calc.snapshot.get(NodeKind.BUDGET, "b1").computed.unsorted_amount == 0

    bus.publish(WINDOW_CHANGED, {"window": MARCH.next()})
    assert calc.snapshot.get(NodeKind.BUDGET, "b1").computed.unsorted_amount == 30

    budget = add_capacity(calc.hierarchy.budgets[0], Capacity("b1-cap-2", 800, datetime(2024, 4, 1)))
    bus.publish(HIERARCHY_EDITED, {"hierarchy": upsert_node(calc.hierarchy, budget)})
    # sections started before April, so April's budget version has no children yet
    assert calc.snapshot.get(NodeKind.BUDGET, "b1").computed.children_total == 0

    assert published == [2, 3, 4]

    calc.detach()
    bus.publish(WINDOW_CHANGED, {"window": MARCH})
    assert calc.revision == 4
