import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from envelope_core.aggregator import aggregate
from envelope_core.domain import Account, Hierarchy, LedgerEntry
from envelope_core.events import (
    ACCOUNTS_UPDATED,
    HIERARCHY_EDITED,
    LEDGER_UPDATED,
    SNAPSHOT_PUBLISHED,
    WINDOW_CHANGED,
    Event,
    EventBus,
)
from envelope_core.functional import validate_entry, validate_node
from envelope_core.window import ViewWindow

logger = logging.getLogger(__name__)


def node_messages(entries, accounts, hierarchy: Hierarchy, window) -> List[str]:
    return [
        result.get_error()["message"]
        for result in (validate_node(n, hierarchy) for n in hierarchy.nodes())
        if result.is_left()
    ]


def entry_messages(entries, accounts, hierarchy: Hierarchy, window) -> List[str]:
    accounts_by_id = {a.id: a for a in accounts}
    return [
        f"{e.id}: {result.get_error()['message']}"
        for e, result in ((e, validate_entry(e, accounts_by_id, hierarchy)) for e in entries)
        if result.is_left()
    ]


DEFAULT_VALIDATORS = (node_messages, entry_messages)


class BudgetService:
    """Facade running injected validators, then the aggregator, over one snapshot.

    validators: functions taking (entries, accounts, hierarchy, window) -> Sequence[str].
    Validation never blocks aggregation; its messages ride along in the report.
    """

    def __init__(
        self,
        validators: Sequence[Callable[..., Sequence[str]]] = DEFAULT_VALIDATORS,
        aggregator: Callable[..., Hierarchy] = aggregate,
    ):
        self.validators = validators
        self.aggregator = aggregator

    def report(
        self,
        entries: Sequence[LedgerEntry],
        accounts: Sequence[Account],
        hierarchy: Hierarchy,
        window: ViewWindow,
    ) -> Dict[str, Any]:
        report = {"window": window.label, "interval": window.interval.value, "validation": [], "result": None}

        for v in self.validators:
            try:
                msgs = v(entries, accounts, hierarchy, window)
            except Exception as e:
                logger.warning("Validator %s failed: %s", getattr(v, "__name__", v), e)
                msgs = [f"validator_error: {e}"]
            report["validation"].append({"validator": getattr(v, "__name__", str(v)), "messages": list(msgs)})

        report["result"] = self.aggregator(entries, accounts, hierarchy, window)
        return report


class Recalculator:
    """Keeps the latest inputs and re-runs the aggregator whenever one changes.

    Hosts read ``snapshot``; it is always the result for the current inputs
    because every update, including hierarchy edits, recomputes before
    returning.
    """

    def __init__(
        self,
        hierarchy: Hierarchy,
        window: ViewWindow,
        entries: Sequence[LedgerEntry] = (),
        accounts: Sequence[Account] = (),
        bus: Optional[EventBus] = None,
    ):
        self.hierarchy = hierarchy
        self.window = window
        self.entries: Tuple[LedgerEntry, ...] = tuple(entries)
        self.accounts: Tuple[Account, ...] = tuple(accounts)
        self.bus = bus
        self.revision = 0
        self.snapshot = self.recalculate()

    def recalculate(self) -> Hierarchy:
        snapshot = aggregate(self.entries, self.accounts, self.hierarchy, self.window)
        self.snapshot = snapshot
        self.revision += 1
        logger.info("Recalculated %s (revision %d)", self.window, self.revision)
        if self.bus is not None:
            self.bus.publish(SNAPSHOT_PUBLISHED, {"snapshot": snapshot, "revision": self.revision})
        return snapshot

    def edit(self, fn: Callable[..., Hierarchy], *args, **kwargs) -> Hierarchy:
        """Apply a hierarchy edit such as ``editing.upsert_node`` and recompute."""
        self.hierarchy = fn(self.hierarchy, *args, **kwargs)
        return self.recalculate()

    def _on_event(self, event: Event, payload: dict) -> Hierarchy:
        if event.name == HIERARCHY_EDITED:
            self.hierarchy = payload["hierarchy"]
        elif event.name == LEDGER_UPDATED:
            self.entries = tuple(payload["entries"])
        elif event.name == ACCOUNTS_UPDATED:
            self.accounts = tuple(payload["accounts"])
        elif event.name == WINDOW_CHANGED:
            self.window = payload["window"]
        return self.recalculate()

    def attach(self, bus: EventBus) -> None:
        self.bus = bus
        for name in (HIERARCHY_EDITED, LEDGER_UPDATED, ACCOUNTS_UPDATED, WINDOW_CHANGED):
            bus.subscribe(name, self._on_event)

    def detach(self) -> None:
        if self.bus is None:
            return
        for name in (HIERARCHY_EDITED, LEDGER_UPDATED, ACCOUNTS_UPDATED, WINDOW_CHANGED):
            self.bus.unsubscribe(name, self._on_event)
        self.bus = None
