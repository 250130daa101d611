"""pandas views of a computed snapshot, for presentation code."""
from typing import Iterable

import pandas as pd

from envelope_core.capacity import active_capacity, per_interval
from envelope_core.domain import Hierarchy, LedgerEntry
from envelope_core.hierarchy import tree_order
from envelope_core.window import ViewWindow

SNAPSHOT_COLUMNS = [
    "kind", "id", "name", "parent_id", "capacity", "infinite",
    "sorted_amount", "unsorted_amount", "number_of_unsorted_items",
    "rolled_over_amount", "children_total", "grand_children_total",
]


def snapshot_frame(snapshot: Hierarchy, window: ViewWindow) -> pd.DataFrame:
    """One row per node in tree order, orphans last, with the capacity active in ``window``."""
    rows = []
    for node in tree_order(snapshot, include_orphans=True):
        capacity = active_capacity(node, window.anchor)
        c = node.computed
        rows.append({
            "kind": node.kind.value,
            "id": node.id,
            "name": node.name,
            "parent_id": node.parent_id,
            "capacity": per_interval(capacity, window.interval),
            "infinite": capacity.is_infinite,
            "sorted_amount": c.sorted_amount,
            "unsorted_amount": c.unsorted_amount,
            "number_of_unsorted_items": c.number_of_unsorted_items,
            "rolled_over_amount": c.rolled_over_amount,
            "children_total": c.children_total,
            "grand_children_total": c.grand_children_total,
        })
    return pd.DataFrame(rows, columns=SNAPSHOT_COLUMNS)


def entries_frame(entries: Iterable[LedgerEntry]) -> pd.DataFrame:
    df = pd.DataFrame(
        [
            {
                "id": e.id,
                "date": e.date,
                "account_id": e.account_id,
                "amount": float(e.amount),
                "budget_id": e.label.budget_id,
                "category_id": e.label.category_id,
            }
            for e in entries
        ],
        columns=["id", "date", "account_id", "amount", "budget_id", "category_id"],
    )
    df["date"] = pd.to_datetime(df["date"])
    return df.sort_values("date", kind="stable").reset_index(drop=True)


def monthly_totals(entries: Iterable[LedgerEntry]) -> pd.Series:
    """Signed ledger total per calendar month, keyed "YYYY-MM"."""
    df = entries_frame(entries)
    if df.empty:
        return pd.Series(dtype=float)
    return df.groupby(df["date"].dt.strftime("%Y-%m"))["amount"].sum()
