import json
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from dateutil import parser as date_parser

from envelope_core.domain import (
    Account,
    AccountLabel,
    BudgetNode,
    Capacity,
    EntryLabel,
    Hierarchy,
    LedgerEntry,
    NodeKind,
)

# stored record field naming each node's id and its parent's id
_ID_FIELDS = {
    NodeKind.BUDGET: ("budget_id", None),
    NodeKind.SECTION: ("section_id", "budget_id"),
    NodeKind.CATEGORY: ("category_id", "section_id"),
}


def _parse_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = date_parser.isoparse(value)
    if parsed.tzinfo is not None:
        # engine dates are naive local time
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _format_date(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def capacity_from_record(record: Dict[str, Any]) -> Capacity:
    return Capacity(
        id=record["capacity_id"],
        month_amount=float(record.get("month", 0)),
        active_from=_parse_date(record.get("active_from")),
    )


def node_from_record(kind: NodeKind, record: Dict[str, Any]) -> BudgetNode:
    id_field, parent_field = _ID_FIELDS[kind]
    return BudgetNode(
        kind=kind,
        id=record[id_field],
        name=record.get("name", ""),
        capacities=tuple(capacity_from_record(c) for c in record.get("capacities", ())),
        parent_id=record.get(parent_field) if parent_field else None,
        roll_over=bool(record.get("roll_over", False)),
        roll_over_start_date=_parse_date(record.get("roll_over_start_date")),
    )


def entry_from_record(record: Dict[str, Any]) -> LedgerEntry:
    label = record.get("label") or {}
    return LedgerEntry(
        id=record["transaction_id"],
        # the authorization date reflects when money actually moved
        date=_parse_date(record.get("authorized_date") or record["date"]),
        account_id=record["account_id"],
        amount=float(record["amount"]),
        label=EntryLabel(budget_id=label.get("budget_id"), category_id=label.get("category_id")),
    )


def account_from_record(record: Dict[str, Any]) -> Account:
    label = record.get("label") or {}
    return Account(
        id=record["account_id"],
        name=record.get("name", ""),
        hide=bool(record.get("hide", False)),
        label=AccountLabel(budget_id=label.get("budget_id")),
    )


def load_seed(path: str) -> Tuple[Tuple[Account, ...], Hierarchy, Tuple[LedgerEntry, ...]]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    accounts = tuple(account_from_record(a) for a in data.get("accounts", ()))
    hierarchy = Hierarchy(
        budgets=tuple(node_from_record(NodeKind.BUDGET, r) for r in data.get("budgets", ())),
        sections=tuple(node_from_record(NodeKind.SECTION, r) for r in data.get("sections", ())),
        categories=tuple(node_from_record(NodeKind.CATEGORY, r) for r in data.get("categories", ())),
    )
    entries = tuple(entry_from_record(t) for t in data.get("transactions", ()))

    return accounts, hierarchy, entries


def node_to_record(node: BudgetNode) -> Dict[str, Any]:
    """Storage form of a node; computed fields never leave the process."""
    id_field, parent_field = _ID_FIELDS[node.kind]
    record = {
        id_field: node.id,
        "name": node.name,
        "capacities": [
            {"capacity_id": c.id, "month": c.month_amount, "active_from": _format_date(c.active_from)}
            for c in node.capacities
        ],
        "roll_over": node.roll_over,
        "roll_over_start_date": _format_date(node.roll_over_start_date),
    }
    if parent_field:
        record[parent_field] = node.parent_id
    return record


def dump_hierarchy(hierarchy: Hierarchy) -> Dict[str, Any]:
    return {
        "budgets": [node_to_record(n) for n in hierarchy.budgets],
        "sections": [node_to_record(n) for n in hierarchy.sections],
        "categories": [node_to_record(n) for n in hierarchy.categories],
    }


def add_entry(entries: Tuple[LedgerEntry, ...], e: LedgerEntry) -> Tuple[LedgerEntry, ...]:
    return entries + (e,)
