from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional, Tuple

from envelope_core.domain import BudgetNode, Capacity, Hierarchy, NodeKind
from envelope_core.errors import DuplicateActiveFrom, EmptyCapacityList

_UNSET = object()


def _check_unique(node_id: str, capacities: Tuple[Capacity, ...]) -> None:
    seen = set()
    for c in capacities:
        if c.active_from in seen:
            raise DuplicateActiveFrom(node_id, c.active_from)
        seen.add(c.active_from)


def _node(kind: NodeKind, id: str, name: str, capacities: Iterable[Capacity], parent_id=None, **kwargs) -> BudgetNode:
    caps = tuple(capacities) or (Capacity(id=f"{id}-capacity"),)
    _check_unique(id, caps)
    return BudgetNode(kind=kind, id=id, name=name, capacities=caps, parent_id=parent_id, **kwargs)


def new_budget(id: str, name: str, capacities: Iterable[Capacity] = (), **kwargs) -> BudgetNode:
    return _node(NodeKind.BUDGET, id, name, capacities, **kwargs)


def new_section(id: str, budget_id: str, name: str, capacities: Iterable[Capacity] = (), **kwargs) -> BudgetNode:
    return _node(NodeKind.SECTION, id, name, capacities, parent_id=budget_id, **kwargs)


def new_category(id: str, section_id: str, name: str, capacities: Iterable[Capacity] = (), **kwargs) -> BudgetNode:
    return _node(NodeKind.CATEGORY, id, name, capacities, parent_id=section_id, **kwargs)


def add_capacity(node: BudgetNode, capacity: Capacity) -> BudgetNode:
    capacities = node.capacities + (capacity,)
    _check_unique(node.id, capacities)
    return replace(node, capacities=capacities)


def update_capacity(
    node: BudgetNode,
    capacity_id: str,
    month_amount: Optional[float] = None,
    active_from=_UNSET,
) -> BudgetNode:
    def edit(c: Capacity) -> Capacity:
        if c.id != capacity_id:
            return c
        return Capacity(
            id=c.id,
            month_amount=c.month_amount if month_amount is None else month_amount,
            active_from=c.active_from if active_from is _UNSET else active_from,
        )

    capacities = tuple(edit(c) for c in node.capacities)
    _check_unique(node.id, capacities)
    return replace(node, capacities=capacities)


def remove_capacity(node: BudgetNode, capacity_id: str) -> BudgetNode:
    capacities = tuple(c for c in node.capacities if c.id != capacity_id)
    if not capacities:
        raise EmptyCapacityList(node.id)
    return replace(node, capacities=capacities)


def set_roll_over(node: BudgetNode, enabled: bool, start_date: Optional[datetime] = None) -> BudgetNode:
    return replace(node, roll_over=enabled, roll_over_start_date=start_date if enabled else None)


def _replace_collection(hierarchy: Hierarchy, kind: NodeKind, nodes: Tuple[BudgetNode, ...]) -> Hierarchy:
    if kind is NodeKind.BUDGET:
        return replace(hierarchy, budgets=nodes)
    if kind is NodeKind.SECTION:
        return replace(hierarchy, sections=nodes)
    return replace(hierarchy, categories=nodes)


def upsert_node(hierarchy: Hierarchy, node: BudgetNode) -> Hierarchy:
    current = hierarchy.collection(node.kind)
    if any(n.id == node.id for n in current):
        nodes = tuple(node if n.id == node.id else n for n in current)
    else:
        nodes = current + (node,)
    return _replace_collection(hierarchy, node.kind, nodes)


def remove_node(hierarchy: Hierarchy, kind: NodeKind, node_id: str) -> Hierarchy:
    """Drop a node; its children are left dangling for the caller to reassign."""
    nodes = tuple(n for n in hierarchy.collection(kind) if n.id != node_id)
    return _replace_collection(hierarchy, kind, nodes)
