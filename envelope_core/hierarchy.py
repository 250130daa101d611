from typing import Optional, Tuple

from envelope_core.domain import BudgetNode, Hierarchy, NodeKind

_CHILD_KIND = {
    NodeKind.BUDGET: NodeKind.SECTION,
    NodeKind.SECTION: NodeKind.CATEGORY,
}

_PARENT_KIND = {
    NodeKind.SECTION: NodeKind.BUDGET,
    NodeKind.CATEGORY: NodeKind.SECTION,
}


def children_of(hierarchy: Hierarchy, node: BudgetNode) -> Tuple[BudgetNode, ...]:
    child_kind = _CHILD_KIND.get(node.kind)
    if child_kind is None:
        return ()
    return tuple(c for c in hierarchy.collection(child_kind) if c.parent_id == node.id)


def parent_of(hierarchy: Hierarchy, node: BudgetNode) -> Optional[BudgetNode]:
    parent_kind = _PARENT_KIND.get(node.kind)
    if parent_kind is None:
        return None
    return hierarchy.get(parent_kind, node.parent_id)


def flatten(hierarchy: Hierarchy, root: BudgetNode) -> Tuple[BudgetNode, ...]:
    """Every descendant of ``root``, depth first."""
    result: Tuple[BudgetNode, ...] = ()
    for child in children_of(hierarchy, root):
        result += (child,) + flatten(hierarchy, child)
    return result


def ancestors(hierarchy: Hierarchy, node: BudgetNode) -> Tuple[BudgetNode, ...]:
    """Parent first, stopping at the first missing link."""
    parent = parent_of(hierarchy, node)
    if parent is None:
        return ()
    return (parent,) + ancestors(hierarchy, parent)


def tree_order(hierarchy: Hierarchy, include_orphans: bool = False) -> Tuple[BudgetNode, ...]:
    """Budgets each followed by their descendants.

    Orphans (nodes with no path up to a budget) are left out unless
    ``include_orphans`` is set, in which case they follow in storage order.
    """
    result: Tuple[BudgetNode, ...] = ()
    for budget in hierarchy.budgets:
        result += (budget,) + flatten(hierarchy, budget)
    if include_orphans:
        seen = {(n.kind, n.id) for n in result}
        result += tuple(n for n in hierarchy.nodes() if (n.kind, n.id) not in seen)
    return result
