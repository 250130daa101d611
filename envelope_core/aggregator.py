"""Budget hierarchy aggregation.

``aggregate`` takes one snapshot of (entries, accounts, hierarchy, window)
and returns a new hierarchy whose nodes carry freshly computed fields. The
inputs are never mutated, so a run can be abandoned or repeated freely.

The run goes through three phases in order:

1. reset every node and seed roll-over balances with the negative of the
   capacity accrued before the window,
2. roll capacities up from sections and categories into their ancestors,
   attributed to the ancestor capacity version active when each child
   version starts,
3. distribute ledger entries onto categories, sections and budgets, either
   into the window's totals or into the roll-over balance.

Data-shape problems (dangling parents, unknown labels, empty capacity
lists) are skipped quietly so half-configured envelopes still render.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Optional, Tuple

from envelope_core.capacity import (
    accumulated_capacity,
    active_capacity,
    effective_from,
    per_interval,
)
from envelope_core.domain import (
    Account,
    BudgetNode,
    CapacityTotals,
    Computed,
    Hierarchy,
    LedgerEntry,
    NodeKind,
)
from envelope_core.functional import pipe
from envelope_core.window import ViewWindow, as_datetime

logger = logging.getLogger(__name__)

NodeKey = Tuple[NodeKind, str]


@dataclass
class _Tally:
    sorted_amount: float = 0.0
    unsorted_amount: float = 0.0
    number_of_unsorted_items: int = 0
    rolled_over_amount: float = 0.0


@dataclass
class _Run:
    window: ViewWindow
    hierarchy: Hierarchy
    budgets: Dict[str, BudgetNode]
    sections: Dict[str, BudgetNode]
    categories: Dict[str, BudgetNode]
    tallies: Dict[NodeKey, _Tally] = field(default_factory=dict)
    # node -> capacity id -> [children_total, grand_children_total]
    totals: Dict[NodeKey, Dict[str, list]] = field(
        default_factory=lambda: defaultdict(lambda: defaultdict(lambda: [0.0, 0.0]))
    )

    def tally(self, node: BudgetNode) -> _Tally:
        return self.tallies[(node.kind, node.id)]

    def add_total(self, node: BudgetNode, capacity_id: str, slot: int, amount: float) -> None:
        self.totals[(node.kind, node.id)][capacity_id][slot] += amount


def _reset(hierarchy: Hierarchy, window: ViewWindow) -> _Run:
    run = _Run(
        window=window,
        hierarchy=hierarchy,
        budgets=hierarchy.index(NodeKind.BUDGET),
        sections=hierarchy.index(NodeKind.SECTION),
        categories=hierarchy.index(NodeKind.CATEGORY),
    )
    for node in hierarchy.nodes():
        tally = _Tally()
        if node.rolls_over:
            tally.rolled_over_amount = -accumulated_capacity(node, node.roll_over_start_date, window)
        run.tallies[(node.kind, node.id)] = tally
    return run


def _attribute(run: _Run, ancestor: BudgetNode, child_capacity, slot: int) -> None:
    target = active_capacity(ancestor, effective_from(child_capacity))
    run.add_total(ancestor, target.id, slot, per_interval(child_capacity, run.window.interval))


def _rollup(run: _Run) -> _Run:
    for section in run.sections.values():
        budget = run.budgets.get(section.parent_id)
        if budget is None:
            logger.debug("Section %s has no budget %s; skipping rollup", section.id, section.parent_id)
            continue
        for capacity in section.capacities:
            _attribute(run, budget, capacity, 0)

    for category in run.categories.values():
        section = run.sections.get(category.parent_id)
        if section is None:
            logger.debug("Category %s has no section %s; skipping rollup", category.id, category.parent_id)
            continue
        budget = run.budgets.get(section.parent_id)
        for capacity in category.capacities:
            _attribute(run, section, capacity, 0)
            if budget is not None:
                _attribute(run, budget, capacity, 1)
    return run


def _book(run: _Run, node: BudgetNode, entry: LedgerEntry, sorted_: bool) -> None:
    moment = as_datetime(entry.date)
    tally = run.tally(node)
    if run.window.has(moment):
        if sorted_:
            tally.sorted_amount += entry.amount
        else:
            tally.unsorted_amount += entry.amount
            tally.number_of_unsorted_items += 1
    elif node.rolls_over and as_datetime(node.roll_over_start_date) <= moment < run.window.bucket_start:
        tally.rolled_over_amount += entry.amount


def _distribute_one(run: _Run, entry: LedgerEntry, account: Account) -> None:
    if not entry.is_labeled:
        budget_id = entry.label.budget_id or account.label.budget_id
        budget = run.budgets.get(budget_id) if budget_id else None
        if budget is None:
            logger.debug("Entry %s has no budget %s; skipping", entry.id, budget_id)
            return
        _book(run, budget, entry, sorted_=False)
        return

    category = run.categories.get(entry.label.category_id)
    if category is None:
        logger.debug("Entry %s labeled with unknown category %s", entry.id, entry.label.category_id)
        return
    _book(run, category, entry, sorted_=True)

    section = run.sections.get(category.parent_id)
    if section is None:
        return
    _book(run, section, entry, sorted_=True)

    budget = run.budgets.get(section.parent_id)
    if budget is None:
        return
    _book(run, budget, entry, sorted_=True)


def _distribute(run: _Run, entries: Iterable[LedgerEntry], accounts: Iterable[Account]) -> _Run:
    accounts_by_id = {a.id: a for a in accounts}
    for entry in entries:
        account: Optional[Account] = accounts_by_id.get(entry.account_id)
        if account is None or account.hide:
            logger.debug("Entry %s on missing or hidden account %s; skipping", entry.id, entry.account_id)
            continue
        _distribute_one(run, entry, account)
    return run


def _computed(run: _Run, node: BudgetNode) -> Computed:
    tally = run.tally(node)
    sums = run.totals.get((node.kind, node.id), {})
    capacity_totals = {cid: CapacityTotals(*pair) for cid, pair in sums.items()}
    current = capacity_totals.get(active_capacity(node, run.window.anchor).id, CapacityTotals())
    return Computed(
        sorted_amount=tally.sorted_amount,
        unsorted_amount=tally.unsorted_amount,
        number_of_unsorted_items=tally.number_of_unsorted_items,
        rolled_over_amount=tally.rolled_over_amount,
        children_total=current.children_total,
        grand_children_total=current.grand_children_total,
        capacity_totals=capacity_totals,
    )


def _finish(run: _Run) -> Hierarchy:
    def rebuild(nodes):
        return tuple(replace(n, computed=_computed(run, n)) for n in nodes)

    h = run.hierarchy
    return Hierarchy(
        budgets=rebuild(h.budgets),
        sections=rebuild(h.sections),
        categories=rebuild(h.categories),
    )


def aggregate(
    entries: Iterable[LedgerEntry],
    accounts: Iterable[Account],
    hierarchy: Hierarchy,
    window: ViewWindow,
) -> Hierarchy:
    """Return ``hierarchy`` with every node's computed fields filled in for ``window``."""
    result = pipe(
        _reset(hierarchy, window),
        _rollup,
        lambda run: _distribute(run, entries, accounts),
        _finish,
    )
    logger.debug(
        "Aggregated %s: %d budgets, %d sections, %d categories",
        window, len(result.budgets), len(result.sections), len(result.categories),
    )
    return result
