from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import cached_property
from typing import Dict, Iterator, Mapping, Optional, Tuple

from envelope_core.errors import InvalidArgument

# float32 max; stored "unlimited" capacities carry this magnitude
INFINITE = 3.402823567e38


class Interval(str, Enum):
    YEAR = "year"
    MONTH = "month"

    @classmethod
    def parse(cls, value) -> "Interval":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidArgument(f"Unknown interval: {value!r}") from None


class NodeKind(str, Enum):
    BUDGET = "budget"
    SECTION = "section"
    CATEGORY = "category"


@dataclass(frozen=True)
class Capacity:
    id: str
    month_amount: float = 0.0
    active_from: Optional[datetime] = None  # None = active since the epoch

    @property
    def year_amount(self) -> float:
        return self.month_amount * 12

    @property
    def is_infinite(self) -> bool:
        return abs(self.month_amount) == INFINITE

    def amount_for(self, interval: Interval) -> float:
        if Interval.parse(interval) is Interval.YEAR:
            return self.year_amount
        return self.month_amount

    @classmethod
    def from_inputs(
        cls,
        id: str,
        amount: float,
        is_income: bool = False,
        is_infinite: bool = False,
        active_from: Optional[datetime] = None,
    ) -> "Capacity":
        """Build a capacity from form-style inputs.

        Income envelopes are stored negative; unlimited ones carry INFINITE.
        """
        sign = -1 if is_income else 1
        value = INFINITE if is_infinite else abs(amount)
        return cls(id=id, month_amount=sign * value, active_from=active_from)


ZERO_CAPACITY = Capacity(id="")


@dataclass(frozen=True)
class CapacityTotals:
    children_total: float = 0.0
    grand_children_total: float = 0.0


@dataclass(frozen=True)
class Computed:
    sorted_amount: float = 0.0
    unsorted_amount: float = 0.0
    number_of_unsorted_items: int = 0
    rolled_over_amount: float = 0.0
    children_total: float = 0.0
    grand_children_total: float = 0.0
    # per-run sums keyed by this node's capacity ids; compared but not hashed
    capacity_totals: Mapping[str, CapacityTotals] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class BudgetNode:
    kind: NodeKind
    id: str
    name: str
    capacities: Tuple[Capacity, ...] = ()
    parent_id: Optional[str] = None
    roll_over: bool = False
    roll_over_start_date: Optional[datetime] = None
    computed: Computed = field(default_factory=Computed)

    @property
    def rolls_over(self) -> bool:
        return self.roll_over and self.roll_over_start_date is not None


@dataclass(frozen=True)
class Hierarchy:
    budgets: Tuple[BudgetNode, ...] = ()
    sections: Tuple[BudgetNode, ...] = ()
    categories: Tuple[BudgetNode, ...] = ()

    def collection(self, kind: NodeKind) -> Tuple[BudgetNode, ...]:
        if kind is NodeKind.BUDGET:
            return self.budgets
        if kind is NodeKind.SECTION:
            return self.sections
        return self.categories

    def index(self, kind: NodeKind) -> Dict[str, BudgetNode]:
        return {n.id: n for n in self.collection(kind)}

    @cached_property
    def _by_kind(self) -> Dict[NodeKind, Dict[str, BudgetNode]]:
        return {kind: self.index(kind) for kind in NodeKind}

    def get(self, kind: NodeKind, node_id: Optional[str]) -> Optional[BudgetNode]:
        if node_id is None:
            return None
        return self._by_kind[kind].get(node_id)

    def nodes(self) -> Iterator[BudgetNode]:
        yield from self.budgets
        yield from self.sections
        yield from self.categories


@dataclass(frozen=True)
class EntryLabel:
    budget_id: Optional[str] = None
    category_id: Optional[str] = None


@dataclass(frozen=True)
class LedgerEntry:
    id: str
    date: datetime
    account_id: str
    amount: float  # signed, as reported by the bank
    label: EntryLabel = field(default_factory=EntryLabel)

    @property
    def is_labeled(self) -> bool:
        return bool(self.label.category_id)


@dataclass(frozen=True)
class AccountLabel:
    budget_id: Optional[str] = None


@dataclass(frozen=True)
class Account:
    id: str
    name: str = ""
    hide: bool = False
    label: AccountLabel = field(default_factory=AccountLabel)
