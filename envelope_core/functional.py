from abc import ABC, abstractmethod
from collections import Counter
from typing import Callable, Generic, Mapping, Optional, TypeVar

from envelope_core.domain import Account, BudgetNode, Hierarchy, LedgerEntry, NodeKind
from envelope_core.errors import DanglingReference, DuplicateActiveFrom, EmptyCapacityList
from envelope_core.hierarchy import parent_of

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class Maybe(Generic[T], ABC):

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass

    def is_none(self) -> bool:
        return not self.is_some()

    @staticmethod
    def of(value: Optional[T]) -> 'Maybe[T]':
        return Nothing() if value is None else Some(value)


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    def is_left(self) -> bool:
        return not self.is_right()

    @abstractmethod
    def get_error(self) -> E:
        pass


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def is_right(self) -> bool:
        return True

    def get_error(self) -> E:
        raise ValueError("Cannot get error from Right")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return self

    def is_right(self) -> bool:
        return False

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error

def safe_node(hierarchy: Hierarchy, kind: NodeKind, node_id: Optional[str]) -> Maybe[BudgetNode]:
    return Maybe.of(hierarchy.get(kind, node_id))


def _none_first(when):
    # None sorts as the epoch
    return when is not None, when


def check_capacities(node: BudgetNode) -> Either[dict, BudgetNode]:
    if not node.capacities:
        return Left({
            "error": "empty_capacity_list",
            "message": str(EmptyCapacityList(node.id)),
            "node_id": node.id,
        })

    counts = Counter(c.active_from for c in node.capacities)
    duplicated = [when for when, n in counts.items() if n > 1]
    if duplicated:
        first = min(duplicated, key=_none_first)
        return Left({
            "error": "duplicate_active_from",
            "message": str(DuplicateActiveFrom(node.id, first)),
            "node_id": node.id,
            "active_from": first,
        })

    return Right(node)


def check_parent(node: BudgetNode, hierarchy: Hierarchy) -> Either[dict, BudgetNode]:
    if node.kind is NodeKind.BUDGET:
        if node.parent_id is not None:
            return Left({
                "error": "unexpected_parent",
                "message": f"Budget {node.id} cannot have a parent",
                "node_id": node.id,
            })
        return Right(node)

    if parent_of(hierarchy, node) is None:
        return Left({
            "error": "dangling_reference",
            "message": str(DanglingReference(node.id, node.parent_id)),
            "node_id": node.id,
            "parent_id": node.parent_id,
        })

    return Right(node)


def validate_node(node: BudgetNode, hierarchy: Hierarchy) -> Either[dict, BudgetNode]:
    return check_capacities(node).bind(lambda n: check_parent(n, hierarchy))


def validate_entry(
    entry: LedgerEntry,
    accounts: Mapping[str, Account],
    hierarchy: Hierarchy,
) -> Either[dict, LedgerEntry]:
    """``accounts`` is keyed by account id."""
    account = accounts.get(entry.account_id)
    if account is None:
        return Left({
            "error": "account_not_found",
            "message": f"Account with ID {entry.account_id} does not exist",
            "account_id": entry.account_id,
        })

    if entry.is_labeled:
        if safe_node(hierarchy, NodeKind.CATEGORY, entry.label.category_id).is_none():
            return Left({
                "error": "category_not_found",
                "message": f"Category with ID {entry.label.category_id} does not exist",
                "category_id": entry.label.category_id,
            })
        return Right(entry)

    budget_id = entry.label.budget_id or account.label.budget_id
    if budget_id and safe_node(hierarchy, NodeKind.BUDGET, budget_id).is_none():
        return Left({
            "error": "budget_not_found",
            "message": f"Budget with ID {budget_id} does not exist",
            "budget_id": budget_id,
        })

    return Right(entry)


def pipe(x, *funcs):
    """pipe(x, f, g, h) == h(g(f(x)))"""
    res = x
    for f in funcs:
        res = f(res)
    return res
