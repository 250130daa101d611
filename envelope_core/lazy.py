from typing import Callable, Iterable, Iterator

from envelope_core.domain import Hierarchy, LedgerEntry, NodeKind
from envelope_core.window import DateLike, ViewWindow, as_datetime

Predicate = Callable[[LedgerEntry], bool]


def iter_entries(entries: Iterable[LedgerEntry], pred: Predicate) -> Iterator[LedgerEntry]:
    for e in entries:
        if pred(e):
            yield e


def in_window(window: ViewWindow) -> Predicate:
    def _filter(e: LedgerEntry) -> bool:
        return window.has(e.date)

    return _filter


def by_category(category_id: str) -> Predicate:
    def _filter(e: LedgerEntry) -> bool:
        return e.label.category_id == category_id

    return _filter


def by_account(account_id: str) -> Predicate:
    def _filter(e: LedgerEntry) -> bool:
        return e.account_id == account_id

    return _filter


def by_date_range(start: DateLike, end: DateLike) -> Predicate:
    lo, hi = as_datetime(start), as_datetime(end)

    def _filter(e: LedgerEntry) -> bool:
        return lo <= as_datetime(e.date) <= hi

    return _filter


def unlabeled(e: LedgerEntry) -> bool:
    return not e.is_labeled


def all_of(*preds: Predicate) -> Predicate:
    def _filter(e: LedgerEntry) -> bool:
        return all(p(e) for p in preds)

    return _filter


def lazy_top_envelopes(snapshot: Hierarchy, kind: NodeKind, k: int) -> Iterator[tuple[str, float]]:
    """Yield (name, consumed) for the ``k`` nodes of ``kind`` with the most activity.

    Consumption is sorted plus unsorted amount of a computed snapshot,
    ranked by magnitude so income envelopes compete with spending ones.
    """
    totals = [
        (n.name, n.computed.sorted_amount + n.computed.unsorted_amount)
        for n in snapshot.collection(kind)
    ]
    ordered = sorted(totals, key=lambda item: abs(item[1]), reverse=True)

    for name, total in ordered[: max(0, k)]:
        yield name, total
