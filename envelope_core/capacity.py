"""Temporal capacity lookup.

A node carries several capacity versions; each one applies from its
``active_from`` until the next version takes over. These helpers answer
"which allotment applies on this date" and "how much allotment accrued
between two dates", which seeds roll-over balances.
"""
from datetime import datetime
from typing import Iterable, Tuple

from envelope_core.domain import ZERO_CAPACITY, BudgetNode, Capacity, Interval
from envelope_core.window import DateLike, ViewWindow, as_datetime

EPOCH = datetime.min


def effective_from(capacity: Capacity) -> datetime:
    if capacity.active_from is None:
        return EPOCH
    return as_datetime(capacity.active_from)


def sort_capacities(capacities: Iterable[Capacity], descending: bool = False) -> Tuple[Capacity, ...]:
    return tuple(sorted(capacities, key=effective_from, reverse=descending))


def per_interval(capacity: Capacity, interval: Interval) -> float:
    """Signed allotment per interval unit; unlimited capacities count as 0."""
    if capacity.is_infinite:
        return 0.0
    return capacity.amount_for(interval)


def active_capacity(node: BudgetNode, when: DateLike) -> Capacity:
    moment = as_datetime(when)
    for capacity in sort_capacities(node.capacities, descending=True):
        if effective_from(capacity) <= moment:
            return capacity
    return ZERO_CAPACITY


def accumulated_capacity(node: BudgetNode, start_date: DateLike, window: ViewWindow) -> float:
    """Allotment accrued over ``[start_date, window.bucket_start)``.

    Each version covers whole interval units from its own start (never
    before ``start_date``) up to the next version's start or the window's
    bucket, whichever comes first.
    """
    start = as_datetime(start_date)
    limit = window.bucket_start
    ordered = sort_capacities(node.capacities)
    total = 0.0
    for i, capacity in enumerate(ordered):
        begin = max(effective_from(capacity), start)
        end = effective_from(ordered[i + 1]) if i + 1 < len(ordered) else None
        if end is not None and end < limit:
            # count against the end of this version's own coverage
            span = ViewWindow(window.interval, end).span_from(begin)
        else:
            span = window.span_from(begin)
        if span > 0:
            total += span * per_interval(capacity, window.interval)
    return total
