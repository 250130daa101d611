import asyncio
import itertools
from typing import Dict, List, Optional, Sequence

from envelope_core.aggregator import aggregate
from envelope_core.domain import Account, Hierarchy, LedgerEntry
from envelope_core.window import ViewWindow


def trailing_windows(window: ViewWindow, count: int) -> List[ViewWindow]:
    """``count`` consecutive windows ending with ``window``, oldest first."""
    return [window.previous(n) for n in range(max(0, count) - 1, -1, -1)]


async def aggregate_history(
    entries: Sequence[LedgerEntry],
    accounts: Sequence[Account],
    hierarchy: Hierarchy,
    windows: Sequence[ViewWindow],
) -> Dict[str, Hierarchy]:
    """Aggregate the same inputs for several windows concurrently.

    Returns mapping window label -> computed hierarchy, in the order given.
    """
    entries, accounts = tuple(entries), tuple(accounts)

    async def one(window: ViewWindow) -> tuple[str, Hierarchy]:
        snapshot = aggregate(entries, accounts, hierarchy, window)
        await asyncio.sleep(0)  # let sibling runs interleave
        return window.label, snapshot

    results = await asyncio.gather(*(one(w) for w in windows))
    return {k: v for k, v in results}


class SnapshotPublisher:
    """Last-writer-wins gate for runs that may finish out of order.

    A run takes a ticket before it starts; its result is kept only if no run
    with a newer ticket has been published already.
    """

    def __init__(self):
        self._tickets = itertools.count(1)
        self._published_ticket = 0
        self.snapshot: Optional[Hierarchy] = None

    def ticket(self) -> int:
        return next(self._tickets)

    def publish(self, ticket: int, snapshot: Hierarchy) -> bool:
        if ticket < self._published_ticket:
            return False
        self._published_ticket = ticket
        self.snapshot = snapshot
        return True


async def run_and_publish(
    publisher: SnapshotPublisher,
    entries: Sequence[LedgerEntry],
    accounts: Sequence[Account],
    hierarchy: Hierarchy,
    window: ViewWindow,
) -> bool:
    ticket = publisher.ticket()
    await asyncio.sleep(0)
    snapshot = aggregate(entries, accounts, hierarchy, window)
    return publisher.publish(ticket, snapshot)
