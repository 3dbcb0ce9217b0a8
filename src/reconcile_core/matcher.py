"""
Position-Matching Engine: FIFO pairing of opening and closing orders for one symbol.

The open-position queue is a deque of lots; every queued lot has the same
side. An order on the queue's side (or any order on an empty queue) opens a
new lot. An opposite-side order closes against the oldest lots first, one
MatchedPair per (lot, closing order) slice. A closing order that outlasts
the queue opens a lot of its own side for the remainder (position flip).
Lots still queued at the end become IncompleteOrders.

Quantity is conserved: sum(pair quantities) * 2 + sum(residual quantities)
equals the sum of input order quantities. There is no fatal path.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Iterable

from reconcile_core.contracts import IncompleteOrder, Order, Side


@dataclass(frozen=True)
class MatchedPair:
    """One opening slice closed by one closing slice of equal quantity."""

    opening: Order
    closing: Order
    quantity: int


@dataclass
class OpenLot:
    """Queued open quantity; ``remaining`` shrinks as closing orders consume it."""

    order: Order
    remaining: int

    @property
    def side(self) -> Side:
        return self.order.side


@dataclass(frozen=True)
class MatchResult:
    pairs: list[MatchedPair] = field(default_factory=list)
    incomplete: list[IncompleteOrder] = field(default_factory=list)


class FifoMatcher:
    """Stateful FIFO matcher for a single symbol.

    Feed orders in ascending time with ``process``; call ``finish`` once to
    collect the residue.
    """

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        self._lots: deque[OpenLot] = deque()
        self._pairs: list[MatchedPair] = []

    @property
    def open_side(self) -> Side | None:
        return self._lots[0].side if self._lots else None

    @property
    def open_quantity(self) -> int:
        return sum(lot.remaining for lot in self._lots)

    def process(self, order: Order) -> list[MatchedPair]:
        """Apply one order. Returns the pairs it closed (possibly none)."""
        if not self._lots or self._lots[0].side is order.side:
            self._lots.append(OpenLot(order=order, remaining=order.quantity))
            return []

        closed: list[MatchedPair] = []
        remaining = order.quantity
        while remaining > 0 and self._lots:
            head = self._lots[0]
            qty = min(remaining, head.remaining)
            closed.append(MatchedPair(opening=head.order, closing=order, quantity=qty))
            head.remaining -= qty
            remaining -= qty
            if head.remaining == 0:
                self._lots.popleft()

        if remaining > 0:
            self._lots.append(OpenLot(order=order, remaining=remaining))

        self._pairs.extend(closed)
        return closed

    def finish(self) -> MatchResult:
        """Emit all matched pairs and turn queued lots into IncompleteOrders."""
        incomplete = [IncompleteOrder(order=lot.order, remaining_quantity=lot.remaining) for lot in self._lots]
        self._lots.clear()
        return MatchResult(pairs=list(self._pairs), incomplete=incomplete)


def match_orders(orders: Iterable[Order], symbol: str | None = None) -> MatchResult:
    """Run FIFO matching over time-ordered orders of one symbol."""
    orders = list(orders)
    matcher = FifoMatcher(symbol or (orders[0].symbol if orders else ""))
    for order in orders:
        matcher.process(order)
    return matcher.finish()
