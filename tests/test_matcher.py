"""Tests for FIFO position matching: partial fills, splits, reversals, conservation."""

from datetime import time

import pytest

from reconcile_core.contracts import Order, OrderStatus, Side
from reconcile_core.matcher import FifoMatcher, match_orders


def _order(side: str, qty: int, price: float, minute: int, index: int = 0) -> Order:
    return Order(
        symbol="RELIANCE",
        side=Side(side),
        price=price,
        quantity=qty,
        timestamp=time(10, minute),
        status=OrderStatus.EXECUTED,
        confidence=0.9,
        source_index=index,
    )


def _conserved(orders: list[Order]) -> bool:
    result = match_orders(orders)
    matched = sum(p.quantity for p in result.pairs)
    residual = sum(i.remaining_quantity for i in result.incomplete)
    return 2 * matched + residual == sum(o.quantity for o in orders)


class TestRoundTrips:
    def test_simple_round_trip(self) -> None:
        buy, sell = _order("buy", 10, 100.0, 0), _order("sell", 10, 110.0, 5)
        result = match_orders([buy, sell])
        assert len(result.pairs) == 1
        pair = result.pairs[0]
        assert pair.opening is buy and pair.closing is sell
        assert pair.quantity == 10
        assert result.incomplete == []

    def test_short_first(self) -> None:
        sell, buy = _order("sell", 5, 110.0, 0), _order("buy", 5, 100.0, 5)
        result = match_orders([sell, buy])
        assert result.pairs[0].opening is sell
        assert result.incomplete == []

    def test_partial_close_leaves_residue(self) -> None:
        buy = _order("buy", 10, 100.0, 0)
        result = match_orders([buy, _order("sell", 4, 105.0, 5)])
        assert result.pairs[0].quantity == 4
        assert len(result.incomplete) == 1
        assert result.incomplete[0].order is buy
        assert result.incomplete[0].remaining_quantity == 6

    def test_only_one_leg(self) -> None:
        result = match_orders([_order("buy", 10, 100.0, 0)])
        assert result.pairs == []
        assert result.incomplete[0].remaining_quantity == 10

    def test_empty(self) -> None:
        result = match_orders([])
        assert result.pairs == [] and result.incomplete == []


class TestFifo:
    def test_oldest_lot_closed_first(self) -> None:
        first, second = _order("buy", 5, 100.0, 0, 0), _order("buy", 5, 101.0, 1, 1)
        closing = _order("sell", 8, 105.0, 2, 2)
        result = match_orders([first, second, closing])
        assert [(p.opening.source_index, p.quantity) for p in result.pairs] == [(0, 5), (1, 3)]
        assert result.incomplete[0].order is second
        assert result.incomplete[0].remaining_quantity == 2

    def test_one_lot_closed_by_several_orders(self) -> None:
        opening = _order("sell", 9, 200.0, 0)
        result = match_orders([opening, _order("buy", 3, 190.0, 1), _order("buy", 6, 195.0, 2)])
        assert [p.quantity for p in result.pairs] == [3, 6]
        assert all(p.opening is opening for p in result.pairs)
        assert result.incomplete == []

    def test_reversal_flips_position(self) -> None:
        buy, sell = _order("buy", 10, 100.0, 0), _order("sell", 15, 110.0, 5)
        result = match_orders([buy, sell])
        assert len(result.pairs) == 1
        assert result.pairs[0].quantity == 10
        assert result.pairs[0].opening.price == 100.0
        assert result.pairs[0].closing.price == 110.0
        residue = result.incomplete[0]
        assert residue.side is Side.SELL
        assert residue.remaining_quantity == 5
        assert residue.price == 110.0

    def test_flipped_lot_can_close_later(self) -> None:
        orders = [_order("buy", 10, 100.0, 0), _order("sell", 15, 110.0, 1), _order("buy", 5, 108.0, 2)]
        result = match_orders(orders)
        assert [p.quantity for p in result.pairs] == [10, 5]
        assert result.pairs[1].opening.side is Side.SELL
        assert result.incomplete == []


class TestFifoMatcher:
    def test_queue_state(self) -> None:
        matcher = FifoMatcher("RELIANCE")
        assert matcher.open_side is None
        matcher.process(_order("buy", 10, 100.0, 0))
        matcher.process(_order("buy", 5, 101.0, 1))
        assert matcher.open_side is Side.BUY
        assert matcher.open_quantity == 15
        closed = matcher.process(_order("sell", 12, 103.0, 2))
        assert [p.quantity for p in closed] == [10, 2]
        assert matcher.open_quantity == 3

    def test_finish_drains_queue(self) -> None:
        matcher = FifoMatcher("RELIANCE")
        matcher.process(_order("sell", 4, 100.0, 0))
        result = matcher.finish()
        assert result.incomplete[0].remaining_quantity == 4
        assert matcher.open_quantity == 0

    def test_inputs_not_mutated(self) -> None:
        buy = _order("buy", 10, 100.0, 0)
        match_orders([buy, _order("sell", 3, 101.0, 1)])
        assert buy.quantity == 10


@pytest.mark.parametrize("sequence", [
    [("buy", 10), ("sell", 10)],
    [("buy", 10), ("sell", 15)],
    [("buy", 3), ("buy", 4), ("sell", 2), ("sell", 9), ("buy", 1)],
    [("sell", 7), ("buy", 2), ("buy", 2), ("sell", 1), ("buy", 10)],
    [("buy", 5)],
])
def test_quantity_conserved(sequence: list[tuple[str, int]]) -> None:
    orders = [_order(side, qty, 100.0 + i, i, i) for i, (side, qty) in enumerate(sequence)]
    assert _conserved(orders)
