"""
Validation & Diagnostics: cross-check assembled output and emit warnings.

Never raises and never filters. Each check returns human-readable warning
strings; chronology violations additionally mark the trade index so the
caller can attach a ``low_confidence`` flag via ``apply_flags``.

Checks:
    chronology      entry_time after exit_time, or identical entry/exit time
    trading hours   every normalized order timestamp inside the session window
    price bounds    per-segment plausibility, option premium above strike
    lot size        option quantity not a multiple of the contract lot
    P&L             recorded pnl disagrees with the direction rule
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Iterable

from reconcile_core.assembler import compute_pnl
from reconcile_core.contracts import IncompleteOrder, MarketSegment, Order, Trade

if TYPE_CHECKING:
    from config.rules_config import RulesConfig


LOW_CONFIDENCE = "low_confidence"


@dataclass(frozen=True)
class DiagnosticsReport:
    warnings: list[str] = field(default_factory=list)
    flagged: dict[int, tuple[str, ...]] = field(default_factory=dict)


def _check_chronology(index: int, trade: Trade) -> tuple[list[str], bool]:
    if trade.entry_time is None or trade.exit_time is None:
        return [], False
    if trade.entry_time > trade.exit_time:
        return [
            f"trade #{index} {trade.symbol}: entry {trade.entry_time.isoformat()} is after exit "
            f"{trade.exit_time.isoformat()}; flagged low confidence"
        ], True
    if trade.entry_time == trade.exit_time:
        return [f"trade #{index} {trade.symbol}: entry and exit times are identical ({trade.entry_time.isoformat()})"], False
    return [], False


def _check_trading_hours(orders: Iterable[Order], rules: RulesConfig) -> list[str]:
    hours = rules.trading_hours
    warnings = []
    for order in orders:
        # untimed orders were already reported by the normalizer
        if order.timestamp is not None and not hours.contains(order.timestamp):
            warnings.append(
                f"order #{order.source_index} {order.symbol}: time {order.timestamp.isoformat()} outside trading "
                f"hours {hours.open:%H:%M}-{hours.close:%H:%M}"
            )
    return warnings


def _check_price(label: str, price: float, segment: MarketSegment, strike: float | None, rules: RulesConfig) -> list[str]:
    warnings = []
    bounds = rules.price_bounds.get(segment.value)
    if bounds is not None and not bounds.contains(price):
        warnings.append(
            f"{label}: price {price:g} implausible for {segment.value} (expected {bounds.min:g}-{bounds.max:g})"
        )
    if segment is MarketSegment.OPTION and strike and price > strike:
        warnings.append(f"{label}: option premium {price:g} exceeds strike {strike:g}")
    return warnings


def _check_trade_prices(index: int, trade: Trade, rules: RulesConfig) -> list[str]:
    label = f"trade #{index} {trade.symbol}"
    warnings = []
    for price in dict.fromkeys((trade.entry_price, trade.exit_price)):
        warnings.extend(_check_price(label, price, trade.market_segment, trade.strike_price, rules))
    return warnings


def _check_incomplete_prices(incomplete: Iterable[IncompleteOrder], rules: RulesConfig) -> list[str]:
    warnings = []
    for item in incomplete:
        info = item.order.symbol_info
        if info is None:
            continue
        label = f"incomplete {item.symbol}"
        warnings.extend(_check_price(label, item.price, info.market_segment, info.strike_price, rules))
    return warnings


def _check_lot_size(orders: Iterable[Order]) -> list[str]:
    warnings = []
    for order in orders:
        info = order.symbol_info
        if info is None or not info.is_option or info.lot_size <= 1:
            continue
        if order.quantity % info.lot_size:
            warnings.append(
                f"order #{order.source_index} {order.symbol}: quantity {order.quantity} is not a multiple of "
                f"lot size {info.lot_size}"
            )
    return warnings


def _check_pnl(index: int, trade: Trade) -> list[str]:
    expected = compute_pnl(trade.entry_price, trade.exit_price, trade.quantity, trade.direction)
    if abs(trade.pnl - expected) > 1e-6:
        return [f"trade #{index} {trade.symbol}: pnl {trade.pnl:g} does not match expected {expected:g}"]
    return []


def validate(
    trades: list[Trade],
    incomplete: list[IncompleteOrder],
    orders: list[Order],
    rules: RulesConfig,
) -> DiagnosticsReport:
    """Annotate the reconciliation output with warnings. Inputs are not modified."""
    warnings: list[str] = []
    flagged: dict[int, tuple[str, ...]] = {}

    for index, trade in enumerate(trades):
        chrono, bad_order = _check_chronology(index, trade)
        warnings.extend(chrono)
        if bad_order:
            flagged[index] = (LOW_CONFIDENCE,)
        warnings.extend(_check_trade_prices(index, trade, rules))
        warnings.extend(_check_pnl(index, trade))

    warnings.extend(_check_trading_hours(orders, rules))
    warnings.extend(_check_incomplete_prices(incomplete, rules))
    warnings.extend(_check_lot_size(orders))
    return DiagnosticsReport(warnings=warnings, flagged=flagged)


def apply_flags(trades: list[Trade], report: DiagnosticsReport) -> list[Trade]:
    """Return new trades with report flags attached; unflagged trades are reused."""
    result = []
    for index, trade in enumerate(trades):
        extra = report.flagged.get(index, ())
        new_flags = tuple(f for f in extra if f not in trade.flags)
        result.append(replace(trade, flags=trade.flags + new_flags) if new_flags else trade)
    return result
