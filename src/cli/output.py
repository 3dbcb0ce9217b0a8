"""
Human-readable reconciliation output for the terminal.

Every inference the core made is surfaced here: matched trades, open
residue, and each warning. The journal receives the same data.
"""

from __future__ import annotations

from datetime import time

from reconcile_core.contracts import IncompleteOrder, ReconciliationResult, SymbolInfo, Trade
from reconcile_core.time_correction import TimeCorrection, format_time


def _fmt_time(value: time | None) -> str:
    return format_time(value) if value is not None else "--:--"


def _fmt_money(value: float) -> str:
    return f"{value:+,.2f}"


def format_trade(index: int, trade: Trade) -> str:
    flags = f"  [{', '.join(trade.flags)}]" if trade.flags else ""
    return (
        f"  #{index:<3d} {trade.symbol:24s} {trade.direction.value:5s} "
        f"{trade.quantity:>6d} @ {trade.entry_price:g} ({_fmt_time(trade.entry_time)}) -> "
        f"{trade.exit_price:g} ({_fmt_time(trade.exit_time)})  "
        f"P&L {_fmt_money(trade.pnl)}  conf {trade.confidence:.2f}{flags}"
    )


def format_incomplete(item: IncompleteOrder) -> str:
    return (
        f"  {item.symbol:24s} {item.side.value:4s} {item.remaining_quantity:>6d} "
        f"@ {item.price:g} ({_fmt_time(item.timestamp)})"
    )


def format_result(result: ReconciliationResult) -> str:
    """Full run summary: trades, incomplete orders, rejects, warnings."""
    meta = result.metadata
    lines = ["=== Reconciliation ==="]
    if meta.broker_detected:
        lines.append(f"Broker       : {meta.broker_detected}")
    if meta.price_column_used:
        lines.append(f"Price column : {meta.price_column_used}")
    if meta.confidence is not None:
        lines.append(f"Confidence   : {meta.confidence:.2f}")
    lines.append("")

    lines.append(f"--- Trades ({len(result.trades)}) ---")
    if result.trades:
        lines.extend(format_trade(i, t) for i, t in enumerate(result.trades))
        lines.append(f"  Total P&L: {_fmt_money(result.total_pnl)}")
    else:
        lines.append("  (none)")
    lines.append("")

    lines.append(f"--- Incomplete Orders ({len(result.incomplete_orders)}) ---")
    if result.incomplete_orders:
        lines.extend(format_incomplete(item) for item in result.incomplete_orders)
    else:
        lines.append("  (none)")

    if result.rejected:
        lines.append("")
        lines.append(f"--- Rejected ({len(result.rejected)}) ---")
        lines.extend(f"  #{r.source_index}: {r.reason}" for r in result.rejected)

    lines.append("")
    lines.append(f"--- Warnings ({len(result.warnings)}) ---")
    if result.warnings:
        lines.extend(f"  - {w}" for w in result.warnings)
    else:
        lines.append("  (none)")
    lines.append("===")
    return "\n".join(lines)


def format_symbol_info(symbol: str, info: SymbolInfo | None) -> str:
    if info is None:
        return f"{symbol}: unrecognized symbol (orders would be excluded from matching)"
    lines = [
        f"Symbol       : {info.symbol}",
        f"Segment      : {info.market_segment.value}",
        f"Underlying   : {info.underlying}",
    ]
    if info.exchange:
        lines.append(f"Exchange     : {info.exchange}")
    if info.is_option:
        lines.append(f"Option       : {info.clean_symbol}")
        if info.expiry_code:
            lines.append(f"Expiry code  : {info.expiry_code}")
    lines.append(f"Lot size     : {info.lot_size}")
    return "\n".join(lines)


def format_time_correction(result: TimeCorrection) -> str:
    if result.value is None:
        return f"{result.raw!r}: could not parse a time of day"
    shown = format_time(result.value, result.raw)
    if result.corrected:
        status = f"corrected ({', '.join(result.steps)})"
    elif result.in_window:
        status = "unchanged"
    else:
        status = "outside trading hours, no correction found"
    return f"{result.raw!r} -> {shown}  {status}"
