"""
Pipeline orchestrator: chains Normalizer -> Classifier -> Matcher -> Assembler -> Diagnostics.

Single entry point for reconciling one screenshot's worth of extracted
orders. Symbol groups are independent; they are matched sequentially in
first-seen order.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from reconcile_core.assembler import assemble_trades
from reconcile_core.contracts import (
    IncompleteOrder,
    Order,
    OrderStatus,
    ReconciliationResult,
    Trade,
)
from reconcile_core.diagnostics import apply_flags, validate
from reconcile_core.matcher import match_orders
from reconcile_core.normalizer import normalize_orders
from reconcile_core.payload import split_payload
from reconcile_core.symbols import annotate_orders, looks_like_option

if TYPE_CHECKING:
    from config.rules_config import RulesConfig


def group_by_symbol(orders: list[Order]) -> dict[str, list[Order]]:
    """Group orders by canonical symbol, keeping first-seen group order and in-group order."""
    groups: dict[str, list[Order]] = {}
    for order in orders:
        groups.setdefault(order.symbol, []).append(order)
    return groups


def _excluded_status_warnings(orders: list[Order]) -> list[str]:
    return [
        f"order #{o.source_index} {o.symbol}: status is not executed; excluded from matching"
        for o in orders
    ]


def _unclassified_warnings(orders: list[Order]) -> list[str]:
    warnings = []
    for symbol, group in group_by_symbol(orders).items():
        kind = "option symbol without a resolvable CE/PE type" if looks_like_option(symbol) else "unrecognized symbol"
        indexes = ", ".join(f"#{o.source_index}" for o in group)
        warnings.append(f"symbol {symbol}: {kind}; {len(group)} order(s) excluded from matching ({indexes})")
    return warnings


def reconcile(payload: Mapping[str, Any] | list[Any], rules: RulesConfig) -> ReconciliationResult:
    """Reconcile extracted orders into trades, incomplete orders and warnings.

    Parameters
    ----------
    payload:
        Extractor output: a mapping with an ``orders`` list and optional
        ``broker_detected``, ``confidence``, ``price_column_used``; or a
        bare list of order records.
    rules:
        Reconciliation rules.

    Returns
    -------
    ReconciliationResult
        Trades, incomplete orders, warnings, rejected records and metadata.

    Raises
    ------
    ExtractionPayloadError
        Only for structurally invalid input.
    """
    records, metadata = split_payload(payload)
    normalized = normalize_orders(records, rules, default_confidence=metadata.confidence)
    warnings = list(normalized.warnings)

    executed = [o for o in normalized.orders if o.status is OrderStatus.EXECUTED]
    warnings.extend(_excluded_status_warnings([o for o in normalized.orders if o.status is not OrderStatus.EXECUTED]))

    classified, unclassified = annotate_orders(executed, rules)
    warnings.extend(_unclassified_warnings(unclassified))

    trades: list[Trade] = []
    incomplete: list[IncompleteOrder] = []
    for symbol, group in group_by_symbol(classified).items():
        result = match_orders(group, symbol)
        trades.extend(assemble_trades(result.pairs, group[0].symbol_info, rules))
        incomplete.extend(result.incomplete)
        residual = sum(item.remaining_quantity for item in result.incomplete)
        if residual:
            warnings.append(f"symbol {symbol} has unmatched residual quantity {residual}")

    # every normalized order is checked, including ones excluded from matching
    annotated = {o.source_index: o for o in classified}
    checked = [annotated.get(o.source_index, o) for o in normalized.orders]
    report = validate(trades, incomplete, checked, rules)
    warnings.extend(report.warnings)

    return ReconciliationResult(
        trades=apply_flags(trades, report),
        incomplete_orders=incomplete,
        warnings=warnings,
        rejected=list(normalized.rejected),
        metadata=metadata,
    )
