"""
Order Normalizer: raw extractor records -> canonical Order list.

Every input record ends up either as an Order or as a RejectedRecord with a
reason; nothing is dropped silently. Data-quality problems never raise.
Only structural contract violations (not a list, a record that is not a
mapping, a field of the wrong fundamental type) raise ExtractionPayloadError.

Rejection causes: missing/unrecognized side, non-positive or unparseable
price, non-positive or non-integer quantity, empty symbol.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import time
from typing import TYPE_CHECKING, Any

from reconcile_core.contracts import (
    ExtractionPayloadError,
    Order,
    OrderStatus,
    RejectedRecord,
    Side,
)
from reconcile_core.time_correction import correct_time

if TYPE_CHECKING:
    from config.rules_config import RulesConfig


_NUMERIC_FIELDS = ("price", "quantity", "confidence")
_TEXT_FIELDS = ("symbol", "type", "side", "time", "status", "color")


@dataclass(frozen=True)
class NormalizationResult:
    """Output of the normalizer: accepted orders, rejects, and inference notes."""

    orders: list[Order] = field(default_factory=list)
    rejected: list[RejectedRecord] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class _Reject(Exception):
    """Internal signal: the current record is unusable."""


# ---------------------------------------------------------------------------
# Structure checks
# ---------------------------------------------------------------------------


def _check_structure(index: int, record: Any) -> None:
    if not isinstance(record, Mapping):
        raise ExtractionPayloadError(
            f"Order record #{index} must be a mapping, got {type(record).__name__}"
        )
    for name in _NUMERIC_FIELDS:
        value = record.get(name)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ExtractionPayloadError(
                f"Order record #{index}: field {name!r} must be a number or string, "
                f"got {type(value).__name__}"
            )
    for name in _TEXT_FIELDS:
        value = record.get(name)
        if value is not None and not isinstance(value, str):
            raise ExtractionPayloadError(
                f"Order record #{index}: field {name!r} must be a string, got {type(value).__name__}"
            )


# ---------------------------------------------------------------------------
# Field resolvers
# ---------------------------------------------------------------------------


def canonical_symbol(symbol: str) -> str:
    """Trim, uppercase, collapse inner whitespace. Exchange prefix is kept."""
    return " ".join(symbol.upper().split())


def _resolve_side(record: Mapping[str, Any], rules: RulesConfig, label: str, warnings: list[str]) -> Side:
    tag_raw = record.get("type") or record.get("side") or ""
    tag = tag_raw.strip().lower()
    tag_side: Side | None = None
    if tag in rules.sides.buy_tags:
        tag_side = Side.BUY
    elif tag in rules.sides.sell_tags:
        tag_side = Side.SELL

    color = (record.get("color") or "").strip().lower()
    hint = rules.sides.color_hints.get(color)
    hint_side = Side(hint) if hint else None

    if tag_side is not None:
        if hint_side is not None and hint_side is not tag_side:
            warnings.append(
                f"{label}: side tag {tag_raw!r} disagrees with color hint {color!r}; using tag ({tag_side.value})"
            )
        return tag_side
    if hint_side is not None:
        warnings.append(f"{label}: no side tag, side {hint_side.value} taken from color hint {color!r}")
        return hint_side
    if tag:
        raise _Reject(f"unrecognized side {tag_raw!r}")
    raise _Reject("missing side")


def _to_float(value: Any) -> float | None:
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _resolve_price(record: Mapping[str, Any]) -> float:
    raw = record.get("price")
    if raw is None:
        raise _Reject("missing price")
    price = _to_float(raw)
    if price is None:
        raise _Reject(f"unparseable price {raw!r}")
    if price <= 0:
        raise _Reject(f"non-positive price {price:g}")
    return price


def _resolve_quantity(record: Mapping[str, Any]) -> int:
    raw = record.get("quantity")
    if raw is None:
        raise _Reject("missing quantity")
    qty = _to_float(raw)
    if qty is None:
        raise _Reject(f"unparseable quantity {raw!r}")
    if qty <= 0:
        raise _Reject(f"non-positive quantity {qty:g}")
    if not qty.is_integer():
        raise _Reject(f"non-integer quantity {qty:g}")
    return int(qty)


def _resolve_status(record: Mapping[str, Any], rules: RulesConfig) -> OrderStatus:
    status = (record.get("status") or "").strip().lower()
    if not status or status in rules.status.executed_aliases:
        return OrderStatus.EXECUTED
    return OrderStatus.OTHER


def _resolve_confidence(
    record: Mapping[str, Any],
    fallback: float,
    label: str,
    warnings: list[str],
) -> float:
    raw = record.get("confidence")
    if raw is None:
        return fallback
    value = _to_float(raw)
    if value is None:
        warnings.append(f"{label}: unparseable confidence {raw!r}, using {fallback:g}")
        return fallback
    if not 0.0 <= value <= 1.0:
        clamped = min(max(value, 0.0), 1.0)
        warnings.append(f"{label}: confidence {value:g} outside [0, 1], clamped to {clamped:g}")
        return clamped
    return value


def _resolve_time(
    record: Mapping[str, Any],
    rules: RulesConfig,
    label: str,
    warnings: list[str],
) -> tuple[time | None, str]:
    raw = record.get("time") or ""
    if not raw.strip():
        warnings.append(f"{label}: missing time; order kept without a timestamp")
        return None, raw
    result = correct_time(raw, rules)
    if result.corrected:
        warnings.append(f"{label}: corrected time {result.describe()}")
    elif result.value is None:
        warnings.append(f"{label}: could not parse time {raw!r}; order kept without a timestamp")
    # an uncorrectable out-of-window value is kept as parsed; diagnostics reports it
    return result.value, raw


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


def _sort_key(order: Order) -> tuple[bool, time]:
    return (order.timestamp is None, order.timestamp or time.min)


def normalize_orders(
    records: Sequence[Any],
    rules: RulesConfig,
    default_confidence: float | None = None,
) -> NormalizationResult:
    """Normalize raw extractor records.

    Parameters
    ----------
    records:
        List of raw order mappings (``symbol``, ``type``, ``price``,
        ``quantity``, ``time``, optional ``status``, ``confidence``,
        ``color``).
    rules:
        Reconciliation rules (side tags, OCR table, trading hours).
    default_confidence:
        Payload-level confidence used when a record carries none. Falls
        back to ``rules.default_confidence``.

    Returns
    -------
    NormalizationResult
        Orders stably sorted by timestamp (untimed last), rejected records,
        and warnings describing every inference made.

    Raises
    ------
    ExtractionPayloadError
        If *records* is not a list or a record is structurally invalid.
    """
    if not isinstance(records, (list, tuple)):
        raise ExtractionPayloadError(f"Order records must be a list, got {type(records).__name__}")

    fallback = rules.default_confidence if default_confidence is None else default_confidence
    orders: list[Order] = []
    rejected: list[RejectedRecord] = []
    warnings: list[str] = []

    for index, record in enumerate(records):
        _check_structure(index, record)
        label = f"order #{index} ({record.get('symbol') or '?'})"
        record_warnings: list[str] = []
        try:
            symbol = canonical_symbol(record.get("symbol") or "")
            if not symbol:
                raise _Reject("missing symbol")
            side = _resolve_side(record, rules, label, record_warnings)
            price = _resolve_price(record)
            quantity = _resolve_quantity(record)
        except _Reject as exc:
            rejected.append(RejectedRecord(source_index=index, reason=str(exc), raw=dict(record)))
            warnings.append(f"{label} rejected: {exc}")
            continue

        timestamp, raw_time = _resolve_time(record, rules, label, record_warnings)
        confidence = _resolve_confidence(record, fallback, label, record_warnings)
        warnings.extend(record_warnings)
        orders.append(
            Order(
                symbol=symbol,
                side=side,
                price=price,
                quantity=quantity,
                timestamp=timestamp,
                status=_resolve_status(record, rules),
                confidence=confidence,
                raw_time=raw_time,
                source_index=index,
            )
        )

    orders.sort(key=_sort_key)
    return NormalizationResult(orders=orders, rejected=rejected, warnings=warnings)
