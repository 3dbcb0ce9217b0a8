"""
Data contracts for reconcile-core: Order, SymbolInfo, Trade, IncompleteOrder.

reconcile-core consumes raw extracted order records and produces matched
Trades, IncompleteOrders and warnings. No I/O; these are plain dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from typing import Any


class ExtractionPayloadError(ValueError):
    """Raised when the extractor payload is structurally invalid (not data-quality)."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Side(str, Enum):
    BUY = "buy"
    SELL = "sell"

    def opposite(self) -> Side:
        return Side.SELL if self is Side.BUY else Side.BUY


class OrderStatus(str, Enum):
    """Only EXECUTED orders take part in matching."""

    EXECUTED = "executed"
    OTHER = "other"


class MarketSegment(str, Enum):
    EQUITY = "equity"
    INDEX = "index"
    OPTION = "option"


class OptionType(str, Enum):
    CE = "CE"
    PE = "PE"


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"

    @property
    def sign(self) -> int:
        return 1 if self is Direction.LONG else -1


class Sentiment(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"


def _fmt_time(value: time | None) -> str | None:
    return value.isoformat() if value is not None else None


# ---------------------------------------------------------------------------
# Symbol metadata
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SymbolInfo:
    """Market-segment metadata parsed from a canonical symbol.

    Option instances always carry an ``option_type``.
    """

    symbol: str
    market_segment: MarketSegment
    underlying: str
    exchange: str | None = None
    strike_price: float | None = None
    expiry_code: str | None = None
    option_type: OptionType | None = None
    lot_size: int = 1

    @property
    def is_option(self) -> bool:
        return self.market_segment is MarketSegment.OPTION

    @property
    def clean_symbol(self) -> str:
        """Display form: ``NIFTY 24650 PE`` for options, the underlying otherwise."""
        if not self.is_option:
            return self.underlying
        strike = f"{self.strike_price:g}" if self.strike_price is not None else "?"
        return f"{self.underlying} {strike} {self.option_type.value}"


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Order:
    """A normalized buy/sell execution event. Immutable after normalization.

    ``timestamp`` is None only when no time could be parsed from ``raw_time``.
    """

    symbol: str
    side: Side
    price: float
    quantity: int
    timestamp: time | None
    status: OrderStatus
    confidence: float
    raw_time: str = ""
    source_index: int = 0
    symbol_info: SymbolInfo | None = None

    def to_record(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "side": self.side.value,
            "price": self.price,
            "quantity": self.quantity,
            "time": _fmt_time(self.timestamp),
            "raw_time": self.raw_time,
            "status": self.status.value,
            "confidence": self.confidence,
            "source_index": self.source_index,
        }


@dataclass(frozen=True)
class RejectedRecord:
    """An input record excluded by the normalizer, with the reason."""

    source_index: int
    reason: str
    raw: dict[str, Any] = field(default_factory=dict)

    def to_record(self) -> dict[str, Any]:
        return {"source_index": self.source_index, "reason": self.reason, "raw": self.raw}


@dataclass(frozen=True)
class IncompleteOrder:
    """Residual open quantity with no counter-side order in the stream."""

    order: Order
    remaining_quantity: int

    @property
    def symbol(self) -> str:
        return self.order.symbol

    @property
    def side(self) -> Side:
        return self.order.side

    @property
    def price(self) -> float:
        return self.order.price

    @property
    def timestamp(self) -> time | None:
        return self.order.timestamp

    def to_record(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "side": self.side.value,
            "price": self.price,
            "quantity": self.remaining_quantity,
            "original_quantity": self.order.quantity,
            "time": _fmt_time(self.timestamp),
            "confidence": self.order.confidence,
            "source_index": self.order.source_index,
        }


# ---------------------------------------------------------------------------
# Trades
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Trade:
    """A matched entry/exit round trip. Never merged or split after assembly."""

    symbol: str
    entry_price: float
    exit_price: float
    quantity: int
    entry_time: time | None
    exit_time: time | None
    direction: Direction
    pnl: float
    confidence: float
    opening_side: Side
    market_segment: MarketSegment
    market_sentiment: Sentiment
    strategy: str
    underlying: str
    option_type: OptionType | None = None
    strike_price: float | None = None
    brokerage: float = 0.0
    roi_pct: float = 0.0
    flags: tuple[str, ...] = ()

    def to_record(self) -> dict[str, Any]:
        """Flat record: one journal entry per round trip."""
        return {
            "symbol": self.symbol,
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "quantity": self.quantity,
            "entry_time": _fmt_time(self.entry_time),
            "exit_time": _fmt_time(self.exit_time),
            "direction": self.direction.value,
            "pnl": self.pnl,
            "confidence": self.confidence,
            "opening_side": self.opening_side.value,
            "market_segment": self.market_segment.value,
            "market_sentiment": self.market_sentiment.value,
            "strategy": self.strategy,
            "underlying": self.underlying,
            "option_type": self.option_type.value if self.option_type else None,
            "strike_price": self.strike_price,
            "brokerage": self.brokerage,
            "roi_pct": self.roi_pct,
            "flags": list(self.flags),
        }


@dataclass(frozen=True)
class ExtractionMetadata:
    """Top-level fields reported by the extractor. Trusted, not validated."""

    broker_detected: str | None = None
    confidence: float | None = None
    price_column_used: str | None = None


@dataclass(frozen=True)
class ReconciliationResult:
    """Complete output of one reconciliation run."""

    trades: list[Trade] = field(default_factory=list)
    incomplete_orders: list[IncompleteOrder] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    rejected: list[RejectedRecord] = field(default_factory=list)
    metadata: ExtractionMetadata = ExtractionMetadata()

    @property
    def total_pnl(self) -> float:
        return sum(t.pnl for t in self.trades)

    def to_dict(self) -> dict[str, Any]:
        return {
            "trades": [t.to_record() for t in self.trades],
            "incompleteOrders": [o.to_record() for o in self.incomplete_orders],
            "warnings": list(self.warnings),
            "rejected": [r.to_record() for r in self.rejected],
            "metadata": {
                "broker_detected": self.metadata.broker_detected,
                "confidence": self.metadata.confidence,
                "price_column_used": self.metadata.price_column_used,
            },
        }
