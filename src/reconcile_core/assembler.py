"""
Trade Assembler: MatchedPair + SymbolInfo -> Trade.

Direction comes from the opening order's side. For options it follows the
call/put view of the underlying:

    BUY  CE -> long  (bullish)      SELL CE -> short (bearish)
    SELL PE -> long  (bullish)      BUY  PE -> short (bearish)

P&L = (exit - entry) * quantity * sign(direction), rounded to the finer of
the two price precisions. The premium-based simplification ignores lot-size
multipliers. Confidence is the minimum of the two legs.

Pure functions; nothing here mutates its inputs.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from reconcile_core.contracts import (
    Direction,
    MarketSegment,
    OptionType,
    Sentiment,
    Side,
    SymbolInfo,
    Trade,
)
from reconcile_core.matcher import MatchedPair

if TYPE_CHECKING:
    from config.rules_config import RulesConfig


_STRATEGIES = {
    (OptionType.CE, Side.BUY): "Long Call",
    (OptionType.CE, Side.SELL): "Short Call",
    (OptionType.PE, Side.BUY): "Long Put",
    (OptionType.PE, Side.SELL): "Short Put",
}


def direction_for(opening_side: Side, info: SymbolInfo | None) -> Direction:
    """Position direction implied by the side that opened it."""
    if info is not None and info.is_option and info.option_type is OptionType.PE:
        return Direction.SHORT if opening_side is Side.BUY else Direction.LONG
    return Direction.LONG if opening_side is Side.BUY else Direction.SHORT


def strategy_for(opening_side: Side, info: SymbolInfo | None) -> str:
    if info is not None and info.is_option and info.option_type is not None:
        return _STRATEGIES[(info.option_type, opening_side)]
    return "Long" if opening_side is Side.BUY else "Short"


def price_precision(*prices: float) -> int:
    """Number of decimal places needed to represent every price exactly."""
    places = 0
    for price in prices:
        exponent = Decimal(str(price)).normalize().as_tuple().exponent
        if isinstance(exponent, int) and exponent < 0:
            places = max(places, -exponent)
    return places


def compute_pnl(entry_price: float, exit_price: float, quantity: int, direction: Direction) -> float:
    places = price_precision(entry_price, exit_price)
    raw = (Decimal(str(exit_price)) - Decimal(str(entry_price))) * quantity * direction.sign
    return float(round(raw, places))


def assemble_trade(pair: MatchedPair, info: SymbolInfo | None, rules: RulesConfig) -> Trade:
    """Build the fully-populated Trade for one matched slice."""
    opening, closing = pair.opening, pair.closing
    direction = direction_for(opening.side, info)
    pnl = compute_pnl(opening.price, closing.price, pair.quantity, direction)
    notional = opening.price * pair.quantity
    brokerage = (opening.price + closing.price) * pair.quantity * rules.brokerage_rate

    return Trade(
        symbol=opening.symbol,
        entry_price=opening.price,
        exit_price=closing.price,
        quantity=pair.quantity,
        entry_time=opening.timestamp,
        exit_time=closing.timestamp,
        direction=direction,
        pnl=pnl,
        confidence=min(opening.confidence, closing.confidence),
        opening_side=opening.side,
        market_segment=info.market_segment if info else MarketSegment.EQUITY,
        market_sentiment=Sentiment.BULLISH if direction is Direction.LONG else Sentiment.BEARISH,
        strategy=strategy_for(opening.side, info),
        underlying=info.underlying if info else opening.symbol,
        option_type=info.option_type if info else None,
        strike_price=info.strike_price if info else None,
        brokerage=round(brokerage, 2),
        roi_pct=round(pnl / notional * 100, 2) if notional else 0.0,
    )


def assemble_trades(pairs: list[MatchedPair], info: SymbolInfo | None, rules: RulesConfig) -> list[Trade]:
    return [assemble_trade(pair, info, rules) for pair in pairs]
