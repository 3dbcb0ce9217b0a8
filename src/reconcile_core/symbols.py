"""
Symbol Classifier: canonical symbol -> SymbolInfo | None.

Recognized option layouts (after an optional exchange prefix such as NFO:):
    NIFTY25807246550PE    underlying + weekly expiry code (YY M DD) + strike + type
    NIFTY24JAN24000CE     underlying + monthly expiry (YY MON) + strike + type
    NIFTY24000CE          underlying + strike + type (no expiry code)
    NIFTY 24000 CE        separated by spaces, hyphens or underscores

Index tickers come from the configured index table, equities from the known
list (or any plain ticker when unlisted equities are accepted). Anything
else, including option-looking symbols without a clean CE/PE suffix, is
unknown: the caller keeps the order out of matching and warns.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import TYPE_CHECKING

from reconcile_core.contracts import MarketSegment, OptionType, Order, SymbolInfo

if TYPE_CHECKING:
    from config.rules_config import RulesConfig


# Weekly month code: 1-9 for Jan-Sep, O/N/D for Oct-Dec.
_WEEKLY = re.compile(r"^([A-Z&]+)(\d{2}[1-9OND]\d{2})(\d{3,})(CE|PE)$")
_MONTHLY = re.compile(r"^([A-Z&]+)(\d{2}[A-Z]{3})(\d{3,})(CE|PE)$")
_STRIKE_ONLY = re.compile(r"^([A-Z&]+)(\d{3,7})(CE|PE)$")
_SEPARATED = re.compile(r"^([A-Z&]+)[\s_-]+(\d+(?:\.\d+)?)[\s_-]+(CE|PE)$")

_PLAIN_TICKER = re.compile(r"^[A-Z][A-Z0-9&.-]*$")
_OPTION_HINT = re.compile(r"[A-Z]\d{3,}|\d\s*(CE|PE|CALL|PUT)$")


def split_exchange(symbol: str, rules: RulesConfig) -> tuple[str | None, str]:
    """Return (exchange, bare symbol). Unknown prefixes are left in place."""
    if ":" in symbol:
        prefix, _, rest = symbol.partition(":")
        if prefix.strip() in rules.symbols.exchange_prefixes:
            return prefix.strip(), rest.strip()
    return None, symbol


def standardize_underlying(underlying: str, rules: RulesConfig) -> str:
    upper = underlying.upper()
    return rules.symbols.underlying_aliases.get(upper, upper)


def looks_like_option(symbol: str) -> bool:
    """Strike-like digit run or a digit followed by an option-type tail."""
    return bool(_OPTION_HINT.search(symbol.upper()))


def _lot_size(underlying: str, rules: RulesConfig) -> int:
    return rules.symbols.indices.get(underlying, 1)


def _classify_option(bare: str, exchange: str | None, symbol: str, rules: RulesConfig) -> SymbolInfo | None:
    expiry: str | None = None
    match = _WEEKLY.match(bare) or _MONTHLY.match(bare)
    if match:
        underlying, expiry, strike, opt = match.groups()
    else:
        match = _STRIKE_ONLY.match(bare) or _SEPARATED.match(bare)
        if not match:
            return None
        underlying, strike, opt = match.groups()

    underlying = standardize_underlying(underlying, rules)
    return SymbolInfo(
        symbol=symbol,
        market_segment=MarketSegment.OPTION,
        underlying=underlying,
        exchange=exchange,
        strike_price=float(strike),
        expiry_code=expiry,
        option_type=OptionType(opt),
        lot_size=_lot_size(underlying, rules),
    )


def classify_symbol(symbol: str, rules: RulesConfig) -> SymbolInfo | None:
    """Classify a canonical symbol. Returns None when the pattern is unrecognized."""
    exchange, bare = split_exchange(symbol.strip().upper(), rules)
    if not bare:
        return None

    option = _classify_option(bare, exchange, symbol, rules)
    if option is not None:
        return option

    name = standardize_underlying(bare, rules)
    if name in rules.symbols.indices:
        return SymbolInfo(
            symbol=symbol,
            market_segment=MarketSegment.INDEX,
            underlying=name,
            exchange=exchange,
            lot_size=_lot_size(name, rules),
        )

    if looks_like_option(bare):
        return None
    if name in rules.symbols.known_equities or (
        rules.symbols.accept_unlisted_equities and _PLAIN_TICKER.match(name)
    ):
        return SymbolInfo(
            symbol=symbol,
            market_segment=MarketSegment.EQUITY,
            underlying=name,
            exchange=exchange,
        )
    return None


def annotate_orders(orders: list[Order], rules: RulesConfig) -> tuple[list[Order], list[Order]]:
    """Attach SymbolInfo to each order.

    Returns (classified, unclassified); both keep input order. Orders are
    never mutated: classified entries are new instances.
    """
    cache: dict[str, SymbolInfo | None] = {}
    classified: list[Order] = []
    unclassified: list[Order] = []
    for order in orders:
        if order.symbol not in cache:
            cache[order.symbol] = classify_symbol(order.symbol, rules)
        info = cache[order.symbol]
        if info is None:
            unclassified.append(order)
        else:
            classified.append(replace(order, symbol_info=info))
    return classified, unclassified
