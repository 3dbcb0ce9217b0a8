"""Tests for the symbol classifier: options, indices, equities, unknowns."""

from datetime import time

import pytest

from config.rules_config import RulesConfig
from reconcile_core.contracts import MarketSegment, OptionType, Order, OrderStatus, Side
from reconcile_core.symbols import annotate_orders, classify_symbol, looks_like_option, split_exchange


class TestOptions:
    def test_weekly_expiry(self, rules: RulesConfig) -> None:
        info = classify_symbol("NIFTY25807246550PE", rules)
        assert info is not None
        assert info.market_segment is MarketSegment.OPTION
        assert info.underlying == "NIFTY"
        assert info.expiry_code == "25807"
        assert info.strike_price == 246550.0
        assert info.option_type is OptionType.PE
        assert info.lot_size == 50

    def test_monthly_expiry(self, rules: RulesConfig) -> None:
        info = classify_symbol("BANKNIFTY24JAN48000CE", rules)
        assert info is not None
        assert info.underlying == "BANKNIFTY"
        assert info.expiry_code == "24JAN"
        assert info.strike_price == 48000.0
        assert info.option_type is OptionType.CE
        assert info.lot_size == 15

    def test_strike_only(self, rules: RulesConfig) -> None:
        info = classify_symbol("NIFTY24000CE", rules)
        assert info is not None
        assert info.expiry_code is None
        assert info.strike_price == 24000.0

    def test_spaced_variant(self, rules: RulesConfig) -> None:
        info = classify_symbol("FINNIFTY 21500 PE", rules)
        assert info is not None
        assert info.underlying == "FINNIFTY"
        assert info.strike_price == 21500.0
        assert info.option_type is OptionType.PE
        assert info.clean_symbol == "FINNIFTY 21500 PE"

    def test_exchange_prefix(self, rules: RulesConfig) -> None:
        info = classify_symbol("NFO:NIFTY24000CE", rules)
        assert info is not None
        assert info.exchange == "NFO"
        assert info.symbol == "NFO:NIFTY24000CE"

    def test_stock_option_lot_defaults_to_one(self, rules: RulesConfig) -> None:
        info = classify_symbol("RELIANCE2900CE", rules)
        assert info is not None
        assert info.underlying == "RELIANCE"
        assert info.lot_size == 1

    @pytest.mark.parametrize("symbol", ["NIFTY24000", "NIFTY24000XE", "NIFTY 24000 CALL"])
    def test_option_without_clean_type_is_unknown(self, rules: RulesConfig, symbol: str) -> None:
        assert classify_symbol(symbol, rules) is None


class TestIndicesAndEquities:
    def test_index(self, rules: RulesConfig) -> None:
        info = classify_symbol("NIFTY", rules)
        assert info is not None
        assert info.market_segment is MarketSegment.INDEX
        assert info.lot_size == 50

    def test_index_alias(self, rules: RulesConfig) -> None:
        info = classify_symbol("NIFTY 50", rules)
        assert info is not None
        assert info.market_segment is MarketSegment.INDEX
        assert info.underlying == "NIFTY"

    def test_equity(self, rules: RulesConfig) -> None:
        info = classify_symbol("NSE:RELIANCE", rules)
        assert info is not None
        assert info.market_segment is MarketSegment.EQUITY
        assert info.underlying == "RELIANCE"
        assert info.exchange == "NSE"
        assert info.lot_size == 1

    def test_ticker_ending_in_ce_is_equity(self, rules: RulesConfig) -> None:
        info = classify_symbol("ACE", rules)
        assert info is not None
        assert info.market_segment is MarketSegment.EQUITY

    def test_unknown_prefix_is_unknown(self, rules: RulesConfig) -> None:
        assert classify_symbol("XYZ:FOO", rules) is None

    def test_empty_after_prefix(self, rules: RulesConfig) -> None:
        assert classify_symbol("NSE:", rules) is None


class TestHelpers:
    def test_split_exchange(self, rules: RulesConfig) -> None:
        assert split_exchange("BSE:SENSEX", rules) == ("BSE", "SENSEX")
        assert split_exchange("SENSEX", rules) == (None, "SENSEX")

    def test_looks_like_option(self) -> None:
        assert looks_like_option("NIFTY24000")
        assert looks_like_option("NIFTY 24000 CE")
        assert not looks_like_option("RELIANCE")
        assert not looks_like_option("ACE")


def _order(symbol: str, index: int) -> Order:
    return Order(symbol, Side.BUY, 100.0, 50, time(9, 30), OrderStatus.EXECUTED, 0.9, source_index=index)


def test_annotate_orders_splits_and_keeps_order(rules: RulesConfig) -> None:
    orders = [_order("NIFTY24000CE", 0), _order("NIFTY24000", 1), _order("TCS", 2)]
    classified, unclassified = annotate_orders(orders, rules)
    assert [o.source_index for o in classified] == [0, 2]
    assert [o.source_index for o in unclassified] == [1]
    assert classified[0].symbol_info is not None
    assert classified[0].symbol_info.option_type is OptionType.CE
    assert orders[0].symbol_info is None
