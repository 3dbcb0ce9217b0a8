"""Tests for OCR time correction: as-typed first, substitutions, zero-hour repair."""

from datetime import time

import pytest

from config.rules_config import RulesConfig
from reconcile_core.time_correction import correct_time, format_time, parse_time


class TestParseTime:
    def test_hh_mm(self) -> None:
        assert parse_time("09:30") == time(9, 30)

    def test_single_digit_hour(self) -> None:
        assert parse_time("9:15") == time(9, 15)

    def test_with_seconds(self) -> None:
        assert parse_time("10:10:05") == time(10, 10, 5)

    def test_compact(self) -> None:
        assert parse_time("101500") == time(10, 15)

    def test_date_prefixed(self) -> None:
        assert parse_time("2025-08-07 09:30:00") == time(9, 30)
        assert parse_time("07-Aug-2025T14:05") == time(14, 5)

    @pytest.mark.parametrize("text,expected", [
        ("09:30:00 AM", time(9, 30)),
        ("02:15 PM", time(14, 15)),
        ("12:05 pm", time(12, 5)),
        ("12:30 AM", time(0, 30)),
        ("3:45 p.m.", time(15, 45)),
    ])
    def test_meridiem(self, text: str, expected: time) -> None:
        assert parse_time(text) == expected

    def test_meridiem_with_24_hour_clock_rejected(self) -> None:
        assert parse_time("14:00 PM") is None

    @pytest.mark.parametrize("text", ["", "abc", "25:00", "10:75", "10-15", "1O:25", "09:305", "2025-08-07"])
    def test_unparseable(self, text: str) -> None:
        assert parse_time(text) is None


class TestCorrectTime:
    def test_valid_time_untouched(self, rules: RulesConfig) -> None:
        result = correct_time("09:30", rules)
        assert result.value == time(9, 30)
        assert result.in_window
        assert not result.corrected
        assert result.steps == ()

    def test_letter_o_in_hour(self, rules: RulesConfig) -> None:
        result = correct_time("1O:25", rules)
        assert result.value == time(10, 25)
        assert result.corrected
        assert result.steps == ("O->0",)
        assert result.describe() == "1O:25->10:25"

    def test_zero_hour_repair(self, rules: RulesConfig) -> None:
        result = correct_time("0:25", rules)
        assert result.value == time(9, 25)
        assert result.in_window
        assert result.corrected
        assert result.describe() == "0:25->09:25"

    def test_substitutions_are_cumulative(self, rules: RulesConfig) -> None:
        result = correct_time("I0:3O", rules)
        assert result.value == time(10, 30)
        assert result.steps == ("O->0", "I->1")

    def test_lowercase_l_reads_as_one(self, rules: RulesConfig) -> None:
        assert correct_time("l1:45", rules).value == time(11, 45)

    def test_keeps_seconds(self, rules: RulesConfig) -> None:
        result = correct_time("1O:1O:05", rules)
        assert result.value == time(10, 10, 5)
        assert result.describe() == "1O:1O:05->10:10:05"

    def test_out_of_window_kept_best_effort(self, rules: RulesConfig) -> None:
        result = correct_time("16:45", rules)
        assert result.value == time(16, 45)
        assert not result.in_window
        assert not result.corrected

    def test_date_prefixed_time_in_window(self, rules: RulesConfig) -> None:
        result = correct_time("2025-08-07 09:30:00", rules)
        assert result.value == time(9, 30)
        assert result.in_window
        assert not result.corrected

    def test_pm_time_in_window(self, rules: RulesConfig) -> None:
        result = correct_time("02:15 PM", rules)
        assert result.value == time(14, 15)
        assert not result.corrected

    def test_unparseable_has_no_value(self, rules: RulesConfig) -> None:
        result = correct_time("abc", rules)
        assert result.value is None
        assert not result.in_window

    @pytest.mark.parametrize("raw", ["09:15", "15:30"])
    def test_window_bounds_inclusive(self, rules: RulesConfig, raw: str) -> None:
        assert correct_time(raw, rules).in_window

    def test_just_after_close_is_outside(self, rules: RulesConfig) -> None:
        assert not correct_time("15:31", rules).in_window

    @pytest.mark.parametrize("raw", ["09:30", "1O:25", "0:25", "I0:3O", "101500", "14:59:59", "2025-08-07 09:30:00", "02:15 PM"])
    def test_idempotent(self, rules: RulesConfig, raw: str) -> None:
        first = correct_time(raw, rules)
        again = correct_time(format_time(first.value, raw), rules)
        assert again.value == first.value
        assert not again.corrected


class TestFormatTime:
    def test_minutes_only(self) -> None:
        assert format_time(time(9, 5)) == "09:05"

    def test_seconds_when_raw_had_them(self) -> None:
        assert format_time(time(10, 10), "10:10:00") == "10:10:00"

    def test_seconds_when_nonzero(self) -> None:
        assert format_time(time(10, 10, 7)) == "10:10:07"
