"""Pytest fixtures: rules and order records for deterministic tests."""

from typing import Any

import pytest

from config.rules_config import RulesConfig, load_rules


@pytest.fixture(scope="session")
def rules() -> RulesConfig:
    return load_rules()


def make_record(
    symbol: str = "RELIANCE",
    side: str | None = "buy",
    price: Any = 100.0,
    quantity: Any = 10,
    time: str | None = "09:30",
    **extra: Any,
) -> dict[str, Any]:
    """One raw extractor record; pass None to omit a field."""
    record: dict[str, Any] = {"symbol": symbol, "type": side, "price": price, "quantity": quantity, "time": time}
    record.update(extra)
    return {k: v for k, v in record.items() if v is not None}


@pytest.fixture
def nifty_put_payload() -> dict[str, Any]:
    """Bought a NIFTY weekly put at 100, sold at 130: short-equivalent, pnl -1500."""
    return {
        "broker_detected": "zerodha",
        "confidence": 0.95,
        "price_column_used": "avg_price",
        "orders": [
            make_record("NIFTY25807246550PE", "buy", 100, 50, "09:25:00"),
            make_record("NIFTY25807246550PE", "sell", 130, 50, "10:10:00"),
        ],
    }


@pytest.fixture
def mixed_payload() -> dict[str, Any]:
    """Two symbols, a partial close, an OCR-damaged time and one unusable record."""
    return {
        "orders": [
            make_record("RELIANCE", "buy", 2500.0, 10, "09:20"),
            make_record("RELIANCE", "sell", 2510.0, 4, "1O:05"),
            make_record("TCS", "sell", 3500.0, 5, "11:00"),
            make_record("TCS", "buy", 3490.0, 5, "11:30"),
            make_record("INFY", None, 1500.0, 2, "12:00"),
        ]
    }
