"""
Reconciliation rules loader: JSON file -> frozen dataclass tree, validated against JSON Schema.

Default values: docs/config/rules.default.json
Schema:         docs/config/rules_config.schema.json

Per-broker overrides: place a partial JSON file named ``rules.{BROKER}.json``
next to the default rules (e.g. ``docs/config/rules.ZERODHA.json``). Only the
keys you want to override need to be present; they are deep-merged on top
of the base rules before schema validation.

Usage:
    from config.rules_config import load_rules
    rules = load_rules()                          # loads default
    rules = load_rules(broker="zerodha")          # merges rules.ZERODHA.json if present
    rules.trading_hours.open                      # -> datetime.time(9, 15)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import time
from pathlib import Path
from typing import Any

import jsonschema

logger = logging.getLogger("reconcile.config")

# ---------------------------------------------------------------------------
# Project root detection (walk up from this file to find pyproject.toml)
# ---------------------------------------------------------------------------


def _find_project_root() -> Path:
    """Walk up from this file looking for pyproject.toml.

    Falls back to CWD when installed without the source tree.
    """
    candidate = Path(__file__).resolve().parent
    for _ in range(10):
        if (candidate / "pyproject.toml").exists():
            return candidate
        parent = candidate.parent
        if parent == candidate:
            break
        candidate = parent
    return Path.cwd()


_PROJECT_ROOT = _find_project_root()

DEFAULT_RULES_PATH = _PROJECT_ROOT / "docs" / "config" / "rules.default.json"
DEFAULT_SCHEMA_PATH = _PROJECT_ROOT / "docs" / "config" / "rules_config.schema.json"


# ---------------------------------------------------------------------------
# Frozen dataclass tree: mirrors rules.default.json structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TradingHours:
    open: time
    close: time

    def contains(self, value: time) -> bool:
        return self.open <= value <= self.close


@dataclass(frozen=True)
class TimeCorrectionConfig:
    substitutions: tuple[tuple[str, str], ...]
    zero_hour_candidates: tuple[int, ...] = (9, 10)


@dataclass(frozen=True)
class SideConfig:
    buy_tags: frozenset[str]
    sell_tags: frozenset[str]
    color_hints: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class StatusConfig:
    executed_aliases: frozenset[str]


@dataclass(frozen=True)
class SymbolConfig:
    exchange_prefixes: tuple[str, ...]
    indices: dict[str, int]
    underlying_aliases: dict[str, str] = field(default_factory=dict)
    known_equities: frozenset[str] = frozenset()
    accept_unlisted_equities: bool = True


@dataclass(frozen=True)
class PriceBounds:
    min: float
    max: float

    def contains(self, price: float) -> bool:
        return self.min <= price <= self.max


@dataclass(frozen=True)
class RulesConfig:
    """Top-level reconciliation rules. Every threshold the core consults."""

    version: str
    trading_hours: TradingHours
    time_correction: TimeCorrectionConfig
    sides: SideConfig
    status: StatusConfig
    symbols: SymbolConfig
    price_bounds: dict[str, PriceBounds]
    default_confidence: float = 0.9
    brokerage_rate: float = 0.0001


# ---------------------------------------------------------------------------
# Deep merge for per-broker overrides
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *overrides* into a copy of *base*.

    - Dict values are merged recursively (override keys win).
    - Non-dict values in overrides replace the base value.
    - Keys in base that are absent from overrides are preserved.
    """
    merged = dict(base)
    for key, val in overrides.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(val, dict):
            merged[key] = _deep_merge(merged[key], val)
        else:
            merged[key] = val
    return merged


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class RulesConfigError(Exception):
    """Raised when rules loading or validation fails."""


def _validate_schema(data: dict[str, Any], schema_path: Path) -> None:
    """Validate *data* against the JSON Schema at *schema_path*."""
    if not schema_path.exists():
        raise RulesConfigError(f"Schema file not found: {schema_path}")
    with open(schema_path) as f:
        schema = json.load(f)
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as exc:
        raise RulesConfigError(f"Rules validation failed: {exc.message}") from exc


def _parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    try:
        return time(int(hours), int(minutes))
    except ValueError as exc:
        raise RulesConfigError(f"Invalid trading-hours time {value!r}: {exc}") from exc


def _build_rules(data: dict[str, Any]) -> RulesConfig:
    """Convert a raw dict (already validated) into the frozen dataclass tree."""
    hours_raw = data["trading_hours"]
    tc_raw = data["time_correction"]
    sides_raw = data["sides"]
    sym_raw = data["symbols"]

    trading_hours = TradingHours(
        open=_parse_hhmm(hours_raw["open"]),
        close=_parse_hhmm(hours_raw["close"]),
    )
    if trading_hours.open >= trading_hours.close:
        raise RulesConfigError(
            f"Trading hours open {hours_raw['open']} must be before close {hours_raw['close']}"
        )

    return RulesConfig(
        version=data["version"],
        trading_hours=trading_hours,
        time_correction=TimeCorrectionConfig(
            substitutions=tuple((src, dst) for src, dst in tc_raw["substitutions"]),
            zero_hour_candidates=tuple(tc_raw.get("zero_hour_candidates", [9, 10])),
        ),
        sides=SideConfig(
            buy_tags=frozenset(t.lower() for t in sides_raw["buy_tags"]),
            sell_tags=frozenset(t.lower() for t in sides_raw["sell_tags"]),
            color_hints={k.lower(): v for k, v in sides_raw.get("color_hints", {}).items()},
        ),
        status=StatusConfig(
            executed_aliases=frozenset(s.lower() for s in data["status"]["executed_aliases"]),
        ),
        symbols=SymbolConfig(
            exchange_prefixes=tuple(p.upper() for p in sym_raw["exchange_prefixes"]),
            indices={k.upper(): v for k, v in sym_raw["indices"].items()},
            underlying_aliases={k.upper(): v.upper() for k, v in sym_raw.get("underlying_aliases", {}).items()},
            known_equities=frozenset(s.upper() for s in sym_raw.get("known_equities", [])),
            accept_unlisted_equities=sym_raw.get("accept_unlisted_equities", True),
        ),
        price_bounds={
            segment: PriceBounds(min=float(b["min"]), max=float(b["max"]))
            for segment, b in data["price_bounds"].items()
        },
        default_confidence=float(data["confidence"]["default"]),
        brokerage_rate=float(data["costs"]["brokerage_rate"]),
    )


def load_rules(
    rules_path: str | Path | None = None,
    schema_path: str | Path | None = None,
    broker: str | None = None,
) -> RulesConfig:
    """Load and validate reconciliation rules.

    Parameters
    ----------
    rules_path:
        Path to a rules JSON file.  Defaults to ``docs/config/rules.default.json``.
    schema_path:
        Path to the JSON Schema file.  Defaults to ``docs/config/rules_config.schema.json``.
    broker:
        Optional broker name (as reported by the extractor, e.g. ``zerodha``).
        When provided, the loader looks for ``rules.{BROKER}.json`` in the
        same directory as the base file and deep-merges it before
        validation.  A missing override is not an error.

    Returns
    -------
    RulesConfig
        Frozen dataclass tree with all reconciliation parameters.

    Raises
    ------
    RulesConfigError
        If the file is missing, unparseable, or fails schema validation.
    """
    cfg_path = Path(rules_path) if rules_path else DEFAULT_RULES_PATH
    sch_path = Path(schema_path) if schema_path else DEFAULT_SCHEMA_PATH

    if not cfg_path.exists():
        raise RulesConfigError(f"Rules file not found: {cfg_path}")

    try:
        with open(cfg_path) as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise RulesConfigError(f"Rules file is not valid JSON: {exc}") from exc

    if broker:
        override_path = cfg_path.parent / f"rules.{broker.strip().upper()}.json"
        if override_path.exists():
            try:
                with open(override_path) as f:
                    overrides = json.load(f)
            except json.JSONDecodeError as exc:
                raise RulesConfigError(
                    f"Broker rules {override_path.name} is not valid JSON: {exc}"
                ) from exc
            data = _deep_merge(data, overrides)
            logger.info("Loaded broker rules: %s", override_path.name)
        else:
            logger.debug("No broker rules found at %s, using defaults", override_path)

    _validate_schema(data, sch_path)

    return _build_rules(data)
