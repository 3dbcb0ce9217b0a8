"""
Configuration loaders.

App config:    reads config.yaml, resolves the webhook URL from the environment.
Rules config:  reads rules.default.json (plus broker override), validates against JSON Schema.
"""

from config.loader import (
    AlertingConfig,
    AppConfig,
    JournalConfig,
    RulesPathConfig,
    load_config,
)
from config.rules_config import (
    PriceBounds,
    RulesConfig,
    RulesConfigError,
    SideConfig,
    StatusConfig,
    SymbolConfig,
    TimeCorrectionConfig,
    TradingHours,
    load_rules,
)

__all__ = [
    # App config (YAML)
    "AlertingConfig",
    "AppConfig",
    "JournalConfig",
    "RulesPathConfig",
    "load_config",
    # Rules config (JSON + schema)
    "PriceBounds",
    "RulesConfig",
    "RulesConfigError",
    "SideConfig",
    "StatusConfig",
    "SymbolConfig",
    "TimeCorrectionConfig",
    "TradingHours",
    "load_rules",
]
