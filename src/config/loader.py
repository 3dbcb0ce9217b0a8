"""
Config loader: YAML file -> frozen dataclass tree.

The alert webhook URL is resolved from the RECONCILE_WEBHOOK_URL environment
variable when set; otherwise from the file.
"""

import os
from dataclasses import dataclass
from pathlib import Path

import yaml


@dataclass(frozen=True)
class JournalConfig:
    path: str = "data/journal.jsonl"
    echo_stdout: bool = False


@dataclass(frozen=True)
class AlertingConfig:
    structured_logs: bool = True
    webhook_url: str = ""


@dataclass(frozen=True)
class RulesPathConfig:
    path: str = ""


@dataclass(frozen=True)
class AppConfig:
    journal: JournalConfig = JournalConfig()
    alerting: AlertingConfig = AlertingConfig()
    rules: RulesPathConfig = RulesPathConfig()


def load_config(path: str | Path = "config.yaml") -> AppConfig:
    """
    Load configuration from a YAML file.

    Environment:
      - RECONCILE_WEBHOOK_URL overrides alerting.webhook_url
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    j_raw = raw.get("journal") or {}
    j_cfg = JournalConfig(
        path=str(j_raw.get("path", "data/journal.jsonl")),
        echo_stdout=bool(j_raw.get("echo_stdout", False)),
    )

    a_raw = raw.get("alerting") or {}
    a_cfg = AlertingConfig(
        structured_logs=bool(a_raw.get("structured_logs", True)),
        webhook_url=os.environ.get("RECONCILE_WEBHOOK_URL") or str(a_raw.get("webhook_url", "")),
    )

    r_raw = raw.get("rules") or {}
    r_cfg = RulesPathConfig(path=str(r_raw.get("path", "") or ""))

    return AppConfig(journal=j_cfg, alerting=a_cfg, rules=r_cfg)
