"""
Structured JSON event logger for reconciliation runs.

Emits one JSON object per line to stderr. Events are designed to be
parsed by log aggregators (Grafana Loki, CloudWatch, ELK).

Optional webhook: when configured, attention-worthy events
(incomplete_detected, order_rejected, error) are POSTed to the URL.
"""

from __future__ import annotations

import json
import logging
import sys
import urllib.request
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger("reconcile.events")

_ALERT_EVENTS = frozenset({"incomplete_detected", "order_rejected", "error"})


class StructuredEventLogger:
    """Emit structured JSON events to stderr and optional webhook."""

    def __init__(
        self,
        source: str,
        *,
        enabled: bool = True,
        webhook_url: str = "",
        stream: Any = None,
    ) -> None:
        self._source = source
        self._enabled = enabled
        self._webhook_url = webhook_url.strip()
        self._stream = stream or sys.stderr

    def _emit(self, event_type: str, **fields: Any) -> dict:
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "event": event_type,
            "source": self._source,
            **fields,
        }
        if self._enabled:
            self._stream.write(json.dumps(record) + "\n")
            self._stream.flush()

        if self._webhook_url and event_type in _ALERT_EVENTS:
            self._post_webhook(record)

        return record

    def _post_webhook(self, record: dict) -> None:
        try:
            data = json.dumps(record).encode("utf-8")
            req = urllib.request.Request(
                self._webhook_url,
                data=data,
                headers={"Content-Type": "application/json"},
                method="POST",
            )
            urllib.request.urlopen(req, timeout=5)
        except Exception as exc:
            logger.warning("Webhook POST failed: %s", exc)

    def extraction_start(self, orders: int, broker: str | None) -> dict:
        return self._emit("extraction_start", orders=orders, broker=broker)

    def trades_matched(self, trades: int, total_pnl: float, warnings: int) -> dict:
        return self._emit(
            "trades_matched",
            trades=trades,
            total_pnl=round(total_pnl, 2),
            warnings=warnings,
        )

    def incomplete_detected(self, symbols: list[str], quantity: int) -> dict:
        return self._emit("incomplete_detected", symbols=symbols, quantity=quantity)

    def order_rejected(self, source_index: int, reason: str) -> dict:
        return self._emit("order_rejected", source_index=source_index, reason=reason)

    def error(self, message: str, detail: str = "") -> dict:
        return self._emit("error", message=message, detail=detail)
