"""
Structured journal: append-only JSON lines. One line per reconciled trade, incomplete order, reject or warning.
"""

import json
from datetime import date, datetime, time, timezone
from enum import Enum
from pathlib import Path
from typing import Any


def _serialize(obj: Any) -> Any:
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if hasattr(obj, "to_record"):
        return _serialize(obj.to_record())
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_serialize(x) for x in obj]
    return obj


class JournalWriter:
    """Append-only journal. Each line is a JSON object with event type and payload."""

    def __init__(self, path: str | Path, *, echo_stdout: bool = False) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._echo = echo_stdout

    def _write(self, event_type: str, payload: dict) -> None:
        record = {"ts_utc": datetime.now(timezone.utc).isoformat(), "event": event_type, **payload}
        line = json.dumps(_serialize(record)) + "\n"
        with open(self._path, "a") as f:
            f.write(line)
        if self._echo:
            print(line.rstrip())

    def extraction(self, source: str, broker: str | None, trades: int, incomplete: int, rejected: int, **extra: Any) -> None:
        self._write(
            "extraction",
            {"source": source, "broker": broker, "trades": trades, "incomplete": incomplete, "rejected": rejected, **extra},
        )

    def trade(self, trade: Any, **extra: Any) -> None:
        self._write("trade", {**_serialize(trade), **extra})

    def incomplete_order(self, item: Any, **extra: Any) -> None:
        self._write("incomplete_order", {**_serialize(item), **extra})

    def rejected(self, source_index: int, reason: str, raw: dict | None = None, **extra: Any) -> None:
        self._write("rejected", {"source_index": source_index, "reason": reason, "raw": raw or {}, **extra})

    def warning(self, message: str, **extra: Any) -> None:
        self._write("warning", {"message": message, **extra})

    def record_result(self, result: Any, source: str) -> None:
        """Journal a full ReconciliationResult: summary line first, then one line per item."""
        self.extraction(
            source,
            result.metadata.broker_detected,
            len(result.trades),
            len(result.incomplete_orders),
            len(result.rejected),
            confidence=result.metadata.confidence,
            price_column_used=result.metadata.price_column_used,
        )
        for t in result.trades:
            self.trade(t, source=source)
        for item in result.incomplete_orders:
            self.incomplete_order(item, source=source)
        for r in result.rejected:
            self.rejected(r.source_index, r.reason, r.raw, source=source)
        for message in result.warnings:
            self.warning(message, source=source)
