"""
Time correction for OCR-extracted order times.

A time that already parses and falls inside the trading window is returned
untouched. Otherwise character substitutions are applied one at a time in
priority order (cumulatively), then the zero-hour repair ("00:25" is read as
09:25 or 10:25). The first in-window candidate wins. When every candidate
is exhausted the best-effort parse is kept and the result is not in window.

The time token is searched for inside the string, so date prefixes
("2025-08-07 09:30:00") and AM/PM suffixes ("09:30 AM") are accepted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import time
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from config.rules_config import RulesConfig

_COLON_TIME = re.compile(r"(?<!\d)(\d{1,2}):(\d{2})(?::(\d{2}))?(?!\d)")
_MERIDIEM = re.compile(r"\s*([AP])\.?M\b\.?", re.IGNORECASE)
_COMPACT_TIME = re.compile(r"^(\d{2})(\d{2})(\d{2})$")


@dataclass(frozen=True)
class TimeCorrection:
    """Outcome of correcting one raw time string."""

    raw: str
    value: time | None
    in_window: bool
    corrected: bool = False
    steps: tuple[str, ...] = ()

    def describe(self) -> str:
        shown = format_time(self.value, self.raw) if self.value is not None else "?"
        return f"{self.raw}->{shown}"


def format_time(value: time, raw: str = "") -> str:
    """HH:MM unless the raw string carried seconds (or seconds are non-zero)."""
    if value.second or raw.count(":") >= 2 or _COMPACT_TIME.match(raw.strip()):
        return value.strftime("%H:%M:%S")
    return value.strftime("%H:%M")


def parse_time(text: str) -> time | None:
    """Parse HH:MM or HH:MM:SS anywhere in *text* (optional AM/PM), or a bare HHMMSS.

    Returns None for anything else.
    """
    text = text.strip()
    match = _COLON_TIME.search(text)
    meridiem = None
    if match:
        suffix = _MERIDIEM.match(text, match.end())
        meridiem = suffix.group(1).upper() if suffix else None
    else:
        match = _COMPACT_TIME.match(text)
        if not match:
            return None
    hours, minutes, seconds = (int(g or 0) for g in match.groups())
    if meridiem is not None:
        if not 1 <= hours <= 12:
            return None
        hours = hours % 12 + (12 if meridiem == "P" else 0)
    try:
        return time(hours, minutes, seconds)
    except ValueError:
        return None


def _candidates(text: str, rules: RulesConfig) -> Iterator[tuple[time | None, str]]:
    """Yield (parsed, step label) in priority order."""
    yield parse_time(text), "as typed"

    current = text
    for src, dst in rules.time_correction.substitutions:
        if src not in current:
            continue
        current = current.replace(src, dst)
        yield parse_time(current), f"{src}->{dst}"

    parsed = parse_time(current)
    if parsed is not None and parsed.hour == 0:
        for hour in rules.time_correction.zero_hour_candidates:
            yield parsed.replace(hour=hour), f"hour 0->{hour}"


def correct_time(raw: str, rules: RulesConfig) -> TimeCorrection:
    """Resolve *raw* into an in-window time of day, if any candidate allows it."""
    text = raw.strip()
    window = rules.trading_hours
    best_effort: time | None = None
    steps: list[str] = []

    for index, (parsed, label) in enumerate(_candidates(text, rules)):
        if index > 0:
            steps.append(label)
        if parsed is None:
            continue
        if best_effort is None:
            best_effort = parsed
        if window.contains(parsed):
            return TimeCorrection(
                raw=raw,
                value=parsed,
                in_window=True,
                corrected=index > 0,
                steps=tuple(steps),
            )

    return TimeCorrection(raw=raw, value=best_effort, in_window=False, corrected=False, steps=tuple(steps))
