"""
Extractor payload decoding: raw model text -> JSON object.

Multimodal models often wrap their JSON in Markdown code fences; those are
stripped before decoding. The top-level value must be an object (with an
``orders`` list) or a bare list of order records.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

from reconcile_core.contracts import ExtractionMetadata, ExtractionPayloadError

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.IGNORECASE | re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Return the body of the first fenced block, or the text itself when unfenced."""
    match = _FENCED_BLOCK.search(text)
    return (match.group(1) if match else text).strip()


def parse_extraction_response(text: str) -> dict[str, Any] | list[Any]:
    """Decode the extractor's response text.

    Raises
    ------
    ExtractionPayloadError
        If the text is not valid JSON or the top level is neither an object
        nor a list.
    """
    if not isinstance(text, str):
        raise ExtractionPayloadError(f"Extractor response must be text, got {type(text).__name__}")
    content = strip_code_fences(text)
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ExtractionPayloadError(f"Extractor response is not valid JSON: {exc}") from exc
    if not isinstance(data, (dict, list)):
        raise ExtractionPayloadError(
            f"Extractor response must be a JSON object or list, got {type(data).__name__}"
        )
    return data


def _optional_float(data: Mapping[str, Any], key: str) -> float | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ExtractionPayloadError(f"Payload field {key!r} must be a number, got {type(value).__name__}")
    return float(value)


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ExtractionPayloadError(f"Payload field {key!r} must be a string, got {type(value).__name__}")
    return value


def split_payload(payload: Any) -> tuple[list[Any], ExtractionMetadata]:
    """Separate order records from top-level extractor metadata."""
    if isinstance(payload, list):
        return payload, ExtractionMetadata()
    if not isinstance(payload, Mapping):
        raise ExtractionPayloadError(
            f"Payload must be a mapping or a list of orders, got {type(payload).__name__}"
        )
    orders = payload.get("orders", [])
    if not isinstance(orders, list):
        raise ExtractionPayloadError(f"Payload 'orders' must be a list, got {type(orders).__name__}")
    metadata = ExtractionMetadata(
        broker_detected=_optional_str(payload, "broker_detected"),
        confidence=_optional_float(payload, "confidence"),
        price_column_used=_optional_str(payload, "price_column_used"),
    )
    return orders, metadata
