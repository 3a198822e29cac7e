"""Conversion of tag and log field values into OTLP/JSON ``AnyValue``s."""

import math
from typing import Any


def encode_value(value: Any) -> dict[str, Any]:
    """Encode a value as an OTLP ``AnyValue``.

    Whole numbers become ``intValue`` (a decimal string, as int64 values are
    rendered in OTLP/JSON), other numbers ``doubleValue``. Lists and tuples
    are encoded recursively; anything unrecognized falls back to its string
    form.
    """
    if isinstance(value, str):
        return {"stringValue": value}
    # bool is a subclass of int
    if isinstance(value, bool):
        return {"boolValue": value}
    if isinstance(value, int):
        return {"intValue": str(value)}
    if isinstance(value, float):
        if value.is_integer():
            return {"intValue": str(int(value))}
        return {"doubleValue": _encode_double(value)}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    return {"stringValue": str(value)}


def _encode_double(value: float) -> float | str:
    # Non-finite doubles use the proto3 JSON string forms
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return value


def encode_attributes(values: dict[str, Any]) -> list[dict[str, Any]]:
    """Encode a mapping as a list of OTLP ``KeyValue`` objects."""
    return [
        {"key": key, "value": encode_value(value)}
        for key, value in values.items()
    ]
