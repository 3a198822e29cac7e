"""Utility functions for the tailtrace application.

This module provides time conversions and small value helpers shared by the
event parser and the span converter.
"""

import datetime
import json
from typing import Any

from tailtrace.exceptions import ValidationError

EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


def parse_timestamp(value: Any) -> datetime.datetime:
    """
    Convert an event timestamp into an aware UTC datetime.

    Args:
        value: Epoch milliseconds, an ISO-8601 string (a trailing ``Z`` is
               accepted) or a datetime

    Returns:
        datetime.datetime: The timestamp in UTC

    Raises:
        ValidationError: If the value cannot be interpreted as a timestamp
    """
    if isinstance(value, datetime.datetime):
        parsed = value
    elif isinstance(value, bool):
        raise ValidationError(f"Invalid timestamp: {value!r}")
    elif isinstance(value, (int, float)):
        parsed = EPOCH + datetime.timedelta(milliseconds=value)
    elif isinstance(value, str):
        try:
            parsed = datetime.datetime.fromisoformat(
                value.replace("Z", "+00:00")
            )
        except ValueError as e:
            raise ValidationError(
                f"Invalid timestamp: {value!r}",
                "Use epoch milliseconds or an ISO-8601 string",
            ) from e
    else:
        raise ValidationError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed.astimezone(datetime.timezone.utc)


def dt_to_ns(dt: datetime.datetime) -> int:
    """Convert a datetime to integer nanoseconds since the Unix epoch."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    delta = dt - EPOCH
    return (
        delta.days * 86_400 + delta.seconds
    ) * 1_000_000_000 + delta.microseconds * 1_000


def to_text(value: Any) -> str:
    """Return strings unchanged and JSON-serialize everything else."""
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)
