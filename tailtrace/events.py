"""Parsing of tail stream events from their JSON representation.

The runtime serializes events with camelCase keys::

    {
        "invocationId": "...",
        "sequence": 0,
        "timestamp": "2025-01-01T00:00:00.000Z",
        "spanContext": {"traceId": "...", "spanId": "..."},
        "event": {"type": "onset", "spanId": "...", "info": {...}, ...}
    }
"""

import logging
from collections.abc import Iterable
from typing import Any, Callable

from tailtrace.exceptions import EventParsingError, ValidationError
from tailtrace.models import (
    Attribute,
    Attributes,
    DiagnosticChannel,
    EventPayload,
    ExceptionEvent,
    Log,
    Onset,
    Outcome,
    Return,
    SpanClose,
    SpanContext,
    SpanOpen,
    TailEvent,
    UnknownEvent,
)
from tailtrace.utils import parse_timestamp

logger = logging.getLogger("tailtrace")


def parse_attributes(raw: Any) -> list[Attribute]:
    """Parse a list of ``{"name", "value"}`` objects.

    Anything that is not an iterable of mappings with a name is skipped.
    """
    if raw is None or isinstance(raw, (str, bytes, dict)):
        return []
    if not isinstance(raw, Iterable):
        return []
    attributes = []
    for item in raw:
        if isinstance(item, dict) and "name" in item:
            attributes.append(Attribute(item["name"], item.get("value")))
        elif isinstance(item, Attribute):
            attributes.append(item)
    return attributes


def _parse_onset(raw: dict[str, Any]) -> Onset:
    return Onset(
        span_id=raw["spanId"],
        info=raw.get("info") or {},
        script_name=raw.get("scriptName"),
        script_version=raw.get("scriptVersion"),
        execution_model=raw.get("executionModel"),
        dispatch_namespace=raw.get("dispatchNamespace"),
        entrypoint=raw.get("entrypoint"),
        script_tags=raw.get("scriptTags"),
        attributes=parse_attributes(raw.get("attributes")),
    )


def _parse_span_open(raw: dict[str, Any]) -> SpanOpen:
    return SpanOpen(
        span_id=raw["spanId"],
        name=raw.get("name", ""),
        info=raw.get("info"),
    )


def _parse_attributes(raw: dict[str, Any]) -> Attributes:
    return Attributes(info=parse_attributes(raw.get("info")))


def _parse_log(raw: dict[str, Any]) -> Log:
    return Log(level=raw.get("level", "info"), message=raw.get("message"))


def _parse_span_close(raw: dict[str, Any]) -> SpanClose:
    return SpanClose(outcome=raw.get("outcome", "unknown"))


def _parse_exception(raw: dict[str, Any]) -> ExceptionEvent:
    return ExceptionEvent(
        name=raw.get("name", "Error"),
        message=raw.get("message", ""),
        stack=raw.get("stack"),
    )


def _parse_return(raw: dict[str, Any]) -> Return:
    return Return(info=raw.get("info"))


def _parse_outcome(raw: dict[str, Any]) -> Outcome:
    return Outcome(
        outcome=raw.get("outcome", "unknown"),
        cpu_time=raw.get("cpuTime", 0),
        wall_time=raw.get("wallTime", 0),
    )


def _parse_diagnostic_channel(raw: dict[str, Any]) -> DiagnosticChannel:
    return DiagnosticChannel(
        channel=raw.get("channel", ""), message=raw.get("message")
    )


PAYLOAD_PARSERS: dict[str, Callable[[dict[str, Any]], EventPayload]] = {
    Onset.type: _parse_onset,
    SpanOpen.type: _parse_span_open,
    Attributes.type: _parse_attributes,
    Log.type: _parse_log,
    SpanClose.type: _parse_span_close,
    ExceptionEvent.type: _parse_exception,
    Return.type: _parse_return,
    Outcome.type: _parse_outcome,
    DiagnosticChannel.type: _parse_diagnostic_channel,
}


def parse_payload(raw: dict[str, Any]) -> EventPayload:
    event_type = raw.get("type")
    parser = PAYLOAD_PARSERS.get(event_type)  # type: ignore[arg-type]
    if parser is None:
        logger.debug(f"Unrecognized tail event type: {event_type}")
        return UnknownEvent(type=str(event_type), raw=raw)
    return parser(raw)


def parse_event(raw: dict[str, Any]) -> TailEvent:
    """Parse one serialized tail stream event.

    Args:
        raw: The decoded JSON object

    Returns:
        The parsed TailEvent

    Raises:
        EventParsingError: If required fields are missing or malformed
    """
    if not isinstance(raw, dict):
        raise EventParsingError(
            f"Expected a JSON object, got {type(raw).__name__}"
        )
    try:
        context = raw.get("spanContext") or {}
        span_context = SpanContext(
            trace_id=context["traceId"],
            span_id=context.get("spanId") or None,
        )
        payload = raw["event"]
        if not isinstance(payload, dict):
            raise EventParsingError("Event payload must be a JSON object")
        return TailEvent(
            timestamp=parse_timestamp(raw["timestamp"]),
            span_context=span_context,
            event=parse_payload(payload),
            invocation_id=raw.get("invocationId"),
            sequence=raw.get("sequence"),
        )
    except KeyError as e:
        raise EventParsingError(
            f"Missing field {e} in tail event",
            "Each event needs timestamp, spanContext.traceId and event",
        ) from e
    except ValidationError as e:
        raise EventParsingError(str(e)) from e
