"""Assembly of the OTLP/JSON trace export request."""

from typing import Any, Iterable

from opentelemetry.proto.trace.v1 import trace_pb2
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.util.instrumentation import InstrumentationScope
from opentelemetry.trace import StatusCode

from tailtrace.converter.encoder import encode_attributes
from tailtrace.models import Span, SpanLog

TRACE_ID_HEX_LENGTH = 32
SPAN_ID_HEX_LENGTH = 16

# Every span is reported as handled by the worker itself
SPAN_KIND = trace_pb2.Span.SpanKind.SPAN_KIND_SERVER

_STATUS_CODE_MAP = {
    StatusCode.UNSET: trace_pb2.Status.StatusCode.STATUS_CODE_UNSET,
    StatusCode.OK: trace_pb2.Status.StatusCode.STATUS_CODE_OK,
    StatusCode.ERROR: trace_pb2.Status.StatusCode.STATUS_CODE_ERROR,
}


def pad_hex(hex_id: str, length: int) -> str:
    """Left-pad an id with zeros to ``length`` characters and lower-case it.

    Ids that are already long enough are only lower-cased.
    """
    return hex_id.rjust(length, "0").lower()


def _format_log(log: SpanLog) -> dict[str, Any]:
    return {
        "timeUnixNano": str(log.timestamp),
        "name": "log",
        "attributes": encode_attributes(log.fields),
    }


def format_span(span: Span) -> dict[str, Any]:
    """Convert one span record to its OTLP/JSON form.

    Optional fields that are not set (parent, end time, status) are left out
    of the result instead of being defaulted.
    """
    formatted: dict[str, Any] = {
        "traceId": pad_hex(span.trace_id, TRACE_ID_HEX_LENGTH),
        "spanId": pad_hex(span.span_id, SPAN_ID_HEX_LENGTH),
    }
    if span.parent_span_id:
        formatted["parentSpanId"] = pad_hex(
            span.parent_span_id, SPAN_ID_HEX_LENGTH
        )
    formatted["name"] = span.operation_name
    formatted["kind"] = SPAN_KIND
    formatted["startTimeUnixNano"] = str(span.start_time)
    if span.end_time is not None:
        formatted["endTimeUnixNano"] = str(span.end_time)
    formatted["attributes"] = encode_attributes(span.tags)
    formatted["events"] = [_format_log(log) for log in span.logs]
    if span.status is not None:
        status: dict[str, Any] = {
            "code": _STATUS_CODE_MAP[span.status.code]
        }
        if span.status.message is not None:
            status["message"] = span.status.message
        formatted["status"] = status
    return formatted


def format_spans(
    spans: Iterable[Span],
    resource: Resource,
    scope: InstrumentationScope,
) -> dict[str, Any]:
    """Build an ``ExportTraceServiceRequest`` body for the given spans.

    All spans are placed in a single resource group holding a single scope.

    Args:
        spans: The span records to export
        resource: Resource describing the exporting service
        scope: Instrumentation scope the spans are reported under

    Returns:
        The JSON-serializable request body
    """
    formatted_scope: dict[str, Any] = {"name": scope.name}
    if scope.version:
        formatted_scope["version"] = scope.version
    return {
        "resourceSpans": [
            {
                "resource": {
                    "attributes": encode_attributes(dict(resource.attributes))
                },
                "scopeSpans": [
                    {
                        "scope": formatted_scope,
                        "spans": [format_span(span) for span in spans],
                    }
                ],
            }
        ]
    }
