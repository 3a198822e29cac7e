"""Conversion of tail stream events into OpenTelemetry spans.

Submodules:
- encoder: OTLP AnyValue encoding of tag and log field values
- formatter: OTLP/JSON export request assembly
- tags: Operation naming and tag extraction
- spans: Span table and parent resolution for one invocation
- exporter: OTLP/HTTP JSON exporter
- router: Event dispatch and the per-invocation converter
"""

from tailtrace.converter.encoder import encode_attributes, encode_value
from tailtrace.converter.exporter import (
    DEFAULT_OTEL_ENDPOINT,
    OTLPJsonExporter,
)
from tailtrace.converter.formatter import format_span, format_spans, pad_hex
from tailtrace.converter.router import EventRouter, TailStreamConverter
from tailtrace.converter.spans import SpanTable
from tailtrace.converter.tags import (
    extract_onset_tags,
    extract_span_open_tags,
    get_operation_name,
)

__all__ = [
    "encode_value",
    "encode_attributes",
    "format_span",
    "format_spans",
    "pad_hex",
    "get_operation_name",
    "extract_onset_tags",
    "extract_span_open_tags",
    "SpanTable",
    "DEFAULT_OTEL_ENDPOINT",
    "OTLPJsonExporter",
    "EventRouter",
    "TailStreamConverter",
]
