"""Data models for tail stream events and the spans built from them."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Optional

from opentelemetry.trace import StatusCode


@dataclass
class SpanContext:
    """Span context the runtime attaches to every event."""

    trace_id: str
    span_id: Optional[str] = None


@dataclass
class Attribute:
    name: str
    value: Any


@dataclass
class Onset:
    """First event of an invocation, describing its trigger."""

    type: ClassVar[str] = "onset"

    span_id: str
    info: dict[str, Any] = field(default_factory=dict)
    script_name: Optional[str] = None
    script_version: Optional[dict[str, Any]] = None
    execution_model: Optional[str] = None
    dispatch_namespace: Optional[str] = None
    entrypoint: Optional[str] = None
    script_tags: Optional[list[str]] = None
    attributes: Optional[list[Attribute]] = None


@dataclass
class SpanOpen:
    type: ClassVar[str] = "spanOpen"

    span_id: str
    name: str
    info: Optional[dict[str, Any]] = None


@dataclass
class Attributes:
    type: ClassVar[str] = "attributes"

    info: list[Attribute] = field(default_factory=list)


@dataclass
class Log:
    type: ClassVar[str] = "log"

    level: str
    message: Any


@dataclass
class SpanClose:
    type: ClassVar[str] = "spanClose"

    outcome: str


@dataclass
class ExceptionEvent:
    type: ClassVar[str] = "exception"

    name: str
    message: str
    stack: Optional[str] = None


@dataclass
class Return:
    type: ClassVar[str] = "return"

    info: Optional[dict[str, Any]] = None


@dataclass
class Outcome:
    """Last event of an invocation."""

    type: ClassVar[str] = "outcome"

    outcome: str
    cpu_time: float = 0
    wall_time: float = 0


@dataclass
class DiagnosticChannel:
    type: ClassVar[str] = "diagnosticChannel"

    channel: str
    message: Any


@dataclass
class UnknownEvent:
    """Payload of an event kind the converter does not handle."""

    type: str
    raw: dict[str, Any] = field(default_factory=dict)


EventPayload = (
    Onset
    | SpanOpen
    | Attributes
    | Log
    | SpanClose
    | ExceptionEvent
    | Return
    | Outcome
    | DiagnosticChannel
    | UnknownEvent
)


@dataclass
class TailEvent:
    timestamp: datetime
    span_context: SpanContext
    event: EventPayload
    invocation_id: Optional[str] = None
    sequence: Optional[int] = None

    def __str__(self) -> str:
        return (
            f"{self.event.type}#{self.sequence} "
            f"trace={self.span_context.trace_id} "
            f"span={self.span_context.span_id}"
        )


@dataclass
class SpanStatus:
    code: StatusCode
    message: Optional[str] = None


@dataclass
class SpanLog:
    timestamp: int
    fields: dict[str, Any]


@dataclass
class Span:
    """A span being assembled from events.

    Attributes:
        trace_id: Trace identifier assigned by the runtime
        span_id: Span identifier assigned by the runtime
        parent_span_id: Parent span identifier, None for a root span that
            does not continue an upstream trace
        operation_name: Span name
        start_time: Start time in nanoseconds since the epoch
        end_time: End time in nanoseconds since the epoch, set once on close
        tags: Span attributes in insertion order
        logs: Log entries, exported as span events
        status: Status set by a closing event or an exception
    """

    trace_id: str
    span_id: str
    operation_name: str
    start_time: int
    parent_span_id: Optional[str] = None
    end_time: Optional[int] = None
    tags: dict[str, Any] = field(default_factory=dict)
    logs: list[SpanLog] = field(default_factory=list)
    status: Optional[SpanStatus] = None

    @property
    def is_closed(self) -> bool:
        return self.end_time is not None
