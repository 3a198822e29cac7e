"""Span lifecycle tracking for a single invocation.

Parent resolution uses an explicit stack of open span ids:

- onset and spanOpen push the new span id
- spanOpen's parent is the top of the stack, or the context span id when
  the stack is empty
- spanClose pops the top of the stack and closes that span
- attributes, log, exception, return and diagnosticChannel events target
  the span named by the event's span context, or the top of the stack when
  the context names none

Events whose target span is not in the table are dropped.
"""

import logging
from typing import Optional

from opentelemetry.trace import StatusCode

from tailtrace.converter.tags import (
    attributes_to_tags,
    extract_onset_tags,
    extract_span_open_tags,
    get_operation_name,
)
from tailtrace.models import (
    Attributes,
    DiagnosticChannel,
    ExceptionEvent,
    Log,
    Onset,
    Outcome,
    Return,
    Span,
    SpanClose,
    SpanContext,
    SpanLog,
    SpanOpen,
    SpanStatus,
    TailEvent,
)
from tailtrace.utils import dt_to_ns, to_text

logger = logging.getLogger("tailtrace")


def outcome_status(outcome: str) -> SpanStatus:
    code = StatusCode.OK if outcome == "ok" else StatusCode.ERROR
    return SpanStatus(code=code, message=outcome)


class SpanTable:
    """In-memory span table owned by one invocation's converter."""

    def __init__(self) -> None:
        self.spans: dict[str, Span] = {}
        self.root_span_id: Optional[str] = None
        self._stack: list[str] = []

    def __len__(self) -> int:
        return len(self.spans)

    def get(self, span_id: Optional[str]) -> Optional[Span]:
        if not span_id:
            return None
        return self.spans.get(span_id)

    @property
    def active_span_id(self) -> Optional[str]:
        """Id of the most recently opened span that is still open."""
        return self._stack[-1] if self._stack else None

    def _add(self, span: Span) -> None:
        # Every open is pushed so each close still pops exactly one entry
        self._stack.append(span.span_id)
        if span.span_id in self.spans:
            logger.warning(
                f"Span {span.span_id} opened twice, keeping the first one"
            )
            return
        self.spans[span.span_id] = span

    def _unstack(self, span_id: str) -> None:
        self._stack = [s for s in self._stack if s != span_id]

    def _target(self, context: SpanContext) -> Optional[Span]:
        span_id = context.span_id or self.active_span_id
        span = self.get(span_id)
        if span is None:
            logger.debug(f"No span {span_id} in table, dropping event")
        return span

    def on_onset(self, event: TailEvent, onset: Onset) -> Span:
        """Create the root span.

        The root only has a parent when the runtime continues a trace from
        an upstream caller, in which case the context names that span.
        """
        span = Span(
            trace_id=event.span_context.trace_id,
            span_id=onset.span_id,
            parent_span_id=event.span_context.span_id or None,
            operation_name=get_operation_name(onset.info),
            start_time=dt_to_ns(event.timestamp),
            tags=extract_onset_tags(onset),
        )
        self._add(span)
        self.root_span_id = span.span_id
        logger.debug(f"Root span opened: {span.span_id} {span.operation_name}")
        return span

    def on_span_open(self, event: TailEvent, span_open: SpanOpen) -> Span:
        span = Span(
            trace_id=event.span_context.trace_id,
            span_id=span_open.span_id,
            parent_span_id=self.active_span_id or event.span_context.span_id,
            operation_name=span_open.name,
            start_time=dt_to_ns(event.timestamp),
            tags=extract_span_open_tags(span_open.info),
        )
        self._add(span)
        logger.debug(
            f"Span opened: {span.span_id} {span.operation_name} "
            f"(parent {span.parent_span_id})"
        )
        return span

    def on_attributes(self, event: TailEvent, attributes: Attributes) -> None:
        span = self._target(event.span_context)
        if span is None:
            return
        span.tags.update(attributes_to_tags(attributes.info))

    def on_log(self, event: TailEvent, log: Log) -> None:
        span = self._target(event.span_context)
        if span is None:
            return
        message = log.message
        if isinstance(message, (list, tuple)):
            message = " ".join(str(part) for part in message)
        span.logs.append(
            SpanLog(
                timestamp=dt_to_ns(event.timestamp),
                fields={"level": log.level, "message": message},
            )
        )

    def on_span_close(
        self, event: TailEvent, span_close: SpanClose
    ) -> Optional[Span]:
        """Close the most recently opened span."""
        if not self._stack:
            logger.debug("spanClose with no open span, ignoring")
            return None
        span = self.get(self._stack.pop())
        if span is None:
            return None
        if span.is_closed:
            logger.debug(f"Span {span.span_id} already closed")
            return span
        span.end_time = dt_to_ns(event.timestamp)
        span.status = outcome_status(span_close.outcome)
        logger.debug(f"Span closed: {span.span_id} ({span_close.outcome})")
        return span

    def on_exception(
        self, event: TailEvent, exception: ExceptionEvent
    ) -> None:
        span = self._target(event.span_context)
        if span is None:
            return
        span.logs.append(
            SpanLog(
                timestamp=dt_to_ns(event.timestamp),
                fields={
                    "level": "error",
                    "exception.type": exception.name,
                    "exception.message": exception.message,
                    "exception.stacktrace": exception.stack or "",
                },
            )
        )
        span.status = SpanStatus(
            code=StatusCode.ERROR, message=exception.message
        )

    def on_return(self, event: TailEvent, return_event: Return) -> None:
        span = self._target(event.span_context)
        if span is None:
            return
        info = return_event.info
        if isinstance(info, dict) and info.get("type") == "fetch":
            span.tags["http.response.status_code"] = info.get("statusCode")

    def on_diagnostic_channel(
        self, event: TailEvent, diagnostic: DiagnosticChannel
    ) -> None:
        span = self._target(event.span_context)
        if span is None:
            return
        span.logs.append(
            SpanLog(
                timestamp=dt_to_ns(event.timestamp),
                fields={
                    "level": "debug",
                    "diagnostic.channel": diagnostic.channel,
                    "diagnostic.message": to_text(diagnostic.message),
                },
            )
        )

    def resolve_root(self, context: SpanContext) -> Optional[Span]:
        """Find the root span for an outcome event.

        The context span id wins when it names a span in the table;
        otherwise the span created by onset is used.
        """
        span = self.get(context.span_id)
        if span is not None:
            return span
        return self.get(self.root_span_id)

    def on_outcome(self, event: TailEvent, outcome: Outcome) -> Optional[Span]:
        root = self.resolve_root(event.span_context)
        if root is None:
            logger.debug("Outcome received without a root span")
            return None
        if not root.is_closed:
            root.end_time = dt_to_ns(event.timestamp)
            self._unstack(root.span_id)
        root.status = outcome_status(outcome.outcome)
        root.tags["cpu.time.ms"] = outcome.cpu_time
        root.tags["wall.time.ms"] = outcome.wall_time
        return root

    def closed_spans(self) -> list[Span]:
        return [span for span in self.spans.values() if span.is_closed]

    def remove(self, spans: list[Span]) -> None:
        for span in spans:
            self.spans.pop(span.span_id, None)
            self._unstack(span.span_id)

    def clear(self) -> list[Span]:
        """Drop every span left in the table and return them."""
        remaining = list(self.spans.values())
        self.spans.clear()
        self._stack.clear()
        self.root_span_id = None
        return remaining
