"""Per-invocation conversion of tail stream events into exported spans."""

import logging
from typing import Any, Callable, Optional

from tailtrace.converter.exporter import OTLPJsonExporter
from tailtrace.converter.spans import SpanTable
from tailtrace.models import (
    Attributes,
    DiagnosticChannel,
    ExceptionEvent,
    Log,
    Onset,
    Outcome,
    Return,
    SpanClose,
    SpanOpen,
    TailEvent,
)

logger = logging.getLogger("tailtrace")

Handler = Callable[[TailEvent, Any], Any]


class EventRouter:
    """Dispatches each event to exactly one span table handler.

    Only the outcome handler suspends: it closes the root span and waits for
    the export of every closed span before returning.
    """

    def __init__(self, table: SpanTable, exporter: OTLPJsonExporter):
        self.table = table
        self.exporter = exporter
        self._handlers: dict[str, Handler] = {
            Onset.type: table.on_onset,
            SpanOpen.type: table.on_span_open,
            Attributes.type: table.on_attributes,
            Log.type: table.on_log,
            SpanClose.type: table.on_span_close,
            ExceptionEvent.type: table.on_exception,
            Return.type: table.on_return,
            DiagnosticChannel.type: table.on_diagnostic_channel,
        }

    async def dispatch(self, event: TailEvent) -> None:
        event_type = event.event.type
        if event_type == Outcome.type:
            await self._handle_outcome(event)
            return
        handler = self._handlers.get(event_type)
        if handler is None:
            logger.debug(f"Ignoring unhandled event: {event}")
            return
        handler(event, event.event)

    async def _handle_outcome(self, event: TailEvent) -> None:
        self.table.on_outcome(event, event.event)  # type: ignore[arg-type]
        await self.flush()

    async def flush(self) -> bool:
        """Export the closed spans and remove them from the table.

        The exported spans are removed whether or not the collector accepted
        them; spans still open stay in the table.
        """
        batch = self.table.closed_spans()
        if not batch:
            return True
        success = await self.exporter.export(batch)
        self.table.remove(batch)
        return success


class TailStreamConverter:
    """Converts one invocation's tail stream into OTLP spans.

    Create one instance per invocation, feed it every event with
    handle_event() and call close() once the invocation is over. Instances
    are not reusable after close().

    Example:
        async with TailStreamConverter(exporter) as converter:
            for event in events:
                await converter.handle_event(event)
    """

    def __init__(self, exporter: Optional[OTLPJsonExporter] = None):
        self.exporter = exporter or OTLPJsonExporter()
        self.table = SpanTable()
        self.router = EventRouter(self.table, self.exporter)
        self.closed = False

    async def handle_event(self, event: TailEvent) -> None:
        if self.closed:
            logger.warning(f"Converter already closed, dropping {event}")
            return
        await self.router.dispatch(event)

    async def close(self) -> None:
        """Tear down the converter, discarding spans that never closed."""
        if self.closed:
            return
        self.closed = True
        leftover = self.table.clear()
        if leftover:
            logger.debug(
                f"Discarding {len(leftover)} unclosed span(s): "
                f"{[span.span_id for span in leftover]}"
            )
        await self.exporter.shutdown()

    async def __aenter__(self) -> "TailStreamConverter":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
