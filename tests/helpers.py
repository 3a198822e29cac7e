"""Helpers shared by the tailtrace tests."""

from datetime import datetime, timedelta, timezone

from tailtrace.converter import OTLPJsonExporter
from tailtrace.models import SpanContext, TailEvent

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)
BASE_TIME_NS = 1_735_689_600_000_000_000


class RecordingExporter(OTLPJsonExporter):
    """Exporter that keeps batches in memory instead of sending them."""

    def __init__(self, succeed: bool = True):
        super().__init__()
        self.batches: list[list] = []
        self.payloads: list[dict] = []
        self.succeed = succeed

    async def export(self, spans):
        self.batches.append(list(spans))
        self.payloads.append(self.build_payload(spans))
        return self.succeed


def make_event(payload, trace_id="abc", span_id=None, ms=0, sequence=None):
    """Build a TailEvent ``ms`` milliseconds after BASE_TIME."""
    return TailEvent(
        timestamp=BASE_TIME + timedelta(milliseconds=ms),
        span_context=SpanContext(trace_id=trace_id, span_id=span_id),
        event=payload,
        sequence=sequence,
    )
