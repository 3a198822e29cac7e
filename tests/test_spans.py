"""Tests for span lifecycle tracking and parent resolution."""

import logging

from helpers import BASE_TIME_NS, make_event
from opentelemetry.trace import StatusCode

from tailtrace.converter.spans import SpanTable
from tailtrace.models import (
    Attribute,
    Attributes,
    DiagnosticChannel,
    ExceptionEvent,
    Log,
    Onset,
    Outcome,
    Return,
    SpanClose,
    SpanOpen,
)

FETCH_INFO = {"type": "fetch", "method": "GET", "url": "https://example.com/"}


def _table_with_root(span_id="1", context_span_id=None) -> SpanTable:
    table = SpanTable()
    onset = Onset(span_id=span_id, info=FETCH_INFO)
    table.on_onset(make_event(onset, span_id=context_span_id), onset)
    return table


def _open(table, span_id, name, ms=0, context_span_id=None):
    payload = SpanOpen(span_id=span_id, name=name)
    return table.on_span_open(
        make_event(payload, span_id=context_span_id, ms=ms), payload
    )


def _close(table, outcome="ok", ms=0, context_span_id=None):
    payload = SpanClose(outcome=outcome)
    return table.on_span_close(
        make_event(payload, span_id=context_span_id, ms=ms), payload
    )


class TestOnset:
    """Tests for root span creation."""

    def test_root_without_upstream_has_no_parent(self):
        table = _table_with_root()
        root = table.get("1")
        assert root.parent_span_id is None
        assert root.operation_name == "GET https://example.com/"
        assert root.trace_id == "abc"
        assert root.start_time == BASE_TIME_NS
        assert table.root_span_id == "1"

    def test_root_continuing_upstream_trace(self):
        table = _table_with_root(context_span_id="upstream")
        assert table.get("1").parent_span_id == "upstream"


class TestParentResolution:
    """Tests for the open-span stack."""

    def test_nested_spans(self):
        table = _table_with_root()
        _open(table, "2", "outer")
        _open(table, "3", "inner")

        assert table.get("2").parent_span_id == "1"
        assert table.get("3").parent_span_id == "2"

        closed = _close(table, ms=5)
        assert closed.span_id == "3"
        closed = _close(table, ms=6)
        assert closed.span_id == "2"
        assert table.get("1").is_closed is False

    def test_sibling_spans(self):
        table = _table_with_root()
        _open(table, "2", "first")
        _close(table, ms=1)
        _open(table, "3", "second", ms=2)
        _close(table, ms=3)

        assert table.get("2").parent_span_id == "1"
        assert table.get("3").parent_span_id == "1"
        assert table.get("2").end_time == BASE_TIME_NS + 1_000_000
        assert table.get("3").start_time == BASE_TIME_NS + 2_000_000

    def test_span_open_without_open_spans_uses_context(self):
        table = SpanTable()
        span = _open(table, "2", "orphan", context_span_id="9")
        assert span.parent_span_id == "9"

    def test_events_target_stack_top_without_context(self):
        table = _table_with_root()
        _open(table, "2", "child")
        payload = Attributes(info=[Attribute("k", "v")])
        table.on_attributes(make_event(payload), payload)
        assert table.get("2").tags == {"k": "v"}
        assert "k" not in table.get("1").tags

    def test_context_span_id_wins(self):
        table = _table_with_root()
        _open(table, "2", "child")
        payload = Attributes(info=[Attribute("k", "v")])
        table.on_attributes(make_event(payload, span_id="1"), payload)
        assert table.get("1").tags["k"] == "v"
        assert table.get("2").tags == {}

    def test_unresolved_target_is_dropped(self, caplog):
        table = _table_with_root()
        payload = Log(level="info", message="hello")
        with caplog.at_level(logging.DEBUG, logger="tailtrace"):
            table.on_log(make_event(payload, span_id="missing"), payload)
        assert table.get("1").logs == []
        assert "missing" in caplog.text

    def test_close_without_open_span_is_ignored(self):
        table = SpanTable()
        assert _close(table) is None

    def test_duplicate_open_is_balanced_by_its_close(self, caplog):
        table = _table_with_root()
        first = _open(table, "2", "child", ms=1)
        with caplog.at_level(logging.WARNING, logger="tailtrace"):
            _open(table, "2", "child again", ms=2)
        assert "opened twice" in caplog.text
        assert table.get("2") is first

        assert _close(table, ms=3).span_id == "2"
        assert _close(table, ms=4).span_id == "2"
        assert first.end_time == BASE_TIME_NS + 3_000_000
        assert table.get("1").is_closed is False
        assert table.active_span_id == "1"


class TestSpanClose:
    """Tests for closing spans."""

    def test_ok_outcome(self):
        table = _table_with_root()
        _open(table, "2", "child")
        span = _close(table, "ok", ms=7)
        assert span.end_time == BASE_TIME_NS + 7_000_000
        assert span.status.code == StatusCode.OK
        assert span.status.message == "ok"

    def test_other_outcome_is_error(self):
        table = _table_with_root()
        _open(table, "2", "child")
        span = _close(table, "canceled")
        assert span.status.code == StatusCode.ERROR
        assert span.status.message == "canceled"


class TestMutations:
    """Tests for events that add to a span."""

    def test_attributes_overwrite(self):
        table = _table_with_root()
        first = Attributes(info=[Attribute("retries", 3)])
        second = Attributes(info=[Attribute("retries", 3.5)])
        table.on_attributes(make_event(first), first)
        table.on_attributes(make_event(second), second)
        assert table.get("1").tags["retries"] == 3.5

    def test_log_message_list_is_joined(self):
        table = _table_with_root()
        payload = Log(level="info", message=["a", "b"])
        table.on_log(make_event(payload, ms=3), payload)
        log = table.get("1").logs[0]
        assert log.timestamp == BASE_TIME_NS + 3_000_000
        assert log.fields == {"level": "info", "message": "a b"}

    def test_logs_keep_order(self):
        table = _table_with_root()
        for message in ("one", "two", "three"):
            payload = Log(level="info", message=message)
            table.on_log(make_event(payload), payload)
        assert [log.fields["message"] for log in table.get("1").logs] == [
            "one",
            "two",
            "three",
        ]

    def test_exception_sets_error_status(self):
        table = _table_with_root()
        _open(table, "2", "child")
        _close(table, "ok")
        payload = ExceptionEvent(name="TypeError", message="boom", stack=None)
        table.on_exception(make_event(payload, span_id="2"), payload)

        span = table.get("2")
        assert span.status.code == StatusCode.ERROR
        assert span.status.message == "boom"
        assert len(span.logs) == 1
        assert span.logs[0].fields == {
            "level": "error",
            "exception.type": "TypeError",
            "exception.message": "boom",
            "exception.stacktrace": "",
        }

    def test_fetch_return_sets_status_code(self):
        table = _table_with_root()
        payload = Return(info={"type": "fetch", "statusCode": 404})
        table.on_return(make_event(payload), payload)
        assert table.get("1").tags["http.response.status_code"] == 404

    def test_other_return_is_ignored(self):
        table = _table_with_root()
        payload = Return(info=None)
        table.on_return(make_event(payload), payload)
        assert "http.response.status_code" not in table.get("1").tags

    def test_diagnostic_channel_message_is_stringified(self):
        table = _table_with_root()
        text = DiagnosticChannel(channel="db", message="query")
        obj = DiagnosticChannel(channel="db", message={"rows": 2})
        table.on_diagnostic_channel(make_event(text), text)
        table.on_diagnostic_channel(make_event(obj), obj)
        logs = table.get("1").logs
        assert logs[0].fields == {
            "level": "debug",
            "diagnostic.channel": "db",
            "diagnostic.message": "query",
        }
        assert logs[1].fields["diagnostic.message"] == '{"rows": 2}'


class TestOutcome:
    """Tests for closing the root span."""

    def test_closes_root(self):
        table = _table_with_root()
        payload = Outcome(outcome="ok", cpu_time=5, wall_time=10)
        root = table.on_outcome(make_event(payload, ms=20), payload)
        assert root.span_id == "1"
        assert root.end_time == BASE_TIME_NS + 20_000_000
        assert root.status.code == StatusCode.OK
        assert root.tags["cpu.time.ms"] == 5
        assert root.tags["wall.time.ms"] == 10

    def test_root_of_continued_trace(self):
        table = _table_with_root(context_span_id="upstream")
        payload = Outcome(outcome="exceededCpu")
        root = table.on_outcome(make_event(payload, span_id="upstream"), payload)
        assert root.span_id == "1"
        assert root.status.code == StatusCode.ERROR

    def test_end_time_is_set_once(self):
        table = _table_with_root()
        _close(table, "ok", ms=5)
        payload = Outcome(outcome="exception")
        root = table.on_outcome(make_event(payload, ms=9), payload)
        assert root.end_time == BASE_TIME_NS + 5_000_000
        assert root.status.code == StatusCode.ERROR

    def test_without_root(self):
        table = SpanTable()
        payload = Outcome(outcome="ok")
        assert table.on_outcome(make_event(payload), payload) is None


def test_closed_spans_and_remove():
    table = _table_with_root()
    _open(table, "2", "done")
    _close(table)
    _open(table, "3", "still-open")

    closed = table.closed_spans()
    assert [span.span_id for span in closed] == ["2"]
    table.remove(closed)
    assert table.get("2") is None
    assert len(table) == 2
