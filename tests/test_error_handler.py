"""Tests for error reporting and logging setup."""

import logging

import pytest

from tailtrace.config import Config
from tailtrace.error_handler import event_context, handle_error
from tailtrace.exceptions import ConfigurationError, EventParsingError
from tailtrace.log import ColoredFormatter, init_logger


class TestEventContext:
    """Tests for describing where a captured event came from."""

    def test_full_context(self):
        raw = {"invocationId": "inv-1", "event": {"type": "spanOpen"}}
        assert event_context(3, raw) == "event #3 (invocation inv-1) [spanOpen]"

    def test_position_only(self):
        assert event_context(0, {}) == "event #0"
        assert event_context(7, ["not", "an", "object"]) == "event #7"


class TestHandleError:
    """Tests for handle_error."""

    def test_parsing_error_names_the_event(self, caplog):
        error = EventParsingError(
            "Missing field 'timestamp' in tail event", "Add a timestamp"
        )
        with caplog.at_level(logging.ERROR, logger="tailtrace"):
            handle_error(error, context="event #2 (invocation inv-9)")
        assert (
            "event #2 (invocation inv-9): Malformed tail event: "
            "Missing field 'timestamp' in tail event. Add a timestamp"
        ) in caplog.text

    def test_tailtrace_error_without_context(self, caplog):
        with caplog.at_level(logging.ERROR, logger="tailtrace"):
            handle_error(ConfigurationError("Bad config"))
        assert caplog.records[-1].getMessage() == "Bad config"

    def test_unexpected_error(self, caplog):
        with caplog.at_level(logging.ERROR, logger="tailtrace"):
            handle_error(RuntimeError("boom"))
        assert "Unexpected error: RuntimeError('boom')" in caplog.text

    def test_exit_on_error(self, caplog):
        with pytest.raises(SystemExit) as exc_info:
            handle_error(ConfigurationError("Bad config"), exit_on_error=True)
        assert exc_info.value.code == 1


class TestInitLogger:
    """Tests for init_logger."""

    @pytest.fixture(autouse=True)
    def restore_httpx_level(self):
        httpx_logger = logging.getLogger("httpx")
        level = httpx_logger.level
        yield
        httpx_logger.setLevel(level)

    def test_installs_colored_handler(self):
        init_logger(Config(log_level="WARNING"))
        logger = logging.getLogger("tailtrace")
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, ColoredFormatter)
        assert logger.propagate is False

    @pytest.mark.parametrize(
        "log_level, httpx_level",
        [("INFO", logging.WARNING), ("DEBUG", logging.DEBUG)],
    )
    def test_http_client_requests_only_at_debug(self, log_level, httpx_level):
        init_logger(Config(log_level=log_level))
        assert logging.getLogger("httpx").level == httpx_level

    def test_level_name_is_colored(self):
        formatter = ColoredFormatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        record = logging.LogRecord(
            "tailtrace", logging.ERROR, __file__, 1, "export failed", None, None
        )
        formatted = formatter.format(record)
        assert formatted.endswith(" - export failed")
        assert "\x1b[31mERROR" in formatted
