"""Shared fixtures for tailtrace tests."""

import logging

import pytest
from helpers import RecordingExporter

from tailtrace.converter import TailStreamConverter


@pytest.fixture
def exporter():
    return RecordingExporter()


@pytest.fixture
def converter(exporter):
    return TailStreamConverter(exporter)


@pytest.fixture(autouse=True)
def reset_tailtrace_logger():
    """Undo init_logger() so caplog keeps seeing tailtrace records."""
    yield
    logger = logging.getLogger("tailtrace")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("TAILTRACE_CONFIG", raising=False)
    monkeypatch.delenv("OTEL_ENDPOINT", raising=False)
