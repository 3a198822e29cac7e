"""Replay of captured tail stream events through the converter."""

import json
import logging
from pathlib import Path
from typing import Any, Iterable

import click

from tailtrace.config import Config
from tailtrace.converter import OTLPJsonExporter, TailStreamConverter
from tailtrace.error_handler import event_context, handle_error
from tailtrace.events import parse_event
from tailtrace.exceptions import EventParsingError, TailtraceError
from tailtrace.models import Span, TailEvent

logger = logging.getLogger("tailtrace")


class EchoExporter(OTLPJsonExporter):
    """Prints export requests instead of sending them."""

    async def export(self, spans: list[Span]) -> bool:
        if spans:
            click.echo(json.dumps(self.build_payload(spans)))
        return True


def read_events(path: str) -> list[dict[str, Any]]:
    """Read raw events from a JSON array file or a JSON-lines file.

    Raises:
        EventParsingError: If the file is not valid JSON
    """
    text = Path(path).read_text()
    stripped = text.lstrip()
    try:
        if stripped.startswith("["):
            return json.loads(stripped)
        return [
            json.loads(line)
            for line in text.splitlines()
            if line.strip()
        ]
    except json.JSONDecodeError as e:
        raise EventParsingError(
            f"Invalid JSON in {path} at line {e.lineno}: {e.msg}",
            "Provide a JSON array or one JSON event per line",
        ) from e


def group_by_invocation(
    events: Iterable[TailEvent],
) -> dict[str, list[TailEvent]]:
    """Group events by invocation, ordered by sequence within each group.

    Events without an invocation id are grouped by trace id instead.
    """
    invocations: dict[str, list[TailEvent]] = {}
    for event in events:
        key = event.invocation_id or event.span_context.trace_id
        invocations.setdefault(key, []).append(event)
    for group in invocations.values():
        if all(e.sequence is not None for e in group):
            group.sort(key=lambda e: e.sequence)  # type: ignore[arg-type,return-value]
    return invocations


def build_exporter(config: Config, dry_run: bool) -> OTLPJsonExporter:
    exporter_class = EchoExporter if dry_run else OTLPJsonExporter
    return exporter_class(
        endpoint=config.otel_endpoint,
        resource=config.resource(),
        timeout=config.export_timeout,
    )


def parse_events(
    raw_events: list[dict[str, Any]], exit_on_error: bool = False
) -> list[TailEvent]:
    """Parse raw events, logging and skipping the malformed ones."""
    events = []
    for index, raw in enumerate(raw_events):
        try:
            events.append(parse_event(raw))
        except TailtraceError as e:
            handle_error(e, exit_on_error, context=event_context(index, raw))
    return events


async def replay_invocation(
    events: list[TailEvent], exporter: OTLPJsonExporter
) -> None:
    async with TailStreamConverter(exporter) as converter:
        for event in events:
            await converter.handle_event(event)


async def replay_file(path: str, config: Config, dry_run: bool = False) -> int:
    """Run every invocation captured in ``path`` through a converter.

    Args:
        path: JSON or JSON-lines capture of tail stream events
        config: Configuration with the collector settings
        dry_run: Print the export requests instead of sending them

    Returns:
        The number of invocations replayed
    """
    raw_events = read_events(path)
    events = parse_events(raw_events, config.replay.exit_on_error)
    invocations = group_by_invocation(events)
    logger.info(
        f"Replaying {len(events)} event(s) from {len(invocations)} invocation(s)"
    )
    for invocation_id, invocation_events in invocations.items():
        logger.debug(
            f"Invocation {invocation_id}: {len(invocation_events)} event(s)"
        )
        await replay_invocation(
            invocation_events, build_exporter(config, dry_run)
        )
    return len(invocations)
