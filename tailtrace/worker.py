"""Host-facing entry points of the tail worker.

The runtime calls ``tail`` with batches of finished trace items and
``tail_stream`` once per invocation with its onset event. The handler
returned by ``tail_stream`` receives every following event of that
invocation.
"""

import json
import logging
from typing import Any, Optional

from tailtrace.config import Config
from tailtrace.converter import OTLPJsonExporter, TailStreamConverter
from tailtrace.models import Outcome, TailEvent

logger = logging.getLogger("tailtrace")


class StreamHandler:
    """Per-invocation event handler returned by ``TailWorker.tail_stream``."""

    def __init__(self, converter: TailStreamConverter):
        self.converter = converter

    async def __call__(self, event: TailEvent) -> None:
        await self.converter.handle_event(event)
        if isinstance(event.event, Outcome):
            await self.close()

    async def close(self) -> None:
        await self.converter.close()


class TailWorker:
    """Builds one converter per invocation from the worker configuration."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()

    def create_exporter(self) -> OTLPJsonExporter:
        return OTLPJsonExporter(
            endpoint=self.config.otel_endpoint,
            resource=self.config.resource(),
            timeout=self.config.export_timeout,
        )

    async def tail(self, events: list[Any]) -> None:
        """Log a batch of legacy tail items as JSON."""
        logger.info(json.dumps(events, default=str))

    async def tail_stream(
        self,
        onset: TailEvent,
        exporter: Optional[OTLPJsonExporter] = None,
    ) -> StreamHandler:
        """Start converting a new invocation.

        Args:
            onset: The invocation's first event
            exporter: Exporter to use instead of one built from the config

        Returns:
            The handler for the remaining events of the invocation
        """
        converter = TailStreamConverter(exporter or self.create_exporter())
        await converter.handle_event(onset)
        return StreamHandler(converter)
