"""OTLP/HTTP JSON exporter."""

import logging
from typing import Optional

import httpx
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.util.instrumentation import InstrumentationScope

from tailtrace import __version__
from tailtrace.converter.formatter import format_spans
from tailtrace.models import Span

logger = logging.getLogger("tailtrace")

DEFAULT_OTEL_ENDPOINT = "http://localhost:4318/v1/traces"
DEFAULT_EXPORT_TIMEOUT = 10.0

TRACER_SCOPE = InstrumentationScope("tailtrace", __version__)


class OTLPJsonExporter:
    """Sends span batches to an OTLP/HTTP collector as JSON.

    A failed export is logged and reported through the return value; it is
    never retried and never raises.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_OTEL_ENDPOINT,
        resource: Optional[Resource] = None,
        timeout: float = DEFAULT_EXPORT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the exporter.

        Args:
            endpoint: The collector traces URL
            resource: Resource attached to every batch
            timeout: Request timeout in seconds
            client: HTTP client to use; one is created and owned otherwise
        """
        self.endpoint = endpoint
        self.resource = resource or Resource.create({})
        self.scope = TRACER_SCOPE
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def build_payload(self, spans: list[Span]) -> dict:
        return format_spans(spans, self.resource, self.scope)

    async def export(self, spans: list[Span]) -> bool:
        """Send one batch of spans.

        Args:
            spans: The spans to export

        Returns:
            True if the collector accepted the batch (or there was nothing
            to send), False otherwise
        """
        if not spans:
            logger.debug("No spans to export")
            return True

        payload = self.build_payload(spans)
        try:
            response = await self._get_client().post(
                self.endpoint,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Failed to export traces to OTEL endpoint {self.endpoint}: "
                f"HTTP {e.response.status_code}"
            )
            return False
        except Exception as e:
            # Bad endpoints fail outside httpx.HTTPError (e.g. an invalid port)
            logger.error(
                f"Failed to export traces to OTEL endpoint {self.endpoint}: {e!r}"
            )
            return False

        logger.debug(f"Exported {len(spans)} span(s) to {self.endpoint}")
        return True

    async def shutdown(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
