"""Config validation and diagnostic reporting for tailtrace."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

from tailtrace.config import Config
from tailtrace.converter.exporter import DEFAULT_OTEL_ENDPOINT

OTLP_TRACES_PATH = "/v1/traces"

# Nice-to-have settings that trigger warnings when left at their defaults
_NICE_TO_HAVE = {
    "otel_endpoint": (
        "spans are sent to a collector on localhost"
        f" ({DEFAULT_OTEL_ENDPOINT})"
    ),
    "service_version": "resource service.version is the placeholder 1.0.0",
}

_DEFAULTS = {
    "otel_endpoint": DEFAULT_OTEL_ENDPOINT,
    "service_version": "1.0.0",
}


def check_config(config: Config) -> dict[str, Any]:
    """Validate config and return a diagnostic report.

    Returns a dict with:
        endpoint: The configured collector endpoint
        errors: List of critical problems (the collector will reject spans)
        warnings: List of settings that are probably not what was meant
    """
    errors: list[dict[str, str]] = []
    warnings: list[dict[str, str]] = []

    parsed = urlparse(config.otel_endpoint)
    if not parsed.path.endswith(OTLP_TRACES_PATH):
        errors.append(
            {
                "field": "otel_endpoint",
                "message": (
                    f"Endpoint path '{parsed.path or '/'}' does not end with"
                    f" {OTLP_TRACES_PATH}, OTLP/HTTP collectors expect it"
                ),
            }
        )
    if parsed.scheme == "http" and parsed.hostname not in (
        "localhost",
        "127.0.0.1",
        "::1",
    ):
        warnings.append(
            {
                "field": "otel_endpoint",
                "message": "spans are sent to a remote host without TLS",
            }
        )

    for name, message in _NICE_TO_HAVE.items():
        if getattr(config, name) == _DEFAULTS[name]:
            warnings.append({"field": name, "message": message})

    return {
        "endpoint": config.otel_endpoint,
        "errors": errors,
        "warnings": warnings,
    }
