import os
from dataclasses import dataclass, field
from typing import Literal
from urllib.parse import urlparse

import yaml
from opentelemetry.sdk.resources import Resource

from .converter.exporter import DEFAULT_EXPORT_TIMEOUT, DEFAULT_OTEL_ENDPOINT
from .exceptions import ConfigurationError

DEFAULT_CONFIG_PATH = "config.yaml"


@dataclass
class ReplayConfig:
    exit_on_error: bool = False
    dry_run: bool = False


@dataclass
class Config:
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = (
        "INFO"
    )
    otel_endpoint: str = DEFAULT_OTEL_ENDPOINT
    export_timeout: float = DEFAULT_EXPORT_TIMEOUT
    service_name: str = "cloudflare-worker"
    service_version: str = "1.0.0"
    replay: ReplayConfig = field(default_factory=ReplayConfig)

    def __post_init__(self):
        # value checking
        if self.log_level not in [
            "DEBUG",
            "INFO",
            "WARNING",
            "ERROR",
            "CRITICAL",
        ]:
            raise ValueError(f"Invalid log level: {self.log_level}")
        parsed = urlparse(self.otel_endpoint or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Invalid OTEL endpoint: {self.otel_endpoint}")
        if self.export_timeout <= 0:
            raise ValueError(
                f"Export timeout must be positive: {self.export_timeout}"
            )
        # type checking
        if isinstance(self.replay, dict):
            self.replay = ReplayConfig(**self.replay)

    def resource(self) -> Resource:
        """Resource attributes attached to every exported batch."""
        return Resource.create(
            {
                "service.name": self.service_name,
                "service.version": self.service_version,
            }
        )


def load_config(config_path: str | None = None) -> Config:
    """Load the configuration.

    The path comes from the argument, then the TAILTRACE_CONFIG environment
    variable, then ``config.yaml``. Only an explicitly requested file has to
    exist; without one the defaults are used. OTEL_ENDPOINT, when set,
    overrides the configured endpoint.
    """
    explicit = config_path or os.getenv("TAILTRACE_CONFIG")
    path = explicit or DEFAULT_CONFIG_PATH

    config_data: dict = {}
    if os.path.exists(path):
        with open(path) as f:
            config_data = yaml.safe_load(f) or {}
    elif explicit:
        raise ConfigurationError(
            f"Config file not found: {path}",
            "Check the path or unset TAILTRACE_CONFIG to use defaults",
        )

    if not isinstance(config_data, dict):
        raise ConfigurationError(
            f"Config file {path} must contain a mapping"
        )

    endpoint = os.getenv("OTEL_ENDPOINT")
    if endpoint:
        config_data["otel_endpoint"] = endpoint

    try:
        return Config(**config_data)
    except Exception as e:
        raise ConfigurationError(f"Error loading config: {e}") from e
