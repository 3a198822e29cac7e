"""Operation naming and tag extraction for onset and span-open events."""

import json
import logging
from collections.abc import Iterable
from typing import Any, Optional

from tailtrace.exceptions import ValidationError
from tailtrace.models import Attribute, Onset
from tailtrace.utils import parse_timestamp

logger = logging.getLogger("tailtrace")

DEFAULT_SERVICE_NAME = "cloudflare-worker"
DEFAULT_SERVICE_VERSION = "unknown"
DEFAULT_EXECUTION_MODEL = "stateless"


def get_operation_name(info: Optional[dict[str, Any]]) -> str:
    """Name the root span after the trigger that started the invocation.

    Args:
        info: The onset trigger info, keyed by ``type``

    Returns:
        The operation name, ``"unknown"`` for unrecognized triggers
    """
    if not isinstance(info, dict):
        return "unknown"

    trigger = info.get("type")
    if trigger == "fetch":
        return f"{info.get('method')} {info.get('url')}"
    if trigger == "scheduled":
        return f"scheduled:{info.get('cron')}"
    if trigger == "queue":
        return f"queue:{info.get('queueName')}"
    if trigger == "email":
        return f"email:{info.get('mailFrom')}"
    if trigger == "jsrpc":
        return f"rpc:{info.get('methodName')}"
    if trigger in ("alarm", "custom", "trace"):
        return trigger
    if trigger == "hibernatableWebSocket":
        inner = info.get("info")
        inner_type = inner.get("type") if isinstance(inner, dict) else None
        return f"websocket:{inner_type}"
    return "unknown"


def attributes_to_tags(attributes: Any) -> dict[str, Any]:
    """Turn an attribute list into tags, skipping it if it is malformed."""
    tags: dict[str, Any] = {}
    if attributes is None or isinstance(attributes, (str, bytes, dict)):
        return tags
    if not isinstance(attributes, Iterable):
        return tags
    for attr in attributes:
        if isinstance(attr, Attribute):
            tags[attr.name] = attr.value
        elif isinstance(attr, dict) and "name" in attr:
            tags[attr["name"]] = attr.get("value")
    return tags


def _join_script_tags(script_tags: Any) -> Optional[str]:
    if script_tags is None or isinstance(script_tags, (str, bytes, dict)):
        return None
    if not isinstance(script_tags, Iterable):
        return None
    return ",".join(str(tag) for tag in script_tags)


def _format_scheduled_time(value: Any) -> Optional[str]:
    if value is None:
        return None
    try:
        scheduled = parse_timestamp(value)
    except ValidationError:
        logger.debug(f"Ignoring malformed scheduledTime: {value!r}")
        return None
    return scheduled.isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def extract_onset_tags(onset: Onset) -> dict[str, Any]:
    """Collect the root span tags from an onset event."""
    version = onset.script_version
    tags: dict[str, Any] = {
        "service.name": onset.script_name or DEFAULT_SERVICE_NAME,
        "service.version": (
            version.get("id") if isinstance(version, dict) else None
        )
        or DEFAULT_SERVICE_VERSION,
        "execution.model": onset.execution_model or DEFAULT_EXECUTION_MODEL,
    }

    if onset.dispatch_namespace:
        tags["dispatch.namespace"] = onset.dispatch_namespace
    if onset.entrypoint:
        tags["entrypoint"] = onset.entrypoint
    script_tags = _join_script_tags(onset.script_tags)
    if script_tags:
        tags["script.tags"] = script_tags

    info = onset.info if isinstance(onset.info, dict) else {}
    trigger = info.get("type")
    if trigger == "fetch":
        tags["http.method"] = info.get("method")
        tags["http.url"] = info.get("url")
        if info.get("cfJson"):
            tags["cf.properties"] = json.dumps(info["cfJson"])
    elif trigger == "scheduled":
        tags["cron.expression"] = info.get("cron")
        scheduled_time = _format_scheduled_time(info.get("scheduledTime"))
        if scheduled_time:
            tags["scheduled.time"] = scheduled_time
    elif trigger == "queue":
        tags["queue.name"] = info.get("queueName")
        tags["queue.batch_size"] = info.get("batchSize")

    tags.update(attributes_to_tags(onset.attributes))
    return tags


def extract_span_open_tags(info: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Collect child span tags from span-open info."""
    if not isinstance(info, dict):
        return {}
    if info.get("type") == "fetch":
        return {"http.method": info.get("method"), "http.url": info.get("url")}
    if info.get("type") == "attributes":
        return attributes_to_tags(info.get("info"))
    return {}
